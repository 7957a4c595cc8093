import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "ory-proxy")
HOST = os.environ.get("HOSTNAME", "")
PORT = os.environ.get("PORT", "")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

# The Ory project the proxy forwards to, e.g. https://<slug>.projects.oryapis.com
ORY_PROJECT_URL = os.getenv("ORY_PROJECT_URL", os.getenv("ORY_SDK_URL", ""))
# Only needed for social sign in; password and code flows work without it
ORY_PROJECT_API_KEY = os.getenv("ORY_PROJECT_API_KEY", os.getenv("ORY_API_KEY", ""))
ORY_COOKIE_DOMAIN = os.getenv("ORY_COOKIE_DOMAIN", "localhost")
ORY_PROXY_PATH_PREFIX = os.getenv("ORY_PROXY_PATH_PREFIX", "/.ory")
ORY_PROXY_TIMEOUT = int(os.getenv("ORY_PROXY_TIMEOUT", "300"))

ORY_TRUST_X_FORWARDED_HEADERS = (
    os.getenv("ORY_TRUST_X_FORWARDED_HEADERS", "false").lower() == "true"
)

ORY_CORS_ENABLED = os.getenv("ORY_CORS_ENABLED", "false").lower() == "true"
ORY_CORS_ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("ORY_CORS_ALLOWED_ORIGINS", "").split(",") if o.strip()
]
ORY_CORS_ALLOW_CREDENTIALS = (
    os.getenv("ORY_CORS_ALLOW_CREDENTIALS", "true").lower() == "true"
)
