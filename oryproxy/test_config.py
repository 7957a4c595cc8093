import dataclasses

import pytest

from oryproxy.config import OryConfig, new_default_config


class TestNewDefaultConfig:
    def test_defaults(self):
        config = new_default_config("https://slug.projects.oryapis.com")

        assert config.ory_project_url == "https://slug.projects.oryapis.com"
        assert config.ory_project_api_key == ""
        assert config.cookie_domain == "localhost"
        assert config.proxy_route_path_prefix == "/.ory"
        assert config.cors_enabled is False
        assert config.cors_options == {}
        assert config.trust_x_forwarded_headers is False
        assert config.request_logger is None
        assert config.response_logger is None

    def test_options_are_applied(self):
        def request_logger(exchange, proxy_request, body):
            pass

        config = new_default_config(
            "https://slug.projects.oryapis.com",
            cookie_domain="example.com",
            proxy_route_path_prefix="/.ory/proxy",
            ory_project_api_key="ory_pat_secret",
            cors_enabled=True,
            cors_options={"allow_origins": ["https://app.example.com"]},
            request_logger=request_logger,
        )

        assert config.cookie_domain == "example.com"
        assert config.proxy_route_path_prefix == "/.ory/proxy"
        assert config.ory_project_api_key == "ory_pat_secret"
        assert config.cors_enabled is True
        assert config.cors_options == {"allow_origins": ["https://app.example.com"]}
        assert config.request_logger is request_logger
        assert config.response_logger is None

    def test_unknown_option_rejected(self):
        with pytest.raises(TypeError, match="cookie_domian"):
            new_default_config("https://slug.projects.oryapis.com", cookie_domian="x")

    def test_config_is_immutable(self):
        config = new_default_config("https://slug.projects.oryapis.com")

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.cookie_domain = "evil.example"


class TestFromEnv:
    def test_reads_environment_values(self, monkeypatch):
        monkeypatch.setattr("oryproxy.vars.ORY_PROJECT_URL", "https://env.example")
        monkeypatch.setattr("oryproxy.vars.ORY_PROJECT_API_KEY", "key")
        monkeypatch.setattr("oryproxy.vars.ORY_COOKIE_DOMAIN", "env.example")
        monkeypatch.setattr("oryproxy.vars.ORY_TRUST_X_FORWARDED_HEADERS", True)
        monkeypatch.setattr("oryproxy.vars.ORY_CORS_ENABLED", False)
        monkeypatch.setattr("oryproxy.vars.ORY_CORS_ALLOWED_ORIGINS", [])

        config = OryConfig.from_env()

        assert config.ory_project_url == "https://env.example"
        assert config.ory_project_api_key == "key"
        assert config.cookie_domain == "env.example"
        assert config.trust_x_forwarded_headers is True
        assert config.cors_options == {}

    def test_cors_origins_become_middleware_options(self, monkeypatch):
        monkeypatch.setattr("oryproxy.vars.ORY_CORS_ENABLED", True)
        monkeypatch.setattr(
            "oryproxy.vars.ORY_CORS_ALLOWED_ORIGINS", ["https://app.example.com"]
        )
        monkeypatch.setattr("oryproxy.vars.ORY_CORS_ALLOW_CREDENTIALS", True)

        config = OryConfig.from_env()

        assert config.cors_enabled is True
        assert config.cors_options["allow_origins"] == ["https://app.example.com"]
        assert config.cors_options["allow_credentials"] is True
