"""
Serve the proxy.

Usage:
    ORY_PROJECT_URL=https://<slug>.projects.oryapis.com python -m oryproxy [--port 4000]
"""

import argparse

import uvicorn

from oryproxy.vars import HOST, PORT


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Serve an Ory project from your own domain")
    parser.add_argument("--host", default=HOST or "0.0.0.0", help="Interface to listen on")
    parser.add_argument(
        "--port", type=int, default=int(PORT or 4000), help="Port to listen on"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    uvicorn.run("oryproxy.server:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
