import dataclasses

import pytest

from oryproxy.config import new_default_config
from oryproxy.errors import ProxyConfigurationError
from oryproxy.host_config import ORY_PATH_PREFIX, resolve_host_config


class TestResolveHostConfig:
    def test_project_host_becomes_upstream_and_target(self):
        config = new_default_config(
            "https://slug.projects.oryapis.com",
            cookie_domain="example.com",
            trust_x_forwarded_headers=True,
        )

        host_config = resolve_host_config(config)

        assert host_config.upstream_host == "slug.projects.oryapis.com"
        assert host_config.target_host == "slug.projects.oryapis.com"
        assert host_config.upstream_scheme == "https"
        assert host_config.target_scheme == "http"
        assert host_config.path_prefix == ORY_PATH_PREFIX == "/.ory"
        assert host_config.cookie_domain == "example.com"
        assert host_config.trust_forwarded_headers is True
        assert host_config.cors_enabled is False

    def test_port_is_kept(self):
        config = new_default_config("http://127.0.0.1:4433")

        host_config = resolve_host_config(config)

        assert host_config.upstream_host == "127.0.0.1:4433"
        assert host_config.upstream_origin == "https://127.0.0.1:4433"

    def test_path_prefix_ignores_route_prefix(self):
        config = new_default_config(
            "https://slug.projects.oryapis.com", proxy_route_path_prefix="/.ory/proxy"
        )

        assert resolve_host_config(config).path_prefix == "/.ory"

    def test_cors_settings_copied(self):
        options = {"allow_origins": ["https://app.example.com"]}
        config = new_default_config(
            "https://slug.projects.oryapis.com", cors_enabled=True, cors_options=options
        )

        host_config = resolve_host_config(config)

        assert host_config.cors_enabled is True
        assert host_config.cors_options == options
        assert host_config.cors_options is not options

    def test_host_config_is_immutable(self):
        host_config = resolve_host_config(
            new_default_config("https://slug.projects.oryapis.com")
        )

        with pytest.raises(dataclasses.FrozenInstanceError):
            host_config.upstream_host = "evil.example"

    @pytest.mark.parametrize(
        "project_url",
        ["https://example.com:notaport", "", "not a url", "/relative/path"],
    )
    def test_unusable_project_url(self, project_url):
        with pytest.raises(ProxyConfigurationError):
            resolve_host_config(new_default_config(project_url))
