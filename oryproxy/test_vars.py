import importlib

import pytest


@pytest.fixture
def vars_module(monkeypatch):
    import oryproxy.vars as vars_module

    yield vars_module
    monkeypatch.undo()
    importlib.reload(vars_module)


def test_ory_settings_parsing(monkeypatch, vars_module):
    monkeypatch.setenv("ORY_PROJECT_URL", "https://slug.projects.oryapis.com")
    monkeypatch.setenv("ORY_TRUST_X_FORWARDED_HEADERS", "TRUE")
    monkeypatch.setenv(
        "ORY_CORS_ALLOWED_ORIGINS", "https://a.example.com, ,https://b.example.com"
    )
    monkeypatch.setenv("ORY_PROXY_TIMEOUT", "30")

    importlib.reload(vars_module)

    assert vars_module.ORY_PROJECT_URL == "https://slug.projects.oryapis.com"
    assert vars_module.ORY_TRUST_X_FORWARDED_HEADERS is True
    assert vars_module.ORY_CORS_ALLOWED_ORIGINS == [
        "https://a.example.com",
        "https://b.example.com",
    ]
    assert vars_module.ORY_PROXY_TIMEOUT == 30


def test_sdk_url_fallback(monkeypatch, vars_module):
    monkeypatch.delenv("ORY_PROJECT_URL", raising=False)
    monkeypatch.setenv("ORY_SDK_URL", "https://sdk.example")

    importlib.reload(vars_module)

    assert vars_module.ORY_PROJECT_URL == "https://sdk.example"
