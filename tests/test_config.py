# ABAP ADT MCP Server
# File: tests/test_config.py
# Version: v1

from __future__ import annotations

import base64

import pytest

from mcp_abap_adt.config import SapConfig, get_config, reset_config
from mcp_abap_adt.errors import ConfigError


def test_basic_config_from_env() -> None:
    cfg = SapConfig.from_env()

    assert cfg.url == "https://sap.example.com:44300"
    assert cfg.auth_type == "basic"
    assert cfg.client == "100"
    assert cfg.username == "DEVELOPER"
    # '#' is part of the password, not a comment.
    assert cfg.password == "s3cret#pw"
    assert cfg.verify_tls is True
    assert cfg.timeout_ms() == 45000
    assert cfg.timeout_ms("csrf") == 15000
    assert cfg.timeout_ms("long") == 60000


def test_basic_auth_headers() -> None:
    headers = SapConfig.from_env().auth_headers()

    expected = base64.b64encode(b"DEVELOPER:s3cret#pw").decode("ascii")
    assert headers == {"X-SAP-Client": "100", "Authorization": f"Basic {expected}"}


def test_trailing_comments_are_stripped(monkeypatch) -> None:
    monkeypatch.setenv("SAP_CLIENT", "200   # dev client")
    monkeypatch.setenv("SAP_URL", "https://sap.example.com:44300 # system DEV")

    cfg = SapConfig.from_env()
    assert cfg.client == "200"
    assert cfg.url == "https://sap.example.com:44300"


@pytest.mark.parametrize("url", [None, "", "sap.example.com", "ftp://sap.example.com"])
def test_invalid_url_is_rejected(monkeypatch, url) -> None:
    if url is None:
        monkeypatch.delenv("SAP_URL")
    else:
        monkeypatch.setenv("SAP_URL", url)

    with pytest.raises(ConfigError, match="SAP_URL"):
        SapConfig.from_env()


def test_basic_auth_requires_client_and_credentials(monkeypatch) -> None:
    monkeypatch.delenv("SAP_CLIENT")
    with pytest.raises(ConfigError, match="SAP_CLIENT"):
        SapConfig.from_env()

    monkeypatch.setenv("SAP_CLIENT", "100")
    monkeypatch.delenv("SAP_PASSWORD")
    with pytest.raises(ConfigError, match="SAP_PASSWORD"):
        SapConfig.from_env()


def test_jwt_auth(monkeypatch) -> None:
    monkeypatch.setenv("SAP_AUTH_TYPE", "xsuaa")
    monkeypatch.setenv("SAP_JWT_TOKEN", "eyJhbGciOi")

    cfg = SapConfig.from_env()
    assert cfg.auth_type == "jwt"
    assert cfg.auth_headers()["Authorization"] == "Bearer eyJhbGciOi"


def test_jwt_without_token_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("SAP_AUTH_TYPE", "jwt")
    with pytest.raises(ConfigError, match="SAP_JWT_TOKEN"):
        SapConfig.from_env()


def test_unknown_auth_type(monkeypatch) -> None:
    monkeypatch.setenv("SAP_AUTH_TYPE", "kerberos")
    with pytest.raises(ConfigError, match="Unsupported"):
        SapConfig.from_env()


def test_tls_verification_switches(monkeypatch) -> None:
    monkeypatch.setenv("SAP_VERIFY_TLS", "false")
    assert SapConfig.from_env().verify_tls is False

    monkeypatch.setenv("SAP_VERIFY_TLS", "true")
    monkeypatch.setenv("TLS_REJECT_UNAUTHORIZED", "0")
    assert SapConfig.from_env().verify_tls is False


def test_timeouts_and_cache_limits_are_clamped(monkeypatch) -> None:
    monkeypatch.setenv("SAP_TIMEOUT_DEFAULT", "5")
    monkeypatch.setenv("SAP_TIMEOUT_CSRF", "not-a-number")
    monkeypatch.setenv("SAP_CACHE_TTL_SECONDS", "-1")
    monkeypatch.setenv("SAP_CACHE_MAX_ENTRIES", "7")

    cfg = SapConfig.from_env()
    assert cfg.timeout_default_ms == 1000
    assert cfg.timeout_csrf_ms == 15000
    assert cfg.cache_ttl_seconds == 0
    assert cfg.cache_max_entries == 7


def test_base_url_drops_path() -> None:
    cfg = SapConfig(url="https://sap.example.com:44300/sap/bc/adt/", auth_type="basic")
    assert cfg.base_url == "https://sap.example.com:44300"


def test_unknown_timeout_kind() -> None:
    with pytest.raises(ValueError):
        SapConfig.from_env().timeout_ms("forever")


def test_get_config_is_cached_until_reset(monkeypatch) -> None:
    first = get_config()
    monkeypatch.setenv("SAP_CLIENT", "300")
    assert get_config() is first

    reset_config()
    assert get_config().client == "300"
