"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from hegel.config import DEFAULT_CUSTOM_ENDPOINTS, HegelConfig, load_config
from hegel.errors import ConfigurationError

_ENV_KEYS = (
    "DATA_MODEL_VERSION",
    "HEGEL_FACILITY",
    "HEGEL_HTTP_HOST",
    "HEGEL_HTTP_PORT",
    "CUSTOM_ENDPOINTS",
    "TRUSTED_PROXIES",
    "CACHER_GRPC_AUTHORITY",
    "CACHER_CERT_URL",
    "TINKERBELL_GRPC_AUTHORITY",
    "TINKERBELL_CERT_URL",
    "GIT_REV",
    "HEGEL_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def missing(tmp_path):
    return tmp_path / "absent.ini"


def test_defaults(missing):
    config = load_config(missing)
    assert config == HegelConfig()
    assert config.facility == "onprem"
    assert config.http_port == 50061
    assert config.custom_endpoints == DEFAULT_CUSTOM_ENDPOINTS
    assert not config.use_current_backend


def test_environment(monkeypatch, missing):
    monkeypatch.setenv("DATA_MODEL_VERSION", "1")
    monkeypatch.setenv("HEGEL_FACILITY", "ewr1")
    monkeypatch.setenv("HEGEL_HTTP_PORT", "8080")
    monkeypatch.setenv("TRUSTED_PROXIES", "10.0.0.0/8")
    monkeypatch.setenv("TINKERBELL_GRPC_AUTHORITY", "tink:42113")

    config = load_config(missing)

    assert config.use_current_backend
    assert config.facility == "ewr1"
    assert config.http_port == 8080
    assert config.trusted_proxies == "10.0.0.0/8"
    assert config.tink_grpc_authority == "tink:42113"


def test_ini_then_env_then_overrides(monkeypatch, tmp_path):
    ini = tmp_path / "hegel.ini"
    ini.write_text(
        "[http]\nport = 9000\nhost = 127.0.0.1\n"
        "[upstream]\nfacility = sjc1\ndata_model_version = 1\n"
        "[endpoints]\ncustom_endpoints = {\"/userdata\": \".userdata\"}\n"
    )
    monkeypatch.setenv("HEGEL_FACILITY", "ewr1")

    config = load_config(ini, http_port=7000)

    assert config.http_host == "127.0.0.1"
    assert config.http_port == 7000
    assert config.facility == "ewr1"
    assert config.data_model_version == "1"
    assert config.custom_endpoints == '{"/userdata": ".userdata"}'


def test_unset_overrides_fall_through(monkeypatch, missing):
    monkeypatch.setenv("HEGEL_FACILITY", "ewr1")
    config = load_config(missing, facility=None, http_port=None)
    assert config.facility == "ewr1"
    assert config.http_port == 50061


def test_bad_port(monkeypatch, missing):
    monkeypatch.setenv("HEGEL_HTTP_PORT", "eighty")
    with pytest.raises(ConfigurationError):
        load_config(missing)


def test_cacher_upstream_follows_facility():
    config = HegelConfig(facility="ams1")
    assert config.cacher_authority == "cacher.ams1.packet.net:443"
    assert config.cacher_certificate_url == "https://cacher.ams1.packet.net/cert"
    override = HegelConfig(cacher_grpc_authority="localhost:42111")
    assert override.cacher_authority == "localhost:42111"
