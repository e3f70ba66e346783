"""Configuration for the Hegel metadata service.

Reads from config/hegel.ini if present, environment variables override,
explicit overrides (command line flags) win over both. Read once at startup.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

from hegel.errors import ConfigurationError

_CONFIG_FILE = Path(__file__).resolve().parent.parent.parent / "config" / "hegel.ini"

DEFAULT_CUSTOM_ENDPOINTS = '{"/metadata":".metadata"}'


@dataclass(frozen=True)
class HegelConfig:
    """Service configuration. Immutable once loaded."""

    data_model_version: str = ""
    facility: str = "onprem"
    http_host: str = "0.0.0.0"
    http_port: int = 50061
    custom_endpoints: str = DEFAULT_CUSTOM_ENDPOINTS
    trusted_proxies: str = ""
    cacher_grpc_authority: str = ""
    cacher_cert_url: str = ""
    tink_grpc_authority: str = ""
    tink_cert_url: str = ""
    git_rev: str = "unknown"
    log_level: str = "INFO"

    @property
    def use_current_backend(self) -> bool:
        return self.data_model_version == "1"

    @property
    def cacher_authority(self) -> str:
        return self.cacher_grpc_authority or f"cacher.{self.facility}.packet.net:443"

    @property
    def cacher_certificate_url(self) -> str:
        return self.cacher_cert_url or f"https://cacher.{self.facility}.packet.net/cert"


_INI_SECTIONS = {
    "http": [("host", "http_host"), ("port", "http_port")],
    "upstream": [
        ("data_model_version", "data_model_version"),
        ("facility", "facility"),
        ("cacher_grpc_authority", "cacher_grpc_authority"),
        ("cacher_cert_url", "cacher_cert_url"),
        ("tink_grpc_authority", "tink_grpc_authority"),
        ("tink_cert_url", "tink_cert_url"),
    ],
    "endpoints": [
        ("custom_endpoints", "custom_endpoints"),
        ("trusted_proxies", "trusted_proxies"),
    ],
}

_ENV_MAP = {
    "DATA_MODEL_VERSION": "data_model_version",
    "HEGEL_FACILITY": "facility",
    "HEGEL_HTTP_HOST": "http_host",
    "HEGEL_HTTP_PORT": "http_port",
    "CUSTOM_ENDPOINTS": "custom_endpoints",
    "TRUSTED_PROXIES": "trusted_proxies",
    "CACHER_GRPC_AUTHORITY": "cacher_grpc_authority",
    "CACHER_CERT_URL": "cacher_cert_url",
    "TINKERBELL_GRPC_AUTHORITY": "tink_grpc_authority",
    "TINKERBELL_CERT_URL": "tink_cert_url",
    "GIT_REV": "git_rev",
    "HEGEL_LOG_LEVEL": "log_level",
}


def _parse_port(value: str | int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid http port: {value!r}") from exc


def load_config(config_path: Path | None = None, **overrides) -> HegelConfig:
    """Load config from INI file, then environment variables, then overrides.

    Overrides set to None are ignored, so unset command line flags fall
    through to the environment.
    """
    path = config_path or _CONFIG_FILE
    kwargs: dict = {}

    if path.exists():
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(path)
        for section, keys in _INI_SECTIONS.items():
            if not parser.has_section(section):
                continue
            for ini_key, config_key in keys:
                val = parser.get(section, ini_key, fallback=None)
                if val is not None:
                    kwargs[config_key] = val

    for env_key, config_key in _ENV_MAP.items():
        val = os.getenv(env_key)
        if val is not None:
            kwargs[config_key] = val

    kwargs.update({k: v for k, v in overrides.items() if v is not None})

    if "http_port" in kwargs:
        kwargs["http_port"] = _parse_port(kwargs["http_port"])
    return HegelConfig(**kwargs)
