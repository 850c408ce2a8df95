"""Credentials and configuration loading for the OpenTok client."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when credentials or configuration are invalid."""


DEFAULT_API_URL = "https://api.opentok.com"
DEFAULT_CONFIG_PATH = Path.home() / ".opentok.yaml"


@dataclass(frozen=True)
class Credentials:
    """Account identifier and secret used to sign tokens and authorize requests.

    ``api_key`` may be given as a non-empty string or a non-zero integer and is
    always stored as a string.
    """

    api_key: str
    api_secret: str = field(repr=False)

    def __post_init__(self) -> None:
        api_key = self.api_key
        if isinstance(api_key, bool) or not isinstance(api_key, (str, int)):
            raise ConfigurationError(
                f"api_key must be a string or an integer, not {type(api_key).__name__}"
            )
        if isinstance(api_key, int):
            if api_key == 0:
                raise ConfigurationError("api_key must be non-zero")
            object.__setattr__(self, "api_key", str(api_key))
        elif not api_key.strip():
            raise ConfigurationError("api_key must be a non-empty string")

        if not isinstance(self.api_secret, str) or not self.api_secret:
            raise ConfigurationError("api_secret must be a non-empty string")


@dataclass(frozen=True)
class TransportOptions:
    """Settings forwarded untouched to the HTTP transport.

    ``timeout`` is expressed in milliseconds; ``None`` lets the transport pick
    its own default.
    """

    api_url: str = DEFAULT_API_URL
    proxy: str | Mapping[str, str] | None = None
    timeout: int | None = None


@dataclass(frozen=True)
class ClientConfig:
    credentials: Credentials
    transport: TransportOptions = field(default_factory=TransportOptions)


def transport_options_from(options: Any) -> TransportOptions:
    """Interpret the third ``OpenTok`` constructor argument.

    A string is a base URL override; a mapping may carry ``api_url`` (or
    ``apiUrl``), ``proxy`` and ``timeout``.
    """

    if options is None:
        return TransportOptions()
    if isinstance(options, TransportOptions):
        return options
    if isinstance(options, str):
        return TransportOptions(api_url=options or DEFAULT_API_URL)
    if not isinstance(options, Mapping):
        raise ConfigurationError(
            f"client options must be a URL string or a mapping, not {type(options).__name__}"
        )

    known = {"api_url", "apiUrl", "proxy", "timeout"}
    ignored = sorted(str(key) for key in options if key not in known)
    if ignored:
        logger.debug("Ignoring unknown client options: %s", ", ".join(ignored))

    api_url = _first_value(options.get("api_url"), options.get("apiUrl"), DEFAULT_API_URL)
    return TransportOptions(
        api_url=api_url,
        proxy=options.get("proxy"),
        timeout=_coerce_timeout(options.get("timeout"), source="client options"),
    )


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(
            f"Expected {path} to contain a YAML object with an 'opentok' section"
        )
    return loaded


def _coerce_timeout(raw: Any, *, source: str) -> int | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ConfigurationError(f"Invalid timeout in {source}: {raw}")
    try:
        timeout = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid timeout in {source}: {raw}") from exc
    if timeout <= 0:
        raise ConfigurationError(
            f"Timeout in {source} must be a positive number of milliseconds: {raw}"
        )
    return timeout


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _check_api_url(raw: str) -> str:
    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.hostname:
        raise ConfigurationError(f"Invalid API URL: {raw}")
    return raw.rstrip("/")


def load_client_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ClientConfig:
    """Load client configuration from overrides, the environment and optional YAML.

    Values are resolved in that order of precedence. The YAML file is read from
    ``config_path`` when given (and must then exist), otherwise from
    ``~/.opentok.yaml`` when present::

        opentok:
          api_key: "123456"
          api_secret: "..."
          api_url: https://api.opentok.com
          proxy: http://localhost:8080
          timeout: 5000
    """

    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH

    file_config = _load_config_file(path, required=config_path is not None)
    section = file_config.get("opentok", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected 'opentok' to be a mapping in {path}")

    override_map = dict(overrides or {})

    api_key = _first_value(
        override_map.get("api_key"), env_map.get("OPENTOK_API_KEY"), section.get("api_key")
    )
    api_secret = _first_value(
        override_map.get("api_secret"),
        env_map.get("OPENTOK_API_SECRET"),
        section.get("api_secret"),
    )
    if not api_key or not api_secret:
        raise ConfigurationError(
            "OpenTok credentials must be provided via OPENTOK_API_KEY/OPENTOK_API_SECRET "
            "or a config file"
        )

    api_url = _first_value(
        override_map.get("api_url"),
        env_map.get("OPENTOK_API_URL") or None,
        section.get("api_url"),
        DEFAULT_API_URL,
    )
    proxy = _first_value(
        override_map.get("proxy"), env_map.get("OPENTOK_PROXY") or None, section.get("proxy")
    )
    timeout = _first_value(
        _coerce_timeout(override_map.get("timeout"), source="overrides"),
        _coerce_timeout(env_map.get("OPENTOK_TIMEOUT"), source="environment"),
        _coerce_timeout(section.get("timeout"), source=f"{path} opentok.timeout"),
    )

    return ClientConfig(
        credentials=Credentials(api_key=api_key, api_secret=str(api_secret)),
        transport=TransportOptions(
            api_url=_check_api_url(str(api_url)),
            proxy=proxy,
            timeout=timeout,
        ),
    )
