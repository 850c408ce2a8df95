"""Client facade for creating OpenTok sessions and minting tokens."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from .config import (
    ClientConfig,
    Credentials,
    TransportOptions,
    load_client_config,
    transport_options_from,
)
from .session import Session
from .session_api import (
    SessionAPIError,
    SessionTransport,
    build_session_request,
    parse_session_response,
)
from .tokens import generate_token
from .validators import ValidationError, validate_media_mode

logger = logging.getLogger(__name__)

SessionCallback = Callable[[Optional[Exception], Optional[Session]], Any]

_TOKEN_OPTION_ALIASES = {
    "role": "role",
    "expire_time": "expire_time",
    "expireTime": "expire_time",
    "data": "data",
}
_SESSION_OPTION_ALIASES = {
    "media_mode": "media_mode",
    "mediaMode": "media_mode",
    "location": "location",
    "archive_mode": "archive_mode",
    "archiveMode": "archive_mode",
}


class UsageError(TypeError):
    """Raised when the library is called incorrectly, e.g. without a callback."""


def _normalize_options(
    options: Any, aliases: Mapping[str, str], *, operation: str
) -> dict[str, Any]:
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise UsageError(
            f"{operation} options must be a mapping, not {type(options).__name__}"
        )
    normalized: dict[str, Any] = {}
    ignored: list[str] = []
    for key, value in options.items():
        name = aliases.get(key)
        if name is None:
            ignored.append(str(key))
            continue
        normalized[name] = value
    if ignored:
        logger.debug("Ignoring unknown %s options: %s", operation, ", ".join(sorted(ignored)))
    return normalized


class OpenTok:
    """Entry point holding the account credentials.

    ``options`` is either a base URL string or a mapping with ``api_url``,
    ``proxy`` and ``timeout`` (milliseconds). Bad credentials raise
    :class:`~opentok_client.config.ConfigurationError` immediately.
    """

    def __init__(
        self, api_key: str | int, api_secret: str | None = None, options: Any = None
    ) -> None:
        self._credentials = Credentials(api_key=api_key, api_secret=api_secret)
        self._transport_options = transport_options_from(options)

    @classmethod
    def from_config(cls, config: ClientConfig) -> "OpenTok":
        credentials = config.credentials
        return cls(credentials.api_key, credentials.api_secret, config.transport)

    @classmethod
    def from_env(
        cls,
        *,
        config_path: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "OpenTok":
        """Instantiate a client using environment variables or a config file."""

        return cls.from_config(load_client_config(config_path=config_path, env=env))

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def api_key(self) -> str:
        return self._credentials.api_key

    @property
    def api_secret(self) -> str:
        return self._credentials.api_secret

    @property
    def transport_options(self) -> TransportOptions:
        return self._transport_options

    @property
    def api_url(self) -> str:
        return self._transport_options.api_url

    @property
    def proxy(self) -> Any:
        return self._transport_options.proxy

    @property
    def timeout(self) -> int | None:
        return self._transport_options.timeout

    def __repr__(self) -> str:
        return f"OpenTok(api_key={self.api_key!r}, api_url={self.api_url!r})"

    def create_session(
        self, options: Any = None, callback: SessionCallback | None = None
    ) -> Any:
        """Create a session and report the outcome through ``callback(error, session)``.

        ``create_session(callback)`` is accepted as a shorthand when there are
        no options. Option keys are ``media_mode``, ``location`` and
        ``archive_mode``. Failures are passed to the callback as the first
        argument rather than raised; only a missing callback or malformed
        options raise :class:`UsageError`.
        """

        if callback is None and callable(options):
            options, callback = None, options
        if not callable(callback):
            raise UsageError("create_session requires a callback(error, session)")
        session_options = _normalize_options(
            options, _SESSION_OPTION_ALIASES, operation="create_session"
        )

        media_mode = validate_media_mode(session_options.get("media_mode"))
        location = session_options.get("location")
        archive_mode = session_options.get("archive_mode")
        try:
            request = build_session_request(
                self._credentials,
                media_mode=media_mode,
                location=location,
                archive_mode=archive_mode,
            )
        except ValidationError as exc:
            logger.info("Not creating session: %s", exc)
            return callback(exc, None)

        try:
            response = SessionTransport(self._transport_options).post(request)
            session = parse_session_response(
                response.status_code,
                response.body,
                media_mode=media_mode,
                location=location,
                api=self,
                archive_mode=archive_mode,
            )
        except SessionAPIError as exc:
            logger.info("Session creation failed: %s", exc)
            return callback(exc, None)

        logger.info("Created session %s (%s)", session.session_id, session.media_mode)
        return callback(None, session)

    def generate_token(
        self, session_id: Any = None, options: Any = None, **kwargs: Any
    ) -> str | None:
        """Mint a token for ``session_id``.

        Returns ``None`` when the session id does not belong to this account or
        when ``role``, ``expire_time`` or ``data`` is invalid; callers should
        check the result rather than catch exceptions.
        """

        token_options = _normalize_options(
            options, _TOKEN_OPTION_ALIASES, operation="generate_token"
        )
        token_options.update(
            _normalize_options(kwargs, _TOKEN_OPTION_ALIASES, operation="generate_token")
        )
        return generate_token(session_id, self._credentials, **token_options)
