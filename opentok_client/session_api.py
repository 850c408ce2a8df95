"""Request construction, transport and response parsing for session creation.

The OpenTok REST endpoint takes a form encoded ``POST /session/create`` and
answers with a small XML document::

    <sessions><Session>
      <session_id>...</session_id><partner_id>...</partner_id><create_dt>...</create_dt>
    </Session></sessions>

Errors come back as ``<errorPayload><code/><message/></errorPayload>``.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping
from urllib.parse import urlencode

import requests
from requests import RequestException

from .config import Credentials, TransportOptions
from .session import Session
from .validators import (
    MEDIA_MODE_ROUTED,
    validate_archive_mode,
    validate_location,
    validate_media_mode,
)
from .version import __version__

if TYPE_CHECKING:
    from .client import OpenTok

logger = logging.getLogger(__name__)

SESSION_CREATE_PATH = "/session/create"
USER_AGENT = f"OpenTok-Python-SDK/{__version__}"
AUTH_HEADER = "X-TB-PARTNER-AUTH"
DEFAULT_TIMEOUT_SECONDS = 30.0


class SessionAPIError(RuntimeError):
    """Base class for failures while creating a session."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(SessionAPIError):
    """Raised when the service rejects the request, usually for bad credentials."""


class ServiceError(SessionAPIError):
    """Raised on server side failures or responses that cannot be understood."""


class TransportError(SessionAPIError):
    """Raised when the service could not be reached or the request timed out."""


@dataclass(frozen=True)
class SessionRequest:
    path: str
    headers: dict[str, str]
    body: str


def build_session_request(
    credentials: Credentials,
    media_mode: Any = None,
    location: Any = None,
    archive_mode: Any = None,
) -> SessionRequest:
    """Build the form request for ``POST /session/create``.

    Raises :class:`~opentok_client.validators.ValidationError` for a bad
    location or archive mode; an unknown media mode becomes ``relayed``.
    """

    resolved_media_mode = validate_media_mode(media_mode)
    resolved_location = validate_location(location)
    resolved_archive_mode = validate_archive_mode(archive_mode, resolved_media_mode)

    fields: list[tuple[str, str]] = []
    if resolved_location is not None:
        fields.append(("location", resolved_location))
    # The service names the flag after peer-to-peer: routed means p2p is off.
    fields.append(
        ("p2p.preference", "disabled" if resolved_media_mode == MEDIA_MODE_ROUTED else "enabled")
    )
    if resolved_archive_mode is not None:
        fields.append(("archiveMode", resolved_archive_mode))

    headers = {
        AUTH_HEADER: f"{credentials.api_key}:{credentials.api_secret}",
        "User-Agent": USER_AGENT,
        "Content-Type": "application/x-www-form-urlencoded",
        "Accept": "application/xml",
    }
    return SessionRequest(path=SESSION_CREATE_PATH, headers=headers, body=urlencode(fields))


def _error_message(body: str) -> str | None:
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return None
    message = root.findtext(".//message")
    return message.strip() if message else None


def parse_session_response(
    status_code: int,
    body: str,
    media_mode: str,
    location: str | None,
    api: "OpenTok",
    archive_mode: str | None = None,
) -> Session:
    """Turn a ``/session/create`` response into a :class:`Session`.

    Raises :class:`AuthenticationError` for 4xx responses and
    :class:`ServiceError` for anything else that is not a well formed success.
    """

    if 400 <= status_code < 500:
        detail = _error_message(body) or "request rejected"
        raise AuthenticationError(
            f"OpenTok rejected the session request ({status_code}): {detail}",
            status_code=status_code,
        )
    if not 200 <= status_code < 300:
        detail = _error_message(body)
        message = f"OpenTok failed to create a session ({status_code})"
        raise ServiceError(f"{message}: {detail}" if detail else message, status_code=status_code)

    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise ServiceError(
            "OpenTok returned a malformed session response", status_code=status_code
        ) from exc

    session_id = (root.findtext(".//session_id") or "").strip()
    if not session_id:
        raise ServiceError(
            "OpenTok session response did not contain a session_id", status_code=status_code
        )

    return Session(
        session_id=session_id,
        media_mode=media_mode,
        location=location,
        archive_mode=archive_mode,
        api=api,
    )


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: str


class SessionTransport:
    """Minimal ``requests`` wrapper that forwards proxy and timeout settings.

    A fresh ``requests.Session`` is opened per call so that one transport can be
    shared by concurrent callers without locking.
    """

    def __init__(self, options: TransportOptions) -> None:
        self.options = options

    @property
    def timeout_seconds(self) -> float:
        if self.options.timeout is None:
            return DEFAULT_TIMEOUT_SECONDS
        return self.options.timeout / 1000.0

    @property
    def proxies(self) -> dict[str, str] | None:
        proxy = self.options.proxy
        if proxy is None:
            return None
        if isinstance(proxy, Mapping):
            return dict(proxy)
        return {"http": proxy, "https": proxy}

    def url_for(self, path: str) -> str:
        return self.options.api_url.rstrip("/") + path

    def post(self, request: SessionRequest) -> TransportResponse:
        url = self.url_for(request.path)
        logger.debug("POST %s body=%s", url, request.body)
        try:
            with requests.Session() as http:
                response = http.request(
                    "POST",
                    url,
                    data=request.body,
                    headers=request.headers,
                    proxies=self.proxies,
                    timeout=self.timeout_seconds,
                )
        except requests.Timeout as exc:
            logger.error(
                "OpenTok request timed out after %.3fs",
                self.timeout_seconds,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise TransportError(
                f"OpenTok request timed out after {self.timeout_seconds * 1000:.0f}ms"
            ) from exc
        except RequestException as exc:
            logger.error(
                "OpenTok connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise TransportError(
                f"Could not reach OpenTok at {url}; check the API URL and proxy settings"
            ) from exc
        logger.debug("OpenTok responded %s from %s", response.status_code, url)
        return TransportResponse(status_code=response.status_code, body=response.text)
