"""Validation helpers for token and session options.

Every helper is pure: it returns the normalized value or raises
:class:`ValidationError`. Callers decide how a failure is reported, which
differs between token generation (falsy return) and session creation (error
passed to the callback).
"""

from __future__ import annotations

import ipaddress
import logging
import math
import time
from typing import Any

logger = logging.getLogger(__name__)

ROLE_SUBSCRIBER = "subscriber"
ROLE_PUBLISHER = "publisher"
ROLE_MODERATOR = "moderator"
ROLES = (ROLE_SUBSCRIBER, ROLE_PUBLISHER, ROLE_MODERATOR)
DEFAULT_ROLE = ROLE_PUBLISHER

MEDIA_MODE_RELAYED = "relayed"
MEDIA_MODE_ROUTED = "routed"
MEDIA_MODES = (MEDIA_MODE_RELAYED, MEDIA_MODE_ROUTED)

ARCHIVE_MODE_MANUAL = "manual"
ARCHIVE_MODE_ALWAYS = "always"
ARCHIVE_MODES = (ARCHIVE_MODE_MANUAL, ARCHIVE_MODE_ALWAYS)

DEFAULT_TOKEN_LIFETIME_SECONDS = 60 * 60 * 24
MAX_CONNECTION_DATA_BYTES = 1000


class ValidationError(ValueError):
    """Raised when an option value is not acceptable."""


def validate_role(role: Any) -> str:
    if role is None:
        return DEFAULT_ROLE
    if not isinstance(role, str) or role not in ROLES:
        raise ValidationError(f"Invalid role {role!r}; expected one of {', '.join(ROLES)}")
    return role


def validate_expire_time(expire_time: Any, reference_time: float | None = None) -> int:
    """Return the token expiry as whole unix seconds.

    ``None`` defaults to one day after ``reference_time`` (now when omitted).
    Expiry times in the past are accepted and only logged.
    """

    now = time.time() if reference_time is None else reference_time
    if expire_time is None:
        return int(now) + DEFAULT_TOKEN_LIFETIME_SECONDS
    if isinstance(expire_time, bool) or not isinstance(expire_time, (int, float)):
        raise ValidationError(f"Invalid expire time {expire_time!r}; expected unix seconds")
    if not math.isfinite(expire_time):
        raise ValidationError(f"Invalid expire time {expire_time!r}; expected a finite number")
    resolved = int(round(expire_time))
    if resolved <= now:
        logger.warning("Token expire time %s is not in the future", resolved)
    return resolved


def validate_data(data: Any) -> str | None:
    if data is None:
        return None
    if not isinstance(data, str):
        raise ValidationError(f"Connection data must be a string, not {type(data).__name__}")
    size = len(data.encode("utf-8"))
    if size > MAX_CONNECTION_DATA_BYTES:
        raise ValidationError(
            f"Connection data is {size} bytes; the limit is {MAX_CONNECTION_DATA_BYTES}"
        )
    return data


def validate_location(location: Any) -> str | None:
    if location is None:
        return None
    if not isinstance(location, str):
        raise ValidationError(f"Invalid location {location!r}; expected an IPv4 address")
    try:
        ipaddress.IPv4Address(location)
    except ipaddress.AddressValueError as exc:
        raise ValidationError(f"Invalid location {location!r}; expected an IPv4 address") from exc
    return location


def validate_media_mode(media_mode: Any) -> str:
    # Unknown values fall back to relayed instead of failing.
    if media_mode in MEDIA_MODES:
        return media_mode
    if media_mode is not None:
        logger.debug("Unknown media mode %r, using %s", media_mode, MEDIA_MODE_RELAYED)
    return MEDIA_MODE_RELAYED


def validate_archive_mode(archive_mode: Any, media_mode: str = MEDIA_MODE_RELAYED) -> str | None:
    if archive_mode is None:
        return None
    if archive_mode not in ARCHIVE_MODES:
        raise ValidationError(
            f"Invalid archive mode {archive_mode!r}; expected one of {', '.join(ARCHIVE_MODES)}"
        )
    if archive_mode == ARCHIVE_MODE_ALWAYS and media_mode != MEDIA_MODE_ROUTED:
        raise ValidationError("Archive mode 'always' requires the routed media mode")
    return archive_mode
