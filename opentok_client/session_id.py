"""Codec for the structured session identifiers issued by the OpenTok service.

A session id looks like ``1_MX4xMjM0NTZ-fl...`` where ``1_`` is a version
prefix and the remainder is unpadded URL-safe base64 of ``~`` separated
fields::

    version ~ api_key ~ location ~ created_at ~ random_component ~ ...

Session ids arrive from outside the library, so :func:`decode_session_id`
never raises: a failure is returned as a :class:`DecodeError` instance.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any

_PREFIX_PATTERN = re.compile(r"^(\d)_")
_FIELD_SEPARATOR = "~"
_MIN_FIELDS = 4


class DecodeError(ValueError):
    """Describes why a session id could not be decoded."""


@dataclass(frozen=True)
class DecodedSessionId:
    version: str
    api_key: str
    location: str
    created_at: str
    random_component: str


def _b64decode(body: str) -> bytes:
    padded = body + "=" * (-len(body) % 4)
    return base64.b64decode(padded.replace("-", "+").replace("_", "/"), validate=True)


def decode_session_id(session_id: Any) -> DecodedSessionId | DecodeError:
    """Decode ``session_id`` or return a :class:`DecodeError` explaining the failure."""

    if not isinstance(session_id, str) or not session_id:
        return DecodeError("Session id must be a non-empty string")

    match = _PREFIX_PATTERN.match(session_id)
    if match is None:
        return DecodeError(f"Session id {session_id!r} has no version prefix")

    try:
        raw = _b64decode(session_id[match.end():])
        text = raw.decode("ascii")
    except (binascii.Error, ValueError):
        return DecodeError(f"Session id {session_id!r} is not valid base64")

    fields = text.split(_FIELD_SEPARATOR)
    if len(fields) < _MIN_FIELDS or not fields[1]:
        return DecodeError(f"Session id {session_id!r} is missing required fields")

    return DecodedSessionId(
        version=fields[0],
        api_key=fields[1],
        location=fields[2],
        created_at=fields[3],
        random_component=fields[4] if len(fields) > 4 else "",
    )


def encode_session_id(
    api_key: str | int,
    created_at: str,
    random_component: str,
    location: str = "",
    version: str = "1",
) -> str:
    """Build a session id in the service's format (used for fixtures and tooling)."""

    text = _FIELD_SEPARATOR.join(
        [version, str(api_key), location, created_at, random_component, ""]
    )
    body = base64.urlsafe_b64encode(text.encode("ascii")).decode("ascii").rstrip("=")
    return f"{version}_{body}"
