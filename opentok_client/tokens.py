"""Local minting of signed OpenTok client tokens.

A token is ``T1==`` followed by base64 of::

    partner_id=<api_key>&sig=<hex hmac-sha1>:<payload>

where ``<payload>`` is a URL encoded query string of the token fields and the
signature covers exactly those payload bytes, keyed with the API secret.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import time
from typing import Any
from urllib.parse import parse_qsl, urlencode

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .config import Credentials
from .session_id import DecodeError, decode_session_id
from .validators import ValidationError, validate_data, validate_expire_time, validate_role

logger = logging.getLogger(__name__)

TOKEN_SENTINEL = "T1=="
_NONCE_BYTES = 8


class TokenDecodeError(ValueError):
    """Raised when a token string does not have the expected layout."""


def _new_nonce() -> str:
    return str(int.from_bytes(os.urandom(_NONCE_BYTES), "big"))


def _hmac_sha1(secret: str) -> hmac.HMAC:
    return hmac.HMAC(secret.encode("utf-8"), hashes.SHA1())


def sign_payload(payload: str, secret: str) -> str:
    """Return the hex HMAC-SHA1 of ``payload`` keyed with ``secret``."""

    mac = _hmac_sha1(secret)
    mac.update(payload.encode("utf-8"))
    return mac.finalize().hex()


def encode_token(fields: list[tuple[str, str]], api_key: str, secret: str) -> str:
    payload = urlencode(fields)
    signature = sign_payload(payload, secret)
    envelope = f"partner_id={api_key}&sig={signature}:{payload}"
    return TOKEN_SENTINEL + base64.b64encode(envelope.encode("utf-8")).decode("ascii")


def generate_token(
    session_id: Any,
    credentials: Credentials,
    role: Any = None,
    expire_time: Any = None,
    data: Any = None,
    now: float | None = None,
) -> str | None:
    """Mint a token for ``session_id`` or return ``None`` when any input is invalid.

    The session id must decode and belong to ``credentials.api_key``. Role,
    expire time and connection data are validated by :mod:`.validators`.
    """

    decoded = decode_session_id(session_id)
    if isinstance(decoded, DecodeError):
        logger.debug("Refusing to generate token: %s", decoded)
        return None
    if decoded.api_key != credentials.api_key:
        logger.debug(
            "Refusing to generate token: session belongs to api key %s, not %s",
            decoded.api_key,
            credentials.api_key,
        )
        return None

    create_time = time.time() if now is None else now
    try:
        resolved_role = validate_role(role)
        resolved_expire_time = validate_expire_time(expire_time, reference_time=create_time)
        connection_data = validate_data(data)
    except ValidationError as exc:
        logger.debug("Refusing to generate token: %s", exc)
        return None

    fields = [
        ("session_id", session_id),
        ("create_time", str(int(create_time))),
        ("expire_time", str(resolved_expire_time)),
        ("role", resolved_role),
        ("nonce", _new_nonce()),
    ]
    if connection_data is not None:
        fields.append(("connection_data", connection_data))
    return encode_token(fields, credentials.api_key, credentials.api_secret)


def _split_token(token: Any) -> tuple[str, str]:
    if not isinstance(token, str) or not token.startswith(TOKEN_SENTINEL):
        raise TokenDecodeError("Token must be a string starting with " + TOKEN_SENTINEL)
    try:
        envelope = base64.b64decode(token[len(TOKEN_SENTINEL):], validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        raise TokenDecodeError("Token body is not valid base64") from exc
    header, separator, payload = envelope.partition(":")
    if not separator:
        raise TokenDecodeError("Token body is missing the payload separator")
    return header, payload


def decode_token(token: Any) -> dict[str, str]:
    """Return the envelope and payload fields of ``token`` as one flat mapping."""

    header, payload = _split_token(token)
    decoded = dict(parse_qsl(header, keep_blank_values=True))
    decoded.update(parse_qsl(payload, keep_blank_values=True))
    return decoded


def verify_token_signature(token: Any, secret: str) -> bool:
    """Check that ``token`` was signed with ``secret`` and has not been altered."""

    try:
        header, payload = _split_token(token)
        signature = bytes.fromhex(dict(parse_qsl(header)).get("sig", ""))
    except (TokenDecodeError, ValueError):
        return False

    mac = _hmac_sha1(secret)
    mac.update(payload.encode("utf-8"))
    try:
        mac.verify(signature)
    except InvalidSignature:
        return False
    return True
