"""Tests for local token minting, decoding and signature checks."""

import base64
import time

import pytest

from opentok_client.config import Credentials
from opentok_client.tokens import (
    TOKEN_SENTINEL,
    TokenDecodeError,
    decode_token,
    generate_token,
    sign_payload,
    verify_token_signature,
)

API_KEY = "123456"
API_SECRET = "1234567890abcdef1234567890abcdef1234567890"
SESSION_ID = "1_MX4xMjM0NTZ-flNhdCBNYXIgMTUgMTQ6NDI6MjMgUERUIDIwMTR-MC40OTAxMzAyNX4"
CREDENTIALS = Credentials(api_key=API_KEY, api_secret=API_SECRET)


def test_sign_payload_is_hex_hmac_sha1() -> None:
    assert sign_payload("abc", "key") == "4fd0b215276ef12f2b3e4c8ecac2811498b656fc"


def test_generate_token_defaults() -> None:
    now = time.time()
    token = generate_token(SESSION_ID, CREDENTIALS)

    assert isinstance(token, str)
    assert token.startswith(TOKEN_SENTINEL)
    assert verify_token_signature(token, API_SECRET)

    decoded = decode_token(token)
    assert decoded["partner_id"] == API_KEY
    assert decoded["session_id"] == SESSION_ID
    assert decoded["role"] == "publisher"
    assert decoded["nonce"]
    assert abs(int(decoded["create_time"]) - now) <= 10
    assert abs(int(decoded["expire_time"]) - (now + 86400)) <= 10
    assert "connection_data" not in decoded


def test_generate_token_uses_supplied_clock() -> None:
    token = generate_token(SESSION_ID, CREDENTIALS, now=1_000_000.0)
    decoded = decode_token(token)

    assert decoded["create_time"] == "1000000"
    assert decoded["expire_time"] == "1086400"


def test_generate_token_embeds_options() -> None:
    expire_time = int(time.time()) + 3600
    token = generate_token(
        SESSION_ID,
        CREDENTIALS,
        role="subscriber",
        expire_time=expire_time,
        data="name=Johnny&role=guest",
    )

    decoded = decode_token(token)
    assert decoded["role"] == "subscriber"
    assert decoded["expire_time"] == str(expire_time)
    assert decoded["connection_data"] == "name=Johnny&role=guest"
    assert verify_token_signature(token, API_SECRET)


@pytest.mark.parametrize(
    "options",
    [
        {"role": 5},
        {"expire_time": "not a time"},
        {"data": {"dont": "work"}},
        {"data": "a" * 1999},
    ],
)
def test_generate_token_returns_none_for_invalid_options(options) -> None:
    assert generate_token(SESSION_ID, CREDENTIALS, **options) is None


def test_generate_token_accepts_data_at_the_limit() -> None:
    assert generate_token(SESSION_ID, CREDENTIALS, data="a" * 1000)
    assert generate_token(SESSION_ID, CREDENTIALS, data="a" * 1001) is None


@pytest.mark.parametrize("session_id", [None, "", "blahblahblah"])
def test_generate_token_returns_none_for_bad_session_id(session_id) -> None:
    assert generate_token(session_id, CREDENTIALS) is None


def test_generate_token_rejects_session_of_another_account() -> None:
    other = Credentials(api_key="654321", api_secret=API_SECRET)

    assert generate_token(SESSION_ID, other) is None


def test_nonces_are_unique() -> None:
    tokens = [generate_token(SESSION_ID, CREDENTIALS, now=1_000_000.0) for _ in range(200)]
    nonces = [decode_token(token)["nonce"] for token in tokens]

    assert len(set(nonces)) == len(nonces)
    first = decode_token(tokens[0])
    second = decode_token(tokens[1])
    for key in ("session_id", "create_time", "expire_time", "role", "partner_id"):
        assert first[key] == second[key]


def test_verify_token_signature_detects_tampering() -> None:
    token = generate_token(SESSION_ID, CREDENTIALS, role="subscriber")
    envelope = base64.b64decode(token[len(TOKEN_SENTINEL):]).decode("utf-8")
    tampered_envelope = envelope.replace("role=subscriber", "role=moderator")
    tampered = TOKEN_SENTINEL + base64.b64encode(tampered_envelope.encode("utf-8")).decode("ascii")

    assert verify_token_signature(token, API_SECRET)
    assert not verify_token_signature(token, "wrong-secret")
    assert not verify_token_signature(tampered, API_SECRET)
    assert not verify_token_signature("T1==!!!", API_SECRET)
    assert not verify_token_signature(None, API_SECRET)


@pytest.mark.parametrize("token", [None, "", "abc", "T1==!!!", TOKEN_SENTINEL + "bm8tc2VwYXJhdG9y"])
def test_decode_token_rejects_malformed_tokens(token) -> None:
    with pytest.raises(TokenDecodeError):
        decode_token(token)
