"""Unit tests for the option validators shared by tokens and sessions."""

import math

import pytest

from opentok_client.validators import (
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    MAX_CONNECTION_DATA_BYTES,
    ValidationError,
    validate_archive_mode,
    validate_data,
    validate_expire_time,
    validate_location,
    validate_media_mode,
    validate_role,
)

NOW = 1_700_000_000.4


@pytest.mark.parametrize("role", ["subscriber", "publisher", "moderator"])
def test_validate_role_accepts_known_roles(role: str) -> None:
    assert validate_role(role) == role


def test_validate_role_defaults_to_publisher() -> None:
    assert validate_role(None) == "publisher"


@pytest.mark.parametrize("role", [5, "Publisher", "admin", "", ["publisher"]])
def test_validate_role_rejects_everything_else(role) -> None:
    with pytest.raises(ValidationError):
        validate_role(role)


def test_validate_expire_time_defaults_to_one_day() -> None:
    assert validate_expire_time(None, reference_time=NOW) == int(NOW) + DEFAULT_TOKEN_LIFETIME_SECONDS


def test_validate_expire_time_rounds_floats() -> None:
    assert validate_expire_time(NOW + 3600.6, reference_time=NOW) == int(round(NOW + 3600.6))


@pytest.mark.parametrize("value", ["not a time", "1700000000", True, math.inf, math.nan, {}])
def test_validate_expire_time_rejects_non_numeric(value) -> None:
    with pytest.raises(ValidationError):
        validate_expire_time(value, reference_time=NOW)


def test_validate_expire_time_allows_past_values(caplog: pytest.LogCaptureFixture) -> None:
    assert validate_expire_time(NOW - 60, reference_time=NOW) == int(round(NOW - 60))
    assert "not in the future" in caplog.text


def test_validate_data_limits() -> None:
    assert validate_data(None) is None
    assert validate_data("name=Johnny") == "name=Johnny"
    exact = "a" * MAX_CONNECTION_DATA_BYTES
    assert validate_data(exact) == exact

    with pytest.raises(ValidationError):
        validate_data("a" * (MAX_CONNECTION_DATA_BYTES + 1))
    with pytest.raises(ValidationError):
        validate_data({"dont": "work"})


def test_validate_data_counts_bytes_not_characters() -> None:
    # 500 two-byte characters fit; 501 do not.
    assert validate_data("é" * 500)
    with pytest.raises(ValidationError):
        validate_data("é" * 501)


def test_validate_location() -> None:
    assert validate_location(None) is None
    assert validate_location("12.34.56.78") == "12.34.56.78"
    for bad in ("not an ip address", "256.1.1.1", "1.2.3", "::1", 12345678):
        with pytest.raises(ValidationError):
            validate_location(bad)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("relayed", "relayed"),
        ("routed", "routed"),
        (None, "relayed"),
        ("blah", "relayed"),
        (3, "relayed"),
    ],
)
def test_validate_media_mode_is_permissive(value, expected: str) -> None:
    assert validate_media_mode(value) == expected


def test_validate_archive_mode() -> None:
    assert validate_archive_mode(None) is None
    assert validate_archive_mode("manual") == "manual"
    assert validate_archive_mode("always", "routed") == "always"

    with pytest.raises(ValidationError):
        validate_archive_mode("always", "relayed")
    with pytest.raises(ValidationError):
        validate_archive_mode("sometimes", "routed")
