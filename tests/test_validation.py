"""
Input normalization.
"""
from datetime import datetime, timedelta, timezone

import pytest
from solders.keypair import Keypair

from super_token.core.errors import InvalidAmount, InvalidTimeWindow
from super_token.core.validation import require_positive_amount, time_window, to_pubkey, to_unix_time

JAN_1_2024 = 1704067200


@pytest.mark.parametrize("value", [
    "2024-01-01",
    "2024-01-01T00:00:00",
    "2024-01-01T00:00:00Z",
    "2024-01-01T01:00:00+01:00",
    "2024-01-01T00:00:00.900",
    "1704067200",
    1704067200,
    datetime(2024, 1, 1),
    datetime(2024, 1, 1, 1, tzinfo=timezone(timedelta(hours=1))),
])
def test_to_unix_time(value):
    assert to_unix_time(value) == JAN_1_2024


@pytest.mark.parametrize("value", ["next tuesday", "", "2024-13-01", True])
def test_to_unix_time_rejects_garbage(value):
    with pytest.raises(InvalidTimeWindow):
        to_unix_time(value)


def test_time_window_requires_end_after_start():
    assert time_window("2024-01-01", "2024-05-01") == (JAN_1_2024, 1714521600)
    with pytest.raises(InvalidTimeWindow):
        time_window("2024-05-01", "2024-01-01")
    with pytest.raises(InvalidTimeWindow):
        time_window(100, 100)


@pytest.mark.parametrize("amount", [0, -1, 2 ** 64, 1.5, "10", True, None])
def test_require_positive_amount_rejects(amount):
    with pytest.raises(InvalidAmount):
        require_positive_amount(amount)


def test_require_positive_amount_accepts_u64_range():
    assert require_positive_amount(1) == 1
    assert require_positive_amount(2 ** 64 - 1) == 2 ** 64 - 1


def test_to_pubkey():
    key = Keypair().pubkey()
    assert to_pubkey(key) is key
    assert to_pubkey(f"  {key} ") == key
    with pytest.raises(ValueError):
        to_pubkey("not-a-key")


@pytest.mark.parametrize("value", ["99999999999999999999", 2 ** 63, -(2 ** 63) - 1])
def test_to_unix_time_rejects_values_outside_i64(value):
    with pytest.raises(InvalidTimeWindow):
        to_unix_time(value)


def test_to_unix_time_accepts_i64_bounds():
    assert to_unix_time(2 ** 63 - 1) == 2 ** 63 - 1
    assert to_unix_time(str(-(2 ** 63))) == -(2 ** 63)


def test_unordered_window_allowed_when_addressing_existing_vaults():
    assert time_window("2024-05-01", "2024-01-01", ordered=False) == (1714521600, JAN_1_2024)
