"""
Input normalization shared by the orchestrators and the CLI.
"""
import math
import re
from datetime import datetime, timezone
from typing import Tuple, Union

from solders.pubkey import Pubkey

from .errors import InvalidAmount, InvalidTimeWindow

TimeLike = Union[int, str, datetime]

_INTEGER_RE = re.compile(r"-?\d+")

# Vault times are i64 on chain
I64_MIN = -(2 ** 63)
I64_MAX = 2 ** 63 - 1


def to_pubkey(value: Union[str, Pubkey]) -> Pubkey:
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as e:
        raise ValueError(f"invalid public key {value!r}") from e


def require_positive_amount(amount) -> int:
    """Base units only; no decimal scaling is applied."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)
    if amount >= 2 ** 64:
        raise InvalidAmount(amount)
    return amount


def _parse_time(value: TimeLike) -> int:
    if isinstance(value, bool):
        raise InvalidTimeWindow(f"cannot parse time {value!r}")
    if isinstance(value, int):
        return value

    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if _INTEGER_RE.fullmatch(text):
            return int(text)
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidTimeWindow(
                f"cannot parse time {value!r}, expected YYYY-MM-DD, ISO datetime or Unix seconds"
            ) from None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return math.floor(dt.timestamp())


def to_unix_time(value: TimeLike) -> int:
    """
    Unix seconds from an int, a digit string, or an ISO-8601 date/datetime.

    Naive values are UTC, so "2024-01-01" is midnight UTC.
    Fractional seconds are floored. The result must fit in an i64.
    """
    seconds = _parse_time(value)
    if not I64_MIN <= seconds <= I64_MAX:
        raise InvalidTimeWindow(f"time {value!r} does not fit in a signed 64-bit integer")
    return seconds


def time_window(start: TimeLike, end: TimeLike, ordered: bool = True) -> Tuple[int, int]:
    """
    Parse a vault window. With ordered=False any pair is accepted, which is
    how existing vaults are addressed: the program itself does not order them.
    """
    start_time = to_unix_time(start)
    end_time = to_unix_time(end)
    if ordered and end_time <= start_time:
        raise InvalidTimeWindow(
            f"vault end ({end_time}) must be after start ({start_time})"
        )
    return start_time, end_time
