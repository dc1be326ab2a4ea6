from __future__ import annotations

import re
from datetime import datetime, UTC
from typing import Optional
from urllib.parse import unquote


MS_PER_DAY = 24 * 60 * 60 * 1000
AGES_MESSAGE = "its been ages since"

_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]+")


class InvalidTaskName(ValueError):
    """Raised when a path carries malformed percent-encoding."""


def _decode_path(path: str) -> str:
    if _BAD_ESCAPE_RE.search(path):
        raise InvalidTaskName(f"Malformed percent-escape in path: {path!r}")
    try:
        return unquote(path, errors="strict")
    except UnicodeDecodeError as ex:
        raise InvalidTaskName(f"Percent-escapes are not valid UTF-8: {path!r}") from ex


def normalize_task_name(path: str) -> str:
    """Derive the canonical task name from a request path.

    Percent-escapes are decoded, leading/trailing slashes stripped, and every
    run of characters outside [A-Za-z0-9] collapsed to a single space.

    >>> normalize_task_name("/foo/bar!!/")
    'foo bar'
    >>> normalize_task_name("///")
    ''

    An empty result means "no specific task".
    Raises InvalidTaskName for malformed percent-encoding.
    """
    decoded = _decode_path(path).strip("/")
    return _NON_ALNUM_RE.sub(" ", decoded)


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a `Z` suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    iso = dt.astimezone(UTC).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO-8601 value; naive timestamps are taken as UTC.

    Raises ValueError when the value is not ISO-8601.
    """
    dt = datetime.fromisoformat(value.strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def days_elapsed(since: datetime, now: datetime) -> int:
    # Truncates toward zero; future-dated values give negative counts.
    elapsed_ms = (now - since).total_seconds() * 1000
    return int(elapsed_ms / MS_PER_DAY)


def days_since_message(since: Optional[datetime], now: datetime) -> str:
    if since is None:
        return AGES_MESSAGE
    days = days_elapsed(since, now)
    if days == 1:
        return "its been 1 day since"
    return f"its been {days} days since"
