"""
1.0 Field Parsers
Turn raw <loc>, <lastmod>, <changefreq> and <priority> text into typed values.

Every parser here is total: malformed input gives None (field absent) and
never an exception, so one bad field cannot take down its entry or document.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Sequence, TypeVar
from urllib.parse import urljoin, urlsplit

from dateutil import parser as date_parser

from sitemap_tree.models import ChangeFrequency

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 1.1 Strict <lastmod> layouts (ASCII digits only), tried in this order before the lenient fallback
_DATE = r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
_TIME = r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
_OFFSET = r"(?P<offset>[+-]\d{2}:\d{2})"

STRICT_DATE_PATTERNS = [
    re.compile(rf"^{_DATE}T{_TIME}\.(?P<fraction>\d{{7}})Z$", re.ASCII),
    re.compile(rf"^{_DATE}T{_TIME}\.(?P<fraction>\d{{7}}){_OFFSET}$", re.ASCII),
    re.compile(rf"^{_DATE}T{_TIME}{_OFFSET}$", re.ASCII),
    re.compile(rf"^{_DATE} {_TIME}$", re.ASCII),
    re.compile(rf"^{_DATE}$", re.ASCII),
]

# Components missing from a lenient parse ("2020-05", "May 2020") come from here
LENIENT_DEFAULT = datetime(2000, 1, 1)

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s")


# =========================================================================
# 2.0 FALLBACK CHAIN
# =========================================================================

def first_success(parsers: Sequence[Callable[[str], Optional[T]]], raw: str) -> Optional[T]:
    """
    2.1 Run parsers in order and return the first non-None result.

    A parser signals "not mine" by returning None or raising ValueError /
    OverflowError. Running out of parsers gives None.
    """
    for parse in parsers:
        try:
            result = parse(raw)
        except (ValueError, OverflowError):
            continue
        if result is not None:
            return result
    return None


# =========================================================================
# 3.0 URIS
# =========================================================================

def _is_absolute_uri(uri: str) -> bool:
    if _WHITESPACE_RE.search(uri):
        return False
    try:
        parts = urlsplit(uri)
        parts.port  # raises ValueError for a non-numeric or out of range port
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


def resolve_uri(base: Optional[str], raw: Optional[str]) -> Optional[str]:
    """
    3.1 Resolve a <loc> value to an absolute URI.

    With a base, raw is a reference resolved against it (an absolute raw
    replaces the base). Without a usable base, raw must already be absolute.

    Returns:
        The absolute URI, or None if either input is malformed
    """
    if raw is None:
        return None
    value = raw.strip().replace(" ", "%20")
    if not value:
        return None

    # An absolute reference stands on its own, whatever the base
    if _is_absolute_uri(value):
        return value

    base_value = (base or "").strip()
    if not base_value:
        return None
    if not _is_absolute_uri(base_value):
        logger.debug(f"Cannot resolve {value!r} against a relative base location: {base!r}")
        return None

    try:
        resolved = urljoin(base_value, value)
    except ValueError:
        return None
    return resolved if _is_absolute_uri(resolved) else None


# =========================================================================
# 4.0 DATES
# =========================================================================

def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_offset(offset: Optional[str]) -> timezone:
    if not offset:
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    hours, minutes = offset[1:].split(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))


def _strict_parser(pattern: "re.Pattern[str]") -> Callable[[str], Optional[datetime]]:
    def parse(raw: str) -> Optional[datetime]:
        match = pattern.match(raw)
        if not match:
            return None
        parts = match.groupdict()
        # Seven digit fractions carry one digit beyond microsecond precision
        fraction = (parts.get("fraction") or "")[:6].ljust(6, "0")
        value = datetime(
            int(parts["year"]),
            int(parts["month"]),
            int(parts["day"]),
            int(parts.get("hour") or 0),
            int(parts.get("minute") or 0),
            int(parts.get("second") or 0),
            int(fraction),
            tzinfo=_parse_offset(parts.get("offset")),
        )
        return _to_utc(value)

    return parse


def _lenient_parse(raw: str) -> Optional[datetime]:
    return _to_utc(date_parser.parse(raw, default=LENIENT_DEFAULT))


STRICT_DATE_PARSERS = [_strict_parser(pattern) for pattern in STRICT_DATE_PATTERNS]
LENIENT_DATE_PARSERS = STRICT_DATE_PARSERS + [_lenient_parse]


def parse_datetime(raw: Optional[str], lenient: bool = True) -> Optional[datetime]:
    """
    4.1 Parse a <lastmod> value into a timezone-aware UTC datetime.

    The W3C layouts used by most generators are matched exactly first.
    Non-W3C values ("Tue, 03 Mar 2020 10:00:00 GMT", "2020-03-03T10:00Z")
    go through dateutil when lenient is set. Values without an offset are UTC.

    Args:
        raw: Text content of <lastmod>
        lenient: Fall back to dateutil when no strict layout matches

    Returns:
        A UTC datetime, or None if the value is blank or unparseable
    """
    if raw is None or not raw.strip():
        return None
    parsers = LENIENT_DATE_PARSERS if lenient else STRICT_DATE_PARSERS
    return first_success(parsers, raw.strip())


def max_date(values: Iterable[Optional[datetime]]) -> Optional[datetime]:
    """4.2 Latest of the present timestamps, None if there are none."""
    latest = None
    for value in values:
        if value is None:
            continue
        if latest is None or value > latest:
            latest = value
    return latest


# =========================================================================
# 5.0 CHANGE FREQUENCY AND PRIORITY
# =========================================================================

def parse_change_frequency(raw: Optional[str]) -> Optional[ChangeFrequency]:
    """5.1 Case-insensitive <changefreq> lookup, None for anything unrecognized."""
    if raw is None:
        return None
    try:
        return ChangeFrequency(raw.strip().lower())
    except ValueError:
        return None


def parse_priority(raw: Optional[str]) -> Optional[float]:
    """5.2 Parse <priority> and clamp it into [0.0, 1.0]."""
    if raw is None:
        return None
    value = raw.strip()
    if not _DECIMAL_RE.match(value):
        return None
    try:
        priority = float(value)
    except (ValueError, OverflowError):
        return None
    return min(1.0, max(0.0, priority))
