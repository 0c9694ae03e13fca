"""Lenient timestamp parsing for values read back from the stores."""
from __future__ import annotations
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from tienda.utilities.constants import LEGACY_DATE_FORMATS

__all__ = ["parse_date", "to_rfc3339"]

_FRACTION = re.compile(r'(\.\d{6})\d+')
# es-CR toLocaleString may append "a. m." / "p. m." after the time
_MERIDIEM = re.compile(r'\s*([ap])\.?\s*m\.?\s*$', re.IGNORECASE)


def _normalize(dt: datetime) -> datetime:
    # Aware values are compared in UTC; naive ones are taken as-is.
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _parse_text(text: str) -> Optional[datetime]:
    text = text.strip()
    if not text:
        return None
    iso = _FRACTION.sub(r'\1', text)
    if iso.endswith(('Z', 'z')):
        iso = iso[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass

    meridiem = _MERIDIEM.search(text)
    if meridiem:
        text = text[:meridiem.start()]
    for fmt in LEGACY_DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if meridiem:
            hour = parsed.hour % 12
            if meridiem.group(1).lower() == 'p':
                hour += 12
            parsed = parsed.replace(hour=hour)
        return parsed
    return None


def parse_date(value: Any) -> Optional[datetime]:
    """Return a naive datetime for ``value`` or None when it is not a recognizable date.

    Accepts datetime/date objects, ISO-8601 text, legacy locale strings and
    epoch milliseconds.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _normalize(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        parsed = _parse_text(value)
        return _normalize(parsed) if parsed else None
    return None


def to_rfc3339(value: datetime) -> str:
    """UTC RFC 3339 text with a trailing Z, as the document store expects."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')
