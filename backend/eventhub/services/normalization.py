"""
Derived-field normalization for Event writes.

All functions are pure. The event service decides which of them run, based
on the set of fields that changed in the write (see changed_fields()).
"""

import re
from datetime import timezone
from typing import Any, Iterable, Mapping

from dateutil import parser as dtparse
from dateutil.parser import isoparse as iso_parse

from eventhub.core.errors import ValidationError

_SLUG_STRIP = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_COLLAPSE = re.compile(r"[\s_-]+", re.ASCII)
_TIME = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")

# Numeric dates are month-first (MM/DD/YYYY) or year-first (YYYY-MM-DD).
_MONTH_FIRST = re.compile(r"^(\d{1,2})[/.-]\d{1,2}[/.-]\d{4}$")
_YEAR_FIRST = re.compile(r"^\d{4}[/.-](\d{1,2})[/.-]\d{1,2}$")


def slugify(title: str) -> str:
    """
    >>> slugify("My Cool Talk!!")
    'my-cool-talk'
    """
    slug = title.lower().strip()
    slug = _SLUG_STRIP.sub("", slug)
    slug = _SLUG_COLLAPSE.sub("-", slug)
    return slug.strip("-")


def normalize_date(value: str) -> str:
    """Parse a calendar date and return it as YYYY-MM-DD."""
    raw = value.strip()
    if not raw:
        raise ValidationError("invalid date", field="date")

    # dateutil swaps day and month when the month slot holds a value above 12
    numeric = _MONTH_FIRST.match(raw) or _YEAR_FIRST.match(raw)
    if numeric and int(numeric.group(1)) > 12:
        raise ValidationError("invalid date", field="date")

    try:
        parsed = iso_parse(raw)
    except (ValueError, OverflowError):
        try:
            parsed = dtparse.parse(raw, dayfirst=False)
        except (ValueError, OverflowError) as e:
            raise ValidationError("invalid date", field="date") from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def normalize_time(value: str) -> str:
    """Accept only zero-padded 24-hour HH:MM."""
    raw = value.strip()
    if not _TIME.match(raw):
        raise ValidationError("invalid time", field="time")
    return raw


def unique_items(items: Iterable[str]) -> list[str]:
    """Drop repeated items, keeping the first occurrence."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def changed_fields(previous: Mapping[str, Any], incoming: Mapping[str, Any]) -> frozenset[str]:
    """
    Names of fields in `incoming` whose value differs from `previous`.

    A create passes an empty `previous`, so every supplied field counts as
    changed. Tags compare as sets because their order carries no meaning.
    """
    changed = set()
    for name, value in incoming.items():
        if name not in previous:
            changed.add(name)
            continue
        old = previous[name]
        if name == "tags" and old is not None and value is not None:
            if set(old) != set(value):
                changed.add(name)
        elif old != value:
            changed.add(name)
    return frozenset(changed)
