"""
Calendar-day helpers

Days travel as ISO strings (YYYY-MM-DD) in the stored documents. Timestamps
are reduced to the local calendar day they fall on.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Union

DayLike = Union[date, str]


def to_iso_date(value: Union[date, datetime, str, None]) -> Optional[str]:
    """Reduce a date, datetime or ISO string to a local YYYY-MM-DD

    Bare YYYY-MM-DD strings are taken as the calendar day they name; aware
    timestamps are converted to local time first.

    Returns:
        The ISO day, or None when the value is empty or unparseable
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text).isoformat()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_iso_date(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_day(value: DayLike) -> date:
    """Parse a day, raising ValueError for anything that is not one"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    iso = to_iso_date(value)
    if iso is None:
        raise ValueError(f"Not a calendar day: {value!r}")
    return date.fromisoformat(iso)


def iso_day(value: DayLike) -> str:
    return parse_day(value).isoformat()


def today_iso() -> str:
    return date.today().isoformat()


def shift_days(value: DayLike, days: int) -> str:
    return (parse_day(value) + timedelta(days=days)).isoformat()


def js_weekday(value: DayLike) -> int:
    """Weekday index with 0=Sunday ... 6=Saturday"""
    return (parse_day(value).weekday() + 1) % 7


def date_range(start: DayLike, end: DayLike) -> List[str]:
    """Inclusive list of days between start and end, in either order"""
    first, last = parse_day(start), parse_day(end)
    if first > last:
        first, last = last, first
    return [
        (first + timedelta(days=offset)).isoformat()
        for offset in range((last - first).days + 1)
    ]


def window(end: DayLike, days: int) -> List[str]:
    """The `days` calendar days ending at `end`, oldest first"""
    last = parse_day(end)
    return [(last - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def now_iso() -> str:
    """Current UTC timestamp in the client's format"""
    return _utc_iso(datetime.now(timezone.utc))


def local_noon_iso(value: DayLike) -> str:
    """Timestamp for 12:00 local time on a day, as UTC"""
    noon = datetime.combine(parse_day(value), time(12, 0)).astimezone()
    return _utc_iso(noon)


def _utc_iso(moment: datetime) -> str:
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")
