"""Time ranges and the parsing of dates and relative durations."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from fractions import Fraction

_INT64_MAX = 2**63 - 1

_DATE = re.compile(
    r"(?P<year>\d{4})"
    r"(?:-(?P<month>\d{2})"
    r"(?:-(?P<day>\d{2})"
    r"(?:T(?P<hour>\d{2})"
    r"(?::(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?:[.,](?P<fraction>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})?"
    r")?)?)?)?"
)

_YEARS_MONTHS_DAYS = re.compile(r"[-+]?[0-9]+[yMd]")

_DURATION_PART = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]+)")

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _format_rfc3339(t: datetime) -> str:
    offset = t.utcoffset()
    stamp = t.strftime("%Y-%m-%dT%H:%M:%S")
    if offset is None or offset == timedelta(0):
        return stamp + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{stamp}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeRange:
    """A closed interval of time from ``start`` to ``end``."""

    start: datetime
    end: datetime

    def to_json(self) -> str:
        """Encode the range as a JSON array of two RFC 3339 time stamps."""
        return json.dumps(
            [_format_rfc3339(self.start), _format_rfc3339(self.end)],
            separators=(",", ":"),
        )

    def contains(self, t: datetime) -> bool:
        """Tell whether ``t`` lies inside the range, bounds included."""
        return not (t < self.start or t > self.end)

    def intersects(self, other: TimeRange) -> bool:
        """Tell whether the two ranges share at least one point in time."""
        return not (other.end < self.start or self.end < other.start)


def new_time_interval(a: datetime, b: datetime) -> TimeRange:
    """Create a range from two times in either order."""
    if b < a:
        a, b = b, a
    return TimeRange(a, b)


def year(year: int) -> TimeRange:
    """The range covering a whole calendar year in UTC."""
    return TimeRange(
        datetime(year, 1, 1, tzinfo=timezone.utc),
        datetime(year, 12, 31, 23, 59, 59, 999_999, tzinfo=timezone.utc),
    )


def guess_date(s: str) -> datetime | None:
    """Parse an RFC 3339 date time or a truncated form of one.

    Accepted are full time stamps with a zone, and without a zone
    down to minutes, hours, the day, the month or the year alone.
    Times without a zone are taken as UTC. Returns None on failure.
    """
    m = _DATE.fullmatch(s)
    if m is None:
        return None
    g = m.groupdict()
    tz = timezone.utc
    try:
        if g["tz"] and g["tz"] != "Z":
            sign = -1 if g["tz"][0] == "-" else 1
            hours, minutes = int(g["tz"][1:3]), int(g["tz"][4:6])
            if minutes >= 60:
                return None
            tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
        fraction = g["fraction"] or ""
        return datetime(
            int(g["year"]),
            int(g["month"] or 1),
            int(g["day"] or 1),
            int(g["hour"] or 0),
            int(g["minute"] or 0),
            int(g["second"] or 0),
            int(fraction[:6].ljust(6, "0")),
            tzinfo=tz,
        )
    except ValueError:
        return None


def _add_date(t: datetime, years: int, months: int, days: int) -> datetime:
    """Add years, months and days, letting overflowing days roll over."""
    month_index = t.month - 1 + months
    base = t.replace(
        year=t.year + years + month_index // 12, month=month_index % 12 + 1, day=1
    )
    return base + timedelta(days=t.day - 1 + days)


def _parse_clock_duration(s: str) -> timedelta:
    """Parse a duration such as '1h30m' or '-1.5s'."""
    original = s
    negative = False
    if s and s[0] in "+-":
        negative = s[0] == "-"
        s = s[1:]
    if s == "0":
        return timedelta(0)
    if not s:
        raise ValueError(f"time: invalid duration {_quote(original)}")
    total = 0
    pos = 0
    while pos < len(s):
        m = _DURATION_PART.match(s, pos)
        if m is None or (not m[1] and not m[2]):
            raise ValueError(f"time: invalid duration {_quote(original)}")
        unit = _UNITS.get(m[3])
        if unit is None:
            raise ValueError(
                f"time: unknown unit {_quote(m[3])} in duration {_quote(original)}"
            )
        total += int(m[1] or "0") * unit
        if m[2]:
            total += int(Fraction(int(m[2]), 10 ** len(m[2])) * unit)
        pos = m.end()
    if total > _INT64_MAX + (1 if negative else 0):
        raise ValueError(f"time: invalid duration {_quote(original)}")
    micros = total // 1000
    return timedelta(microseconds=-micros if negative else micros)


def parse_duration(s: str, reference: datetime) -> timedelta:
    """Parse a duration that may also use years ('y'), months ('M') and days ('d').

    Calendar units count backwards from ``reference``; the rest is parsed
    as hours, minutes, seconds and smaller units.
    """
    extra = timedelta(0)
    used = False

    def calendar(part: re.Match[str]) -> str:
        nonlocal extra, used
        used = True
        text = part.group()
        number = int(text[:-1])
        if not -_INT64_MAX - 1 <= number <= _INT64_MAX:
            raise ValueError(f"value out of range: {_quote(text[:-1])}")
        years = months = days = 0
        if text[-1] == "y":
            years = -number
        elif text[-1] == "M":
            months = -number
        else:
            days = -number
        try:
            date = _add_date(reference, years, months, days)
        except OverflowError as err:
            raise ValueError(f"date out of range: {_quote(text)}") from err
        extra += reference - date
        return ""

    rest = _YEARS_MONTHS_DAYS.sub(calendar, s)
    if used and rest == "":
        return extra
    return _parse_clock_duration(rest) + extra


def parse_time_range(s: str) -> TimeRange:
    """Parse a relative duration, a start date, or 'start, end'.

    A duration or a lone start date yields a range ending now.
    """
    s = s.strip()
    now = datetime.now(timezone.utc)
    try:
        duration = parse_duration(s, now)
    except ValueError:
        pass
    else:
        return new_time_interval(now - duration, now)

    first, found, second = s.partition(",")
    first, second = first.strip(), second.strip()
    start = guess_date(first)
    if start is None:
        raise ValueError(f"{_quote(first)} is not a valid RFC date time")
    if not found:
        return new_time_interval(start, now)
    end = guess_date(second)
    if end is None:
        raise ValueError(f"{_quote(second)} is not a valid RFC date time")
    return new_time_interval(start, end)