"""Date Anchor — parsing, normalization and quarter alignment of cohort dates.

Invariants:
    - All functions are PURE: no IO, no async, no clock reads except utc_today()
    - Arithmetic is on calendar dates only (no datetimes, no timezones)
    - Unparseable input is returned unchanged by normalize/align_to_quarter_start;
      callers validate with parse_date() before trusting the result
    - align_to_quarter_start always yields day 1 of Jan/Apr/Jul/Oct and is idempotent
    - end = start + 1 year - 1 day; deadline = start + 17 days

Design Decisions:
    - resolve_start() is the single place that decides Anchored vs Legacy;
      create/update/normalize paths consume its result instead of re-deriving it
    - Feb 29 + 1 year rolls to Mar 1 before the -1 day step, so the end date is Feb 28
"""

import re
from datetime import date, datetime, timedelta, timezone

from reading_cohorts.core.domain_types import (
    AnchoredStart, CohortDates, LegacyStart, StartDate,
)

LEGACY_CUTOFF_YEAR = 2023
REGISTRATION_WINDOW_DAYS = 17
QUARTER_ANCHOR_MONTHS = (1, 4, 7, 10)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_US_SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_US_DASH_DOT_RE = re.compile(r"^(\d{1,2})[-.](\d{1,2})[-.](\d{4})$")


def utc_today() -> date:
    """Wall-clock calendar day in UTC."""
    return datetime.now(timezone.utc).date()


def parse_date(raw: str | date | None) -> date | None:
    """Parse any accepted format into a date. None when unparseable."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    text = raw.strip()
    for pattern, order in (
        (_ISO_RE, ("y", "m", "d")),
        (_US_SLASH_RE, ("m", "d", "y")),
        (_US_DASH_DOT_RE, ("m", "d", "y")),
    ):
        match = pattern.match(text)
        if not match:
            continue
        parts = dict(zip(order, (int(g) for g in match.groups()[:3])))
        try:
            return date(parts["y"], parts["m"], parts["d"])
        except ValueError:
            return None
    return None


def normalize(raw: str | date) -> str | date:
    """Canonical ISO day for any accepted format; input unchanged if unparseable."""
    parsed = parse_date(raw)
    if parsed is None:
        return raw
    return parsed.isoformat()


def is_legacy(raw: str | date, cutoff_year: int = LEGACY_CUTOFF_YEAR) -> bool:
    parsed = parse_date(raw)
    if parsed is None:
        return False
    return parsed.year <= cutoff_year


def quarter_anchor_month(month: int) -> int:
    """Map 1-12 onto the first month of its quarter."""
    return QUARTER_ANCHOR_MONTHS[(month - 1) // 3]


def align_to_quarter_start(raw: str | date) -> str | date:
    """Day 1 of the quarter containing raw, as ISO text; input unchanged if unparseable."""
    parsed = parse_date(raw)
    if parsed is None:
        return raw
    return align_date(parsed).isoformat()


def align_date(value: date) -> date:
    return date(value.year, quarter_anchor_month(value.month), 1)


def add_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # Feb 29 into a non-leap year
        return date(value.year + years, 3, 1)


def add_months(value: date, months: int) -> date:
    """Calendar month shift, clamping the day to the target month's length."""
    index = value.month - 1 + months
    year, month = value.year + index // 12, index % 12 + 1
    day = value.day
    while True:
        try:
            return date(year, month, day)
        except ValueError:
            day -= 1


def derive_end_and_deadline(
    start: str | date, window_days: int = REGISTRATION_WINDOW_DAYS,
) -> tuple[date, date]:
    """(end_date, registration_deadline) for a start date."""
    parsed = parse_date(start)
    if parsed is None:
        raise ValueError(f"cannot derive dates from unparseable start {start!r}")
    end = add_years(parsed, 1) - timedelta(days=1)
    deadline = parsed + timedelta(days=window_days)
    return end, deadline


def resolve_start(
    raw: str | date, cutoff_year: int = LEGACY_CUTOFF_YEAR,
) -> StartDate | None:
    """Decide once whether a start date is anchored or legacy. None if unparseable."""
    parsed = parse_date(raw)
    if parsed is None:
        return None
    if parsed.year <= cutoff_year:
        return LegacyStart(parsed)
    return AnchoredStart(align_date(parsed))


def cohort_dates(
    start: StartDate, window_days: int = REGISTRATION_WINDOW_DAYS,
) -> CohortDates:
    end, deadline = derive_end_and_deadline(start.value, window_days)
    return CohortDates(
        start_date=start.value,
        end_date=end,
        registration_deadline=deadline,
        is_legacy=start.is_legacy,
    )


def cohort_name(start: date, program: str, suffix: str) -> str:
    """'<Program> <Month> <Year> <Suffix>' from the start's month and year."""
    month = MONTH_NAMES[start.month - 1]
    return " ".join(part for part in (program, month, str(start.year), suffix) if part)


def day_offset(start: date, today: date) -> int:
    """Whole days elapsed since start (0 on the start day itself)."""
    return (today - start).days
