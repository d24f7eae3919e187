from datetime import date, datetime, time, timedelta, timezone, tzinfo
import calendar
from utils.constants import MONTH_FORMAT

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)
END_OF_DAY = time(23, 59, 59, 999000)


# ── Display date format options ───────────────────────────────────────────────

_STRFTIME_MAP = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
    "DD.MM.YYYY": "%d.%m.%Y",
}


def today(tz: tzinfo | None = None) -> date:
    return datetime.now(tz or timezone.utc).date()


def current_month_str(tz: tzinfo | None = None) -> str:
    return format_month(today(tz))


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    return None


def format_month(d: date) -> str:
    # strftime("%Y") drops leading zeros for years below 1000 on some platforms.
    return f"{d.year:04d}-{d.month:02d}"


def parse_month(month_str: str) -> date | None:
    """Return the first day of the given YYYY-MM month string."""
    if not month_str:
        return None
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except ValueError:
        return None


def _require_month(month_str: str) -> date:
    d = parse_month(month_str)
    if d is None:
        raise ValueError(f"Invalid month: {month_str}")
    return d


def month_range(month_str: str) -> tuple[date, date]:
    """Return (first_day, last_day) for a YYYY-MM month."""
    d = _require_month(month_str)
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d, d.replace(day=last_day)


def prev_month(month_str: str) -> str:
    return format_month(add_months(_require_month(month_str), -1))


def next_month(month_str: str) -> str:
    return format_month(add_months(_require_month(month_str), 1))


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def trailing_months(end_month: str, count: int) -> list[str]:
    """The `count` months ending at end_month, most recent first."""
    end = _require_month(end_month)
    return [format_month(add_months(end, -i)) for i in range(count)]


def months_between(first_month: str, last_month: str) -> list[str]:
    """Every month from first_month through last_month, oldest first.

    Empty when first_month is after last_month.
    """
    cursor = _require_month(first_month)
    last = _require_month(last_month)
    months = []
    while cursor <= last:
        months.append(format_month(cursor))
        cursor = add_months(cursor, 1)
    return months


def friendly_month(month_str: str) -> str:
    """Convert YYYY-MM to e.g. 'February 2026'."""
    d = parse_month(month_str)
    if d is None:
        return month_str
    return d.strftime("%B %Y")


# ── Timestamps & range boundaries ────────────────────────────────────────────
# Every range query and every bucketing step must use the same tz.


def to_epoch_ms(dt: datetime, tz: tzinfo | None = None) -> int:
    """Milliseconds since the epoch. Naive datetimes are read in tz (UTC if None)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz or timezone.utc)
    return (dt - EPOCH) // _ONE_MS


def from_epoch_ms(ms: int) -> datetime:
    """Aware UTC datetime for an epoch-milliseconds value."""
    return EPOCH + timedelta(milliseconds=int(ms))


def local_day(dt: datetime, tz: tzinfo) -> date:
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(tz).date()


def month_of(dt: datetime, tz: tzinfo) -> str:
    return format_month(local_day(dt, tz))


def start_of_day(d: date, tz: tzinfo) -> datetime:
    return datetime.combine(d, time.min, tzinfo=tz)


def end_of_day(d: date, tz: tzinfo) -> datetime:
    return datetime.combine(d, END_OF_DAY, tzinfo=tz)


def day_bounds(start_date: date, end_date: date, tz: tzinfo) -> tuple[int, int]:
    """Inclusive (start_ms, end_ms): 00:00:00.000 of start_date to 23:59:59.999 of end_date."""
    return (
        to_epoch_ms(start_of_day(start_date, tz)),
        to_epoch_ms(end_of_day(end_date, tz)),
    )


def month_bounds(month_str: str, tz: tzinfo) -> tuple[int, int]:
    first, last = month_range(month_str)
    return day_bounds(first, last, tz)


def year_bounds(year: int, tz: tzinfo) -> tuple[int, int]:
    return day_bounds(date(year, 1, 1), date(year, 12, 31), tz)


# ── Display helpers ──────────────────────────────────────────────────────────


def format_display_date(d: date | None, fmt_key: str = "MM/DD/YYYY") -> str:
    """Render a date in the user-facing display format."""
    if d is None:
        return ""
    return d.strftime(_STRFTIME_MAP.get(fmt_key, "%m/%d/%Y"))


def parse_display_date(display_str: str, fmt_key: str) -> date | None:
    """Parse a date in the given display format. Returns None on failure.

    Falls back to ISO 8601 parse if the display format doesn't match.
    """
    if not display_str:
        return None
    fmt = _STRFTIME_MAP.get(fmt_key, "%m/%d/%Y")
    try:
        return datetime.strptime(display_str.strip(), fmt).date()
    except ValueError:
        return parse_date(display_str.strip())


def friendly_day(d: date, reference: date) -> str:
    """'Today (Mar 05)', 'Yesterday (Mar 04)', 'Mar 02 Monday' or 'Dec 30 2025 Tuesday'."""
    if d == reference:
        return f"Today ({d.strftime('%b %d')})"
    if d == reference - timedelta(days=1):
        return f"Yesterday ({d.strftime('%b %d')})"
    if d.year == reference.year:
        return d.strftime("%b %d %A")
    return d.strftime("%b %d %Y %A")
