"""
Period resolver: turn a time-period descriptor into an inclusive date range.

Descriptors come from the parameter extractor as dicts with a "type" tag,
e.g. {"type": "last_days", "days": 3} or {"type": "specific_month",
"month": "April", "year": 2025}. All arithmetic is done on plain dates; the
caller supplies "today" (see today_wib), so resolve_period never reads the clock.
"""
import calendar
import re
from datetime import date, datetime, timedelta, timezone

from config import WIB_UTC_OFFSET_HOURS

WIB = timezone(timedelta(hours=WIB_UTC_OFFSET_HOURS), "WIB")

INDONESIAN_MONTH_NAMES = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

PERIOD_TYPES = frozenset({
    "last_days",
    "last_week",
    "current_week",
    "current_month",
    "previous_month",
    "specific_month",
    "specific_date",
    "current_year",
    "previous_year",
    "specific_year",
})

_ISO_DATE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})\s*$")


class PeriodError(ValueError):
    """Base for descriptor validation errors; message is user-facing (Indonesian)."""


class InvalidMonthName(PeriodError):
    def __init__(self, month):
        self.month = month
        super().__init__("Nama bulan tidak valid: %s" % (month,))


class UnknownPeriodType(PeriodError):
    def __init__(self, period_type):
        self.period_type = period_type
        super().__init__("Tipe periode waktu tidak dikenal: %s" % (period_type,))


class InvalidPeriodValue(PeriodError):
    pass


def today_wib(now=None):
    """Current calendar date in WIB. `now` may be an aware datetime (tests)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        raise ValueError("today_wib needs an aware datetime")
    return now.astimezone(WIB).date()


def month_index(name):
    """1-based month for an Indonesian month name (case-insensitive)."""
    wanted = str(name or "").strip().lower()
    for i, month_name in enumerate(INDONESIAN_MONTH_NAMES, 1):
        if month_name.lower() == wanted:
            return i
    raise InvalidMonthName(name)


def month_bounds(year, month):
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def year_bounds(year):
    return date(year, 1, 1), date(year, 12, 31)


def parse_iso_date(value):
    """Parse YYYY-MM-DD numerically. Raises InvalidPeriodValue."""
    m = _ISO_DATE.match(value) if isinstance(value, str) else None
    if not m:
        raise InvalidPeriodValue("Format tanggal tidak valid (harus YYYY-MM-DD): %s" % (value,))
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        raise InvalidPeriodValue("Tanggal tidak valid: %s" % (value,))


def _int_field(period, key, minimum):
    raw = period.get(key)
    if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
        raw = None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidPeriodValue("Nilai '%s' pada periode %s tidak valid: %r" % (key, period.get("type"), period.get(key)))
    if value < minimum:
        raise InvalidPeriodValue("Nilai '%s' pada periode %s minimal %d, didapat %d" % (key, period.get("type"), minimum, value))
    return value


def _year_field(period, key="year"):
    year = _int_field(period, key, date.min.year)
    if year > date.max.year:
        raise InvalidPeriodValue("Tahun tidak valid: %s" % (year,))
    return year


def describe_range(start, end):
    return "%s hingga %s" % (start.isoformat(), end.isoformat())


def resolve_period(period, reference_date):
    """
    Resolve a descriptor against reference_date ("today" in WIB).
    Returns {"start": date, "end": date, "description": "YYYY-MM-DD hingga YYYY-MM-DD"}.
    Raises UnknownPeriodType, InvalidMonthName or InvalidPeriodValue.
    """
    if not isinstance(period, dict):
        raise UnknownPeriodType(period)
    period_type = period.get("type")
    if not isinstance(period_type, str) or period_type not in PERIOD_TYPES:
        raise UnknownPeriodType(period_type)
    today = reference_date

    if period_type == "last_days":
        days = _int_field(period, "days", 1)
        try:
            start, end = today - timedelta(days=days - 1), today
        except OverflowError:
            raise InvalidPeriodValue("Nilai 'days' pada periode last_days terlalu besar: %d" % days)
    elif period_type == "current_week":
        start, end = today - timedelta(days=today.weekday()), today
    elif period_type == "last_week":
        # Sunday before this week's Monday
        end = today - timedelta(days=today.isoweekday())
        start = end - timedelta(days=6)
    elif period_type == "current_month":
        start, end = month_bounds(today.year, today.month)
    elif period_type == "previous_month":
        count = _int_field(period, "count", 0)
        year, month0 = divmod(today.year * 12 + today.month - 1 - count, 12)
        if year < date.min.year:
            raise InvalidPeriodValue("Nilai 'count' pada periode previous_month terlalu besar: %d" % count)
        start, end = month_bounds(year, month0 + 1)
    elif period_type == "specific_month":
        month = month_index(period.get("month"))
        start, end = month_bounds(_year_field(period), month)
    elif period_type == "specific_date":
        start = end = parse_iso_date(period.get("date"))
    elif period_type == "current_year":
        start, end = year_bounds(today.year)
    elif period_type == "previous_year":
        count = _int_field(period, "count", 0)
        if today.year - count < date.min.year:
            raise InvalidPeriodValue("Nilai 'count' pada periode previous_year terlalu besar: %d" % count)
        start, end = year_bounds(today.year - count)
    elif period_type == "specific_year":
        start, end = year_bounds(_year_field(period))
    else:
        raise UnknownPeriodType(period_type)

    return {"start": start, "end": end, "description": describe_range(start, end)}
