"""Business dates for the ledger.

Transactions carry a YYYY-MM-DD business date that the user picks; the
created_at audit timestamp is separate and set by the database.
"""
from datetime import date, datetime
import calendar
from utils.constants import DATE_FORMAT, MONTH_FORMAT

_ISO_INPUT_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d")

_DISPLAY_FORMATS = {
    "DD/MM/YYYY": "%d/%m/%Y",
    "MM/DD/YYYY": "%m/%d/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
    "DD.MM.YYYY": "%d.%m.%Y",
}
_DEFAULT_DISPLAY = "%d/%m/%Y"


def today() -> date:
    return date.today()


def today_str() -> str:
    return format_date(today())


def current_month_str() -> str:
    return today().strftime(MONTH_FORMAT)


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_date(date_str: str) -> date | None:
    """YYYY-MM-DD (also with / or . separators), or None."""
    if not date_str:
        return None
    for fmt in _ISO_INPUT_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    return None


def coerce_date_str(value) -> str | None:
    """Normalize a date, datetime or date string to YYYY-MM-DD; None if it isn't one."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, str):
        d = parse_date(value.strip())
        return format_date(d) if d else None
    return None


# ── Months ────────────────────────────────────────────────────────────────────

def parse_month(month_str: str) -> date | None:
    """First day of a YYYY-MM month, or None."""
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except (TypeError, ValueError):
        return None


def _month_start(month_str: str) -> date:
    d = parse_month(month_str)
    if d is None:
        raise ValueError(f"Invalid month: {month_str}")
    return d


def add_months(d: date, n: int) -> date:
    """Shift by n months, clamping the day to the target month's length."""
    year, month = divmod(d.year * 12 + d.month - 1 + n, 12)
    month += 1
    return d.replace(year=year, month=month, day=min(d.day, calendar.monthrange(year, month)[1]))


def month_range(month_str: str) -> tuple[str, str]:
    """Inclusive (first_day, last_day) of a YYYY-MM month."""
    start = _month_start(month_str)
    end = start.replace(day=calendar.monthrange(start.year, start.month)[1])
    return format_date(start), format_date(end)


def prev_month(month_str: str) -> str:
    return add_months(_month_start(month_str), -1).strftime(MONTH_FORMAT)


def next_month(month_str: str) -> str:
    return add_months(_month_start(month_str), 1).strftime(MONTH_FORMAT)


def friendly_month(month_str: str) -> str:
    """'2026-02' → 'February 2026'; unparseable input is returned unchanged."""
    d = parse_month(month_str)
    return d.strftime("%B %Y") if d else month_str


# ── Display ───────────────────────────────────────────────────────────────────

def format_display_date(date_str: str, fmt_key: str = "DD/MM/YYYY") -> str:
    d = parse_date(date_str) if date_str else None
    if d is None:
        return date_str
    return d.strftime(_DISPLAY_FORMATS.get(fmt_key, _DEFAULT_DISPLAY))


def parse_display_date(display_str: str, fmt_key: str) -> date | None:
    """Parse user input in the chosen display format, falling back to ISO."""
    if not display_str:
        return None
    try:
        return datetime.strptime(
            display_str.strip(), _DISPLAY_FORMATS.get(fmt_key, _DEFAULT_DISPLAY)
        ).date()
    except ValueError:
        return parse_date(display_str)
