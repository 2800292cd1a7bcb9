"""Display formatting for agreement values.

Every value placed in a render context is pre-formatted here. Month and
weekday names are spelled out from fixed tables instead of ``strftime("%B")``
so rendered agreements never depend on the process locale.
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

logger = logging.getLogger(__name__)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

DATE_STYLES = frozenset({"short", "medium", "long", "full", "month_year"})

_CENTS = Decimal("0.01")

Amount = Decimal | int | float | str


def to_decimal(value: Amount | None) -> Decimal | None:
    """Convert a monetary value to Decimal.

    Floats go through ``str`` so 125.1 becomes Decimal("125.1"), not its
    binary approximation.

    Returns:
        Decimal value, or None for missing or unparseable input
    """
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        logger.warning("Invalid amount: %r", value)
        return None


def format_currency(value: Amount | None) -> str:
    """Format an amount to two decimal places with half-up rounding.

    Args:
        value: Amount as Decimal, number or numeric string

    Returns:
        Formatted amount without currency symbol ("125.00"); "0.00" when missing

    Examples:
        >>> format_currency(125)
        '125.00'
        >>> format_currency("99.995")
        '100.00'
        >>> format_currency(None)
        '0.00'
    """
    amount = to_decimal(value)
    if amount is None:
        return "0.00"
    return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))


def parse_date(value: date | datetime | str | None) -> date | None:
    """Parse a date value, accepting ISO strings.

    Returns:
        date instance, or None when missing or invalid
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        logger.warning("Invalid date: %r", value)
        return None


def format_date(value: date | datetime | str | None, style: str = "short") -> str:
    """Format a date for UK display.

    Args:
        value: Date, datetime or ISO string
        style: One of short (01/12/2025), medium (01 Dec 2025),
            long (01 December 2025), full (Monday, 01 December 2025),
            month_year (December 2025)

    Returns:
        Formatted date, or an empty string when the date is missing or invalid

    Raises:
        ValueError: If style is not a known date style
    """
    if style not in DATE_STYLES:
        raise ValueError(f"Unknown date style: {style}. Valid: {sorted(DATE_STYLES)}")

    parsed = parse_date(value)
    if parsed is None:
        return ""

    day = f"{parsed.day:02d}"
    month_name = MONTH_NAMES[parsed.month - 1]

    if style == "short":
        return f"{day}/{parsed.month:02d}/{parsed.year}"
    if style == "medium":
        return f"{day} {month_name[:3]} {parsed.year}"
    if style == "long":
        return f"{day} {month_name} {parsed.year}"
    if style == "full":
        return f"{WEEKDAY_NAMES[parsed.weekday()]}, {day} {month_name} {parsed.year}"
    return f"{month_name} {parsed.year}"


def join_address(*parts: str | None) -> str:
    """Join address parts with commas, skipping empty parts."""
    return ", ".join(part.strip() for part in parts if part and part.strip())


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_term_duration(
    start: date | datetime | str | None,
    end: date | datetime | str | None,
) -> str:
    """Describe a fixed term as whole months plus remaining days.

    The end date is the last day of the tenancy (inclusive), so 01/09/2025 to
    31/08/2026 is "12 Months".

    Args:
        start: First day of the term
        end: Last day of the term

    Returns:
        Duration such as "12 Months" or "5 Months 3 days"; empty when either
        date is missing
    """
    start_date = parse_date(start)
    end_date = parse_date(end)
    if start_date is None or end_date is None:
        return ""

    end_exclusive = end_date + timedelta(days=1)

    years = end_exclusive.year - start_date.year
    months = end_exclusive.month - start_date.month
    days = end_exclusive.day - start_date.day

    if days < 0:
        months -= 1
        prev_month = end_exclusive.month - 1 or 12
        prev_year = end_exclusive.year if end_exclusive.month > 1 else end_exclusive.year - 1
        days += calendar.monthrange(prev_year, prev_month)[1]

    if months < 0:
        years -= 1
        months += 12

    total_months = years * 12 + months

    parts: list[str] = []
    if total_months > 0:
        parts.append(_plural(total_months, "Month"))
    if days > 0:
        parts.append(_plural(days, "day"))

    return " ".join(parts) if parts else "0 days"
