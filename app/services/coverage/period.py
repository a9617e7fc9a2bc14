"""Required period derivation from a claim's accident date."""

import calendar
from datetime import date, datetime
from typing import Union

from app.core.exceptions import ValidationError
from app.services.coverage.models import RequiredPeriod

DEFAULT_REQUIRED_MONTHS = 3


def shift_months(day: date, months: int) -> date:
    """Move a date by whole calendar months.

    The day of month is clamped to the length of the target month, so
    2025-05-31 shifted by -3 lands on 2025-02-28.
    """
    month_index = day.year * 12 + (day.month - 1) + months
    year, month_zero = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month_zero + 1)[1]
    return date(year, month_zero + 1, min(day.day, last_day))


def required_period_for(
    accident_date: Union[date, datetime],
    months: int = DEFAULT_REQUIRED_MONTHS,
) -> RequiredPeriod:
    """Build the window of statements required before an accident.

    Args:
        accident_date: Date of the accident; datetimes are truncated to their date
        months: Length of the window in calendar months

    Returns:
        RequiredPeriod from ``accident_date - months`` to ``accident_date``

    Raises:
        ValidationError: If months is negative
    """
    if months < 0:
        raise ValidationError(f"Required period length must not be negative, got {months}")

    if isinstance(accident_date, datetime):
        accident_date = accident_date.date()

    return RequiredPeriod(start=shift_months(accident_date, -months), end=accident_date)
