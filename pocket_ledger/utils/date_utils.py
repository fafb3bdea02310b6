"""Date manipulation utilities"""

from datetime import date

from dateutil.relativedelta import relativedelta


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, pulling ``day`` back to the last day of short months (31 -> Feb 28)"""
    return date(year, month, 1) + relativedelta(day=day)


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Return (year, month) moved by ``months`` calendar months"""
    shifted = date(year, month, 1) + relativedelta(months=months)
    return shifted.year, shifted.month


def add_months(d: date, months: int) -> date:
    """Add calendar months keeping the day of month where it exists"""
    return d + relativedelta(months=months)


def same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month
