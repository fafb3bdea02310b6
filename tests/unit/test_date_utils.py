"""Unit tests for month arithmetic helpers"""

from datetime import date

import pytest

from pocket_ledger.utils.date_utils import add_months, clamp_day, same_month, shift_month


@pytest.mark.parametrize(
    "year, month, day, expected",
    [
        (2024, 2, 31, date(2024, 2, 29)),
        (2023, 2, 31, date(2023, 2, 28)),
        (2024, 4, 31, date(2024, 4, 30)),
        (2024, 5, 15, date(2024, 5, 15)),
    ],
)
def test_clamp_day_pulls_back_to_month_end(year, month, day, expected):
    assert clamp_day(year, month, day) == expected


def test_shift_month_crosses_year_boundaries():
    assert shift_month(2024, 11, 3) == (2025, 2)
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 5, 0) == (2024, 5)


def test_add_months_keeps_day_where_it_exists():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert add_months(date(2024, 5, 15), 6) == date(2024, 11, 15)


def test_same_month():
    assert same_month(date(2024, 5, 1), date(2024, 5, 31))
    assert not same_month(date(2024, 5, 1), date(2025, 5, 1))
