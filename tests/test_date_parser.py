"""Tests for date parser with relative dates."""

import pytest
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from finledger.utils.date_parser import parse_date, get_date_range


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


def test_parse_today():
    """Test parsing 'today'."""
    assert parse_date("today") == date.today()
    assert parse_date("  Today ") == date.today()


def test_parse_yesterday():
    """Test parsing 'yesterday'."""
    assert parse_date("yesterday") == date.today() - timedelta(days=1)


@pytest.mark.parametrize(
    "text,delta",
    [
        ("3 days ago", timedelta(days=3)),
        ("1 day ago", timedelta(days=1)),
        ("2 weeks ago", timedelta(weeks=2)),
        ("1 month ago", relativedelta(months=1)),
        ("2 years ago", relativedelta(years=2)),
    ],
)
def test_parse_ago(text, delta):
    assert parse_date(text) == date.today() - delta


def test_parse_end_of_last_month():
    """Month-end statements are dated on the last day of the previous month."""
    result = parse_date("end of last month")
    assert result == date.today().replace(day=1) - timedelta(days=1)
    assert (result + timedelta(days=1)).day == 1


def test_parse_end_of_last_year():
    today = date.today()
    assert parse_date("end of last year") == date(today.year - 1, 12, 31)


def test_parse_last_month():
    """Test parsing 'last month'."""
    today = date.today()
    if today.month == 1:
        expected = date(today.year - 1, 12, 1)
    else:
        expected = date(today.year, today.month - 1, 1)
    assert parse_date("last month") == expected


def test_parse_this_year():
    assert parse_date("this year") == date.today().replace(month=1, day=1)


def test_parse_this_week():
    today = date.today()
    assert parse_date("this week") == today - timedelta(days=today.weekday())


def test_parse_invalid_date():
    """Test parsing invalid date raises ValueError."""
    with pytest.raises(ValueError):
        parse_date("not a date")


def test_get_date_range_this_month():
    start, end = get_date_range("this-month")
    assert start == date.today().replace(day=1)
    assert end == date.today()


def test_get_date_range_last_year():
    today = date.today()
    start, end = get_date_range("last-year")
    assert start == date(today.year - 1, 1, 1)
    assert end == date(today.year - 1, 12, 31)


def test_get_date_range_last_12_months():
    start, end = get_date_range("last-12-months")
    assert start == date.today() - relativedelta(months=12)
    assert end == date.today()


def test_get_date_range_unknown():
    with pytest.raises(ValueError):
        get_date_range("next-decade")
