from datetime import date

import pytest

from pagebot.application.exceptions import ValidationError
from pagebot.application.utils.validators import (
    format_long_date,
    is_override_sentinel,
    parse_calendar_date,
    validate_choice,
    validate_date,
    validate_phone,
)
from pagebot.domain.entities.step import parse_options

TODAY = date(2026, 10, 17)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("09123456789", "09123456789"),
        ("0917 111 2222", "09171112222"),
        ("0917-111-2222", "09171112222"),
    ],
)
def test_validate_phone_accepts_eleven_digits_starting_with_09(raw, expected):
    assert validate_phone(raw) == expected


@pytest.mark.parametrize("raw", ["0912345678", "091234567890", "19123456789", "+639123456789", "", "abc"])
def test_validate_phone_rejects_other_shapes(raw):
    with pytest.raises(ValidationError) as exc:
        validate_phone(raw)
    assert exc.value.reason == "invalid_phone"


@pytest.mark.parametrize(
    "raw",
    ["12/25/2026", "12-25-2026", "2026-12-25", "December 25, 2026", "Dec 25 2026", "25 December 2026", "December 25th, 2026"],
)
def test_parse_calendar_date_formats(raw):
    assert parse_calendar_date(raw) == date(2026, 12, 25)


def test_two_digit_year_is_read_as_this_century():
    assert parse_calendar_date("12/25/26") == date(2026, 12, 25)


def test_parse_calendar_date_returns_none_for_garbage():
    assert parse_calendar_date("next tuesday-ish") is None
    assert parse_calendar_date("   ") is None


def test_format_long_date():
    assert format_long_date(date(2027, 1, 5)) == "January 5, 2027"


def test_validate_date_returns_long_form():
    assert validate_date("12/25/2026", today=TODAY) == "December 25, 2026"


def test_validate_date_accepts_today_and_last_day_of_window():
    assert validate_date("10/17/2026", today=TODAY) == "October 17, 2026"
    assert validate_date("12/31/2028", today=TODAY) == "December 31, 2028"


def test_validate_date_rejects_past_and_far_future():
    with pytest.raises(ValidationError) as past:
        validate_date("10/16/2026", today=TODAY)
    assert past.value.reason == "date_out_of_range"
    with pytest.raises(ValidationError) as future:
        validate_date("01/01/2029", today=TODAY)
    assert future.value.reason == "date_out_of_range"


def test_validate_date_rejects_unparseable():
    with pytest.raises(ValidationError) as exc:
        validate_date("someday", today=TODAY)
    assert exc.value.reason == "unparseable_date"


def test_validate_choice_matches_value_then_label():
    options = parse_options("Haircut-hair_cut, Color-color, Other")
    assert validate_choice("hair_cut", options) == "hair cut"
    assert validate_choice("Hair Cut", options) == "hair cut"
    assert validate_choice("color", options) == "color"
    assert validate_choice("HAIRCUT", options) == "hair cut"


def test_validate_choice_rejects_unknown():
    options = parse_options("Haircut-hair_cut, Color-color")
    with pytest.raises(ValidationError) as exc:
        validate_choice("massage", options)
    assert exc.value.reason == "invalid_choice"


def test_override_sentinel():
    assert is_override_sentinel("Other")
    assert is_override_sentinel("other_date")
    assert not is_override_sentinel("others")
