from __future__ import annotations

import re
from datetime import date, datetime
from typing import Sequence

from pagebot.application.exceptions import ValidationError
from pagebot.domain.entities.step import ChoiceOption

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DATE_FORMATS = (
    "%m/%d/%y",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%A, %B %d, %Y",
)

_ORDINAL_RE = re.compile(r"(\d{1,2})(st|nd|rd|th)\b", re.IGNORECASE)


def validate_phone(raw: str) -> str:
    """Return the digit-only mobile number. Valid iff 11 digits starting with 09."""
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) != 11 or not digits.startswith("09"):
        raise ValidationError("invalid_phone")
    return digits


def parse_calendar_date(raw: str) -> date | None:
    normalized = " ".join((raw or "").strip().split())
    normalized = _ORDINAL_RE.sub(r"\1", normalized)
    normalized = normalized.replace(" ,", ",")
    if not normalized:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(normalized, fmt).date()
        except ValueError:
            continue
    return None


def format_long_date(value: date) -> str:
    return f"{MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


def validate_date(raw: str, today: date | None = None) -> str:
    """Accept dates from today through Dec 31 two years out; return the long form."""
    if today is None:
        today = date.today()
    parsed = parse_calendar_date(raw)
    if parsed is None:
        raise ValidationError("unparseable_date")
    latest = date(today.year + 2, 12, 31)
    if parsed < today or parsed > latest:
        raise ValidationError("date_out_of_range")
    return format_long_date(parsed)


def _normalize_token(value: str) -> str:
    return " ".join(value.replace("_", " ").split()).lower()


def validate_choice(raw: str, options: Sequence[ChoiceOption]) -> str:
    """Match raw against option values (then labels); return the value with spaces for underscores."""
    token = _normalize_token(raw or "")
    if not token:
        raise ValidationError("invalid_choice")
    for option in options:
        if _normalize_token(option.value) == token:
            return option.value.replace("_", " ").strip()
    for option in options:
        if _normalize_token(option.label) == token:
            return option.value.replace("_", " ").strip()
    raise ValidationError("invalid_choice")


def is_override_sentinel(value: str) -> bool:
    """The "other" option switches the step to a typed date."""
    return _normalize_token(value) in {"other", "other date"}
