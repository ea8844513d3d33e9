from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


class StepType(str, Enum):
    TEXT = "text"
    PHONE = "phone"
    DATE = "date"
    CHOICE = "choice"

    @classmethod
    def from_sheet(cls, raw: str | None) -> "StepType":
        value = (raw or "").strip().lower()
        if value in {"mobile", "phone", "contact"}:
            return cls.PHONE
        if value == "date":
            return cls.DATE
        if value in {"buttons", "choice"}:
            return cls.CHOICE
        return cls.TEXT


@dataclass(frozen=True)
class ChoiceOption:
    label: str
    value: str

    @property
    def payload(self) -> str:
        return f"BOOKING_ANSWER_{self.value}"


@dataclass(frozen=True)
class StepDefinition:
    field_key: str
    prompt: str
    type: StepType = StepType.TEXT
    options: tuple[ChoiceOption, ...] = field(default_factory=tuple)

    @staticmethod
    def from_row(row: Sequence[str]) -> "StepDefinition":
        """Build a step from a sheet row: field key, prompt, type, options."""
        cells = [str(c).strip() for c in row] + ["", "", "", ""]
        step_type = StepType.from_sheet(cells[2])
        options = parse_options(cells[3]) if step_type is StepType.CHOICE else ()
        return StepDefinition(field_key=cells[0], prompt=cells[1], type=step_type, options=options)


def parse_options(raw: str | None) -> tuple[ChoiceOption, ...]:
    """
    Parse ``"Label-Value, Other"`` into options.

    The value follows the last ``-``, so labels may contain hyphens and values
    may not. An item without ``-`` is its own value.
    """
    options: list[ChoiceOption] = []
    for item in (raw or "").split(","):
        item = item.strip()
        if not item:
            continue
        label, sep, value = item.rpartition("-")
        if not sep:
            label = value
        label = label.strip()
        value = value.strip()
        options.append(ChoiceOption(label=label, value=value or label))
    return tuple(options)

