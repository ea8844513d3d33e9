from __future__ import annotations

import re
from typing import Mapping, Sequence

from pagebot.domain.entities.step import StepDefinition, StepType

_NON_WORD_RE = re.compile(r"[^\w\s]")


def prompt_label(prompt: str) -> str:
    """Last word of a prompt once punctuation and emoji are removed."""
    words = _NON_WORD_RE.sub(" ", prompt or "").split()
    return words[-1] if words else ""


def find_phone_answer(answers: Mapping[str, str], steps: Sequence[StepDefinition]) -> str | None:
    for step in steps:
        if step.type is StepType.PHONE and answers.get(step.field_key):
            return answers[step.field_key]
    return None


def format_booking_sms(answers: Mapping[str, str], steps: Sequence[StepDefinition]) -> str:
    name_step = next((s for s in steps if "name" in s.prompt.lower()), None)
    date_step = next(
        (s for s in steps if s is not name_step and (s.type is StepType.DATE or "date" in s.prompt.lower())),
        None,
    )

    name = answers.get(name_step.field_key, "") if name_step else ""
    booked_date = answers.get(date_step.field_key, "") if date_step else ""

    details: list[str] = []
    for step in steps:
        if step is name_step or step is date_step or step.type is StepType.PHONE:
            continue
        answer = answers.get(step.field_key)
        if not answer or answer == "N/A":
            continue
        details.append(f"{prompt_label(step.prompt)}: {answer}")

    text = f"Booking Alert! New booking from {name or 'a customer'}"
    if booked_date:
        text += f" on {booked_date}"
    text += "."
    if details:
        text += "\n\n" + "\n".join(details)
    return text
