from __future__ import annotations

from typing import Sequence

from pagebot.application.exceptions import InvalidStepSequence
from pagebot.domain.entities.step import StepDefinition


def build_step_sequence(rows: Sequence[Sequence[str]]) -> tuple[StepDefinition, ...]:
    """Turn sheet rows (header already removed) into an ordered step sequence.

    Rows with an empty field key are skipped. Field keys must be unique since
    they are the answer storage keys.
    """
    steps = tuple(StepDefinition.from_row(row) for row in rows if row and str(row[0]).strip())
    seen: set[str] = set()
    for step in steps:
        if step.field_key in seen:
            raise InvalidStepSequence(f"duplicate field key: {step.field_key}")
        seen.add(step.field_key)
    return steps
