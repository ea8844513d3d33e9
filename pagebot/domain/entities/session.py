from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pagebot.domain.entities.step import StepDefinition


class ConversationState(str, Enum):
    NOT_STARTED = "not_started"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    AWAITING_STEP = "awaiting_step"
    AWAITING_CUSTOM_OVERRIDE = "awaiting_custom_override"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ConversationSession:
    user_id: str
    step_sequence: tuple[StepDefinition, ...]
    started_at: float
    step_index: int = 0  # 0 = confirmation pending, N = awaiting answer to step N
    answers: dict[str, str] = field(default_factory=dict)
    awaiting_freeform_override: bool = False
    completed: bool = False

    @property
    def state(self) -> ConversationState:
        if self.completed:
            return ConversationState.COMPLETED
        if self.step_index == 0:
            return ConversationState.AWAITING_CONFIRMATION
        if self.awaiting_freeform_override:
            return ConversationState.AWAITING_CUSTOM_OVERRIDE
        return ConversationState.AWAITING_STEP

    @property
    def current_step(self) -> StepDefinition | None:
        """Step whose answer the next input supplies."""
        if 1 <= self.step_index <= len(self.step_sequence):
            return self.step_sequence[self.step_index - 1]
        return None

    def is_consistent(self) -> bool:
        return bool(self.step_sequence) and 0 <= self.step_index <= len(self.step_sequence)

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.started_at > ttl
