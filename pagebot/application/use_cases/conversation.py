from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date
from typing import Callable, Sequence

from pagebot.application.exceptions import SessionMissing, ValidationError
from pagebot.application.ports.config_store import ConfigStorePort
from pagebot.application.ports.session_store import SessionStorePort
from pagebot.application.ports.sms_gateway import SmsGatewayPort
from pagebot.application.utils.booking_sms import find_phone_answer, format_booking_sms
from pagebot.application.utils.prompts import (
    CANCELLED_TEXT,
    CUSTOM_DATE_ERROR_TEXT,
    CUSTOM_DATE_PROMPT,
    ERROR_TEXTS,
    RESTART_TEXT,
    confirmation_directive,
    render_choice,
    render_step,
    render_summary,
)
from pagebot.application.utils.validators import (
    is_override_sentinel,
    validate_choice,
    validate_date,
    validate_phone,
)
from pagebot.domain.entities.directive import ReplyDirective
from pagebot.domain.entities.inbound import (
    Cancel,
    ChoiceAnswer,
    Confirm,
    CustomOverrideStart,
    FreeText,
    InboundAction,
)
from pagebot.domain.entities.page_config import PageConfig
from pagebot.domain.entities.session import ConversationSession, ConversationState
from pagebot.domain.entities.step import StepDefinition, StepType

AFFIRMATIVE_WORDS = frozenset({"yes", "oo", "sige"})
NEGATIVE_WORDS = frozenset({"no", "cancel"})

_WORD_RE = re.compile(r"\w+")


def _has_word(text: str, words: frozenset[str]) -> bool:
    return any(token in words for token in _WORD_RE.findall(text.lower()))


class ConversationController:
    """
    Step state machine for the booking form.

    Callers must hold ``store.lock(user_id)`` around every call. The controller
    never sends anything itself: it returns the directives to deliver.
    """

    def __init__(
        self,
        store: SessionStorePort,
        config_store: ConfigStorePort,
        sms: SmsGatewayPort | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._store = store
        self._config_store = config_store
        self._sms = sms
        self._today = today or date.today
        self._logger = logging.getLogger(__name__)

    def start_conversation(self, user_id: str, step_sequence: Sequence[StepDefinition]) -> list[ReplyDirective]:
        session = self._store.create(user_id, step_sequence)
        self._logger.info(
            "Booking started",
            extra={"user_id": user_id, "state": session.state.value, "step_count": len(session.step_sequence)},
        )
        return [confirmation_directive()]

    async def handle(self, page: PageConfig, user_id: str, action: InboundAction) -> list[ReplyDirective]:
        if isinstance(action, Cancel):
            return self._cancel(user_id)

        try:
            session = self._require_session(user_id)
        except SessionMissing as e:
            self._logger.warning("Booking action without usable session", extra={"user_id": user_id, "reason": str(e)})
            return [ReplyDirective.text(RESTART_TEXT)]

        if session.state is ConversationState.AWAITING_CONFIRMATION:
            return self._confirm(session, action)

        if isinstance(action, Confirm):
            self._logger.info("Confirm ignored outside confirmation", extra={"user_id": user_id})
            return []

        if isinstance(action, CustomOverrideStart):
            return self._start_override(session)

        if session.state is ConversationState.AWAITING_CUSTOM_OVERRIDE:
            # Only a typed date leaves this state; buttons re-prompt.
            raw = action.text if isinstance(action, FreeText) else ""
            return await self._answer_override(page, session, raw)

        if isinstance(action, ChoiceAnswer):
            return await self._answer(page, session, action.value)
        if isinstance(action, FreeText):
            return await self._answer(page, session, action.text)

        self._logger.warning("Unhandled booking action", extra={"user_id": user_id, "reason": type(action).__name__})
        return []

    def _require_session(self, user_id: str) -> ConversationSession:
        session = self._store.get(user_id)
        if session is None:
            raise SessionMissing("no session")
        if not session.is_consistent():
            raise SessionMissing(f"inconsistent session at step {session.step_index}")
        return session

    def _cancel(self, user_id: str) -> list[ReplyDirective]:
        self._store.delete(user_id)
        self._logger.info("Booking cancelled", extra={"user_id": user_id, "state": ConversationState.CANCELLED.value})
        return [ReplyDirective.text(CANCELLED_TEXT)]

    def _confirm(self, session: ConversationSession, action: InboundAction) -> list[ReplyDirective]:
        text = action.text if isinstance(action, FreeText) else ""
        if isinstance(action, Confirm) or _has_word(text, AFFIRMATIVE_WORDS):
            advanced = replace(session, step_index=1)
            self._store.save(advanced)
            return render_step(session.step_sequence[0])
        if _has_word(text, NEGATIVE_WORDS):
            return self._cancel(session.user_id)
        # Neither yes nor no: the session stays at confirmation without a reply.
        self._logger.info("Unrecognized confirmation reply", extra={"user_id": session.user_id})
        return []

    def _start_override(self, session: ConversationSession) -> list[ReplyDirective]:
        self._store.save(replace(session, awaiting_freeform_override=True))
        self._logger.info(
            "Custom date requested",
            extra={"user_id": session.user_id, "state": ConversationState.AWAITING_CUSTOM_OVERRIDE.value},
        )
        return [ReplyDirective.text(CUSTOM_DATE_PROMPT)]

    async def _answer_override(self, page: PageConfig, session: ConversationSession, raw: str) -> list[ReplyDirective]:
        step = session.current_step
        if step is None:
            return [ReplyDirective.text(RESTART_TEXT)]
        try:
            value = validate_date(raw, today=self._today())
        except ValidationError as e:
            self._logger.info("Custom date rejected", extra={"user_id": session.user_id, "reason": e.reason})
            return [ReplyDirective.text(CUSTOM_DATE_ERROR_TEXT)]
        return await self._store_and_advance(page, session, step, value)

    async def _answer(self, page: PageConfig, session: ConversationSession, raw: str) -> list[ReplyDirective]:
        step = session.current_step
        if step is None:
            return [ReplyDirective.text(RESTART_TEXT)]

        if step.type is StepType.CHOICE and is_override_sentinel(raw) and _offers_override(step):
            return self._start_override(session)

        try:
            value = self._validate(step, raw)
        except ValidationError as e:
            self._logger.info(
                "Answer rejected",
                extra={"user_id": session.user_id, "step": step.field_key, "reason": e.reason},
            )
            return self._error_directives(step)
        return await self._store_and_advance(page, session, step, value)

    def _validate(self, step: StepDefinition, raw: str) -> str:
        if step.type is StepType.PHONE:
            return validate_phone(raw)
        if step.type is StepType.DATE:
            return validate_date(raw, today=self._today())
        if step.type is StepType.CHOICE and step.options:
            return validate_choice(raw, step.options)
        value = (raw or "").strip()
        if not value:
            raise ValidationError("empty_answer")
        return value

    def _error_directives(self, step: StepDefinition) -> list[ReplyDirective]:
        if step.type is StepType.CHOICE and step.options:
            return [ReplyDirective.text(ERROR_TEXTS[StepType.CHOICE]), *render_choice(step)]
        if step.type in ERROR_TEXTS:
            return [ReplyDirective.text(ERROR_TEXTS[step.type])]
        return render_step(step)

    async def _store_and_advance(
        self, page: PageConfig, session: ConversationSession, step: StepDefinition, value: str
    ) -> list[ReplyDirective]:
        answers = {**session.answers, step.field_key: value}

        if session.step_index >= len(session.step_sequence):
            finished = replace(session, answers=answers, awaiting_freeform_override=False, completed=True)
            return await self._complete(page, finished)

        advanced = replace(
            session,
            answers=answers,
            step_index=session.step_index + 1,
            awaiting_freeform_override=False,
        )
        self._store.save(advanced)
        return render_step(advanced.step_sequence[advanced.step_index - 1])

    async def _complete(self, page: PageConfig, session: ConversationSession) -> list[ReplyDirective]:
        self._store.delete(session.user_id)
        self._logger.info(
            "Booking completed",
            extra={"user_id": session.user_id, "state": session.state.value, "page_id": page.page_id},
        )
        phone = find_phone_answer(session.answers, session.step_sequence)
        await self._hand_off(page, session, phone)
        summary = render_summary(session.answers, session.step_sequence, has_phone=bool(phone and self._sms))
        return [ReplyDirective.text(summary)]

    async def _hand_off(self, page: PageConfig, session: ConversationSession, phone: str | None) -> None:
        answers = dict(sorted(session.answers.items()))
        try:
            saved = await self._config_store.save_order(session.user_id, answers, page.booking_source_id)
            if not saved:
                self._logger.error("Order not saved", extra={"user_id": session.user_id, "page_id": page.page_id})
        except Exception as e:
            self._logger.exception("Error saving order", extra={"user_id": session.user_id, "reason": str(e)})

        if not phone or self._sms is None:
            return
        try:
            result = await self._sms.send_sms(phone, format_booking_sms(session.answers, session.step_sequence))
            if not result.success:
                self._logger.error("Booking SMS rejected", extra={"user_id": session.user_id, "reason": str(result.raw)})
        except Exception as e:
            self._logger.exception("Error sending booking SMS", extra={"user_id": session.user_id, "reason": str(e)})


def _offers_override(step: StepDefinition) -> bool:
    return any(is_override_sentinel(option.value) for option in step.options)
