from __future__ import annotations

from pagebot.domain.entities.directive import ReplyDirective
from pagebot.domain.entities.step import StepDefinition, StepType

# Button templates take at most 3 buttons; generic templates at most 10 elements.
MAX_INLINE_BUTTONS = 3
MAX_CAROUSEL_ELEMENTS = 10

CONFIRM_PAYLOAD = "BOOKING_YES"
CANCEL_PAYLOAD = "BOOKING_NO"
ANSWER_PAYLOAD_PREFIX = "BOOKING_ANSWER_"

CONFIRMATION_TEXT = "Great! I'll help you with your booking.\n\nAre you ready to proceed?"
CANCELLED_TEXT = "Booking cancelled. No problem! Feel free to book anytime."
RESTART_TEXT = "Something went wrong. Please type 'order' to start again."
UNAVAILABLE_TEXT = "Sorry, booking is not available at the moment."
CUSTOM_DATE_PROMPT = "Please type your preferred date (e.g., December 25, 2025):"

ERROR_TEXTS = {
    StepType.PHONE: (
        "Invalid mobile number!\n\nPlease enter exactly 11 digits starting with 09.\nExample: 09123456789"
    ),
    StepType.DATE: (
        "Invalid date format!\n\nPlease enter the date using a standard format.\n"
        "Example: 12/25/2025 or December 25, 2025"
    ),
    StepType.CHOICE: "Please pick one of the options below.",
}
CUSTOM_DATE_ERROR_TEXT = "Invalid date! Please use MM/DD/YYYY or Month DD, YYYY."


def confirmation_directive() -> ReplyDirective:
    return ReplyDirective.template(
        {
            "type": "template",
            "payload": {
                "template_type": "button",
                "text": CONFIRMATION_TEXT,
                "buttons": [
                    {"type": "postback", "title": "YES, Continue", "payload": CONFIRM_PAYLOAD},
                    {"type": "postback", "title": "NO, Cancel", "payload": CANCEL_PAYLOAD},
                ],
            },
        }
    )


def render_step(step: StepDefinition) -> list[ReplyDirective]:
    if step.type is StepType.PHONE:
        return [ReplyDirective.text(step.prompt + "\n\n(Enter 11 digits, e.g., 09123456789)")]
    if step.type is StepType.DATE:
        return [ReplyDirective.text(step.prompt + "\n\n(Format: MM/DD/YYYY or Month DD, YYYY)")]
    if step.type is StepType.CHOICE and step.options:
        return render_choice(step)
    return [ReplyDirective.text(step.prompt)]


def render_choice(step: StepDefinition) -> list[ReplyDirective]:
    """Inline buttons for up to three options, otherwise the prompt plus a scrollable list."""
    if len(step.options) <= MAX_INLINE_BUTTONS:
        buttons = [
            {"type": "postback", "title": option.label, "payload": option.payload}
            for option in step.options
        ]
        return [
            ReplyDirective.template(
                {
                    "type": "template",
                    "payload": {"template_type": "button", "text": step.prompt, "buttons": buttons},
                }
            )
        ]

    elements = [
        {
            "title": option.label,
            "buttons": [{"type": "postback", "title": f"Choose {option.label}", "payload": option.payload}],
        }
        for option in step.options
    ]
    directives = [ReplyDirective.text(step.prompt)]
    for start in range(0, len(elements), MAX_CAROUSEL_ELEMENTS):
        directives.append(
            ReplyDirective.template(
                {
                    "type": "template",
                    "payload": {
                        "template_type": "generic",
                        "elements": elements[start : start + MAX_CAROUSEL_ELEMENTS],
                    },
                }
            )
        )
    return directives


def render_summary(answers: dict[str, str], steps: tuple[StepDefinition, ...], has_phone: bool) -> str:
    lines = ["✅ BOOKING RECEIVED!", "", "Summary:"]
    for step in steps:
        label = step.prompt.replace("?", "")[:30]
        lines.append(f"{label}: {answers.get(step.field_key) or 'N/A'}")
    text = "\n".join(lines) + "\n\nThank you! We'll confirm your booking shortly."
    if has_phone:
        text += "\n\n📱 A confirmation SMS will be sent to your number."
    return text
