class PageBotError(Exception):
    """Base class for errors raised inside the bot."""
    pass


class ValidationError(PageBotError):
    """Raised when user input is rejected for the current step. The user is re-prompted."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class SessionMissing(PageBotError):
    """Raised when a booking action arrives without a usable session."""
    pass


class ConfigMissing(PageBotError):
    """Raised when a page (or one of its tables) is not provisioned."""
    pass


class InvalidStepSequence(ConfigMissing):
    """Raised when a booking step table violates its invariants (e.g. duplicate field keys)."""
    pass


class AdapterFailure(PageBotError):
    """Raised by external adapters (Graph API, Sheets, SMS) on transport or HTTP errors."""
    pass


class DuplicateEvent(PageBotError):
    """Raised when an inbound event id was already processed."""
    pass
