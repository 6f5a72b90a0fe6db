"""Custom exceptions for mail delivery."""


class MailDeliveryError(Exception):
    """Raised when a message cannot be delivered."""

    def __init__(self, message: str, *, subject: str | None = None) -> None:
        self.subject = subject
        super().__init__(message)
