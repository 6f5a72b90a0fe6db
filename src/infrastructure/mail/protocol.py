"""Protocol definition for mail transports."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MailMessage:
    """A rendered outbound email.

    Attributes:
        sender: Formatted From address.
        recipients: Formatted To addresses.
        subject: Subject line.
        body: Plain text body.
    """

    sender: str
    recipients: tuple[str, ...]
    subject: str
    body: str

    @property
    def to_header(self) -> str:
        """Recipients joined for the To header."""
        return ",".join(self.recipients)


class MailTransport(Protocol):
    """Protocol for mail delivery backends.

    Delivery is pluggable so that a real SMTP or API backend can replace the
    outbox without touching the mailers.
    """

    async def send(self, message: MailMessage) -> None:
        """Deliver a message.

        Args:
            message: The message to deliver.

        Raises:
            MailDeliveryError: If delivery fails.
        """
        ...
