"""In-process mail transport that keeps sent messages."""

import structlog

from src.infrastructure.mail.exceptions import MailDeliveryError
from src.infrastructure.mail.protocol import MailMessage

logger = structlog.get_logger()


class OutboxTransport:
    """Records messages instead of delivering them.

    Messages are kept in memory (most recent last) and logged, which is
    enough for development and for asserting on mail in tests.
    """

    def __init__(self, *, max_messages: int = 500) -> None:
        self._messages: list[MailMessage] = []
        self._max_messages = max_messages

    @property
    def messages(self) -> list[MailMessage]:
        return list(self._messages)

    async def send(self, message: MailMessage) -> None:
        if not message.recipients:
            raise MailDeliveryError("Message has no recipients", subject=message.subject)

        self._messages.append(message)
        if len(self._messages) > self._max_messages:
            del self._messages[0]

        logger.info(
            "mail_sent",
            subject=message.subject,
            recipients=len(message.recipients),
        )

    def clear(self) -> None:
        self._messages.clear()
