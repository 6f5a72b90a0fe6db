"""Outbound mail abstraction layer."""

from src.infrastructure.mail.exceptions import MailDeliveryError
from src.infrastructure.mail.outbox import OutboxTransport
from src.infrastructure.mail.protocol import MailMessage, MailTransport

__all__ = [
    "MailDeliveryError",
    "MailMessage",
    "MailTransport",
    "OutboxTransport",
]
