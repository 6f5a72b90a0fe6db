"""Workflow notification mail for articles."""

from dataclasses import dataclass
from email.utils import formataddr
from pathlib import Path

import structlog
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from src.infrastructure.mail import MailMessage, MailTransport
from src.infrastructure.observability import traced
from src.modules.articles.models import Article, ArticleStatus
from src.modules.auth.models import User
from src.modules.auth.repository import UserRepository
from src.modules.auth.roles import Role

logger = structlog.get_logger()

_templates_path = Path(__file__).parent / "templates"
_env = Environment(
    loader=FileSystemLoader(_templates_path),
    undefined=StrictUndefined,
    autoescape=False,  # plain text mail
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class Notification:
    template: str
    subject: str


NOTIFICATIONS: dict[ArticleStatus, Notification] = {
    ArticleStatus.CREATED: Notification(
        "created_email.txt", "You got an article to edit, brah!"
    ),
    ArticleStatus.EDITED: Notification(
        "edited_email.txt", "You got some edits to respond to, brah!"
    ),
    ArticleStatus.RESPONDED: Notification(
        "responded_email.txt", "You got some responses to your edits, brah!"
    ),
    ArticleStatus.REJECTED: Notification(
        "rejected_email.txt", "An article got rejected, brah!"
    ),
    ArticleStatus.REWRITE: Notification(
        "rewrite_email.txt", "You got an article to rewrite, brah!"
    ),
    ArticleStatus.FINALIZED: Notification(
        "finalized_email.txt", "Your article was finalized, brah!"
    ),
    ArticleStatus.REVIEWED: Notification(
        "reviewed_email.txt", "Your article was reviewed, brah!"
    ),
}


def format_address(user: User) -> str:
    """``Name <email>`` with quoting where needed."""
    return formataddr((user.name, user.email))


class ArticleMailer:
    """Builds and sends the mail for article workflow transitions.

    Admins receive every notification in addition to the people involved.
    """

    def __init__(
        self,
        transport: MailTransport,
        users: UserRepository,
        *,
        sender: str,
        site_url: str,
    ) -> None:
        self._transport = transport
        self._users = users
        self._sender = sender
        self._site_url = site_url.rstrip("/")

    async def collect_recipients(self, users: list[User | None]) -> tuple[str, ...]:
        """Admins plus ``users``, without duplicates, formatted for headers."""
        seen: set[object] = set()
        recipients: list[str] = []
        for user in [*await self._users.with_role(Role.ADMIN), *users]:
            if user is None or user.id in seen:
                continue
            seen.add(user.id)
            recipients.append(format_address(user))
        return tuple(recipients)

    async def _people(self, article: Article) -> tuple[User | None, User | None]:
        author = await self._users.get_by_id(article.author_id) if article.author_id else None
        editor = await self._users.get_by_id(article.editor_id) if article.editor_id else None
        return author, editor

    async def recipients_for(
        self, status: ArticleStatus, article: Article
    ) -> tuple[str, ...]:
        author, editor = await self._people(article)
        if status in (ArticleStatus.CREATED, ArticleStatus.RESPONDED):
            return await self.collect_recipients([editor])
        if status in (ArticleStatus.EDITED, ArticleStatus.REWRITE):
            return await self.collect_recipients([author])
        if status is ArticleStatus.REJECTED:
            return await self.collect_recipients([editor, author])
        if status is ArticleStatus.FINALIZED:
            reviewers: list[User | None] = list(await self._users.with_role(Role.REVIEWER))
            return await self.collect_recipients([*reviewers, author])
        if status is ArticleStatus.REVIEWED:
            return await self.collect_recipients([author, editor])
        return ()

    async def build(self, status: ArticleStatus, article: Article) -> MailMessage | None:
        """Render the notification for ``status``, or None if there is none."""
        notification = NOTIFICATIONS.get(status)
        if notification is None:
            return None

        author, editor = await self._people(article)
        body = _env.get_template(notification.template).render(
            article=article,
            author=author,
            editor=editor,
            admin_url=f"{self._site_url}/admin/article/{article.id}/edit",
        )
        return MailMessage(
            sender=self._sender,
            recipients=await self.recipients_for(status, article),
            subject=notification.subject,
            body=body,
        )

    @traced(span_name="articles.notify")
    async def notify(self, status: ArticleStatus, article: Article) -> MailMessage | None:
        """Send the notification for ``status`` if it has recipients."""
        message = await self.build(status, article)
        if message is None or not message.recipients:
            return None

        await self._transport.send(message)
        logger.info(
            "article_notification_sent",
            article_id=str(article.id),
            status=status.value,
            recipients=len(message.recipients),
        )
        return message
