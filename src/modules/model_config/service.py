"""Lookup and maintenance of per content type settings."""

from datetime import date
from uuid import UUID

import structlog

from src.infrastructure.database import Database
from src.modules.auth.models import User
from src.modules.auth.repository import UserRepository
from src.modules.auth.roles import Role
from src.modules.common.clock import iso, site_today
from src.modules.common.validation import ValidationError
from src.modules.model_config.models import CONFIGURABLE_MODELS, ModelConfig

logger = structlog.get_logger()


class ModelConfigService:
    """Resolves the owner, backup editor and start date of a content type.

    Missing settings fall back to the earliest user (owner) and today
    (start date).
    """

    def __init__(self, database: Database, users: UserRepository) -> None:
        self._db = database
        self._users = users

    async def get(self, model: str) -> ModelConfig | None:
        row = await self._db.fetch_one(
            "SELECT * FROM model_configs WHERE model = ?",
            (model,),
        )
        return ModelConfig.from_row(dict(row)) if row else None

    async def list_all(self) -> list[ModelConfig]:
        rows = await self._db.fetch_all("SELECT * FROM model_configs ORDER BY model")
        return [ModelConfig.from_row(dict(row)) for row in rows]

    async def owner(self, model: str) -> User | None:
        """The user who edits new items of ``model``."""
        config = await self.get(model)
        if config is not None and config.owner_id is not None:
            owner = await self._users.get_by_id(config.owner_id)
            if owner is not None:
                return owner
        return await self._users.first()

    async def backup_editor(self, model: str, owner: User | None) -> User | None:
        """Editor for items created by the owner.

        Uses the configured backup editor, else the first other active user
        with the editor role.
        """
        config = await self.get(model)
        if config is not None and config.backup_editor_id is not None:
            editor = await self._users.get_by_id(config.backup_editor_id)
            if editor is not None:
                return editor

        for candidate in await self._users.with_role(Role.EDITOR):
            if owner is None or candidate.id != owner.id:
                return candidate
        return None

    async def start_date(self, model: str) -> date:
        config = await self.get(model)
        if config is not None and config.start_date is not None:
            return config.start_date
        return site_today()

    async def save(
        self,
        model: str,
        *,
        owner_id: UUID | None,
        backup_editor_id: UUID | None,
        start_date: date | None,
    ) -> ModelConfig:
        """Create or replace the settings for ``model``.

        Raises:
            ValidationError: If the model is not configurable.
        """
        if model not in CONFIGURABLE_MODELS:
            raise ValidationError.single("model", "is not included in the list")

        await self._db.execute(
            """
            INSERT INTO model_configs (model, owner_id, backup_editor_id, start_date)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(model) DO UPDATE SET
                owner_id = excluded.owner_id,
                backup_editor_id = excluded.backup_editor_id,
                start_date = excluded.start_date
            """,
            (
                model,
                str(owner_id) if owner_id else None,
                str(backup_editor_id) if backup_editor_id else None,
                iso(start_date),
            ),
        )
        logger.info("model_config_saved", model=model)
        return ModelConfig(
            model=model,
            owner_id=owner_id,
            backup_editor_id=backup_editor_id,
            start_date=start_date,
        )
