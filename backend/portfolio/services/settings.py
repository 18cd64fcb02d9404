"""Key/value site settings.

Each allowed key holds one JSON object. Reads deep-merge the stored value
over the defaults so callers always see every known field.
"""

from copy import deepcopy
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import ValidationError
from portfolio.core.logging import get_logger
from portfolio.repositories.setting import SettingRepository
from portfolio.utils.merge import merge_deep

logger = get_logger(__name__)

SITE_KEY = "site"
CHATBOT_KEY = "chatbot"

ALLOWED_KEYS = frozenset({"site", "seo", "chatbot", "resume", "theme"})

DEFAULT_SETTINGS: dict[str, dict[str, Any]] = {
    "site": {
        "title": "AI 3D Portfolio Platform",
        "description": "A fully dynamic, SEO-first, AI-powered personal platform.",
        "contactEmail": "",
        "socials": {},
    },
    "seo": {},
    "chatbot": {
        "enabled": True,
        "greeting": "Hi! Ask me anything about my projects, skills or experience.",
        "systemPrompt": "",
    },
    "resume": {},
    "theme": {},
}


def _check_key(key: str) -> str:
    if key not in ALLOWED_KEYS:
        raise ValidationError(
            f"Unknown settings key '{key}'. Allowed: {', '.join(sorted(ALLOWED_KEYS))}.",
            field="key",
            value=key,
        )
    return key


class SettingsService:
    @staticmethod
    async def get_setting(db: AsyncSession, key: str) -> dict[str, Any]:
        """Stored value for `key` merged over its defaults."""
        _check_key(key)
        stored = await SettingRepository(db).get_value(key)
        return merge_deep(DEFAULT_SETTINGS.get(key, {}), stored or {})

    @staticmethod
    async def get_site_settings(db: AsyncSession) -> dict[str, Any]:
        return await SettingsService.get_setting(db, SITE_KEY)

    @staticmethod
    async def list_settings(db: AsyncSession) -> dict[str, dict[str, Any]]:
        stored = {row.key: dict(row.value or {}) for row in await SettingRepository(db).list_all()}
        return {
            key: merge_deep(DEFAULT_SETTINGS.get(key, {}), stored.get(key, {}))
            for key in sorted(ALLOWED_KEYS)
        }

    @staticmethod
    async def update_setting(
        db: AsyncSession, key: str, value: dict[str, Any], merge: bool = True
    ) -> dict[str, Any]:
        """Write a setting; with merge=True the new object is deep-merged into the stored one."""
        _check_key(key)
        if not isinstance(value, dict):
            raise ValidationError("Setting value must be an object.", field="value")

        repo = SettingRepository(db)
        if merge:
            current = await repo.get_value(key) or {}
            value = merge_deep(current, value, array_mode="replace")
        await repo.upsert(key, value)
        logger.info("Setting updated", extra={"key": key, "merge": merge})
        return merge_deep(DEFAULT_SETTINGS.get(key, {}), value)

    @staticmethod
    async def seed_defaults(db: AsyncSession) -> None:
        """Insert the `site` row when it does not exist yet."""
        repo = SettingRepository(db)
        if await repo.get_value(SITE_KEY) is None:
            await repo.create(key=SITE_KEY, value=deepcopy(DEFAULT_SETTINGS[SITE_KEY]))
            logger.info("Seeded default site settings")
