"""Tests for key/value site settings."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import ValidationError
from portfolio.services.settings import ALLOWED_KEYS, DEFAULT_SETTINGS, SettingsService


class TestSettingsService:
    """Tests for SettingsService."""

    @pytest.mark.asyncio
    async def test_defaults_when_unset(self, db_session: AsyncSession) -> None:
        assert await SettingsService.get_site_settings(db_session) == DEFAULT_SETTINGS["site"]

    @pytest.mark.asyncio
    async def test_unknown_key(self, db_session: AsyncSession) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await SettingsService.get_setting(db_session, "secrets")
        assert exc_info.value.field == "key"

    @pytest.mark.asyncio
    async def test_value_must_be_object(self, db_session: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await SettingsService.update_setting(db_session, "site", ["x"])  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_update_merges(self, db_session: AsyncSession) -> None:
        await SettingsService.update_setting(
            db_session, "site", {"title": "Mine", "socials": {"github": "me", "x": "me"}}
        )
        updated = await SettingsService.update_setting(
            db_session, "site", {"socials": {"x": None, "linkedin": "me"}}
        )

        assert updated["title"] == "Mine"
        assert updated["description"] == DEFAULT_SETTINGS["site"]["description"]
        assert updated["socials"] == {"github": "me", "x": "me", "linkedin": "me"}

    @pytest.mark.asyncio
    async def test_update_replace(self, db_session: AsyncSession) -> None:
        await SettingsService.update_setting(db_session, "seo", {"a": 1})
        replaced = await SettingsService.update_setting(db_session, "seo", {"b": 2}, merge=False)
        assert replaced == {"b": 2}
        assert await SettingsService.get_setting(db_session, "seo") == {"b": 2}

    @pytest.mark.asyncio
    async def test_list_settings(self, db_session: AsyncSession) -> None:
        await SettingsService.update_setting(db_session, "theme", {"accent": "teal"})

        settings = await SettingsService.list_settings(db_session)

        assert set(settings) == ALLOWED_KEYS
        assert settings["theme"] == {"accent": "teal"}
        assert settings["chatbot"]["enabled"] is True

    @pytest.mark.asyncio
    async def test_seed_defaults_once(self, db_session: AsyncSession) -> None:
        await SettingsService.seed_defaults(db_session)
        await SettingsService.update_setting(db_session, "site", {"title": "Kept"})
        await SettingsService.seed_defaults(db_session)

        assert (await SettingsService.get_site_settings(db_session))["title"] == "Kept"
