"""Settings repository."""

from typing import Any

from portfolio.models.setting import Setting
from portfolio.repositories.base import BaseRepository


class SettingRepository(BaseRepository[Setting]):
    model = Setting

    async def get_value(self, key: str) -> dict[str, Any] | None:
        setting = await self.get_by(key=key)
        return dict(setting.value) if setting is not None else None

    async def upsert(self, key: str, value: dict[str, Any]) -> Setting:
        setting = await self.get_by(key=key)
        if setting is None:
            return await self.create(key=key, value=value)
        return await self.update(setting, value=value)

    async def list_all(self) -> list[Setting]:
        return await self.list_where(order_by=(Setting.key.asc(),))
