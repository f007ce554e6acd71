"""Фильтры доступа."""

from aiogram.filters import BaseFilter
from aiogram.types import Message

from warehouse_console.services.auth_service import SessionStore


class IsAuthenticated(BaseFilter):
    """Пропускает сообщения только после входа в консоль."""

    async def __call__(self, message: Message, session_store: SessionStore) -> bool:
        return session_store.is_authenticated
