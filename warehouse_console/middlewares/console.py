"""Middleware, передающий сервисы консоли в хендлеры."""

from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update

from warehouse_console.console import Console
from warehouse_console.services.notifications import Notification


class ConsoleMiddleware(BaseMiddleware):
    """
    Передает в хендлеры реестр, корзину и хранилище сеанса, а после
    обработки отправляет в чат накопленные уведомления.

    Уведомления приходят после ответов хендлера, в том числе когда
    хендлер завершился исключением.
    """

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        data.update(self.console.handler_data())
        with self.console.notifier.collect() as notifications:
            try:
                return await handler(event, data)
            finally:
                await self._deliver(event, notifications)

    async def _deliver(
        self, event: TelegramObject, notifications: list[Notification]
    ) -> None:
        message = event.message if isinstance(event, Update) else None
        if message is None:
            return
        for notification in notifications:
            await message.answer(notification.render())
