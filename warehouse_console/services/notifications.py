"""Уведомления пользователя (всплывающие сообщения)."""

import enum
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Protocol


class Level(enum.StrEnum):
    """Уровень уведомления."""

    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """Одно уведомление."""

    level: Level
    text: str

    def render(self) -> str:
        """Текст для отправки в чат."""
        icon = "✅" if self.level is Level.SUCCESS else "⚠️"
        return f"{icon} {self.text}"


class Notifier(Protocol):
    """Получатель уведомлений. Доставка не подтверждается."""

    def success(self, text: str) -> None: ...

    def error(self, text: str) -> None: ...


class ToastNotifier:
    """
    Собирает уведомления, возникшие при обработке одного события.

    Каждое уведомление пишется в лог. Если открыт сбор через collect(),
    уведомление также попадает в список текущего контекста, откуда его
    забирает middleware и отправляет в чат.
    """

    def __init__(self) -> None:
        self._outbox: ContextVar[list[Notification] | None] = ContextVar(
            "toast_outbox", default=None
        )

    def success(self, text: str) -> None:
        self._push(Notification(Level.SUCCESS, text))

    def error(self, text: str) -> None:
        self._push(Notification(Level.ERROR, text))

    def _push(self, notification: Notification) -> None:
        logging.info("Notification [%s]: %s", notification.level, notification.text)
        outbox = self._outbox.get()
        if outbox is not None:
            outbox.append(notification)

    @contextmanager
    def collect(self) -> Iterator[list[Notification]]:
        """
        Открывает сбор уведомлений для текущего контекста.

        Yields:
            Список, который пополняется уведомлениями до выхода из блока.
        """
        outbox: list[Notification] = []
        token = self._outbox.set(outbox)
        try:
            yield outbox
        finally:
            self._outbox.reset(token)
