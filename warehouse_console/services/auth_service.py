"""Сервисный слой для входа в консоль и текущего пользователя."""

import asyncio
import enum
import logging
from typing import Protocol

from aiogram.fsm.storage.base import BaseStorage, StorageKey
from pydantic import ValidationError

from warehouse_console.db.models import Role, SessionUser
from warehouse_console.services.notifications import Notifier


class Route(enum.StrEnum):
    """Куда следует перейти интерфейсу после операции."""

    DASHBOARD = "dashboard"
    LOGIN = "login"


class Authenticator(Protocol):
    """Проверка учетных данных. Реализацию можно заменить на настоящую."""

    async def authenticate(self, email: str, password: str) -> SessionUser | None: ...


DEFAULT_USER = SessionUser(
    id=1,
    name="Администратор",
    email="admin@example.com",
    role=Role.ADMIN,
    section="IT",
)


class StaticCredentialAuthenticator:
    """Единственная зашитая в настройки пара email/пароль."""

    def __init__(
        self, email: str, password: str, user: SessionUser = DEFAULT_USER
    ) -> None:
        self._email = email
        self._password = password
        self._user = user.model_copy(update={"email": email})

    async def authenticate(self, email: str, password: str) -> SessionUser | None:
        if email == self._email and password == self._password:
            return self._user
        return None


def session_storage_key(name: str) -> StorageKey:
    """Ключ хранилища, под которым сохраняется текущий пользователь консоли."""
    return StorageKey(bot_id=0, chat_id=0, user_id=0, destiny=name)


class SessionStore:
    """
    Текущий пользователь консоли.

    Пользователь сохраняется под одним ключом хранилища и
    восстанавливается из него при запуске.
    """

    def __init__(
        self,
        storage: BaseStorage,
        authenticator: Authenticator,
        notifier: Notifier,
        storage_key: StorageKey | None = None,
        login_delay: float = 1.0,
    ) -> None:
        self._storage = storage
        self._authenticator = authenticator
        self._notifier = notifier
        self._key = storage_key or session_storage_key("user")
        self._login_delay = login_delay
        self._user: SessionUser | None = None
        self._pending: asyncio.Task[SessionUser | None] | None = None

    @property
    def current_user(self) -> SessionUser | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def login_in_progress(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def restore(self) -> SessionUser | None:
        """
        Восстанавливает пользователя из хранилища.

        Returns:
            Восстановленный пользователь или None.
        """
        data = await self._storage.get_data(self._key)
        if not data:
            return None
        try:
            self._user = SessionUser.model_validate(data)
        except ValidationError:
            logging.warning("Discarding malformed persisted session: %r", data)
            await self._storage.set_data(self._key, {})
            return None
        logging.info("Session restored for user %s", self._user.id)
        return self._user

    async def _check_credentials(self, email: str, password: str) -> SessionUser | None:
        # Имитация сетевого запроса
        await asyncio.sleep(self._login_delay)
        return await self._authenticator.authenticate(email, password)

    async def login(self, email: str, password: str) -> Route | None:
        """
        Выполняет вход.

        Одновременно выполняется не больше одной попытки входа.

        Args:
            email: Email пользователя.
            password: Пароль.

        Returns:
            Route.DASHBOARD при успешном входе, иначе None.
        """
        if self.login_in_progress:
            self._notifier.error("Вход уже выполняется, подождите")
            return None

        task = asyncio.create_task(self._check_credentials(email, password))
        self._pending = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._pending = None

        if task.cancelled():
            self._notifier.error("Вход отменен")
            return None

        error = task.exception()
        if error is not None:
            logging.error("Login error", exc_info=error)
            self._notifier.error("Ошибка при входе")
            return None

        user = task.result()
        if user is None:
            logging.info("Login rejected for %s", email)
            self._notifier.error("Неверные учетные данные")
            return None

        self._user = user
        await self._storage.set_data(self._key, user.model_dump(mode="json"))
        logging.info("User %s logged in", user.id)
        self._notifier.success("Вход выполнен успешно")
        return Route.DASHBOARD

    def cancel_login(self) -> bool:
        """
        Отменяет выполняющуюся попытку входа.

        Returns:
            True, если было что отменять.
        """
        if not self.login_in_progress:
            return False
        self._pending.cancel()  # type: ignore[union-attr]
        return True

    async def logout(self) -> Route:
        self._user = None
        await self._storage.set_data(self._key, {})
        self._notifier.success("Сеанс завершен")
        return Route.LOGIN
