"""Фикстуры для сценариев с ботом."""

from collections.abc import Callable

import pytest
from aiogram import Dispatcher, F, Router
from aiogram.filters import Command
from aiogram.fsm.storage.memory import MemoryStorage

from tests.fakes import TEST_EMAIL, TEST_PASSWORD, DispatcherFactory
from warehouse_console.console import Console
from warehouse_console.db.models import Category, SessionUser
from warehouse_console.filters.auth import IsAuthenticated
from warehouse_console.fsm.login_states import LoginState
from warehouse_console.handlers.auth import (
    cancel_handler,
    handle_login_start,
    handle_logout,
    handle_unknown,
    process_login_email,
    process_login_password,
)
from warehouse_console.middlewares.console import ConsoleMiddleware


@pytest.fixture
def make_dp(console: Console, storage: MemoryStorage) -> DispatcherFactory:
    """
    Фабрика чистых экземпляров Dispatcher.

    Хендлеры регистрируются вручную на новых роутерах: роутеры модулей
    можно подключить только к одному диспетчеру. Тест передает функцию,
    которая регистрирует проверяемые хендлеры на роутере, доступном
    только после входа.
    """

    def factory(register: Callable[[Router], None]) -> Dispatcher:
        dp = Dispatcher(storage=storage)
        dp.update.middleware(ConsoleMiddleware(console))

        auth_router = Router()
        auth_router.message.register(cancel_handler, Command(commands=["cancel"]))
        auth_router.message.register(cancel_handler, F.text.casefold() == "отмена")
        auth_router.message.register(handle_login_start, Command(commands=["login"]))
        auth_router.message.register(handle_logout, Command(commands=["logout"]))
        auth_router.message.register(process_login_email, LoginState.waiting_for_email)
        auth_router.message.register(
            process_login_password, LoginState.waiting_for_password
        )

        protected_router = Router()
        protected_router.message.filter(IsAuthenticated())
        register(protected_router)

        fallback_router = Router()
        fallback_router.message.register(handle_unknown)

        dp.include_router(auth_router)
        dp.include_router(protected_router)
        dp.include_router(fallback_router)
        return dp

    return factory


@pytest.fixture
async def console_user(console: Console) -> SessionUser:
    """Вход в консоль в обход сценария с ботом."""
    await console.session_store.login(TEST_EMAIL, TEST_PASSWORD)
    assert console.session_store.current_user is not None
    return console.session_store.current_user


@pytest.fixture
async def categories(console: Console) -> list[str]:
    names = ["Инструменты", "Мебель"]
    async with console.registry.transaction() as session:
        for name in names:
            session.add(Category(name=name))
    return names
