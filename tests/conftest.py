"""Конфигурация и фикстуры для тестов Pytest."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from aiogram.fsm.storage.memory import MemoryStorage
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tests.fakes import TEST_EMAIL, TEST_PASSWORD, RecordingNotifier
from warehouse_console.console import Console, build_console
from warehouse_console.db.models import SessionUser
from warehouse_console.db.session import create_engine, create_session_factory, init_db
from warehouse_console.services.auth_service import (
    SessionStore,
    StaticCredentialAuthenticator,
)
from warehouse_console.services.product_service import ProductRegistry
from warehouse_console.services.withdrawal_service import WithdrawalWorkflow

# База в памяти, отдельная для каждого теста
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Фикстура для создания асинхронного движка БД для тестов.
    """
    async_engine = create_engine(TEST_DATABASE_URL)
    await init_db(async_engine, create_session_factory(async_engine), seed=False)

    yield async_engine

    await async_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Фикстура, создающая фабрику сессий для тестов.
    """
    return create_session_factory(engine)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def registry(
    session_factory: async_sessionmaker[AsyncSession], notifier: RecordingNotifier
) -> ProductRegistry:
    return ProductRegistry(session_factory, notifier)


@pytest.fixture
def session_store(storage: MemoryStorage, notifier: RecordingNotifier) -> SessionStore:
    return SessionStore(
        storage,
        StaticCredentialAuthenticator(TEST_EMAIL, TEST_PASSWORD),
        notifier,
        login_delay=0,
    )


@pytest.fixture
def workflow(
    registry: ProductRegistry,
    session_store: SessionStore,
    notifier: RecordingNotifier,
) -> WithdrawalWorkflow:
    return WithdrawalWorkflow(registry, session_store, notifier)


@pytest.fixture
async def logged_in(session_store: SessionStore) -> SessionUser:
    """
    Фикстура, выполняющая вход под тестовой учетной записью.
    """
    await session_store.login(TEST_EMAIL, TEST_PASSWORD)
    assert session_store.current_user is not None
    return session_store.current_user


@pytest.fixture
def console(
    session_factory: async_sessionmaker[AsyncSession],
    storage: MemoryStorage,
    tmp_path: Path,
) -> Console:
    """
    Собранная консоль для сценариев с ботом.
    """
    return build_console(
        session_factory,
        storage,
        email=TEST_EMAIL,
        password=TEST_PASSWORD,
        login_delay=0,
        export_dir=tmp_path,
    )
