"""Настройка сессии базы данных."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from warehouse_console.db.seed import seed_sample_data


def create_engine(database_url: str) -> AsyncEngine:
    """
    Создает асинхронный "движок" SQLAlchemy.

    Для базы в памяти используется одно общее соединение, иначе каждое
    новое соединение получало бы свою пустую базу.

    Args:
        database_url: Строка подключения.

    Returns:
        Асинхронный движок.
    """
    if database_url.endswith(":memory:"):
        return create_async_engine(
            database_url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,  # Проверяет "живо" ли соединение перед использованием
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Создает фабрику асинхронных сессий."""
    return async_sessionmaker(
        engine,
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )


async def init_db(
    engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: bool = True,
) -> None:
    """
    Создает таблицы и, при необходимости, заполняет их тестовыми данными.

    Args:
        engine: Асинхронный движок.
        session_factory: Фабрика сессий.
        seed: Заполнить ли пустую базу начальными данными.
    """
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    if seed:
        async with session_factory() as session:
            await seed_sample_data(session)
