"""Сборка сервисов консоли склада."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from aiogram.fsm.storage.base import BaseStorage
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from warehouse_console.services.auth_service import (
    SessionStore,
    StaticCredentialAuthenticator,
    session_storage_key,
)
from warehouse_console.services.notifications import ToastNotifier
from warehouse_console.services.product_service import ProductRegistry
from warehouse_console.services.withdrawal_service import WithdrawalWorkflow


@dataclass
class Console:
    """Сервисы консоли, общие для всех чатов."""

    notifier: ToastNotifier
    registry: ProductRegistry
    session_store: SessionStore
    workflow: WithdrawalWorkflow
    export_dir: Path

    def handler_data(self) -> dict[str, Any]:
        """Зависимости, которые middleware передает в хендлеры."""
        return {
            "registry": self.registry,
            "session_store": self.session_store,
            "workflow": self.workflow,
            "export_dir": self.export_dir,
        }


def build_console(
    session_factory: async_sessionmaker[AsyncSession],
    storage: BaseStorage,
    *,
    email: str,
    password: str,
    login_delay: float = 1.0,
    session_key: str = "user",
    export_dir: str | Path = "exports",
) -> Console:
    """
    Создает сервисы консоли и связывает их между собой.

    Args:
        session_factory: Фабрика сессий базы данных.
        storage: Хранилище, в котором сохраняется текущий пользователь.
        email: Email единственной учетной записи.
        password: Пароль единственной учетной записи.
        login_delay: Имитация сетевой задержки при входе, в секундах.
        session_key: Имя ключа сохраненного пользователя.
        export_dir: Каталог для выгрузок Excel.

    Returns:
        Готовая консоль.
    """
    notifier = ToastNotifier()
    registry = ProductRegistry(session_factory, notifier)
    session_store = SessionStore(
        storage,
        StaticCredentialAuthenticator(email, password),
        notifier,
        storage_key=session_storage_key(session_key),
        login_delay=login_delay,
    )
    workflow = WithdrawalWorkflow(registry, session_store, notifier)
    return Console(
        notifier=notifier,
        registry=registry,
        session_store=session_store,
        workflow=workflow,
        export_dir=Path(export_dir),
    )
