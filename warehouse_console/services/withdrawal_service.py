"""Сервисный слой для корзины и истории списаний."""

import enum
import logging
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from warehouse_console.db.models import (
    CartItem,
    Product,
    ProductSnapshot,
    SessionUser,
    Withdrawal,
    utcnow,
)
from warehouse_console.services import product_service
from warehouse_console.services.notifications import Notifier
from warehouse_console.services.product_service import ProductRegistry


class CartStatus(enum.StrEnum):
    """Состояние корзины: пустая, заполняется, подтверждается."""

    EMPTY = "empty"
    BUILDING = "building"
    CONFIRMING = "confirming"


class UserProvider(Protocol):
    """Источник текущего пользователя."""

    @property
    def current_user(self) -> SessionUser | None: ...


async def next_withdrawal_id(session: AsyncSession) -> int:
    """Следующий ID списания: максимум существующих плюс один."""
    result = await session.execute(select(func.max(Withdrawal.id)))
    return (result.scalar_one_or_none() or 0) + 1


async def get_all_withdrawals(session: AsyncSession) -> Sequence[Withdrawal]:
    """
    Возвращает историю списаний.

    Args:
        session: Сессия базы данных.

    Returns:
        Списания, начиная с самого нового.
    """
    statement = select(Withdrawal).order_by(col(Withdrawal.id).desc())
    result = await session.execute(statement)
    return result.scalars().all()


class WithdrawalWorkflow:
    """
    Корзина списания и история подтвержденных списаний.

    Снимок товара в позиции корзины служит только для отображения и
    записи в историю. Любая проверка количества идет по текущему
    остатку из реестра.
    """

    def __init__(
        self,
        registry: ProductRegistry,
        users: UserProvider,
        notifier: Notifier,
    ) -> None:
        self._registry = registry
        self._users = users
        self._notifier = notifier
        # Не больше одной позиции на товар, порядок добавления сохраняется
        self._cart: dict[int, CartItem] = {}
        self._confirming = False

    @property
    def cart(self) -> list[CartItem]:
        return list(self._cart.values())

    @property
    def cart_total_items(self) -> int:
        return sum(item.quantity for item in self._cart.values())

    @property
    def status(self) -> CartStatus:
        if self._confirming:
            return CartStatus.CONFIRMING
        if self._cart:
            return CartStatus.BUILDING
        return CartStatus.EMPTY

    async def _live_product(
        self, session: AsyncSession, product_id: int
    ) -> Product | None:
        return await product_service.get_product(session, product_id)

    async def add_to_cart(
        self, product: Product | ProductSnapshot, quantity: int
    ) -> CartItem | None:
        """
        Добавляет товар в корзину или увеличивает количество в его позиции.

        Args:
            product: Товар в том виде, в каком его видел пользователь.
            quantity: Сколько единиц добавить.

        Returns:
            Позиция корзины или None, если добавление отклонено.
        """
        if quantity <= 0:
            self._notifier.error("Количество должно быть больше нуля")
            return None

        async with self._registry.transaction() as session:
            live = await self._live_product(session, product.id)  # type: ignore[arg-type]
            if live is None:
                self._notifier.error("Товар не найден")
                return None

            if quantity > live.stock:
                self._notifier.error(f"Доступно только {live.stock} шт.")
                return None

            existing = self._cart.get(live.id)  # type: ignore[arg-type]
            if existing is not None:
                combined = existing.quantity + quantity
                if combined > live.stock:
                    self._notifier.error(
                        f"Нельзя превысить доступный остаток ({live.stock} шт.)"
                    )
                    return None
                item = existing.model_copy(update={"quantity": combined})
            else:
                item = CartItem(
                    product_id=live.id,  # type: ignore[arg-type]
                    quantity=quantity,
                    snapshot=ProductSnapshot.model_validate(product),
                )
            self._cart[item.product_id] = item

        self._notifier.success(f"{product.name} добавлен в корзину")
        return item

    def _remove(self, product_id: int) -> None:
        if self._cart.pop(product_id, None) is None:
            logging.info("Cart item for product %s already removed", product_id)
        self._notifier.success("Товар удален из корзины")

    async def remove_from_cart(self, product_id: int) -> None:
        async with self._registry.lock:
            self._remove(product_id)

    async def update_cart_item_quantity(
        self, product_id: int, quantity: int
    ) -> CartItem | None:
        """
        Задает количество в позиции корзины.

        Нулевое или отрицательное количество удаляет позицию.

        Returns:
            Обновленная позиция или None, если позиция не изменилась
            или была удалена.
        """
        async with self._registry.transaction() as session:
            live = await self._live_product(session, product_id)
            if live is None:
                self._notifier.error("Товар не найден")
                return None

            if quantity <= 0:
                self._remove(product_id)
                return None

            if quantity > live.stock:
                self._notifier.error(f"Доступно только {live.stock} шт.")
                return None

            existing = self._cart.get(product_id)
            if existing is None:
                return None
            item = existing.model_copy(update={"quantity": quantity})
            self._cart[product_id] = item
            return item

    async def clear_cart(self) -> None:
        async with self._registry.lock:
            self._cart.clear()

    async def confirm_withdrawal(self, notes: str | None = None) -> Withdrawal | None:
        """
        Подтверждает списание всего содержимого корзины.

        Проверка корзины и остатков, их уменьшение и очистка корзины
        выполняются в одной транзакции под блокировкой реестра: либо
        списываются все позиции, либо ни одна.

        Args:
            notes: Необязательное примечание.

        Returns:
            Созданное списание или None, если подтверждение отклонено.
        """
        async with self._registry.lock:
            user = self._users.current_user
            if user is None:
                self._notifier.error("Для подтверждения списания необходимо войти в систему")
                return None

            if not self._cart:
                self._notifier.error("Корзина пуста")
                return None

            self._confirming = True
            try:
                async with self._registry.session_scope() as session:
                    withdrawal = await self._record_withdrawal(session, user, notes)
            finally:
                self._confirming = False

            if withdrawal is None:
                return None
            self._cart.clear()

        logging.info(
            "Withdrawal %s confirmed by user %s: %s items",
            withdrawal.id,
            user.id,
            withdrawal.total_items,
        )
        self._notifier.success("Списание успешно подтверждено")
        return withdrawal

    async def _record_withdrawal(
        self, session: AsyncSession, user: SessionUser, notes: str | None
    ) -> Withdrawal | None:
        items = list(self._cart.values())
        for item in items:
            current = await self._live_product(session, item.product_id)
            if current is None:
                self._notifier.error(f"Товар с ID {item.product_id} не найден")
                return None
            if item.quantity > current.stock:
                self._notifier.error(f"Недостаточно остатка товара {current.name}")
                return None

        withdrawal = Withdrawal(
            id=await next_withdrawal_id(session),
            items=[item.model_dump(mode="json") for item in items],
            total_items=sum(item.quantity for item in items),
            user_id=user.id,
            user_name=user.name,
            user_section=user.section,
            notes=notes.strip() if notes and notes.strip() else None,
            created_at=utcnow(),
        )
        for item in items:
            await product_service.adjust_stock(session, item.product_id, -item.quantity)
        session.add(withdrawal)
        await session.flush()
        return withdrawal

    async def get_withdrawals(self) -> list[Withdrawal]:
        async with self._registry.transaction() as session:
            return list(await get_all_withdrawals(session))

    async def get_withdrawal(self, withdrawal_id: int) -> Withdrawal | None:
        async with self._registry.transaction() as session:
            return await session.get(Withdrawal, withdrawal_id)
