"""Сервисный слой для управления товарами."""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import col, select

from warehouse_console.db.models import (
    Category,
    Product,
    ProductCreate,
    ProductPatch,
    utcnow,
)
from warehouse_console.services.notifications import Notifier

# Значение фильтра категорий, означающее "все категории"
ALL_CATEGORIES = "all"


def matches_query(product: Product, query: str) -> bool:
    """
    Проверяет, содержит ли название или описание товара строку поиска.

    Сравнение без учета регистра. Пустая строка совпадает с любым товаром.
    """
    needle = query.strip().lower()
    if not needle:
        return True
    return needle in product.name.lower() or needle in product.description.lower()


async def next_product_id(session: AsyncSession) -> int:
    """Следующий ID товара: максимум существующих плюс один (1 для пустого склада)."""
    result = await session.execute(select(func.max(Product.id)))
    return (result.scalar_one_or_none() or 0) + 1


async def create_product(session: AsyncSession, data: ProductCreate) -> Product:
    """
    Создает новый товар в базе данных.

    Args:
        session: Сессия базы данных.
        data: Проверенные данные формы.

    Returns:
        Созданный объект товара.
    """
    now = utcnow()
    db_product = Product(
        **data.model_dump(),
        id=await next_product_id(session),
        created_at=now,
        updated_at=now,
    )
    session.add(db_product)
    await session.flush()
    return db_product


async def get_all_products(session: AsyncSession) -> Sequence[Product]:
    """
    Возвращает список всех товаров в порядке добавления.

    Args:
        session: Сессия базы данных.

    Returns:
        Последовательность объектов Product.
    """
    statement = select(Product).order_by(Product.id)
    result = await session.execute(statement)
    return result.scalars().all()


async def get_product(session: AsyncSession, product_id: int) -> Product | None:
    """
    Находит товар по ID.

    Args:
        session: Сессия базы данных.
        product_id: ID товара.

    Returns:
        Объект Product или None, если товар не найден.
    """
    return await session.get(Product, product_id)


async def update_product(
    session: AsyncSession, product_id: int, patch: ProductPatch
) -> Product | None:
    """
    Переносит в товар поля частичного обновления и обновляет updated_at.

    Returns:
        Обновленный товар или None, если товара нет.
    """
    db_product = await session.get(Product, product_id)
    if db_product is None:
        return None

    db_product.sqlmodel_update(patch.changes())
    db_product.updated_at = utcnow()
    session.add(db_product)
    await session.flush()
    return db_product


async def delete_product(session: AsyncSession, product_id: int) -> bool:
    """
    Удаляет товар.

    Returns:
        True, если товар был удален, False, если его уже не было.
    """
    db_product = await session.get(Product, product_id)
    if db_product is None:
        return False

    await session.delete(db_product)
    await session.flush()
    return True


async def adjust_stock(
    session: AsyncSession, product_id: int, quantity_change: int
) -> Product | None:
    """
    Изменяет остаток товара на заданную величину.

    Остаток не ограничивается нулем: вызывающий код сам проверяет,
    что товара достаточно.

    Args:
        session: Сессия базы данных.
        product_id: ID товара для обновления.
        quantity_change: Изменение количества (может быть положительным или
                         отрицательным).

    Returns:
        Обновленный объект Product или None, если товар не найден.
    """
    db_product = await session.get(Product, product_id)
    if db_product is None:
        return None

    db_product.stock += quantity_change
    db_product.updated_at = utcnow()
    session.add(db_product)
    await session.flush()
    return db_product


async def get_products_by_category(
    session: AsyncSession, category: str
) -> Sequence[Product]:
    """Товары с точно совпадающей категорией, в порядке добавления."""
    statement = (
        select(Product).where(Product.category == category).order_by(Product.id)
    )
    result = await session.execute(statement)
    return result.scalars().all()


async def get_low_stock_products(session: AsyncSession) -> Sequence[Product]:
    """Товары с остатком не выше порога пополнения, в порядке добавления."""
    statement = (
        select(Product)
        .where(col(Product.stock) <= col(Product.min_stock))
        .order_by(Product.id)
    )
    result = await session.execute(statement)
    return result.scalars().all()


async def get_all_categories(session: AsyncSession) -> Sequence[Category]:
    """Список категорий."""
    result = await session.execute(select(Category).order_by(Category.id))
    return result.scalars().all()


class ProductRegistry:
    """
    Реестр товаров склада.

    Все операции выполняются под общей блокировкой и в отдельной
    транзакции. Той же блокировкой пользуется процесс списания, поэтому
    проверка остатков и их уменьшение не перемежаются с другими операциями.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Notifier,
    ) -> None:
        self._session_factory = session_factory
        self._notifier = notifier
        self._lock = asyncio.Lock()

    @property
    def lock(self) -> asyncio.Lock:
        """Общая блокировка реестра и корзины списания."""
        return self._lock

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """
        Открывает транзакцию без блокировки.

        Вызывающий код должен сам удерживать lock.

        Yields:
            Сессия базы данных. При выходе без ошибок изменения фиксируются,
            при исключении откатываются.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Открывает транзакцию под блокировкой реестра."""
        async with self._lock, self.session_scope() as session:
            yield session

    async def add_product(self, data: ProductCreate) -> Product:
        async with self.transaction() as session:
            product = await create_product(session, data)
        logging.info("Product %s added: %s", product.id, product.name)
        self._notifier.success("Товар успешно добавлен")
        return product

    async def update_product(
        self, product_id: int, patch: ProductPatch
    ) -> Product | None:
        async with self.transaction() as session:
            product = await update_product(session, product_id, patch)
        if product is None:
            logging.info("Update skipped, product %s not found", product_id)
        self._notifier.success("Товар успешно обновлен")
        return product

    async def delete_product(self, product_id: int) -> bool:
        async with self.transaction() as session:
            removed = await delete_product(session, product_id)
        if not removed:
            logging.info("Product %s already removed", product_id)
        self._notifier.success("Товар успешно удален")
        return removed

    async def get_product(self, product_id: int) -> Product | None:
        async with self.transaction() as session:
            return await get_product(session, product_id)

    async def get_products(self) -> list[Product]:
        async with self.transaction() as session:
            return list(await get_all_products(session))

    async def get_categories(self) -> list[Category]:
        async with self.transaction() as session:
            return list(await get_all_categories(session))

    async def search_products(self, query: str) -> list[Product]:
        products = await self.get_products()
        return [product for product in products if matches_query(product, query)]

    async def filter_by_category(self, category: str) -> list[Product]:
        if category == ALL_CATEGORIES:
            return await self.get_products()
        async with self.transaction() as session:
            return list(await get_products_by_category(session, category))

    async def get_low_stock_products(self) -> list[Product]:
        async with self.transaction() as session:
            return list(await get_low_stock_products(session))

    async def update_stock(self, product_id: int, delta: int) -> Product | None:
        """
        Низкоуровневое изменение остатка, без проверок и уведомлений.

        Returns:
            Обновленный товар или None, если товар не найден.
        """
        async with self.transaction() as session:
            return await adjust_stock(session, product_id, delta)
