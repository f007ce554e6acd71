"""Отчеты, сводка и статистика склада."""

import datetime
import enum
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from warehouse_console.db.models import Product, Withdrawal
from warehouse_console.services.product_service import ALL_CATEGORIES, matches_query

UNKNOWN_PRODUCT = "Неизвестный товар"
NO_NOTES = "Без примечаний"
TOP_LIMIT = 5


class SortField(enum.StrEnum):
    NAME = "name"
    STOCK = "stock"
    CATEGORY = "category"


class SortDirection(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"


_SORT_KEYS: dict[SortField, Callable[[Product], Any]] = {
    SortField.NAME: lambda product: product.name.lower(),
    SortField.STOCK: lambda product: product.stock,
    SortField.CATEGORY: lambda product: product.category.lower(),
}


class DateStyle(enum.StrEnum):
    FULL = "full"
    TIME = "time"
    SIMPLE = "simple"


def format_date(value: datetime.datetime, style: DateStyle = DateStyle.FULL) -> str:
    """
    Форматирует дату для отчетов.

    full: 19.10.2026, time: 14:05, simple: 20261019 (для имен файлов).
    """
    if style is DateStyle.TIME:
        return value.strftime("%H:%M")
    if style is DateStyle.SIMPLE:
        return value.strftime("%Y%m%d")
    return value.strftime("%d.%m.%Y")


def sort_products(
    products: Iterable[Product],
    sort_field: SortField = SortField.NAME,
    direction: SortDirection = SortDirection.ASC,
) -> list[Product]:
    """Сортирует товары по названию, остатку или категории."""
    return sorted(
        products,
        key=_SORT_KEYS[sort_field],
        reverse=direction is SortDirection.DESC,
    )


def filter_products(
    products: Iterable[Product], query: str = "", category: str = ALL_CATEGORIES
) -> list[Product]:
    """Поиск по названию/описанию и фильтр по категории одновременно."""
    return [
        product
        for product in products
        if matches_query(product, query)
        and (category == ALL_CATEGORIES or product.category == category)
    ]


def filter_withdrawals_by_date(
    withdrawals: Iterable[Withdrawal],
    start: datetime.date | None = None,
    end: datetime.date | None = None,
) -> list[Withdrawal]:
    """
    Отбирает списания за период.

    Обе границы включаются; конечная дата охватывает весь день.
    """
    selected = []
    for withdrawal in withdrawals:
        created = withdrawal.created_at
        if start and created < datetime.datetime.combine(start, datetime.time.min):
            continue
        if end and created > datetime.datetime.combine(end, datetime.time.max):
            continue
        selected.append(withdrawal)
    return selected


def distinct_categories(products: Iterable[Product]) -> list[str]:
    """Категории товаров без повторов, в порядке появления."""
    return list(dict.fromkeys(product.category for product in products))


def stock_report_rows(products: Iterable[Product]) -> list[dict[str, Any]]:
    return [
        {
            "Название": product.name,
            "Описание": product.description,
            "Категория": product.category,
            "Остаток": product.stock,
            "Мин. остаток": product.min_stock,
            "Низкий остаток": "Да" if product.is_low_stock else "Нет",
            "Местоположение": product.location,
            "Цена": float(product.price),
            "Последнее обновление": format_date(product.updated_at),
        }
        for product in products
    ]


def low_stock_report_rows(products: Iterable[Product]) -> list[dict[str, Any]]:
    return [
        {
            "Название": product.name,
            "Описание": product.description,
            "Категория": product.category,
            "Текущий остаток": product.stock,
            "Мин. остаток": product.min_stock,
            "Дефицит": product.min_stock - product.stock,
            "Местоположение": product.location,
            "Цена": float(product.price),
        }
        for product in products
    ]


def withdrawals_report_rows(withdrawals: Iterable[Withdrawal]) -> list[dict[str, Any]]:
    """Одна строка на каждую списанную позицию."""
    rows = []
    for withdrawal in withdrawals:
        for item in withdrawal.line_items:
            rows.append(
                {
                    "ID списания": withdrawal.id,
                    "Дата": format_date(withdrawal.created_at),
                    "Время": format_date(withdrawal.created_at, DateStyle.TIME),
                    "Пользователь": withdrawal.user_name,
                    "Отдел": withdrawal.user_section,
                    "Товар": item.snapshot.name,
                    "Категория": item.snapshot.category,
                    "Количество": item.quantity,
                    "Примечание": withdrawal.notes or NO_NOTES,
                }
            )
    return rows


def withdrawal_detail_rows(withdrawal: Withdrawal) -> list[dict[str, Any]]:
    return [
        {
            "Товар": item.snapshot.name,
            "Категория": item.snapshot.category,
            "Количество": item.quantity,
            "Дата списания": format_date(withdrawal.created_at),
            "Время списания": format_date(withdrawal.created_at, DateStyle.TIME),
            "Кто списал": withdrawal.user_name,
            "Отдел": withdrawal.user_section,
            "Примечание": withdrawal.notes or NO_NOTES,
        }
        for item in withdrawal.line_items
    ]


@dataclass
class Dashboard:
    """Сводка для главного экрана."""

    total_products: int
    low_stock_count: int
    total_categories: int
    total_withdrawals: int
    recent_products: list[Product] = field(default_factory=list)
    recent_withdrawals: list[Withdrawal] = field(default_factory=list)


def build_dashboard(
    products: Sequence[Product], withdrawals: Sequence[Withdrawal]
) -> Dashboard:
    recent_products = sorted(products, key=lambda p: p.created_at, reverse=True)
    recent_withdrawals = sorted(withdrawals, key=lambda w: w.created_at, reverse=True)
    return Dashboard(
        total_products=len(products),
        low_stock_count=sum(1 for product in products if product.is_low_stock),
        total_categories=len(distinct_categories(products)),
        total_withdrawals=len(withdrawals),
        recent_products=recent_products[:TOP_LIMIT],
        recent_withdrawals=recent_withdrawals[:TOP_LIMIT],
    )


@dataclass
class Statistics:
    """Агрегированная статистика склада."""

    total_products: int
    low_stock_count: int
    total_withdrawals: int
    total_items_withdrawn: int
    # (категория, число товаров), по убыванию
    top_categories: list[tuple[str, int]]
    # (ID товара, название, списано единиц), по убыванию
    top_withdrawn_products: list[tuple[int, str, int]]
    # (отдел, списано единиц), по убыванию
    section_totals: list[tuple[str, int]]


def build_statistics(
    products: Sequence[Product], withdrawals: Sequence[Withdrawal]
) -> Statistics:
    category_counts = Counter(product.category for product in products)

    withdrawn: Counter[int] = Counter()
    for withdrawal in withdrawals:
        for item in withdrawal.line_items:
            withdrawn[item.product_id] += item.quantity

    # Название берется из текущего реестра, а не из снимка
    names = {product.id: product.name for product in products}
    top_withdrawn = [
        (product_id, names.get(product_id, UNKNOWN_PRODUCT), quantity)
        for product_id, quantity in withdrawn.most_common(TOP_LIMIT)
    ]

    sections: Counter[str] = Counter()
    for withdrawal in withdrawals:
        sections[withdrawal.user_section] += withdrawal.total_items

    return Statistics(
        total_products=len(products),
        low_stock_count=sum(1 for product in products if product.is_low_stock),
        total_withdrawals=len(withdrawals),
        total_items_withdrawn=sum(w.total_items for w in withdrawals),
        top_categories=category_counts.most_common(TOP_LIMIT),
        top_withdrawn_products=top_withdrawn,
        section_totals=sections.most_common(),
    )
