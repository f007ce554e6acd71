"""Начальные данные склада."""

import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from warehouse_console.db.models import Category, Product

SAMPLE_CATEGORIES = [
    "Электроника",
    "Канцелярия",
    "Инструменты",
    "Мебель",
    "Расходные материалы",
]

SAMPLE_PRODUCTS = [
    {
        "name": "Ноутбук Lenovo ThinkPad",
        "description": "Ноутбук 14\" для сотрудников офиса",
        "category": "Электроника",
        "stock": 12,
        "min_stock": 5,
        "location": "Стеллаж A-1",
        "price": Decimal("85000.00"),
    },
    {
        "name": "Мышь беспроводная",
        "description": "Оптическая мышь с USB-приемником",
        "category": "Электроника",
        "stock": 4,
        "min_stock": 10,
        "location": "Стеллаж A-2",
        "price": Decimal("1200.00"),
    },
    {
        "name": "Бумага A4",
        "description": "Пачка офисной бумаги, 500 листов",
        "category": "Канцелярия",
        "stock": 60,
        "min_stock": 20,
        "location": "Стеллаж B-1",
        "price": Decimal("450.00"),
    },
    {
        "name": "Ручка шариковая",
        "description": "Синяя, упаковка 50 шт.",
        "category": "Канцелярия",
        "stock": 8,
        "min_stock": 8,
        "location": "Стеллаж B-2",
        "price": Decimal("350.00"),
    },
    {
        "name": "Дрель аккумуляторная",
        "description": "18 В, два аккумулятора в комплекте",
        "category": "Инструменты",
        "stock": 3,
        "min_stock": 2,
        "location": "Склад C",
        "price": Decimal("9800.00"),
    },
    {
        "name": "Набор отверток",
        "description": "24 предмета, магнитные насадки",
        "category": "Инструменты",
        "stock": 1,
        "min_stock": 3,
        "location": "Склад C",
        "price": Decimal("1900.00"),
    },
    {
        "name": "Кресло офисное",
        "description": "Эргономичное кресло с подлокотниками",
        "category": "Мебель",
        "stock": 6,
        "min_stock": 2,
        "location": "Склад D",
        "price": Decimal("14500.00"),
    },
    {
        "name": "Картридж для принтера",
        "description": "Черный тонер-картридж для лазерного принтера",
        "category": "Расходные материалы",
        "stock": 9,
        "min_stock": 4,
        "location": "Стеллаж A-3",
        "price": Decimal("3200.00"),
    },
]


async def seed_sample_data(session: AsyncSession) -> None:
    """
    Заполняет пустую базу категориями и товарами.

    Args:
        session: Сессия базы данных.
    """
    result = await session.execute(select(func.count()).select_from(Product))
    if result.scalar_one():
        return

    for name in SAMPLE_CATEGORIES:
        session.add(Category(name=name))
    for product_id, data in enumerate(SAMPLE_PRODUCTS, start=1):
        session.add(Product(id=product_id, **data))
    await session.commit()
    logging.info(
        "Seeded %d categories and %d products",
        len(SAMPLE_CATEGORIES),
        len(SAMPLE_PRODUCTS),
    )
