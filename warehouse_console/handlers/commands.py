"""Обработчики просмотра склада: сводка, списки, поиск, статистика."""

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from warehouse_console.filters.auth import IsAuthenticated
from warehouse_console.handlers import views
from warehouse_console.handlers.navigation import show_dashboard
from warehouse_console.services.product_service import ALL_CATEGORIES, ProductRegistry
from warehouse_console.services.report_service import (
    SortDirection,
    SortField,
    build_statistics,
    filter_products,
    sort_products,
)
from warehouse_console.services.withdrawal_service import WithdrawalWorkflow

# Создаем "роутер" для наших хендлеров. Доступен только после входа.
router = Router()
router.message.filter(IsAuthenticated())


@router.message(Command(commands=["dashboard"]))
async def handle_dashboard(
    message: Message, registry: ProductRegistry, workflow: WithdrawalWorkflow
) -> None:
    await show_dashboard(message, registry, workflow)


@router.message(Command(commands=["list"]))
async def handle_list_products(
    message: Message, command: CommandObject, registry: ProductRegistry
) -> None:
    """
    Обработчик команды /list.
    Показывает список всех товаров на складе с сортировкой.

    Args:
        message: Объект сообщения от пользователя.
        command: Аргументы команды: поле и направление сортировки.
        registry: Реестр товаров (передается через middleware).
    """
    args = (command.args or "").split()
    try:
        sort_field = SortField(args[0]) if args else SortField.NAME
        direction = SortDirection(args[1]) if len(args) > 1 else SortDirection.ASC
    except ValueError:
        await message.answer("Формат: /list [name|stock|category] [asc|desc]")
        return

    try:
        products = await registry.get_products()
        if not products:
            await message.answer("Склад пуст.")
            return

        await message.answer(
            views.render_product_list(
                "Список товаров на складе:",
                sort_products(products, sort_field, direction),
            )
        )
    except Exception:
        # 🛡️ Логируем полную информацию об ошибке
        logging.exception("Произошла ошибка в хендлере handle_list_products")
        # 🗣️ Сообщаем пользователю, что что-то пошло не так
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")


@router.message(Command(commands=["search"]))
async def handle_search(
    message: Message, command: CommandObject, registry: ProductRegistry
) -> None:
    products = await registry.search_products(command.args or "")
    await message.answer(views.render_product_list("Результаты поиска:", products))


@router.message(Command(commands=["category"]))
async def handle_category(
    message: Message, command: CommandObject, registry: ProductRegistry
) -> None:
    """
    Без аргумента показывает список категорий, с аргументом - товары категории.
    """
    category = (command.args or "").strip()
    if not category:
        await message.answer(views.render_categories(await registry.get_categories()))
        return

    products = await registry.filter_by_category(category)
    title = "Все товары:" if category == ALL_CATEGORIES else f"Категория {category}:"
    await message.answer(views.render_product_list(title, products))


@router.message(Command(commands=["lowstock"]))
async def handle_low_stock(
    message: Message, command: CommandObject, registry: ProductRegistry
) -> None:
    products = await registry.get_low_stock_products()
    await message.answer(
        views.render_low_stock(filter_products(products, command.args or ""))
    )


@router.message(Command(commands=["product"]))
async def handle_product(
    message: Message, command: CommandObject, registry: ProductRegistry
) -> None:
    args = views.parse_int_args(command.args, 1)
    if args is None:
        await message.answer("Формат: /product <id>")
        return

    product = await registry.get_product(args[0])
    if product is None:
        await message.answer(f"Товар с ID {args[0]} не найден.")
        return
    await message.answer(views.render_product(product))


@router.message(Command(commands=["stats"]))
async def handle_statistics(
    message: Message, registry: ProductRegistry, workflow: WithdrawalWorkflow
) -> None:
    products = await registry.get_products()
    withdrawals = await workflow.get_withdrawals()
    await message.answer(views.render_statistics(build_statistics(products, withdrawals)))
