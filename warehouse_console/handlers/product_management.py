"""Обработчики для FSM-сценариев управления товарами."""

import logging
from decimal import Decimal, InvalidOperation

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import Message
from pydantic import ValidationError

from warehouse_console.db.models import ProductCreate, ProductPatch
from warehouse_console.filters.auth import IsAuthenticated
from warehouse_console.fsm.product_states import ProductState
from warehouse_console.handlers import views
from warehouse_console.services.product_service import ProductRegistry

router = Router()
router.message.filter(IsAuthenticated())

# Ответ "-" означает пустое значение необязательного поля
SKIP = "-"


def describe_errors(error: ValidationError) -> str:
    """Собирает сообщения об ошибках проверки в одну строку."""
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )


def parse_price(text: str) -> Decimal | None:
    try:
        return Decimal(text.strip().replace(",", "."))
    except InvalidOperation:
        return None


# --- Сценарий добавления товара ---
@router.message(Command(commands=["add"]))
async def handle_add_product_start(message: Message, state: FSMContext) -> None:
    """
    Начало сценария добавления товара.
    """
    await state.set_state(ProductState.add_waiting_for_name)
    await message.answer("Введите название нового товара:")


@router.message(ProductState.add_waiting_for_name)
async def process_add_product_name(message: Message, state: FSMContext) -> None:
    """
    Обработка названия товара и запрос описания.
    """
    if not message.text or not message.text.strip():
        await message.answer("Название не может быть пустым. Попробуйте еще раз.")
        return
    await state.update_data(name=message.text.strip())
    await state.set_state(ProductState.add_waiting_for_description)
    await message.answer(f"Введите описание (или «{SKIP}», чтобы пропустить):")


@router.message(ProductState.add_waiting_for_description)
async def process_add_product_description(
    message: Message, state: FSMContext, registry: ProductRegistry
) -> None:
    text = (message.text or "").strip()
    await state.update_data(description="" if text == SKIP else text)
    await state.set_state(ProductState.add_waiting_for_category)
    categories = await registry.get_categories()
    await message.answer(
        f"{views.render_categories(categories)}\nВведите категорию из списка:"
    )


@router.message(ProductState.add_waiting_for_category)
async def process_add_product_category(
    message: Message, state: FSMContext, registry: ProductRegistry
) -> None:
    """
    Категория должна совпадать с одной из существующих.
    """
    category = (message.text or "").strip()
    names = {item.name for item in await registry.get_categories()}
    if category not in names:
        await message.answer("Такой категории нет. Выберите категорию из списка.")
        return
    await state.update_data(category=category)
    await state.set_state(ProductState.add_waiting_for_stock)
    await message.answer("Введите начальный остаток (только цифры):")


@router.message(ProductState.add_waiting_for_stock)
async def process_add_product_stock(message: Message, state: FSMContext) -> None:
    if not message.text or not message.text.isdigit():
        await message.answer("Пожалуйста, введите корректное число.")
        return
    await state.update_data(stock=int(message.text))
    await state.set_state(ProductState.add_waiting_for_min_stock)
    await message.answer("Введите минимальный остаток для пополнения:")


@router.message(ProductState.add_waiting_for_min_stock)
async def process_add_product_min_stock(message: Message, state: FSMContext) -> None:
    if not message.text or not message.text.isdigit():
        await message.answer("Пожалуйста, введите корректное число.")
        return
    await state.update_data(min_stock=int(message.text))
    await state.set_state(ProductState.add_waiting_for_location)
    await message.answer(f"Введите местоположение (или «{SKIP}»):")


@router.message(ProductState.add_waiting_for_location)
async def process_add_product_location(message: Message, state: FSMContext) -> None:
    text = (message.text or "").strip()
    await state.update_data(location="" if text == SKIP else text)
    await state.set_state(ProductState.add_waiting_for_price)
    await message.answer("Введите цену:")


@router.message(ProductState.add_waiting_for_price)
async def process_add_product_price(
    message: Message, state: FSMContext, registry: ProductRegistry
) -> None:
    """
    Обработка цены и создание товара.
    """
    price = parse_price(message.text or "")
    if price is None or price <= 0:
        await message.answer("Цена должна быть числом больше нуля.")
        return

    user_data = await state.get_data()
    try:
        data = ProductCreate(**user_data, price=price)
        product = await registry.add_product(data)
        await message.answer(views.render_product(product))
    except ValidationError as e:
        await message.answer(f"Некорректные данные товара: {describe_errors(e)}")
    except Exception:
        logging.exception("Error in process_add_product_price")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
    finally:
        await state.clear()


# --- Изменение и удаление ---
@router.message(Command(commands=["edit"]))
async def handle_edit_product(
    message: Message, command: CommandObject, registry: ProductRegistry
) -> None:
    """
    Изменение одного поля товара: /edit <id> <поле> <значение>.
    """
    parts = (command.args or "").split(maxsplit=2)
    if len(parts) != 3 or not parts[0].isdigit():
        fields = ", ".join(ProductPatch.model_fields)
        await message.answer(f"Формат: /edit <id> <поле> <значение>\nПоля: {fields}")
        return

    product_id, field, value = int(parts[0]), parts[1], parts[2].strip()
    if field not in ProductPatch.model_fields:
        await message.answer(f"Поле «{field}» изменить нельзя.")
        return

    if await registry.get_product(product_id) is None:
        await message.answer(f"Товар с ID {product_id} не найден.")
        return

    try:
        if value == SKIP and field in ("description", "location"):
            patch = ProductPatch(**{field: ""})
        elif value == SKIP and field == "image":
            patch = ProductPatch(image=None)
        else:
            patch = ProductPatch(**{field: value})
    except ValidationError as e:
        await message.answer(f"Некорректное значение: {describe_errors(e)}")
        return

    try:
        product = await registry.update_product(product_id, patch)
        if product is not None:
            await message.answer(views.render_product(product))
    except Exception:
        logging.exception("Error in handle_edit_product")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")


@router.message(Command(commands=["delete"]))
async def handle_delete_product(
    message: Message, command: CommandObject, registry: ProductRegistry
) -> None:
    args = views.parse_int_args(command.args, 1)
    if args is None:
        await message.answer("Формат: /delete <id>")
        return
    await registry.delete_product(args[0])
