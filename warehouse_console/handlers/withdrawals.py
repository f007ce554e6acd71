"""Обработчики корзины и списаний."""

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from warehouse_console.filters.auth import IsAuthenticated
from warehouse_console.fsm.withdrawal_states import WithdrawalState
from warehouse_console.handlers import views
from warehouse_console.services.product_service import ProductRegistry
from warehouse_console.services.withdrawal_service import CartStatus, WithdrawalWorkflow

router = Router()
router.message.filter(IsAuthenticated())

HISTORY_LIMIT = 10
SKIP_NOTES = "-"
# Команды не считаются примечанием и обрабатываются своими хендлерами
NOT_A_COMMAND = ~F.text.startswith("/")


@router.message(Command(commands=["take"]))
async def handle_add_to_cart(
    message: Message,
    command: CommandObject,
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
) -> None:
    """
    Добавление товара в корзину: /take <id> <количество>.
    """
    args = views.parse_int_args(command.args, 2)
    if args is None:
        await message.answer("Формат: /take <id> <количество>")
        return

    product_id, quantity = args
    product = await registry.get_product(product_id)
    if product is None:
        await message.answer(f"Товар с ID {product_id} не найден.")
        return

    item = await workflow.add_to_cart(product, quantity)
    if item is not None:
        await message.answer(f"В корзине {workflow.cart_total_items} ед. Просмотр: /cart")


@router.message(Command(commands=["cart"]))
async def handle_show_cart(message: Message, workflow: WithdrawalWorkflow) -> None:
    await message.answer(views.render_cart(workflow.cart, workflow.cart_total_items))


@router.message(Command(commands=["setqty"]))
async def handle_set_quantity(
    message: Message, command: CommandObject, workflow: WithdrawalWorkflow
) -> None:
    """
    Изменение количества в позиции: /setqty <id> <количество>.
    Количество 0 удаляет позицию.
    """
    args = views.parse_int_args(command.args, 2)
    if args is None:
        await message.answer("Формат: /setqty <id> <количество>")
        return

    product_id, quantity = args
    await workflow.update_cart_item_quantity(product_id, quantity)
    await message.answer(views.render_cart(workflow.cart, workflow.cart_total_items))


@router.message(Command(commands=["drop"]))
async def handle_remove_from_cart(
    message: Message, command: CommandObject, workflow: WithdrawalWorkflow
) -> None:
    args = views.parse_int_args(command.args, 1)
    if args is None:
        await message.answer("Формат: /drop <id>")
        return
    await workflow.remove_from_cart(args[0])


@router.message(Command(commands=["clear"]))
async def handle_clear_cart(message: Message, workflow: WithdrawalWorkflow) -> None:
    await workflow.clear_cart()
    await message.answer("Корзина очищена.")


# --- Сценарий подтверждения списания ---
@router.message(Command(commands=["confirm"]))
async def handle_confirm_start(
    message: Message, state: FSMContext, workflow: WithdrawalWorkflow
) -> None:
    """
    Начало подтверждения: запрос примечания.
    """
    if workflow.status is CartStatus.EMPTY:
        await message.answer("Корзина пуста.")
        return

    await state.set_state(WithdrawalState.waiting_for_notes)
    await message.answer(
        f"{views.render_cart(workflow.cart, workflow.cart_total_items)}\n"
        f"Добавьте примечание к списанию или отправьте «{SKIP_NOTES}»:"
    )


@router.message(WithdrawalState.waiting_for_notes, NOT_A_COMMAND)
async def process_confirm_notes(
    message: Message, state: FSMContext, workflow: WithdrawalWorkflow
) -> None:
    """
    Подтверждение списания с примечанием.
    """
    text = (message.text or "").strip()
    notes = None if text == SKIP_NOTES else text

    try:
        withdrawal = await workflow.confirm_withdrawal(notes)
        if withdrawal is not None:
            await message.answer(views.render_withdrawal(withdrawal))
    except Exception:
        logging.exception("Error in process_confirm_notes")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
    finally:
        await state.clear()


@router.message(Command(commands=["history"]))
async def handle_history(message: Message, workflow: WithdrawalWorkflow) -> None:
    withdrawals = await workflow.get_withdrawals()
    await message.answer(views.render_history(withdrawals[:HISTORY_LIMIT]))


@router.message(Command(commands=["withdrawal"]))
async def handle_withdrawal_details(
    message: Message, command: CommandObject, workflow: WithdrawalWorkflow
) -> None:
    args = views.parse_int_args(command.args, 1)
    if args is None:
        await message.answer("Формат: /withdrawal <id>")
        return

    withdrawal = await workflow.get_withdrawal(args[0])
    if withdrawal is None:
        await message.answer(f"Списание #{args[0]} не найдено.")
        return
    await message.answer(views.render_withdrawal(withdrawal))
