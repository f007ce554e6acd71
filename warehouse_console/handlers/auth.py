"""Обработчики входа, выхода и общих команд."""

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from warehouse_console.fsm.login_states import LoginState
from warehouse_console.handlers import views
from warehouse_console.handlers.navigation import navigate
from warehouse_console.services.auth_service import SessionStore
from warehouse_console.services.product_service import ProductRegistry
from warehouse_console.services.withdrawal_service import WithdrawalWorkflow

router = Router()
# Подключается последним: ловит все, что не обработали другие роутеры
fallback_router = Router()


# --- Универсальный отменщик FSM ---
@router.message(Command(commands=["cancel"]))
@router.message(F.text.casefold() == "отмена")
async def cancel_handler(
    message: Message, state: FSMContext, session_store: SessionStore
) -> None:
    """
    Позволяет пользователю отменить любое действие FSM, а также
    выполняющуюся попытку входа.
    """
    current_state = await state.get_state()
    # Состояние входа сбрасывается до проверки пароля, поэтому
    # попытку входа отменяем независимо от состояния FSM
    login_cancelled = session_store.cancel_login()
    if current_state is None and not login_cancelled:
        await message.answer("Нет активных действий для отмены.")
        return

    logging.info(
        "Cancelling state %r, login cancelled: %s", current_state, login_cancelled
    )
    await state.clear()
    await message.answer("Действие отменено.")


@router.message(CommandStart())
async def handle_start(message: Message, session_store: SessionStore) -> None:
    """
    Обработчик команды /start.
    """
    user = session_store.current_user
    if user is None:
        await message.answer(f"Консоль склада.\n{views.LOGIN_PROMPT}")
        return
    await message.answer(f"Вы вошли как {user.name} ({user.section}).\n/help - список команд")


@router.message(Command(commands=["help"]))
async def handle_help(message: Message) -> None:
    await message.answer(views.HELP_TEXT)


# --- Сценарий входа ---
@router.message(Command(commands=["login"]))
async def handle_login_start(
    message: Message, state: FSMContext, session_store: SessionStore
) -> None:
    """
    Начало сценария входа.
    """
    user = session_store.current_user
    if user is not None:
        await message.answer(f"Вы уже вошли как {user.name}. Для выхода: /logout")
        return

    await state.set_state(LoginState.waiting_for_email)
    await message.answer("Введите email:")


@router.message(LoginState.waiting_for_email)
async def process_login_email(message: Message, state: FSMContext) -> None:
    """
    Сохранение email и запрос пароля.
    """
    if not message.text or not message.text.strip():
        await message.answer("Email не может быть пустым. Попробуйте еще раз.")
        return
    await state.update_data(email=message.text.strip())
    await state.set_state(LoginState.waiting_for_password)
    await message.answer("Введите пароль:")


@router.message(LoginState.waiting_for_password)
async def process_login_password(
    message: Message,
    state: FSMContext,
    session_store: SessionStore,
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
) -> None:
    """
    Проверка учетных данных и переход на главный экран.
    """
    if not message.text:
        await message.answer("Пароль не может быть пустым. Попробуйте еще раз.")
        return

    user_data = await state.get_data()
    await state.clear()

    try:
        route = await session_store.login(user_data["email"], message.text)
        if route is not None:
            await navigate(message, route, registry, workflow)
    except Exception:
        logging.exception("Error in process_login_password")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")


@router.message(Command(commands=["logout"]))
async def handle_logout(
    message: Message,
    state: FSMContext,
    session_store: SessionStore,
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
) -> None:
    await state.clear()
    route = await session_store.logout()
    await navigate(message, route, registry, workflow)


@fallback_router.message()
async def handle_unknown(message: Message, session_store: SessionStore) -> None:
    """
    Ответ на сообщения, не подошедшие ни одному хендлеру.
    """
    if not session_store.is_authenticated:
        await message.answer(f"Сначала войдите в систему. {views.LOGIN_PROMPT}")
        return
    await message.answer("Неизвестная команда. Список команд: /help")
