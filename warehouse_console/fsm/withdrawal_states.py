"""Состояния (FSM) для подтверждения списания."""

from aiogram.fsm.state import State, StatesGroup


class WithdrawalState(StatesGroup):
    """
    Корзина уже собрана, ожидается примечание перед подтверждением.
    """

    waiting_for_notes = State()
