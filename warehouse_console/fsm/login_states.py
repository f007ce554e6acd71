"""Состояния (FSM) для входа в консоль."""

from aiogram.fsm.state import State, StatesGroup


class LoginState(StatesGroup):
    waiting_for_email = State()
    waiting_for_password = State()
