"""Состояния (FSM) для управления товарами."""

from aiogram.fsm.state import State, StatesGroup


class ProductState(StatesGroup):
    """
    Состояния для сценария добавления товара.
    """

    add_waiting_for_name = State()
    add_waiting_for_description = State()
    add_waiting_for_category = State()
    add_waiting_for_stock = State()
    add_waiting_for_min_stock = State()
    add_waiting_for_location = State()
    add_waiting_for_price = State()
