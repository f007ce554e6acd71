"""Отображение экранов, на которые указывают сервисы."""

from aiogram.types import Message

from warehouse_console.handlers import views
from warehouse_console.services.auth_service import Route
from warehouse_console.services.product_service import ProductRegistry
from warehouse_console.services.report_service import build_dashboard
from warehouse_console.services.withdrawal_service import WithdrawalWorkflow


async def show_dashboard(
    message: Message, registry: ProductRegistry, workflow: WithdrawalWorkflow
) -> None:
    products = await registry.get_products()
    withdrawals = await workflow.get_withdrawals()
    await message.answer(views.render_dashboard(build_dashboard(products, withdrawals)))


async def navigate(
    message: Message,
    route: Route,
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
) -> None:
    """Показывает экран, соответствующий маршруту."""
    if route is Route.DASHBOARD:
        await show_dashboard(message, registry, workflow)
    else:
        await message.answer(views.LOGIN_PROMPT)
