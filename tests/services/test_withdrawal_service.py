"""Тесты корзины и подтверждения списаний."""

import asyncio

from tests.fakes import RecordingNotifier, product_data
from warehouse_console.db.models import ProductPatch, SessionUser
from warehouse_console.services.auth_service import SessionStore
from warehouse_console.services.product_service import ProductRegistry
from warehouse_console.services.withdrawal_service import (
    CartStatus,
    WithdrawalWorkflow,
)


async def test_widget_withdrawal_scenario(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
    logged_in: SessionUser,
) -> None:
    """Полный сценарий: корзина, подтверждение, уменьшение остатка."""
    widget = await registry.add_product(product_data())

    assert await workflow.add_to_cart(widget, 3) is not None
    assert workflow.status is CartStatus.BUILDING
    assert workflow.cart_total_items == 3

    withdrawal = await workflow.confirm_withdrawal("  ")

    assert withdrawal is not None
    assert withdrawal.id == 1
    assert withdrawal.total_items == 3
    assert withdrawal.user_id == logged_in.id
    assert withdrawal.user_name == logged_in.name
    assert withdrawal.user_section == logged_in.section
    assert withdrawal.notes is None
    [line] = withdrawal.line_items
    assert line.product_id == widget.id
    assert line.quantity == 3
    assert line.snapshot.name == "Widget"

    refreshed = await registry.get_product(widget.id)  # type: ignore[arg-type]
    assert refreshed is not None
    assert refreshed.stock == 2
    assert refreshed.is_low_stock
    assert workflow.cart == []
    assert workflow.status is CartStatus.EMPTY
    assert notifier.successes[-1] == "Списание успешно подтверждено"


async def test_add_more_than_stock_is_rejected(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
) -> None:
    widget = await registry.add_product(product_data())

    assert await workflow.add_to_cart(widget, 6) is None

    assert workflow.cart == []
    assert notifier.errors == ["Доступно только 5 шт."]


async def test_add_non_positive_quantity_is_rejected(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
) -> None:
    widget = await registry.add_product(product_data())

    assert await workflow.add_to_cart(widget, 0) is None

    assert workflow.cart == []
    assert notifier.errors == ["Количество должно быть больше нуля"]


async def test_repeated_adds_accumulate_in_one_line(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
) -> None:
    widget = await registry.add_product(product_data())

    await workflow.add_to_cart(widget, 2)
    item = await workflow.add_to_cart(widget, 3)

    assert item is not None
    assert item.quantity == 5
    assert len(workflow.cart) == 1

    assert await workflow.add_to_cart(widget, 1) is None
    assert workflow.cart[0].quantity == 5
    assert notifier.errors == ["Нельзя превысить доступный остаток (5 шт.)"]
    assert notifier.successes.count("Widget добавлен в корзину") == 2


async def test_cart_keeps_insertion_order(
    registry: ProductRegistry, workflow: WithdrawalWorkflow
) -> None:
    first = await registry.add_product(product_data(name="First"))
    second = await registry.add_product(product_data(name="Second"))

    await workflow.add_to_cart(second, 1)
    await workflow.add_to_cart(first, 1)
    await workflow.add_to_cart(second, 1)

    assert [item.snapshot.name for item in workflow.cart] == ["Second", "First"]


async def test_confirmation_is_all_or_nothing(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
    logged_in: SessionUser,
) -> None:
    plenty = await registry.add_product(product_data(name="Plenty", stock=10))
    scarce = await registry.add_product(product_data(name="Scarce", stock=4))
    await workflow.add_to_cart(plenty, 5)
    await workflow.add_to_cart(scarce, 4)

    # Остаток уменьшился уже после добавления в корзину
    await registry.update_stock(scarce.id, -2)  # type: ignore[arg-type]

    assert await workflow.confirm_withdrawal() is None

    assert notifier.errors == ["Недостаточно остатка товара Scarce"]
    unchanged = await registry.get_product(plenty.id)  # type: ignore[arg-type]
    assert unchanged is not None
    assert unchanged.stock == 10
    assert await workflow.get_withdrawals() == []
    assert workflow.cart_total_items == 9
    assert workflow.status is CartStatus.BUILDING


async def test_confirmation_fails_for_deleted_product(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
    logged_in: SessionUser,
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 1)
    await registry.delete_product(widget.id)  # type: ignore[arg-type]

    assert await workflow.confirm_withdrawal() is None
    assert notifier.errors == [f"Товар с ID {widget.id} не найден"]


async def test_set_quantity_zero_removes_line(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 2)

    result = await workflow.update_cart_item_quantity(widget.id, 0)  # type: ignore[arg-type]

    assert result is None
    assert workflow.cart == []
    assert notifier.successes[-1] == "Товар удален из корзины"


async def test_set_quantity_replaces_and_checks_live_stock(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 2)

    item = await workflow.update_cart_item_quantity(widget.id, 4)  # type: ignore[arg-type]
    assert item is not None
    assert item.quantity == 4

    assert await workflow.update_cart_item_quantity(widget.id, 6) is None  # type: ignore[arg-type]
    assert workflow.cart[0].quantity == 4
    assert notifier.errors == ["Доступно только 5 шт."]


async def test_set_quantity_for_product_not_in_cart_is_noop(
    registry: ProductRegistry, workflow: WithdrawalWorkflow
) -> None:
    widget = await registry.add_product(product_data())

    assert await workflow.update_cart_item_quantity(widget.id, 2) is None  # type: ignore[arg-type]
    assert workflow.cart == []


async def test_stock_checks_use_live_value_not_snapshot(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 1)
    await registry.update_product(widget.id, ProductPatch(stock=1))  # type: ignore[arg-type]

    assert workflow.cart[0].snapshot.stock == 5
    assert await workflow.add_to_cart(widget, 1) is None
    assert notifier.errors == ["Нельзя превысить доступный остаток (1 шт.)"]


async def test_remove_missing_line_still_reports_success(
    workflow: WithdrawalWorkflow, notifier: RecordingNotifier
) -> None:
    await workflow.remove_from_cart(404)

    assert notifier.successes == ["Товар удален из корзины"]
    assert notifier.errors == []


async def test_clear_cart(
    registry: ProductRegistry, workflow: WithdrawalWorkflow
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 1)

    await workflow.clear_cart()

    assert workflow.status is CartStatus.EMPTY


async def test_confirm_requires_user(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 1)

    assert await workflow.confirm_withdrawal() is None

    assert notifier.errors == ["Для подтверждения списания необходимо войти в систему"]
    assert len(workflow.cart) == 1


async def test_confirm_empty_cart(
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
    logged_in: SessionUser,
) -> None:
    assert await workflow.confirm_withdrawal() is None
    assert notifier.errors == ["Корзина пуста"]


async def test_history_is_newest_first(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    logged_in: SessionUser,
) -> None:
    widget = await registry.add_product(product_data(stock=10))
    for notes in ("first", "second"):
        await workflow.add_to_cart(widget, 1)
        await workflow.confirm_withdrawal(notes)

    history = await workflow.get_withdrawals()

    assert [(w.id, w.notes) for w in history] == [(2, "second"), (1, "first")]
    found = await workflow.get_withdrawal(1)
    assert found is not None
    assert found.notes == "first"
    assert await workflow.get_withdrawal(3) is None


async def test_concurrent_adds_never_exceed_stock(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
) -> None:
    widget = await registry.add_product(product_data())

    results = await asyncio.gather(*(workflow.add_to_cart(widget, 2) for _ in range(4)))

    assert sum(item is not None for item in results) == 2
    assert workflow.cart_total_items == 4


async def test_workflow_sees_logout(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    session_store: SessionStore,
    notifier: RecordingNotifier,
    logged_in: SessionUser,
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 1)
    await session_store.logout()

    assert await workflow.confirm_withdrawal() is None
    assert notifier.errors == ["Для подтверждения списания необходимо войти в систему"]


async def test_add_during_confirmation_stays_in_cart(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    logged_in: SessionUser,
) -> None:
    widget = await registry.add_product(product_data())
    gadget = await registry.add_product(product_data(name="Gadget"))
    await workflow.add_to_cart(widget, 2)

    withdrawal, added = await asyncio.gather(
        workflow.confirm_withdrawal(), workflow.add_to_cart(gadget, 1)
    )

    assert withdrawal is not None
    assert [line.product_id for line in withdrawal.line_items] == [widget.id]
    assert added is not None
    assert [item.product_id for item in workflow.cart] == [gadget.id]
    refreshed = await registry.get_product(gadget.id)  # type: ignore[arg-type]
    assert refreshed is not None
    assert refreshed.stock == 5


async def test_concurrent_confirmations_record_one_withdrawal(
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    notifier: RecordingNotifier,
    logged_in: SessionUser,
) -> None:
    widget = await registry.add_product(product_data())
    await workflow.add_to_cart(widget, 2)

    results = await asyncio.gather(
        workflow.confirm_withdrawal("first"), workflow.confirm_withdrawal("second")
    )

    assert [r.notes if r is not None else None for r in results] == ["first", None]
    assert len(await workflow.get_withdrawals()) == 1
    refreshed = await registry.get_product(widget.id)  # type: ignore[arg-type]
    assert refreshed is not None
    assert refreshed.stock == 3
    assert notifier.errors == ["Корзина пуста"]
