"""Текстовое представление данных склада для сообщений бота."""

from collections.abc import Sequence

from warehouse_console.db.models import CartItem, Category, Product, Withdrawal
from warehouse_console.services.report_service import (
    Dashboard,
    DateStyle,
    Statistics,
    format_date,
)

HELP_TEXT = "\n".join(
    [
        "Команды консоли склада:",
        "/login, /logout - вход и выход",
        "/dashboard - сводка",
        "/list [name|stock|category] [asc|desc] - список товаров",
        "/search <текст> - поиск по названию и описанию",
        "/category [название|all] - товары категории",
        "/lowstock [текст] - товары с низким остатком",
        "/product <id> - карточка товара",
        "/add, /edit <id> <поле> <значение>, /delete <id> - управление товарами",
        "/take <id> <кол-во> - добавить в корзину",
        "/cart, /setqty <id> <кол-во>, /drop <id>, /clear - корзина",
        "/confirm - подтвердить списание",
        "/history, /withdrawal <id> - история списаний",
        "/stats - статистика",
        "/export stock|lowstock|withdrawals|withdrawal ... - выгрузка в Excel",
        "/cancel - отменить текущее действие",
    ]
)

LOGIN_PROMPT = "Для входа в консоль используйте /login"


def parse_int_args(args: str | None, count: int) -> list[int] | None:
    """
    Разбирает аргументы команды как целые числа.

    Returns:
        Список ровно из count чисел или None, если аргументы некорректны.
    """
    parts = (args or "").split()
    if len(parts) != count:
        return None
    try:
        return [int(part) for part in parts]
    except ValueError:
        return None


def render_product_line(product: Product) -> str:
    marker = " ⚠️" if product.is_low_stock else ""
    return (
        f"#{product.id} {product.name} [{product.category}]: "
        f"{product.stock} шт. (мин. {product.min_stock}){marker}"
    )


def render_product_list(title: str, products: Sequence[Product]) -> str:
    if not products:
        return "Товары не найдены."
    lines = [title]
    lines.extend(render_product_line(product) for product in products)
    return "\n".join(lines)


def render_product(product: Product) -> str:
    lines = [
        f"#{product.id} {product.name}",
        f"Описание: {product.description or '-'}",
        f"Категория: {product.category}",
        f"Остаток: {product.stock} шт. (минимум {product.min_stock})",
        f"Местоположение: {product.location or 'не указано'}",
        f"Цена: {product.price}",
        f"Обновлен: {format_date(product.updated_at)} "
        f"{format_date(product.updated_at, DateStyle.TIME)}",
    ]
    if product.is_low_stock:
        lines.append("⚠️ Низкий остаток, требуется пополнение")
    return "\n".join(lines)


def render_low_stock(products: Sequence[Product]) -> str:
    if not products:
        return "Товаров с низким остатком нет."
    lines = [f"Найдено товаров с низким остатком: {len(products)}"]
    for product in products:
        lines.append(
            f"#{product.id} {product.name}: {product.stock} из {product.min_stock}, "
            f"дефицит {product.min_stock - product.stock}"
        )
    return "\n".join(lines)


def render_categories(categories: Sequence[Category]) -> str:
    lines = ["Категории:"]
    lines.extend(f"- {category.name}" for category in categories)
    return "\n".join(lines)


def render_cart(items: Sequence[CartItem], total_items: int) -> str:
    if not items:
        return "Корзина пуста."
    lines = [f"Корзина списания ({total_items} ед.):"]
    for item in items:
        lines.append(f"#{item.product_id} {item.snapshot.name}: {item.quantity} шт.")
    return "\n".join(lines)


def render_withdrawal(withdrawal: Withdrawal) -> str:
    lines = [
        f"Списание #{withdrawal.id} от {format_date(withdrawal.created_at)} "
        f"{format_date(withdrawal.created_at, DateStyle.TIME)}",
        f"Пользователь: {withdrawal.user_name} ({withdrawal.user_section})",
        f"Всего единиц: {withdrawal.total_items}",
    ]
    for item in withdrawal.line_items:
        lines.append(f"- {item.snapshot.name}: {item.quantity} шт.")
    if withdrawal.notes:
        lines.append(f"Примечание: {withdrawal.notes}")
    return "\n".join(lines)


def render_history(withdrawals: Sequence[Withdrawal]) -> str:
    if not withdrawals:
        return "Списаний пока нет."
    lines = ["История списаний:"]
    for withdrawal in withdrawals:
        lines.append(
            f"#{withdrawal.id} {format_date(withdrawal.created_at)} "
            f"{withdrawal.user_name}: {withdrawal.total_items} ед."
        )
    return "\n".join(lines)


def render_dashboard(dashboard: Dashboard) -> str:
    lines = [
        "Сводка склада:",
        f"Товаров: {dashboard.total_products}",
        f"С низким остатком: {dashboard.low_stock_count}",
        f"Категорий: {dashboard.total_categories}",
        f"Списаний: {dashboard.total_withdrawals}",
    ]
    if dashboard.recent_products:
        lines.append("Недавно добавленные товары:")
        lines.extend(
            f"- {product.name} ({product.stock} шт.)"
            for product in dashboard.recent_products
        )
    if dashboard.recent_withdrawals:
        lines.append("Последние списания:")
        lines.extend(
            f"- #{withdrawal.id} {withdrawal.user_name}: {withdrawal.total_items} ед."
            for withdrawal in dashboard.recent_withdrawals
        )
    return "\n".join(lines)


def render_statistics(stats: Statistics) -> str:
    lines = [
        "Статистика склада:",
        f"Товаров: {stats.total_products}",
        f"С низким остатком: {stats.low_stock_count}",
        f"Списаний: {stats.total_withdrawals}",
        f"Списано единиц: {stats.total_items_withdrawn}",
        "Категории по числу товаров:",
    ]
    lines.extend(f"- {name}: {count}" for name, count in stats.top_categories)
    if stats.top_withdrawn_products:
        lines.append("Чаще всего списывают:")
        lines.extend(
            f"- {name}: {quantity} шт."
            for _, name, quantity in stats.top_withdrawn_products
        )
    if stats.section_totals:
        lines.append("Списано по отделам:")
        lines.extend(f"- {section}: {total}" for section, total in stats.section_totals)
    return "\n".join(lines)
