"""Обработчики выгрузки отчетов в Excel."""

import asyncio
import datetime
import logging
from pathlib import Path
from typing import Any

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import FSInputFile, Message

from warehouse_console.db.models import utcnow
from warehouse_console.filters.auth import IsAuthenticated
from warehouse_console.services.export_service import export_to_excel
from warehouse_console.services.product_service import ALL_CATEGORIES, ProductRegistry
from warehouse_console.services.report_service import (
    DateStyle,
    filter_withdrawals_by_date,
    format_date,
    low_stock_report_rows,
    stock_report_rows,
    withdrawal_detail_rows,
    withdrawals_report_rows,
)
from warehouse_console.services.withdrawal_service import WithdrawalWorkflow

router = Router()
router.message.filter(IsAuthenticated())

USAGE = "\n".join(
    [
        "Формат:",
        "/export stock [категория]",
        "/export lowstock",
        "/export withdrawals [ГГГГ-ММ-ДД] [ГГГГ-ММ-ДД]",
        "/export withdrawal <id>",
    ]
)


def parse_date(value: str) -> datetime.date | None:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        return None


async def send_workbook(
    message: Message, rows: list[dict[str, Any]], filename: str, export_dir: Path
) -> None:
    """
    Сохраняет отчет в файл и отправляет его в чат.
    """
    if not rows:
        await message.answer("Нет данных для выгрузки.")
        return

    path = await asyncio.to_thread(export_to_excel, rows, filename, export_dir)
    await message.answer_document(FSInputFile(path, filename=path.name))


@router.message(Command(commands=["export"]))
async def handle_export(
    message: Message,
    command: CommandObject,
    registry: ProductRegistry,
    workflow: WithdrawalWorkflow,
    export_dir: Path,
) -> None:
    """
    Обработчик команды /export.
    """
    args = (command.args or "").split(maxsplit=1)
    report = args[0] if args else ""
    rest = args[1].strip() if len(args) > 1 else ""
    today = format_date(utcnow(), DateStyle.SIMPLE)

    try:
        if report == "stock":
            products = await registry.filter_by_category(rest or ALL_CATEGORIES)
            await send_workbook(
                message, stock_report_rows(products), f"stock_report_{today}", export_dir
            )

        elif report == "lowstock":
            products = await registry.get_low_stock_products()
            await send_workbook(
                message, low_stock_report_rows(products), "low_stock_products", export_dir
            )

        elif report == "withdrawals":
            bounds = [parse_date(value) for value in rest.split()]
            if len(bounds) > 2 or None in bounds:
                await message.answer(USAGE)
                return
            start = bounds[0] if bounds else None
            end = bounds[1] if len(bounds) > 1 else None
            withdrawals = filter_withdrawals_by_date(
                await workflow.get_withdrawals(), start, end
            )
            await send_workbook(
                message,
                withdrawals_report_rows(withdrawals),
                f"withdrawals_report_{today}",
                export_dir,
            )

        elif report == "withdrawal" and rest.isdigit():
            withdrawal = await workflow.get_withdrawal(int(rest))
            if withdrawal is None:
                await message.answer(f"Списание #{rest} не найдено.")
                return
            created = format_date(withdrawal.created_at, DateStyle.SIMPLE)
            await send_workbook(
                message,
                withdrawal_detail_rows(withdrawal),
                f"withdrawal_{withdrawal.id}_{created}",
                export_dir,
            )

        else:
            await message.answer(USAGE)

    except Exception:
        logging.exception("Error in handle_export")
        await message.answer("Произошла внутренняя ошибка. Попробуйте позже.")
