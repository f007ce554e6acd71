"""Выгрузка отчетов в Excel."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

SHEET_NAME = "Данные"
# Запас ширины колонки сверх длины текста
COLUMN_PADDING = 2

Record = Mapping[str, Any]


def column_widths(records: Sequence[Record]) -> dict[str, int]:
    """
    Считает ширину колонок.

    Ширина равна длине заголовка или самого длинного значения в колонке,
    смотря что больше, плюс запас. Пустые значения считаются нулевой длины.

    Args:
        records: Однородные записи "заголовок -> значение".

    Returns:
        Ширина для каждого заголовка в порядке колонок.
    """
    if not records:
        return {}

    widths = {key: len(key) + COLUMN_PADDING for key in records[0]}
    for row in records:
        for key, value in row.items():
            length = len(str(value)) if value else 0
            widths[key] = max(widths.get(key, 0), length + COLUMN_PADDING)
    return widths


def write_workbook(records: Sequence[Record], target: str | Path) -> None:
    """
    Записывает записи на единственный лист книги Excel.

    Args:
        records: Однородные записи "заголовок -> значение".
        target: Путь к файлу.
    """
    frame = pd.DataFrame(list(records))
    widths = column_widths(records)

    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        worksheet = writer.sheets[SHEET_NAME]
        for index, column in enumerate(frame.columns, start=1):
            worksheet.column_dimensions[get_column_letter(index)].width = widths.get(
                column, len(str(column)) + COLUMN_PADDING
            )


def export_to_excel(
    records: Sequence[Record], filename: str, directory: str | Path = "."
) -> Path:
    """
    Сохраняет записи в файл <filename>.xlsx.

    Args:
        records: Однородные записи "заголовок -> значение".
        filename: Имя файла без расширения.
        directory: Каталог для файла, создается при необходимости.

    Returns:
        Путь к созданному файлу.
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"{filename}.xlsx"
    write_workbook(records, path)
    logging.info("Exported %d rows to %s", len(records), path)
    return path
