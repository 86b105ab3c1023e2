"""Excel workbook codec."""

from __future__ import annotations

import asyncio
import datetime as dt
import io
import json
import logging
import re
from typing import Any

from openpyxl import Workbook, load_workbook

from docbridge.codecs.base import Codec
from docbridge.errors import DecodeError
from docbridge.log import log_loss_if_any
from docbridge.model import (
    Collection,
    CreativeWork,
    Datatable,
    Node,
    Table,
    datatable_from_rows,
    datatable_to_rows,
    to_json_value,
    to_text,
    unrepresented,
)
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile, as_bytes

logger = logging.getLogger(__name__)

FORMAT = "xlsx"
_SHEET_NAME_RE = re.compile(r"[\[\]:*?/\\]")
SHEET_NAME_MAX = 31


class XlsxCodec(Codec):
    name = "xlsx"
    media_types = ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",)
    ext_names = ("xlsx",)
    is_binary = True

    def __init__(self, *, header: bool = True) -> None:
        self.header = header

    async def decode(self, file: VirtualFile) -> Node:
        data = as_bytes(file)
        try:
            sheets = await asyncio.to_thread(_read_sheets, data)
        except Exception as exc:
            raise DecodeError(self.name, str(exc)) from exc

        tables = [datatable_from_rows(rows, header=self.header, name=title) for title, rows in sheets]
        if not tables:
            logger.warning("No sheets found when decoding workbook")
            return ""
        if len(tables) == 1:
            return tables[0]
        return Collection(parts=tables)

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        sheets = _sheets_for(node, header=self.header)
        data = await asyncio.to_thread(_write_sheets, sheets)
        return VirtualFile(contents=data)


# ---------------------------------------------------------------------------
# Workbook IO
# ---------------------------------------------------------------------------


def _read_sheets(data: bytes) -> list[tuple[str, list[list[Any]]]]:
    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        sheets = []
        for worksheet in workbook.worksheets:
            rows = [[_cell_value(value) for value in row] for row in worksheet.iter_rows(values_only=True)]
            while rows and all(value is None for value in rows[-1]):
                rows.pop()
            sheets.append((worksheet.title, rows))
        return sheets
    finally:
        workbook.close()


def _write_sheets(sheets: list[tuple[str, list[list[Any]]]]) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)
    used: set[str] = set()
    for index, (title, rows) in enumerate(sheets, start=1):
        worksheet = workbook.create_sheet(title=_sheet_title(title, index, used))
        for row in rows:
            worksheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _cell_value(value: Any) -> Node:
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    return value


def _sheet_title(title: str | None, index: int, used: set[str]) -> str:
    base = _SHEET_NAME_RE.sub("", title or "")[:SHEET_NAME_MAX] or f"Sheet{index}"
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base[: SHEET_NAME_MAX - len(str(suffix)) - 1]}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


# ---------------------------------------------------------------------------
# Node mapping
# ---------------------------------------------------------------------------


def _sheets_for(node: Node, *, header: bool) -> list[tuple[str | None, list[list[Any]]]]:
    if isinstance(node, Collection) and node.parts and all(isinstance(part, Datatable) for part in node.parts):
        log_loss_if_any(FORMAT, "encode", node, unrepresented(node, ("parts",)))
        return [_datatable_sheet(part, header=header) for part in node.parts]

    table = node if isinstance(node, (Datatable, Table)) else None
    if table is None and isinstance(node, CreativeWork):
        table = next((block for block in node.content or [] if isinstance(block, (Datatable, Table))), None)
        if table is not None:
            log_loss_if_any(FORMAT, "encode", node, unrepresented(node, ("content",)))

    if isinstance(table, Datatable):
        return [_datatable_sheet(table, header=header)]
    if isinstance(table, Table):
        log_loss_if_any(FORMAT, "encode", table, unrepresented(table, ("rows",)))
        rows = [[to_text(cell.content) for cell in row.cells] for row in table.rows]
        return [(table.name, rows)]

    log_loss_if_any(FORMAT, "encode", node, {"content": node})
    return [(None, [[json.dumps(to_json_value(node), ensure_ascii=False)]])]


def _datatable_sheet(datatable: Datatable, *, header: bool) -> tuple[str | None, list[list[Any]]]:
    log_loss_if_any(FORMAT, "encode", datatable, unrepresented(datatable, ("name", "columns")))
    rows = [[_sheet_value(value) for value in row] for row in datatable_to_rows(datatable, header=header)]
    return datatable.name, rows


def _sheet_value(value: Node) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return to_text(value)
