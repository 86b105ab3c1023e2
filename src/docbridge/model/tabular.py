"""Spreadsheet style helpers shared by the tabular codecs."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from docbridge.model.nodes import Datatable, DatatableColumn


def column_index_to_name(index: int) -> str:
    """Spreadsheet column name for a 1-based ``index`` (1 -> A, 27 -> AA)."""
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    name = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        name = chr(ord("A") + remainder) + name
    return name


def column_name_to_index(name: str) -> int:
    index = 0
    for char in name.strip().upper():
        if not "A" <= char <= "Z":
            raise ValueError(f"Invalid column name: {name!r}")
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def datatable_from_rows(rows: Sequence[Sequence[Any]], *, header: bool = True, name: str | None = None) -> Datatable:
    rows = [list(row) for row in rows]
    width = max((len(row) for row in rows), default=0)

    if header and rows:
        head, body = rows[0], rows[1:]
        names = [
            str(head[index]) if index < len(head) and head[index] not in (None, "") else column_index_to_name(index + 1)
            for index in range(width)
        ]
    else:
        body = rows
        names = [column_index_to_name(index + 1) for index in range(width)]

    columns = [DatatableColumn(name=column_name, values=[]) for column_name in names]
    for row in body:
        for index, column in enumerate(columns):
            column.values.append(row[index] if index < len(row) else None)
    return Datatable(name=name, columns=columns)


def datatable_to_rows(datatable: Datatable, *, header: bool = True) -> list[list[Any]]:
    columns = datatable.columns
    height = max((len(column.values) for column in columns), default=0)
    rows: list[list[Any]] = []
    if header:
        rows.append([column.name for column in columns])
    for index in range(height):
        rows.append([column.values[index] if index < len(column.values) else None for column in columns])
    return rows
