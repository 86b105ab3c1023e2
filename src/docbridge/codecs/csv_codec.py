"""Delimiter separated values codec."""

from __future__ import annotations

import csv
import io
import json
import logging

from docbridge.codecs.base import Codec, text_of
from docbridge.log import log_loss_if_any
from docbridge.model import (
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
from docbridge.vfile import VirtualFile

logger = logging.getLogger(__name__)


class CsvCodec(Codec):
    name = "csv"
    media_types = ("text/csv", "text/tab-separated-values")
    ext_names = ("csv", "tsv")

    def __init__(self, *, header: bool = True) -> None:
        self.header = header

    async def decode(self, file: VirtualFile) -> Node:
        text = text_of(file)
        if not text.strip():
            logger.warning("No rows found when decoding CSV")
            return ""
        delimiter = _delimiter_for(file.path)
        rows = [row for row in csv.reader(io.StringIO(text), delimiter=delimiter) if row]
        return datatable_from_rows(rows, header=self.header)

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        options = options or EncodeOptions()
        rows = _rows_for(node, header=self.header)
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=_delimiter_for(options.file_path), lineterminator="\n")
        writer.writerows(rows)
        return VirtualFile(contents=buffer.getvalue())


def _delimiter_for(path: str | None) -> str:
    return "\t" if path and path.lower().endswith(".tsv") else ","


def _rows_for(node: Node, *, header: bool) -> list[list[str]]:
    table = _find_tabular(node)
    if table is None:
        log_loss_if_any("csv", "encode", node, {"content": node})
        return [[json.dumps(to_json_value(node), ensure_ascii=False)]]

    if table is not node:
        log_loss_if_any("csv", "encode", node, unrepresented(node, ("content",)))

    if isinstance(table, Datatable):
        log_loss_if_any("csv", "encode", table, unrepresented(table, ("columns",)))
        for column in table.columns:
            log_loss_if_any("csv", "encode", column, unrepresented(column, ("name", "values")))
        return [[_cell(value) for value in row] for row in datatable_to_rows(table, header=header)]

    return [[to_text(cell.content) for cell in row.cells] for row in table.rows]


def _find_tabular(node: Node) -> Datatable | Table | None:
    if isinstance(node, (Datatable, Table)):
        return node
    if isinstance(node, CreativeWork):
        for block in node.content or []:
            if isinstance(block, (Datatable, Table)):
                return block
    return None


def _cell(value: Node) -> str:
    if value is None:
        return ""
    return to_text(value)
