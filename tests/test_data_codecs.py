"""Tests for the tabular and data interchange codecs.

Covers:
- CSV/TSV decoding to a Datatable and encoding back
- XLSX single and multi sheet workbooks
- JSON and YAML canonical forms
- Plain text fallback
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from docbridge import DecodeError, collect_losses, dump, encode, load, read
from docbridge.codecs.xlsx_codec import XlsxCodec
from docbridge.model import (
    Article,
    Collection,
    Datatable,
    DatatableColumn,
    Entity,
    Heading,
    Paragraph,
    Table,
    TableCell,
    TableRow,
)
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_csv_decodes_to_datatable() -> None:
    node = await load("A,B\n1,2\n3,4", "csv")

    assert isinstance(node, Datatable)
    assert [column.name for column in node.columns] == ["A", "B"]
    assert node.columns[0].values == ["1", "3"]
    assert node.columns[1].values == ["2", "4"]


@pytest.mark.asyncio
async def test_csv_round_trip() -> None:
    table = Datatable(
        columns=[
            DatatableColumn(name="name", values=["ada", "alan"]),
            DatatableColumn(name="born", values=["1815", "1912"]),
        ]
    )

    text = await dump(table, "csv")

    assert text == "name,born\nada,1815\nalan,1912\n"
    assert await load(text, "csv") == table


@pytest.mark.asyncio
async def test_tsv_uses_tab_delimiter(tmp_path: Path) -> None:
    path = tmp_path / "data.tsv"
    path.write_text("a\tb\nx\ty\n")

    node = await read(str(path))

    assert isinstance(node, Datatable)
    assert [column.name for column in node.columns] == ["a", "b"]
    assert node.columns[1].values == ["y"]


@pytest.mark.asyncio
async def test_csv_encodes_first_table_of_a_work() -> None:
    table = Table(
        rows=[
            TableRow(cells=[TableCell(content=["h1"]), TableCell(content=["h2"])], row_type="header"),
            TableRow(cells=[TableCell(content=["a"]), TableCell(content=["b"])]),
        ]
    )
    article = Article(title="With a table", content=[Paragraph(content=["intro"]), table])

    with collect_losses() as report:
        text = await dump(article, "csv")

    assert text == "h1,h2\na,b\n"
    assert report.properties("Article") == {"title"}


@pytest.mark.asyncio
async def test_csv_empty_input_decodes_to_empty_text(caplog: pytest.LogCaptureFixture) -> None:
    assert await load("   ", "csv") == ""
    assert "No rows found" in caplog.text


# ---------------------------------------------------------------------------
# XLSX
# ---------------------------------------------------------------------------

def _workbook_bytes(*sheets: tuple[str, list[list[object]]]) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets:
        worksheet = workbook.create_sheet(title=title)
        for row in rows:
            worksheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.mark.asyncio
async def test_xlsx_single_sheet_decodes_to_datatable() -> None:
    data = _workbook_bytes(("People", [["name", "age"], ["ada", 36], ["alan", 41]]))

    node = await XlsxCodec().decode(VirtualFile(contents=data))

    assert isinstance(node, Datatable)
    assert node.name == "People"
    assert [column.name for column in node.columns] == ["name", "age"]
    assert node.columns[1].values == [36, 41]


@pytest.mark.asyncio
async def test_xlsx_multiple_sheets_decode_to_collection() -> None:
    data = _workbook_bytes(("One", [["a"], [1]]), ("Two", [["b"], [2]]))

    node = await XlsxCodec().decode(VirtualFile(contents=data))

    assert isinstance(node, Collection)
    assert [part.name for part in node.parts] == ["One", "Two"]


@pytest.mark.asyncio
async def test_xlsx_encode_writes_one_sheet_per_table() -> None:
    collection = Collection(
        parts=[
            Datatable(name="Data", columns=[DatatableColumn(name="x", values=[1, 2])]),
            Datatable(name="Data", columns=[DatatableColumn(name="y", values=["a"])]),
        ]
    )

    file = await encode(collection, EncodeOptions(format="xlsx"))

    assert file.is_binary
    workbook = load_workbook(io.BytesIO(file.contents))
    assert workbook.sheetnames == ["Data", "Data-2"]
    assert [row for row in workbook["Data"].iter_rows(values_only=True)] == [("x",), (1,), (2,)]


@pytest.mark.asyncio
async def test_xlsx_round_trip(tmp_path: Path) -> None:
    table = Datatable(
        name="Results",
        columns=[DatatableColumn(name="run", values=[1, 2]), DatatableColumn(name="ok", values=[True, False])],
    )
    path = tmp_path / "results.xlsx"

    file = await encode(table, EncodeOptions(file_path=str(path)))
    path.write_bytes(file.contents)

    assert await read(str(path)) == table


@pytest.mark.asyncio
async def test_xlsx_invalid_bytes_raise_decode_error() -> None:
    with pytest.raises(DecodeError):
        await XlsxCodec().decode(VirtualFile(contents=b"not a workbook"))


# ---------------------------------------------------------------------------
# JSON and YAML
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_json_round_trip_keeps_unknown_types() -> None:
    nodes = [
        Heading(depth=2, content=["Intro"]),
        Entity(data={"type": "Foo", "value": 1}),
    ]
    article = Article(title="T", content=nodes)

    text = await dump(article, "json")

    assert '"type": "Article"' in text
    assert await load(text, "json") == article


@pytest.mark.asyncio
async def test_json_invalid_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        await load("{nope", "json")


@pytest.mark.asyncio
async def test_yaml_round_trip() -> None:
    article = Article(title="T", keywords=["a", "b"], content=[Paragraph(content=["Hello"])])

    text = await dump(article, "yaml")

    assert text.startswith("type: Article\n")
    assert await load(text, "yaml") == article


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_txt_decodes_verbatim_and_encodes_text() -> None:
    assert await load("anything *at* all", "txt") == "anything *at* all"
    article = Article(title="T", content=[Paragraph(content=["body"])])
    assert await dump(article, "txt") == "T\n\nbody"
