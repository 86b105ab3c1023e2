"""Tests for the top level conversion entry points.

Covers:
- convert() with and without an output path
- Reuse of the input format when no target is given
- Binary output handling
- read()/write() through the filesystem
- Bundling relative to the input file
"""

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import load_workbook

from docbridge import ConversionError, convert, dump, encode, read, write
from docbridge.model import Article, Delete, Heading, Paragraph
from docbridge.options import EncodeOptions


@pytest.fixture()
def markdown_file(tmp_path: Path) -> Path:
    path = tmp_path / "doc.md"
    path.write_text("# Title\n\nHello *world*.\n", encoding="utf-8")
    return path


@pytest.mark.asyncio
async def test_convert_writes_output_file(markdown_file: Path, tmp_path: Path) -> None:
    output = tmp_path / "out" / "doc.html"

    result = await convert(str(markdown_file), str(output))

    assert output.read_text(encoding="utf-8") == result
    assert "<em>world</em>" in result
    assert '<h2 id="title">Title</h2>' in result


@pytest.mark.asyncio
async def test_convert_returns_text_without_output_path(markdown_file: Path) -> None:
    result = await convert(str(markdown_file), to="html")

    assert "<em>world</em>" in result


@pytest.mark.asyncio
async def test_convert_reuses_input_format(markdown_file: Path) -> None:
    result = await convert(str(markdown_file))

    assert result.startswith("# Title\n")


@pytest.mark.asyncio
async def test_convert_in_memory_content() -> None:
    result = await convert("Some *text*", to="html", from_="md")

    assert "<em>text</em>" in result


@pytest.mark.asyncio
async def test_content_starting_with_a_tilde_is_not_a_path() -> None:
    result = await convert("~~gone~~", to="html", from_="md")

    assert "<del>gone</del>" in result
    assert (await read("~~gone~~", "md")).content == [Paragraph(content=[Delete(content=["gone"])])]


@pytest.mark.asyncio
async def test_binary_output_requires_a_path(tmp_path: Path) -> None:
    source = tmp_path / "data.csv"
    source.write_text("a,b\n1,2\n", encoding="utf-8")

    with pytest.raises(ConversionError):
        await convert(str(source), to="xlsx")

    output = tmp_path / "data.xlsx"
    result = await convert(str(source), str(output))

    assert result == str(output)
    workbook = load_workbook(output)
    assert list(workbook.active.iter_rows(values_only=True))[0] == ("a", "b")


@pytest.mark.asyncio
async def test_dump_rejects_binary_formats() -> None:
    with pytest.raises(ConversionError):
        await dump(Paragraph(content=["x"]), "xlsx")


@pytest.mark.asyncio
async def test_encode_requires_a_target() -> None:
    with pytest.raises(ValueError):
        await encode(Paragraph(content=["x"]))


@pytest.mark.asyncio
async def test_write_then_read(tmp_path: Path) -> None:
    article = Article(title="T", content=[Heading(depth=1, content=["Intro"]), Paragraph(content=["Body."])])
    path = tmp_path / "nested" / "doc.md"

    await write(article, str(path))

    assert path.read_text(encoding="utf-8").startswith("---\ntitle: T\n---\n")
    assert await read(str(path)) == article


@pytest.mark.asyncio
async def test_read_in_memory_content() -> None:
    node = await read("# Hi", "md")

    assert node.content == [Heading(depth=1, content=["Hi"])]


@pytest.mark.asyncio
async def test_read_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        await read(str(tmp_path / "missing.md"))


@pytest.mark.asyncio
async def test_bundle_resolves_images_next_to_the_input(tmp_path: Path) -> None:
    (tmp_path / "dot.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    source = tmp_path / "doc.md"
    source.write_text("![dot](dot.png)\n", encoding="utf-8")

    result = await convert(str(source), to="html", options=EncodeOptions(is_bundle=True))

    assert "data:image/png;base64," in result
