from __future__ import annotations

from pathlib import Path

import pytest

from docbridge.vfile import VirtualFile, as_bytes, create, dump, is_path, load, read, write


def test_is_path_heuristic(tmp_path: Path) -> None:
    existing = tmp_path / "doc.md"
    existing.write_text("# Hi")

    assert is_path(str(existing))
    assert is_path("./missing.md")
    assert is_path("-")
    assert is_path("~/notes.md")
    assert not is_path("~~gone~~")
    assert not is_path("# Title\n\nBody")
    assert not is_path("")
    assert not is_path("x" * 2000)


@pytest.mark.asyncio
async def test_create_reads_paths_and_wraps_content(tmp_path: Path) -> None:
    path = tmp_path / "doc.txt"
    path.write_text("hello", encoding="utf-8")

    from_disk = await create(str(path))
    in_memory = await create("just some text\nover two lines")

    assert from_disk.path == str(path)
    assert from_disk.contents == b"hello"
    assert in_memory.path is None
    assert in_memory.contents == "just some text\nover two lines"


@pytest.mark.asyncio
async def test_write_creates_parent_directories(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.txt"

    await write(VirtualFile(contents="café"), str(target))

    assert target.read_text(encoding="utf-8") == "café"
    assert (await read(str(target))).contents == "café".encode("utf-8")


def test_dump_and_as_bytes() -> None:
    assert dump(load("text")) == "text"
    assert dump(load(b"bytes")) == "bytes"
    assert dump(VirtualFile()) == ""
    assert as_bytes(load("é")) == "é".encode("utf-8")
    assert load(b"\x00").is_binary
    assert not load("x").is_binary
