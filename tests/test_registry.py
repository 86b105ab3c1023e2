"""Tests for codec dispatch.

Covers:
- Extension, media type and file name matching
- Content sniffing for paths whose extension names no codec
- Plain text fallback with a warning
- ``handled`` and the registry's own lookups
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docbridge import CodecNotFoundError, get_codec, handled, match
from docbridge.codecs.registry import CodecRegistry, guess_media_type
from docbridge.codecs.txt_codec import TxtCodec


@pytest.mark.asyncio
async def test_format_names_and_media_types() -> None:
    assert (await match(None, "md")).name == "md"
    assert (await match(None, "markdown")).name == "md"
    assert (await match(None, "text/html")).name == "html"
    assert (await match(None, "tex")).name == "latex"
    assert (await match(None, "yml")).name == "yaml"
    assert (await match(None, "tsv")).name == "csv"


@pytest.mark.asyncio
async def test_match_is_deterministic() -> None:
    first = await match("./report.markdown")
    second = await match("./report.markdown")

    assert first is second
    assert first.name == "md"


@pytest.mark.asyncio
async def test_extension_named_codec_wins(tmp_path: Path) -> None:
    page = tmp_path / "page.md"
    page.write_text("<!doctype html><html><body><p>x</p></body></html>")

    assert (await match(str(page))).name == "md"


@pytest.mark.asyncio
async def test_sniffing_applies_when_no_codec_is_named_after_the_extension(tmp_path: Path) -> None:
    page = tmp_path / "page.markdown"
    page.write_text("<!doctype html><html><body><p>x</p></body></html>")

    assert (await match(str(page))).name == "html"


@pytest.mark.asyncio
async def test_txt_extension_is_not_sniffed(tmp_path: Path) -> None:
    notes = tmp_path / "notes.txt"
    notes.write_text("---\ntitle: yaml inside\n")

    assert (await match(str(notes))).name == "txt"


@pytest.mark.asyncio
async def test_content_sniffing_without_a_path() -> None:
    assert (await match('{"type": "Paragraph", "content": []}')).name == "json"
    assert (await match("---\ntype: Paragraph\ncontent: []\n")).name == "yaml"
    assert (await match("<!DOCTYPE html>\n<html><body></body></html>")).name == "html"
    assert (await match('{"nbformat": 4, "cells": []}')).name == "ipynb"


@pytest.mark.asyncio
async def test_unknown_format_falls_back_to_txt(caplog: pytest.LogCaptureFixture) -> None:
    codec = await match("???unknown")

    assert codec.name == "txt"
    assert "No codec could be found for content '???unknown'" in caplog.text
    assert "Falling back to plain text codec" in caplog.text


@pytest.mark.asyncio
async def test_outputs_match_on_path_without_sniffing() -> None:
    assert (await match("out/report.html", is_output=True)).name == "html"
    assert (await match("out/report.xlsx", is_output=True)).name == "xlsx"
    assert (await match("out/report.ipynb", is_output=True)).name == "ipynb"


@pytest.mark.asyncio
async def test_handled() -> None:
    assert await handled(None, "md")
    assert await handled("./doc.tex")
    assert not await handled("???unknown")
    assert not await handled(None, "nope")


def test_get_codec_raises_for_unknown_name() -> None:
    assert get_codec("json").name == "json"
    with pytest.raises(CodecNotFoundError):
        get_codec("nope")


def test_registry_skips_codecs_that_fail_to_load() -> None:
    def broken() -> TxtCodec:
        raise ImportError("missing optional dependency")

    registry = CodecRegistry({"broken": broken, "txt": TxtCodec})

    assert registry.load("broken") is None
    assert registry.names == ["broken", "txt"]
    assert registry.get("txt").name == "txt"


def test_guess_media_type() -> None:
    assert guess_media_type("a.md") == "text/markdown"
    assert guess_media_type("a.ipynb") == "application/x-ipynb+json"
    assert guess_media_type("a.html") == "text/html"
