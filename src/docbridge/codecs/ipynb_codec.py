"""Jupyter notebook codec."""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import Any

from docbridge.api import dump, load
from docbridge.codecs.base import Codec, flatten, read_all, text_of
from docbridge.errors import DecodeError
from docbridge.log import log_loss_if_any
from docbridge.model import (
    Article,
    CodeBlock,
    CodeChunk,
    ImageObject,
    MathBlock,
    Node,
    Person,
    from_json_value,
    person_display_name,
    person_from_text,
    to_json_value,
    to_text,
    unrepresented,
)
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile

logger = logging.getLogger(__name__)

FORMAT = "ipynb"
NBFORMAT = 4
NBFORMAT_MINOR = 5

IMAGE_TYPES = ("image/png", "image/jpeg", "image/gif", "image/svg+xml")
_DATA_URI_RE = re.compile(r"^data:(?P<media>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)

# nbformat 3 used short names inside output bundles
_LEGACY_KEYS = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "svg": "image/svg+xml",
    "html": "text/html",
    "latex": "text/latex",
    "json": "application/json",
    "text": "text/plain",
}


class IpynbCodec(Codec):
    name = "ipynb"
    media_types = ("application/x-ipynb+json",)
    ext_names = ("ipynb",)

    async def sniff(self, content: str) -> bool:
        text = (await read_all(content)).strip()
        if not text.startswith("{"):
            return False
        try:
            data = json.loads(text)
        except ValueError:
            return False
        return isinstance(data, dict) and "nbformat" in data and ("cells" in data or "worksheets" in data)

    async def decode(self, file: VirtualFile) -> Node:
        try:
            notebook = json.loads(text_of(file))
        except ValueError as exc:
            raise DecodeError(self.name, str(exc)) from exc
        if not isinstance(notebook, dict):
            raise DecodeError(self.name, "notebook must be a JSON object")

        cells = notebook.get("cells")
        if cells is None:
            worksheets = notebook.get("worksheets") or [{}]
            cells = worksheets[0].get("cells")
        if cells is None:
            raise DecodeError(self.name, "unable to get cells. Is this a Jupyter Notebook?")

        metadata = notebook.get("metadata") or {}
        language = _notebook_language(metadata)
        content: list[Node] = []
        for cell in cells:
            content.extend(await _decode_cell(cell, language))

        title = metadata.get("title")
        authors = [_decode_author(author) for author in metadata.get("authors") or []]
        return Article(title=str(title) if title else None, authors=authors or None, content=content)

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        notebook = await _encode_notebook(node)
        return VirtualFile(contents=json.dumps(notebook, indent=1, ensure_ascii=False) + "\n")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _source(value: Any) -> str:
    if isinstance(value, list):
        return "".join(value)
    return value or ""


def _notebook_language(metadata: dict[str, Any]) -> str | None:
    info = metadata.get("language_info") or {}
    if info.get("name"):
        return info["name"]
    kernelspec = metadata.get("kernelspec") or {}
    return kernelspec.get("language") or metadata.get("language")


def _decode_author(value: Any) -> Person:
    if isinstance(value, dict):
        return person_from_text(str(value.get("name", "")))
    return person_from_text(str(value))


async def _decode_cell(cell: dict[str, Any], language: str | None) -> list[Node]:
    cell_type = cell.get("cell_type")
    if cell_type in ("markdown", "heading"):
        source = _source(cell.get("source"))
        if cell_type == "heading":
            source = "#" * int(cell.get("level", 1)) + " " + source
        article = await load(source, "md")
        return list(getattr(article, "content", None) or [])
    if cell_type == "code":
        source = _source(cell.get("source", cell.get("input")))
        outputs = flatten([await _decode_output(output) for output in cell.get("outputs") or []])
        return [CodeChunk(text=source, programming_language=language, outputs=outputs or None)]
    if cell_type == "raw":
        return []
    return [CodeBlock(text=json.dumps(cell), programming_language="json")]


async def _decode_output(output: dict[str, Any]) -> Node:
    output_type = output.get("output_type")
    if output_type in ("execute_result", "display_data", "update_display_data", "pyout"):
        data = output.get("data")
        if data is None:
            data = {
                _LEGACY_KEYS.get(key, key): value
                for key, value in output.items()
                if key not in ("output_type", "prompt_number", "metadata")
            }
        return await _decode_mime_bundle(data)
    if output_type == "stream":
        return _source(output.get("text"))
    if output_type in ("error", "pyerr"):
        return ""
    return CodeBlock(text=json.dumps(output), programming_language="json")


async def _decode_mime_bundle(data: dict[str, Any]) -> Node:
    for media_type in IMAGE_TYPES:
        if media_type in data:
            content = _source(data[media_type])
            if media_type == "image/svg+xml":
                return ImageObject(content_url=_svg_uri(content), media_type=media_type)
            return ImageObject(
                content_url=f"data:{media_type};base64,{content.strip()}",
                media_type=media_type,
            )
    if "text/html" in data:
        return await load(_source(data["text/html"]), "html")
    if "text/latex" in data:
        return MathBlock(text=_source(data["text/latex"]).strip().strip("$").strip())
    if "application/json" in data:
        return from_json_value(data["application/json"])
    if "text/plain" in data:
        return _source(data["text/plain"])
    return ""


def _svg_uri(svg: str) -> str:
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


async def _encode_notebook(node: Node) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    if isinstance(node, Article):
        log_loss_if_any(FORMAT, "encode", node, unrepresented(node, ("title", "authors", "content")))
        blocks = list(node.content or [])
        if node.title:
            metadata["title"] = to_text(node.title)
        if node.authors:
            metadata["authors"] = [
                {"name": person_display_name(author) if isinstance(author, Person) else to_text(author)}
                for author in node.authors
            ]
    else:
        blocks = list(node) if isinstance(node, list) else [node]

    cells: list[dict[str, Any]] = []
    pending: list[Node] = []
    language = None
    for block in blocks:
        if isinstance(block, CodeChunk):
            if pending:
                cells.append(await _markdown_cell(pending))
                pending = []
            language = language or block.programming_language
            cells.append(_code_cell(block))
        else:
            pending.append(block)
    if pending:
        cells.append(await _markdown_cell(pending))

    if language:
        metadata["kernelspec"] = {"name": language, "display_name": language, "language": language}
        metadata["language_info"] = {"name": language}
    return {"nbformat": NBFORMAT, "nbformat_minor": NBFORMAT_MINOR, "metadata": metadata, "cells": cells}


def _lines(text: str) -> list[str]:
    return text.splitlines(keepends=True)


async def _markdown_cell(blocks: list[Node]) -> dict[str, Any]:
    source = (await dump(Article(content=blocks), "md")).strip("\n")
    return {"cell_type": "markdown", "metadata": {}, "source": _lines(source)}


def _code_cell(chunk: CodeChunk) -> dict[str, Any]:
    log_loss_if_any(FORMAT, "encode", chunk, unrepresented(chunk, ("text", "programming_language", "outputs")))
    return {
        "cell_type": "code",
        "execution_count": None,
        "metadata": {},
        "outputs": [_encode_output(output) for output in chunk.outputs or []],
        "source": _lines(chunk.text),
    }


def _encode_output(output: Node) -> dict[str, Any]:
    if isinstance(output, str):
        return {"output_type": "stream", "name": "stdout", "text": _lines(output)}

    data: dict[str, Any]
    match = _DATA_URI_RE.match(output.content_url) if isinstance(output, ImageObject) else None
    if match is not None and match.group("media") in IMAGE_TYPES:
        media = match.group("media")
        payload = match.group("data")
        if media == "image/svg+xml":
            payload = base64.b64decode(payload).decode("utf-8")
        data = {media: payload}
    elif isinstance(output, MathBlock):
        data = {"text/latex": f"$${output.text}$$"}
    else:
        data = {"application/json": to_json_value(output), "text/plain": _lines(to_text(output))}
    return {"output_type": "display_data", "data": data, "metadata": {}}
