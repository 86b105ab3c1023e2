"""Tests for the Jupyter notebook codec."""

from __future__ import annotations

import json

import pytest

from docbridge import DecodeError, dump, load
from docbridge.model import (
    Article,
    CodeChunk,
    Heading,
    ImageObject,
    MathBlock,
    Paragraph,
    Person,
)


def _notebook(cells: list[dict], **metadata: object) -> str:
    return json.dumps({"nbformat": 4, "nbformat_minor": 5, "metadata": metadata, "cells": cells})


@pytest.mark.asyncio
async def test_decode_markdown_and_code_cells() -> None:
    text = _notebook(
        [
            {"cell_type": "markdown", "metadata": {}, "source": ["# Analysis\n", "\n", "Some text."]},
            {
                "cell_type": "code",
                "execution_count": 1,
                "metadata": {},
                "source": ["1 + 1"],
                "outputs": [
                    {"output_type": "execute_result", "data": {"text/plain": ["2"]}, "metadata": {}},
                    {"output_type": "stream", "name": "stdout", "text": ["hello\n"]},
                ],
            },
            {"cell_type": "raw", "metadata": {}, "source": "ignored"},
        ],
        title="Notebook",
        authors=[{"name": "Ada Lovelace"}],
        language_info={"name": "python"},
    )

    article = await load(text, "ipynb")

    assert isinstance(article, Article)
    assert article.title == "Notebook"
    assert article.authors == [Person(given_names=["Ada"], family_names=["Lovelace"])]
    assert article.content == [
        Heading(depth=1, content=["Analysis"]),
        Paragraph(content=["Some text."]),
        CodeChunk(text="1 + 1", programming_language="python", outputs=["2", "hello\n"]),
    ]


@pytest.mark.asyncio
async def test_decode_rich_outputs() -> None:
    text = _notebook(
        [
            {
                "cell_type": "code",
                "source": "plot()",
                "metadata": {},
                "outputs": [
                    {"output_type": "display_data", "data": {"image/png": "iVBORw0KGgo=\n", "text/plain": "<Figure>"}},
                    {"output_type": "display_data", "data": {"text/latex": "$$x^2$$"}},
                    {"output_type": "display_data", "data": {"text/html": "<p>table</p>"}},
                    {"output_type": "error", "ename": "ValueError", "evalue": "bad", "traceback": []},
                ],
            }
        ],
        kernelspec={"name": "ir", "language": "R"},
    )

    article = await load(text, "ipynb")

    chunk = article.content[0]
    assert chunk.programming_language == "R"
    assert chunk.outputs[0] == ImageObject(content_url="data:image/png;base64,iVBORw0KGgo=", media_type="image/png")
    assert chunk.outputs[1] == MathBlock(text="x^2")
    assert chunk.outputs[2] == Paragraph(content=["table"])
    assert len(chunk.outputs) == 3


@pytest.mark.asyncio
async def test_decode_nbformat_3_worksheets() -> None:
    text = json.dumps(
        {
            "nbformat": 3,
            "metadata": {"language": "python"},
            "worksheets": [
                {
                    "cells": [
                        {"cell_type": "heading", "level": 2, "source": ["Results"]},
                        {
                            "cell_type": "code",
                            "input": ["x"],
                            "outputs": [{"output_type": "pyout", "text": ["42"], "prompt_number": 1}],
                        },
                    ]
                }
            ],
        }
    )

    article = await load(text, "ipynb")

    assert article.content == [
        Heading(depth=2, content=["Results"]),
        CodeChunk(text="x", programming_language="python", outputs=["42"]),
    ]


@pytest.mark.asyncio
async def test_decode_rejects_documents_without_cells() -> None:
    with pytest.raises(DecodeError):
        await load('{"nbformat": 4}', "ipynb")
    with pytest.raises(DecodeError):
        await load("not json", "ipynb")


@pytest.mark.asyncio
async def test_encode_groups_blocks_into_cells() -> None:
    article = Article(
        title="Notebook",
        content=[
            Heading(depth=1, content=["Intro"]),
            Paragraph(content=["Text."]),
            CodeChunk(text="x = 1\nx", programming_language="python", outputs=["1"]),
            Paragraph(content=["After."]),
        ],
    )

    notebook = json.loads(await dump(article, "ipynb"))

    assert notebook["nbformat"] == 4
    assert notebook["metadata"]["title"] == "Notebook"
    assert notebook["metadata"]["kernelspec"]["language"] == "python"
    assert [cell["cell_type"] for cell in notebook["cells"]] == ["markdown", "code", "markdown"]
    assert notebook["cells"][0]["source"] == ["# Intro\n", "\n", "Text."]
    assert notebook["cells"][1]["source"] == ["x = 1\n", "x"]
    assert notebook["cells"][1]["outputs"] == [{"output_type": "stream", "name": "stdout", "text": ["1"]}]


@pytest.mark.asyncio
async def test_round_trip() -> None:
    article = Article(
        title="Notebook",
        authors=[Person(given_names=["Ada"], family_names=["Lovelace"])],
        content=[
            Paragraph(content=["Text."]),
            CodeChunk(
                text="show()",
                programming_language="python",
                outputs=[ImageObject(content_url="data:image/png;base64,AAAA", media_type="image/png"), MathBlock(text="y")],
            ),
        ],
    )

    assert await load(await dump(article, "ipynb"), "ipynb") == article


@pytest.mark.asyncio
async def test_error_outputs_are_not_written_back_as_empty_streams() -> None:
    text = _notebook(
        [
            {
                "cell_type": "code",
                "source": "fail()",
                "metadata": {},
                "outputs": [{"output_type": "error", "ename": "ValueError", "evalue": "bad", "traceback": []}],
            }
        ],
        language_info={"name": "python"},
    )

    article = await load(text, "ipynb")
    notebook = json.loads(await dump(article, "ipynb"))

    assert article.content == [CodeChunk(text="fail()", programming_language="python")]
    assert notebook["cells"][0]["outputs"] == []
