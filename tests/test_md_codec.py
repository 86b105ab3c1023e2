"""Tests for the Markdown codec.

Covers:
- YAML frontmatter (title, authors, date, description, keywords)
- Headings, marks, links and images
- Lists with start numbers and task items
- Tables, math, code fences and executable chunks
- Citations
- Opaque entity fences
- Encoding escapes, clamping and losses
"""

from __future__ import annotations

import pytest

from docbridge import collect_losses, dump, load
from docbridge.model import (
    Article,
    Cite,
    CiteGroup,
    CodeBlock,
    CodeChunk,
    CodeFragment,
    Date,
    Emphasis,
    Entity,
    Heading,
    ImageObject,
    Link,
    List,
    ListItem,
    MathBlock,
    MathFragment,
    Paragraph,
    Person,
    Strong,
    Table,
    TableCell,
    TableRow,
    ThematicBreak,
)


# ---------------------------------------------------------------------------
# Frontmatter
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_frontmatter_metadata() -> None:
    md = """\
---
title: "My Paper Title"
author: Alice Smith, Bob Jones
date: 2025-06-01
abstract: A short abstract.
keywords: alpha, beta
---

Hello world.
"""
    article = await load(md, "md")

    assert isinstance(article, Article)
    assert article.title == "My Paper Title"
    assert article.authors == [
        Person(given_names=["Alice"], family_names=["Smith"]),
        Person(given_names=["Bob"], family_names=["Jones"]),
    ]
    assert article.date_published == Date(value="2025-06-01")
    assert article.description == "A short abstract."
    assert article.keywords == ["alpha", "beta"]
    assert article.content == [Paragraph(content=["Hello world."])]


@pytest.mark.asyncio
async def test_unknown_frontmatter_keys_are_reported() -> None:
    with collect_losses() as report:
        article = await load("---\ntitle: T\nlayout: post\n---\n\nBody\n", "md")

    assert article.title == "T"
    assert report.properties("Article") == {"layout"}


@pytest.mark.asyncio
async def test_document_without_frontmatter() -> None:
    article = await load("# Heading\n\nText", "md")

    assert article.title is None
    assert article.content == [Heading(depth=1, content=["Heading"]), Paragraph(content=["Text"])]


# ---------------------------------------------------------------------------
# Blocks and inlines
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_inline_formatting() -> None:
    article = await load("Some **bold**, *em* and `code` with [a link](https://example.org).", "md")

    assert article.content == [
        Paragraph(
            content=[
                "Some ",
                Strong(content=["bold"]),
                ", ",
                Emphasis(content=["em"]),
                " and ",
                CodeFragment(text="code"),
                " with ",
                Link(target="https://example.org", content=["a link"]),
                ".",
            ]
        )
    ]


@pytest.mark.asyncio
async def test_image_extraction() -> None:
    article = await load("![A cat](cat.png)", "md")

    assert article.content == [Paragraph(content=[ImageObject(content_url="cat.png", text="A cat")])]


@pytest.mark.asyncio
async def test_ordered_list_start_becomes_positions() -> None:
    article = await load("3. three\n4. four\n", "md")

    node = article.content[0]
    assert isinstance(node, List)
    assert node.order == "ascending"
    assert [item.position for item in node.items] == [3, 4]


@pytest.mark.asyncio
async def test_task_list_items() -> None:
    article = await load("- [x] done\n- [ ] todo\n", "md")

    node = article.content[0]
    assert [item.is_checked for item in node.items] == [True, False]
    assert node.items[0].content == [Paragraph(content=["done"])]


@pytest.mark.asyncio
async def test_table_parsing() -> None:
    article = await load("| A | B |\n| --- | --- |\n| 1 | 2 |\n", "md")

    table = article.content[0]
    assert isinstance(table, Table)
    assert table.rows[0].row_type == "header"
    assert [[cell.content for cell in row.cells] for row in table.rows] == [[["A"], ["B"]], [["1"], ["2"]]]


@pytest.mark.asyncio
async def test_display_and_inline_math() -> None:
    article = await load("$$\nE = mc^2\n$$\n\nInline $x^2$ here.\n", "md")

    assert article.content[0] == MathBlock(text="E = mc^2")
    assert MathFragment(text="x^2") in article.content[1].content


@pytest.mark.asyncio
async def test_code_fences() -> None:
    md = "```python\nprint(1)\n```\n\n```r exec\nplot(x)\n```\n"

    article = await load(md, "md")

    assert article.content == [
        CodeBlock(text="print(1)", programming_language="python"),
        CodeChunk(text="plot(x)", programming_language="r"),
    ]


@pytest.mark.asyncio
async def test_citations() -> None:
    article = await load("As shown [@smith2020] and [@a; @b].", "md")

    content = article.content[0].content
    assert Cite(target="smith2020") in content
    assert CiteGroup(items=[Cite(target="a"), Cite(target="b")]) in content


@pytest.mark.asyncio
async def test_thematic_break_and_block_html() -> None:
    article = await load("Above\n\n***\n\n<p>From <em>HTML</em></p>\n", "md")

    assert article.content == [
        Paragraph(content=["Above"]),
        ThematicBreak(),
        Paragraph(content=["From ", Emphasis(content=["HTML"])]),
    ]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_article_round_trip() -> None:
    article = Article(
        title="T",
        content=[
            Heading(depth=2, content=["Intro"]),
            Paragraph(content=["Some ", Strong(content=["bold"]), " text."]),
            List(items=[ListItem(content=[Paragraph(content=["one"])]), ListItem(content=[Paragraph(content=["two"])])]),
        ],
    )

    md = await dump(article, "md")

    assert md == "---\ntitle: T\n---\n\n## Intro\n\nSome **bold** text.\n\n- one\n- two\n"
    assert await load(md, "md") == article


@pytest.mark.asyncio
async def test_special_characters_are_escaped() -> None:
    md = await dump(Paragraph(content=["a*b_c [d]"]), "md")

    assert md == "a\\*b\\_c \\[d\\]\n"
    assert (await load(md, "md")).content == [Paragraph(content=["a*b_c [d]"])]


@pytest.mark.asyncio
async def test_deep_headings_are_clamped() -> None:
    with collect_losses() as report:
        md = await dump(Heading(depth=8, content=["Deep"]), "md")

    assert md == "###### Deep\n"
    assert report.properties("Heading") == {"depth"}


@pytest.mark.asyncio
async def test_code_fence_grows_past_backticks_in_text() -> None:
    md = await dump(CodeBlock(text="```\nnested\n```", programming_language="md"), "md")

    assert md.startswith("````md\n")
    assert (await load(md, "md")).content == [CodeBlock(text="```\nnested\n```", programming_language="md")]


@pytest.mark.asyncio
async def test_unknown_blocks_use_an_entity_fence() -> None:
    entity = Entity(data={"type": "Widget", "size": 3})

    md = await dump([Paragraph(content=["before"]), entity], "md")

    assert "```entity\n" in md
    assert (await load(md, "md")).content == [Paragraph(content=["before"]), entity]


@pytest.mark.parametrize(
    "text",
    [
        "# not a heading",
        "> not a quote",
        "- not a list",
        "+ not a list",
        "* not a list",
        "1. not a list",
        "2) not a list",
        "    indented",
        "AT&amp;T",
    ],
)
@pytest.mark.asyncio
async def test_paragraphs_that_look_like_other_blocks_round_trip(text: str) -> None:
    article = Article(content=[Paragraph(content=[text])])

    assert await load(await dump(article, "md"), "md") == article


@pytest.mark.asyncio
async def test_explicit_zero_position_is_kept() -> None:
    node = List(order="ascending", items=[ListItem(content=[Paragraph(content=["a"])], position=0)])

    md = await dump(node, "md")

    assert md == "0. a\n"
    assert [item.position for item in (await load(md, "md")).content[0].items] == [0]
