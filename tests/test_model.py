"""Tests for the document model.

Covers:
- Construction time validation (heading depth, list order, row type, link target)
- Canonical JSON form and unknown types
- Classifiers and plain text rendering
- Spreadsheet column names
"""

from __future__ import annotations

import pytest

from docbridge.model import (
    Article,
    Datatable,
    DatatableColumn,
    Emphasis,
    Entity,
    Heading,
    Link,
    List,
    ListItem,
    MathFragment,
    Paragraph,
    Person,
    TableRow,
    column_index_to_name,
    column_name_to_index,
    datatable_from_rows,
    datatable_to_rows,
    from_json_value,
    is_block_content,
    is_inline_content,
    node_type,
    person_display_name,
    person_from_text,
    to_json_value,
    to_text,
    unrepresented,
)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_heading_depth_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Heading(depth=0, content=["Nope"])
    assert Heading(depth=7, content=["Deep"]).depth == 7


def test_list_order_is_checked() -> None:
    with pytest.raises(ValueError):
        List(items=[], order="sideways")
    assert List(items=[]).order == "unordered"


def test_table_row_type_is_checked() -> None:
    with pytest.raises(ValueError):
        TableRow(cells=[], row_type="body")
    assert TableRow(cells=[], row_type="header").row_type == "header"


def test_link_requires_target() -> None:
    with pytest.raises(ValueError):
        Link(target="", content=["x"])


# ---------------------------------------------------------------------------
# Canonical JSON
# ---------------------------------------------------------------------------

def test_json_value_uses_camel_case_and_omits_empty_fields() -> None:
    article = Article(
        title="Title",
        date_published="2024-01-01",
        content=[Paragraph(content=["Hello ", Emphasis(content=["world"])])],
    )

    value = to_json_value(article)

    assert value["type"] == "Article"
    assert value["datePublished"] == "2024-01-01"
    assert "authors" not in value
    assert value["content"][0] == {
        "type": "Paragraph",
        "content": ["Hello ", {"type": "Emphasis", "content": ["world"]}],
    }


def test_json_value_round_trip() -> None:
    article = Article(
        title="Title",
        authors=[Person(given_names=["Ada"], family_names=["Lovelace"])],
        content=[
            Heading(depth=2, content=["Intro"]),
            List(order="ascending", items=[ListItem(content=[Paragraph(content=["one"])], position=3)]),
        ],
    )

    assert from_json_value(to_json_value(article)) == article


def test_unknown_type_becomes_entity() -> None:
    value = {"type": "Foo", "bar": [1, 2]}

    node = from_json_value(value)

    assert isinstance(node, Entity)
    assert node.type == "Foo"
    assert to_json_value(node) == value


def test_unknown_property_on_known_type_becomes_entity() -> None:
    node = from_json_value({"type": "Paragraph", "content": [], "colour": "red"})

    assert isinstance(node, Entity)
    assert node_type(node) == "Paragraph"


def test_invalid_known_type_becomes_entity() -> None:
    node = from_json_value({"type": "Heading", "depth": 0, "content": ["x"]})

    assert isinstance(node, Entity)


# ---------------------------------------------------------------------------
# Classifiers and text
# ---------------------------------------------------------------------------

def test_node_type_of_primitives() -> None:
    assert node_type(None) == "Null"
    assert node_type(True) == "Boolean"
    assert node_type(1.5) == "Number"
    assert node_type("x") == "Text"
    assert node_type([1]) == "Array"
    assert node_type({"a": 1}) == "Object"
    assert node_type(Paragraph()) == "Paragraph"


def test_block_and_inline_classification() -> None:
    assert is_block_content(Paragraph())
    assert not is_inline_content(Paragraph())
    assert is_inline_content(MathFragment(text="x"))
    assert is_inline_content("text")


def test_to_text_flattens_content() -> None:
    article = Article(
        title="T",
        content=[Paragraph(content=["a ", Emphasis(content=["b"])]), Paragraph(content=["c"])],
    )

    assert to_text(article) == "T\n\na b\n\nc"


def test_unrepresented_lists_present_fields_only() -> None:
    article = Article(title="T", name="short", keywords=[])

    assert unrepresented(article, ("title",)) == {"name": "short"}


def test_person_names() -> None:
    assert person_from_text("Ada Lovelace") == Person(given_names=["Ada"], family_names=["Lovelace"])
    assert person_from_text("Lovelace, Ada") == Person(given_names=["Ada"], family_names=["Lovelace"])
    assert person_display_name(Person(given_names=["Ada"], family_names=["Lovelace"])) == "Ada Lovelace"
    assert person_display_name(Person()) == "Anonymous"


# ---------------------------------------------------------------------------
# Tabular helpers
# ---------------------------------------------------------------------------

def test_column_names() -> None:
    assert column_index_to_name(1) == "A"
    assert column_index_to_name(26) == "Z"
    assert column_index_to_name(27) == "AA"
    assert column_index_to_name(703) == "AAA"
    assert column_name_to_index("AA") == 27
    with pytest.raises(ValueError):
        column_index_to_name(0)


def test_datatable_from_rows_fills_missing_names() -> None:
    table = datatable_from_rows([["x", ""], [1, 2], [3]])

    assert [column.name for column in table.columns] == ["x", "B"]
    assert table.columns[0].values == [1, 3]
    assert table.columns[1].values == [2, None]


def test_datatable_to_rows_with_header() -> None:
    table = Datatable(columns=[DatatableColumn(name="a", values=[1, 2]), DatatableColumn(name="b", values=[3])])

    assert datatable_to_rows(table) == [["a", "b"], [1, 3], [2, None]]
    assert datatable_to_rows(table, header=False) == [[1, 3], [2, None]]
