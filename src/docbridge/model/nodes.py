"""Node vocabulary of the document model.

Every variant is a slotted dataclass. JSON primitives (``None``, ``bool``,
numbers, ``str``, ``list`` and untyped ``dict``) are used directly as nodes.
Tagged dicts with a type outside the vocabulary are carried by :class:`Entity`.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

Node = Any

ListOrder = Literal["ascending", "descending", "unordered"]
LIST_ORDERS = ("ascending", "descending", "unordered")
ROW_TYPES = ("header", "footer")


@dataclass(slots=True, kw_only=True)
class Thing:
    id: str | None = None
    meta: dict[str, Any] | None = None

    @property
    def type(self) -> str:
        return type(self).__name__


@dataclass(slots=True)
class Entity:
    """A tagged node whose type is not part of the vocabulary."""

    data: dict[str, Any]

    @property
    def type(self) -> str:
        value = self.data.get("type")
        return value if isinstance(value, str) else "Entity"


# ---------------------------------------------------------------------------
# Creative works
# ---------------------------------------------------------------------------


@dataclass(slots=True, kw_only=True)
class CreativeWork(Thing):
    name: str | None = None
    title: str | list[Node] | None = None
    authors: list[Person | Organization] | None = None
    publisher: Person | Organization | None = None
    date_published: Date | str | None = None
    description: str | list[Node] | None = None
    content: list[Node] | None = None
    references: list[CreativeWork | str] | None = None
    url: str | None = None
    identifiers: list[PropertyValue | str] | None = None
    keywords: list[str] | None = None
    is_part_of: CreativeWork | None = None


@dataclass(slots=True, kw_only=True)
class Article(CreativeWork):
    page_start: int | str | None = None
    page_end: int | str | None = None
    pagination: str | None = None


@dataclass(slots=True, kw_only=True)
class Periodical(CreativeWork):
    pass


@dataclass(slots=True, kw_only=True)
class PublicationVolume(CreativeWork):
    volume_number: int | str | None = None


@dataclass(slots=True, kw_only=True)
class PublicationIssue(CreativeWork):
    issue_number: int | str | None = None


@dataclass(slots=True, kw_only=True)
class Collection(CreativeWork):
    parts: list[CreativeWork]


@dataclass(slots=True, kw_only=True)
class Figure(CreativeWork):
    label: str | None = None
    caption: list[Node] | None = None


@dataclass(slots=True, kw_only=True)
class Table(CreativeWork):
    rows: list[TableRow]
    label: str | None = None
    caption: list[Node] | None = None

    def __post_init__(self) -> None:
        if self.rows is None:
            raise ValueError("Table requires rows")


@dataclass(slots=True, kw_only=True)
class Datatable(CreativeWork):
    columns: list[DatatableColumn]


@dataclass(slots=True, kw_only=True)
class ImageObject(CreativeWork):
    content_url: str
    text: str | None = None
    caption: str | list[Node] | None = None
    media_type: str | None = None


# ---------------------------------------------------------------------------
# Other things
# ---------------------------------------------------------------------------


@dataclass(slots=True, kw_only=True)
class Person(Thing):
    name: str | None = None
    given_names: list[str] | None = None
    family_names: list[str] | None = None
    emails: list[str] | None = None
    affiliations: list[Organization] | None = None
    url: str | None = None


@dataclass(slots=True, kw_only=True)
class Organization(Thing):
    name: str | None = None
    url: str | None = None
    address: PostalAddress | str | None = None
    parent_organization: Organization | None = None


@dataclass(slots=True, kw_only=True)
class PostalAddress(Thing):
    street_address: str | None = None
    address_locality: str | None = None
    address_region: str | None = None
    postal_code: str | None = None
    address_country: str | None = None


@dataclass(slots=True, kw_only=True)
class PropertyValue(Thing):
    value: Node
    name: str | None = None
    property_id: str | None = None


@dataclass(slots=True, kw_only=True)
class Date(Thing):
    value: str


@dataclass(slots=True, kw_only=True)
class DatatableColumn(Thing):
    name: str
    values: list[Node] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


@dataclass(slots=True, kw_only=True)
class Heading(Thing):
    content: list[Node]
    depth: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.depth, int) or self.depth < 1:
            raise ValueError(f"Heading depth must be >= 1, got {self.depth!r}")
        if self.content is None:
            raise ValueError("Heading requires content")


@dataclass(slots=True, kw_only=True)
class Paragraph(Thing):
    content: list[Node] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class QuoteBlock(Thing):
    content: list[Node] = field(default_factory=list)
    cite: str | None = None


@dataclass(slots=True, kw_only=True)
class CodeBlock(Thing):
    text: str
    programming_language: str | None = None


@dataclass(slots=True, kw_only=True)
class CodeChunk(Thing):
    text: str
    programming_language: str | None = None
    outputs: list[Node] | None = None


@dataclass(slots=True, kw_only=True)
class List(Thing):
    items: list[ListItem]
    order: ListOrder = "unordered"

    def __post_init__(self) -> None:
        if self.order not in LIST_ORDERS:
            raise ValueError(f"List order must be one of {LIST_ORDERS}, got {self.order!r}")


@dataclass(slots=True, kw_only=True)
class ListItem(Thing):
    content: list[Node] = field(default_factory=list)
    position: int | None = None
    is_checked: bool | None = None
    url: str | None = None


@dataclass(slots=True, kw_only=True)
class TableRow(Thing):
    cells: list[TableCell]
    row_type: str | None = None

    def __post_init__(self) -> None:
        if self.row_type is not None and self.row_type not in ROW_TYPES:
            raise ValueError(f"TableRow row_type must be one of {ROW_TYPES}, got {self.row_type!r}")


@dataclass(slots=True, kw_only=True)
class TableCell(Thing):
    content: list[Node] = field(default_factory=list)
    cell_type: str | None = None
    col_span: int | None = None
    row_span: int | None = None


@dataclass(slots=True, kw_only=True)
class ThematicBreak(Thing):
    pass


@dataclass(slots=True, kw_only=True)
class MathBlock(Thing):
    text: str
    math_language: str | None = "tex"
    label: str | None = None


# ---------------------------------------------------------------------------
# Inline
# ---------------------------------------------------------------------------


@dataclass(slots=True, kw_only=True)
class Mark(Thing):
    content: list[Node] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class Emphasis(Mark):
    pass


@dataclass(slots=True, kw_only=True)
class Strong(Mark):
    pass


@dataclass(slots=True, kw_only=True)
class Delete(Mark):
    pass


@dataclass(slots=True, kw_only=True)
class Superscript(Mark):
    pass


@dataclass(slots=True, kw_only=True)
class Subscript(Mark):
    pass


@dataclass(slots=True, kw_only=True)
class Link(Thing):
    target: str
    content: list[Node] = field(default_factory=list)
    title: str | None = None

    def __post_init__(self) -> None:
        if not self.target:
            raise ValueError("Link requires a target")


@dataclass(slots=True, kw_only=True)
class Quote(Thing):
    content: list[Node] = field(default_factory=list)
    cite: str | None = None


@dataclass(slots=True, kw_only=True)
class Cite(Thing):
    target: str
    prefix: str | None = None
    suffix: str | None = None
    content: list[Node] | None = None


@dataclass(slots=True, kw_only=True)
class CiteGroup(Thing):
    items: list[Cite]


@dataclass(slots=True, kw_only=True)
class CodeFragment(Thing):
    text: str
    programming_language: str | None = None


@dataclass(slots=True, kw_only=True)
class CodeExpression(Thing):
    text: str
    programming_language: str | None = None
    output: Node = None


@dataclass(slots=True, kw_only=True)
class MathFragment(Thing):
    text: str
    math_language: str | None = "tex"


NODE_TYPES: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        Article,
        CreativeWork,
        Periodical,
        PublicationVolume,
        PublicationIssue,
        Collection,
        Figure,
        Table,
        Datatable,
        DatatableColumn,
        ImageObject,
        Person,
        Organization,
        PostalAddress,
        PropertyValue,
        Date,
        Heading,
        Paragraph,
        QuoteBlock,
        CodeBlock,
        CodeChunk,
        List,
        ListItem,
        TableRow,
        TableCell,
        ThematicBreak,
        MathBlock,
        Emphasis,
        Strong,
        Delete,
        Superscript,
        Subscript,
        Link,
        Quote,
        Cite,
        CiteGroup,
        CodeFragment,
        CodeExpression,
        MathFragment,
    )
}

BLOCK_TYPES = frozenset(
    {
        "Heading",
        "Paragraph",
        "QuoteBlock",
        "CodeBlock",
        "CodeChunk",
        "List",
        "Table",
        "Datatable",
        "Figure",
        "Collection",
        "ThematicBreak",
        "MathBlock",
    }
)

INLINE_TYPES = frozenset(
    {
        "Null",
        "Boolean",
        "Number",
        "Text",
        "Emphasis",
        "Strong",
        "Delete",
        "Superscript",
        "Subscript",
        "Link",
        "Quote",
        "Cite",
        "CiteGroup",
        "CodeFragment",
        "CodeExpression",
        "MathFragment",
        "ImageObject",
    }
)


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------


def node_type(node: Node) -> str:
    """Discriminator of any node, primitives included."""
    if node is None:
        return "Null"
    if isinstance(node, bool):
        return "Boolean"
    if isinstance(node, (int, float)):
        return "Number"
    if isinstance(node, str):
        return "Text"
    if isinstance(node, (list, tuple)):
        return "Array"
    if isinstance(node, dict):
        return "Object"
    kind = getattr(node, "type", None)
    return kind if isinstance(kind, str) else "Object"


def is_a(type_name: str, node: Node) -> bool:
    return node_type(node) == type_name


def is_creative_work(node: Node) -> bool:
    return isinstance(node, CreativeWork)


def is_block_content(node: Node) -> bool:
    return node_type(node) in BLOCK_TYPES


def is_inline_content(node: Node) -> bool:
    return node_type(node) in INLINE_TYPES


def is_non_empty(nodes: Sequence[Node] | None) -> bool:
    return nodes is not None and len(nodes) > 0


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, (list, dict)) and len(value) == 0


def unrepresented(node: Node, handled: Iterable[str]) -> dict[str, Any]:
    """Present fields of ``node`` that are not named in ``handled``.

    ``id`` and ``meta`` are ordinary fields here, so callers that place them
    must say so.
    """
    if isinstance(node, Entity):
        skip = set(handled) | {"type"}
        return {key: value for key, value in node.data.items() if key not in skip}
    if not dataclasses.is_dataclass(node) or isinstance(node, type):
        return {}
    skip = set(handled)
    lost: dict[str, Any] = {}
    for item in dataclasses.fields(node):
        if item.name in skip:
            continue
        value = getattr(node, item.name)
        if not _is_absent(value):
            lost[item.name] = value
    return lost


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


def person_from_text(text: str) -> Person:
    """Parse ``"Given Family"`` or ``"Family, Given"`` into a :class:`Person`."""
    cleaned = re.sub(r"\s+", " ", text).strip()
    if "," in cleaned:
        family, _, given = cleaned.partition(",")
        given_names = given.split()
        family_names = family.split()
    else:
        parts = cleaned.split(" ")
        given_names = parts[:-1]
        family_names = parts[-1:] if parts and parts[-1] else []
    return Person(
        given_names=given_names or None,
        family_names=family_names or None,
    )


def person_display_name(person: Person) -> str:
    if person.name:
        return person.name
    if person.family_names:
        if person.given_names:
            return " ".join([*person.given_names, *person.family_names])
        return " ".join(person.family_names)
    return "Anonymous"


def organization_display_name(organization: Organization) -> str:
    return organization.name or "Unknown"


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def to_text(node: Node) -> str:
    """Plain text rendition of ``node`` for titles, slugs and text output."""
    if node is None:
        return ""
    if isinstance(node, bool):
        return "true" if node else "false"
    if isinstance(node, (int, float, str)):
        return str(node)
    if isinstance(node, (list, tuple)):
        return "".join(to_text(item) for item in node)
    if isinstance(node, dict):
        return " ".join(to_text(value) for value in node.values())
    if isinstance(node, Entity):
        return ""
    if isinstance(node, (CodeBlock, CodeChunk, CodeFragment, CodeExpression, MathBlock, MathFragment)):
        return node.text
    if isinstance(node, Person):
        return person_display_name(node)
    if isinstance(node, Organization):
        return organization_display_name(node)
    if isinstance(node, Date):
        return node.value
    if isinstance(node, ImageObject):
        return node.text or ""
    if isinstance(node, Cite):
        return to_text(node.content) if node.content else node.target
    if isinstance(node, CiteGroup):
        return "; ".join(to_text(item) for item in node.items)
    if isinstance(node, List):
        return "\n".join(to_text(item) for item in node.items)
    if isinstance(node, Table):
        return "\n".join(to_text(row) for row in node.rows)
    if isinstance(node, TableRow):
        return "\t".join(to_text(cell) for cell in node.cells)
    if isinstance(node, Datatable):
        names = [column.name for column in node.columns]
        height = max((len(column.values) for column in node.columns), default=0)
        lines = ["\t".join(names)]
        for index in range(height):
            lines.append(
                "\t".join(
                    to_text(column.values[index]) if index < len(column.values) else ""
                    for column in node.columns
                )
            )
        return "\n".join(lines)
    if isinstance(node, Collection):
        return "\n\n".join(to_text(part) for part in node.parts)
    if isinstance(node, CreativeWork):
        blocks: list[str] = []
        if node.title:
            blocks.append(to_text(node.title))
        for block in node.content or []:
            blocks.append(to_text(block))
        return "\n\n".join(blocks)
    content = getattr(node, "content", None)
    if content is not None:
        return to_text(content)
    return ""
