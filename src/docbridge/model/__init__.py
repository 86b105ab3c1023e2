"""Document model package."""

from .nodes import (
    BLOCK_TYPES,
    INLINE_TYPES,
    NODE_TYPES,
    Article,
    Cite,
    CiteGroup,
    CodeBlock,
    CodeChunk,
    CodeExpression,
    CodeFragment,
    Collection,
    CreativeWork,
    Datatable,
    DatatableColumn,
    Date,
    Delete,
    Emphasis,
    Entity,
    Figure,
    Heading,
    ImageObject,
    Link,
    List,
    ListItem,
    Mark,
    MathBlock,
    MathFragment,
    Node,
    Organization,
    Paragraph,
    Periodical,
    Person,
    PostalAddress,
    PropertyValue,
    PublicationIssue,
    PublicationVolume,
    Quote,
    QuoteBlock,
    Strong,
    Subscript,
    Superscript,
    Table,
    TableCell,
    TableRow,
    ThematicBreak,
    Thing,
    is_a,
    is_block_content,
    is_creative_work,
    is_inline_content,
    is_non_empty,
    node_type,
    organization_display_name,
    person_display_name,
    person_from_text,
    to_text,
    unrepresented,
)
from .serialize import from_json_value, to_json_value
from .tabular import column_index_to_name, column_name_to_index, datatable_from_rows, datatable_to_rows

__all__ = [
    "BLOCK_TYPES",
    "INLINE_TYPES",
    "NODE_TYPES",
    "Article",
    "Cite",
    "CiteGroup",
    "CodeBlock",
    "CodeChunk",
    "CodeExpression",
    "CodeFragment",
    "Collection",
    "CreativeWork",
    "Datatable",
    "DatatableColumn",
    "Date",
    "Delete",
    "Emphasis",
    "Entity",
    "Figure",
    "Heading",
    "ImageObject",
    "Link",
    "List",
    "ListItem",
    "Mark",
    "MathBlock",
    "MathFragment",
    "Node",
    "Organization",
    "Paragraph",
    "Periodical",
    "Person",
    "PostalAddress",
    "PropertyValue",
    "PublicationIssue",
    "PublicationVolume",
    "Quote",
    "QuoteBlock",
    "Strong",
    "Subscript",
    "Superscript",
    "Table",
    "TableCell",
    "TableRow",
    "ThematicBreak",
    "Thing",
    "column_index_to_name",
    "column_name_to_index",
    "datatable_from_rows",
    "datatable_to_rows",
    "from_json_value",
    "is_a",
    "is_block_content",
    "is_creative_work",
    "is_inline_content",
    "is_non_empty",
    "node_type",
    "organization_display_name",
    "person_display_name",
    "person_from_text",
    "to_json_value",
    "to_text",
    "unrepresented",
]
