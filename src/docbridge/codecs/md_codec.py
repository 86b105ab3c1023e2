"""Markdown codec: mistune tokens in, CommonMark with GFM extensions out."""

from __future__ import annotations

import datetime as dt
import json
import logging
import re
from typing import Any

import mistune
import yaml
from mistune.util import unescape

from docbridge.codecs.base import Codec, flatten, merge_strings, text_of
from docbridge.codecs.html_decode import HtmlDecoder
from docbridge.log import log_loss_if_any
from docbridge.model import (
    Article,
    Cite,
    CiteGroup,
    CodeBlock,
    CodeChunk,
    CodeFragment,
    Collection,
    Date,
    Delete,
    Emphasis,
    Entity,
    Heading,
    ImageObject,
    Link,
    List,
    ListItem,
    MathBlock,
    MathFragment,
    Node,
    Organization,
    Paragraph,
    Person,
    QuoteBlock,
    Strong,
    Subscript,
    Superscript,
    Table,
    TableCell,
    TableRow,
    ThematicBreak,
    from_json_value,
    node_type,
    person_display_name,
    person_from_text,
    to_json_value,
    to_text,
    unrepresented,
)
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile

logger = logging.getLogger(__name__)

FORMAT = "md"
MAX_DEPTH = 6
ENTITY_INFO = "entity"
CHUNK_KEYWORD = "exec"
PLUGINS = ["strikethrough", "table", "math", "superscript", "subscript", "task_lists"]

_ESCAPE_RE = re.compile(r"([\\`*_\[\]<>$~^|])")
_ENTITY_START_RE = re.compile(r"&(?=#?\w+;)")
_LEADING_SPACE_RE = re.compile(r"^[ \t]+")
_BLOCK_START_RE = re.compile(r"^(?:#|[-+](?= |$)|(\d{1,9})([.)])(?= |$))")
_CITE_RE = re.compile(r"\[(@[^\[\]]+)\]")
_FRONTMATTER_KEYS = {"title", "authors", "author", "date", "description", "abstract", "keywords"}


class MarkdownCodec(Codec):
    name = "md"
    media_types = ("text/markdown", "text/x-markdown")
    ext_names = ("md", "markdown")

    def __init__(self) -> None:
        self._markdown = mistune.create_markdown(plugins=PLUGINS, renderer=None)

    async def decode(self, file: VirtualFile) -> Node:
        text = text_of(file)
        frontmatter, body = _split_frontmatter(text)
        tokens, _ = self._markdown.parse(body)
        content = _MarkdownDecoder().blocks(tokens)
        fields = _decode_frontmatter(frontmatter)
        return Article(content=content, **fields)

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        return VirtualFile(contents=_MarkdownEncoder().document(node))


# ---------------------------------------------------------------------------
# YAML frontmatter
# ---------------------------------------------------------------------------


def _split_frontmatter(text: str) -> tuple[str, str]:
    """Split leading YAML frontmatter from body text."""
    if not text.startswith("---"):
        return "", text
    end = text.find("\n---", 3)
    if end == -1:
        return "", text
    closing_end = text.find("\n", end + 1)
    body = "" if closing_end == -1 else text[closing_end + 1 :]
    return text[3:end].strip(), body


def _decode_frontmatter(raw: str) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        logger.warning("Ignoring invalid YAML frontmatter: %s", exc)
        return {}
    if not isinstance(data, dict):
        return {}

    fields: dict[str, Any] = {}
    if data.get("title") is not None:
        fields["title"] = str(data["title"])

    authors = data.get("authors", data.get("author"))
    if authors:
        fields["authors"] = [_decode_author(author) for author in _as_list(authors)]

    date = data.get("date")
    if isinstance(date, (dt.date, dt.datetime)):
        date = date.isoformat()
    if date:
        fields["date_published"] = Date(value=str(date))

    description = data.get("description", data.get("abstract"))
    if description:
        fields["description"] = str(description).strip()

    keywords = data.get("keywords")
    if isinstance(keywords, str):
        keywords = [word.strip() for word in keywords.split(",")]
    if keywords:
        fields["keywords"] = [str(word) for word in keywords if str(word)]

    unknown = {key: value for key, value in data.items() if key not in _FRONTMATTER_KEYS}
    log_loss_if_any(FORMAT, "decode", Article(), unknown)
    return fields


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [part.strip() for part in re.split(r",\s*|\s+and\s+", value) if part.strip()]
    return [value]


def _decode_author(value: Any) -> Person | Organization:
    if isinstance(value, dict):
        node = from_json_value({"type": "Person", **value} if "type" not in value else value)
        if isinstance(node, (Person, Organization)):
            return node
        return Person(name=str(value.get("name", "")) or None)
    return person_from_text(str(value))


def _encode_frontmatter(article: Article) -> str:
    data: dict[str, Any] = {}
    if article.title is not None:
        if not isinstance(article.title, str):
            log_loss_if_any(FORMAT, "encode", article, ["title"])
        data["title"] = to_text(article.title)
    if article.authors:
        authors = []
        for author in article.authors:
            if isinstance(author, Person):
                log_loss_if_any(FORMAT, "encode", author, unrepresented(author, ("name", "given_names", "family_names")))
                authors.append(person_display_name(author))
            else:
                log_loss_if_any(FORMAT, "encode", author, unrepresented(author, ("name",)))
                authors.append(to_json_value(author))
        data["authors"] = authors
    if article.date_published is not None:
        date = article.date_published
        data["date"] = date.value if isinstance(date, Date) else str(date)
    if article.description is not None:
        if not isinstance(article.description, str):
            log_loss_if_any(FORMAT, "encode", article, ["description"])
        data["description"] = to_text(article.description)
    if article.keywords:
        data["keywords"] = list(article.keywords)
    if not data:
        return ""
    return "---\n" + yaml.safe_dump(data, sort_keys=False, allow_unicode=True) + "---\n\n"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class _MarkdownDecoder:
    BLOCK_DECODERS = {
        "heading": "heading",
        "paragraph": "paragraph",
        "block_text": "paragraph",
        "block_code": "block_code",
        "block_quote": "block_quote",
        "list": "list",
        "table": "table",
        "thematic_break": "thematic_break",
        "block_math": "block_math",
        "block_html": "block_html",
        "blank_line": "skip",
    }

    INLINE_DECODERS = {
        "text": "text",
        "emphasis": "mark",
        "strong": "mark",
        "strikethrough": "mark",
        "superscript": "mark",
        "subscript": "mark",
        "codespan": "codespan",
        "link": "link",
        "image": "image",
        "inline_math": "inline_math",
        "softbreak": "softbreak",
        "linebreak": "linebreak",
        "inline_html": "inline_html",
    }

    MARKS = {
        "emphasis": Emphasis,
        "strong": Strong,
        "strikethrough": Delete,
        "superscript": Superscript,
        "subscript": Subscript,
    }

    def blocks(self, tokens: list[dict[str, Any]]) -> list[Node]:
        return flatten(self.block(token) for token in tokens)

    def block(self, token: dict[str, Any]) -> list[Node]:
        name = self.BLOCK_DECODERS.get(token.get("type", ""))
        if name is None:
            logger.warning("No handler for Markdown token '%s'", token.get("type"))
            return []
        return getattr(self, name)(token)

    def inlines(self, tokens: list[dict[str, Any]] | None) -> list[Node]:
        nodes = merge_strings(flatten(self.inline(token) for token in tokens or []))
        return flatten(_split_cites(node) if isinstance(node, str) else [node] for node in nodes)

    def inline(self, token: dict[str, Any]) -> list[Node]:
        name = self.INLINE_DECODERS.get(token.get("type", ""))
        if name is None:
            logger.warning("No handler for Markdown token '%s'", token.get("type"))
            return []
        return getattr(self, name)(token)

    # blocks

    def skip(self, token: dict[str, Any]) -> list[Node]:
        return []

    def heading(self, token: dict[str, Any]) -> list[Node]:
        level = token.get("attrs", {}).get("level", 1)
        return [Heading(depth=level, content=self.inlines(token.get("children")))]

    def paragraph(self, token: dict[str, Any]) -> list[Node]:
        content = self.inlines(token.get("children"))
        return [Paragraph(content=content)] if content else []

    def block_code(self, token: dict[str, Any]) -> list[Node]:
        text = token.get("raw", "")
        if text.endswith("\n"):
            text = text[:-1]
        info = (token.get("attrs", {}).get("info") or "").strip()
        words = info.split()
        if words == [ENTITY_INFO]:
            try:
                return [from_json_value(json.loads(text))]
            except ValueError:
                logger.warning("Unable to parse opaque Markdown entity block")
        language = words[0] if words else None
        if len(words) > 1 and words[1] == CHUNK_KEYWORD:
            return [CodeChunk(text=text, programming_language=language)]
        return [CodeBlock(text=text, programming_language=language)]

    def block_quote(self, token: dict[str, Any]) -> list[Node]:
        return [QuoteBlock(content=self.blocks(token.get("children", [])))]

    def list(self, token: dict[str, Any]) -> list[Node]:
        attrs = token.get("attrs", {})
        ordered = attrs.get("ordered", False)
        start = attrs.get("start", 1) if ordered else 1
        items = []
        for index, child in enumerate(token.get("children", [])):
            position = start + index if ordered and start != 1 else None
            items.append(self.list_item(child, position))
        return [List(order="ascending" if ordered else "unordered", items=items)]

    def list_item(self, token: dict[str, Any], position: int | None) -> ListItem:
        is_checked = None
        if token.get("type") == "task_list_item":
            is_checked = bool(token.get("attrs", {}).get("checked"))
        return ListItem(content=self.blocks(token.get("children", [])), position=position, is_checked=is_checked)

    def table(self, token: dict[str, Any]) -> list[Node]:
        rows: list[TableRow] = []
        for part in token.get("children", []):
            if part.get("type") == "table_head":
                rows.append(TableRow(cells=[self.table_cell(cell) for cell in part.get("children", [])], row_type="header"))
            elif part.get("type") == "table_body":
                for row in part.get("children", []):
                    rows.append(TableRow(cells=[self.table_cell(cell) for cell in row.get("children", [])]))
        return [Table(rows=rows)]

    def table_cell(self, token: dict[str, Any]) -> TableCell:
        return TableCell(content=self.inlines(token.get("children")))

    def thematic_break(self, token: dict[str, Any]) -> list[Node]:
        return [ThematicBreak()]

    def block_math(self, token: dict[str, Any]) -> list[Node]:
        return [MathBlock(text=token.get("raw", "").strip())]

    def block_html(self, token: dict[str, Any]) -> list[Node]:
        node = HtmlDecoder().decode_html(token.get("raw", ""))
        return flatten(node if isinstance(node, list) else [node])

    # inline

    def text(self, token: dict[str, Any]) -> list[Node]:
        return [unescape(token.get("raw", ""))]

    def mark(self, token: dict[str, Any]) -> list[Node]:
        return [self.MARKS[token["type"]](content=self.inlines(token.get("children")))]

    def codespan(self, token: dict[str, Any]) -> list[Node]:
        return [CodeFragment(text=token.get("raw", ""))]

    def link(self, token: dict[str, Any]) -> list[Node]:
        attrs = token.get("attrs", {})
        url = attrs.get("url")
        if not url:
            return self.inlines(token.get("children"))
        return [Link(target=url, content=self.inlines(token.get("children")), title=attrs.get("title"))]

    def image(self, token: dict[str, Any]) -> list[Node]:
        attrs = token.get("attrs", {})
        alt = to_text(self.inlines(token.get("children"))) or None
        return [ImageObject(content_url=attrs.get("url", ""), text=alt, title=attrs.get("title"))]

    def inline_math(self, token: dict[str, Any]) -> list[Node]:
        return [MathFragment(text=token.get("raw", ""))]

    def softbreak(self, token: dict[str, Any]) -> list[Node]:
        return [" "]

    def linebreak(self, token: dict[str, Any]) -> list[Node]:
        return ["\n"]

    def inline_html(self, token: dict[str, Any]) -> list[Node]:
        logger.warning("Skipping inline HTML in Markdown: %s", token.get("raw", ""))
        return []


def _split_cites(text: str) -> list[Node]:
    nodes: list[Node] = []
    last = 0
    for match in _CITE_RE.finditer(text):
        keys = [part.strip()[1:] for part in match.group(1).split(";") if part.strip().startswith("@")]
        if not keys:
            continue
        nodes.append(text[last : match.start()])
        cites = [Cite(target=key) for key in keys]
        nodes.append(cites[0] if len(cites) == 1 else CiteGroup(items=cites))
        last = match.end()
    nodes.append(text[last:])
    return [node for node in nodes if node != ""]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _lost(node: Node, handled: tuple[str, ...]) -> None:
    log_loss_if_any(FORMAT, "encode", node, unrepresented(node, handled))


def _escape(text: str) -> str:
    return _ENTITY_START_RE.sub(r"\\&", _ESCAPE_RE.sub(r"\\\1", text))


def _escape_block_start(text: str) -> str:
    """Keep the start of paragraph text from reading as a heading, list item or indented code."""
    indent = _LEADING_SPACE_RE.match(text)
    if indent:
        spaces = indent.group(0)
        return "".join("&#9;" if char == "\t" else "&#32;" for char in spaces) + text[len(spaces) :]
    marker = _BLOCK_START_RE.match(text)
    if marker is None:
        return text
    if marker.group(1):
        return f"{marker.group(1)}\\{marker.group(2)}{text[marker.end() :]}"
    return "\\" + text


def _indent(text: str, width: int) -> str:
    pad = " " * width
    return "\n".join(pad + line if line else line for line in text.split("\n"))


def _fence(text: str) -> str:
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    return "`" * max(3, longest + 1)


class _MarkdownEncoder:
    BLOCK_ENCODERS = {
        "Article": "article",
        "Heading": "heading",
        "Paragraph": "paragraph",
        "QuoteBlock": "quote_block",
        "CodeBlock": "code_block",
        "CodeChunk": "code_chunk",
        "List": "list",
        "Table": "table",
        "Datatable": "datatable",
        "Figure": "figure",
        "Collection": "collection",
        "ThematicBreak": "thematic_break",
        "MathBlock": "math_block",
    }

    INLINE_ENCODERS = {
        "Text": "text",
        "Null": "primitive",
        "Boolean": "primitive",
        "Number": "primitive",
        "Emphasis": "mark",
        "Strong": "mark",
        "Delete": "mark",
        "Superscript": "mark",
        "Subscript": "mark",
        "Link": "link",
        "ImageObject": "image",
        "CodeFragment": "code_fragment",
        "CodeExpression": "code_fragment",
        "MathFragment": "math_fragment",
        "Cite": "cite",
        "CiteGroup": "cite_group",
        "Quote": "quote",
    }

    MARK_DELIMITERS = {
        "Emphasis": "_",
        "Strong": "**",
        "Delete": "~~",
        "Superscript": "^",
        "Subscript": "~",
    }

    def document(self, node: Node) -> str:
        if isinstance(node, list):
            return self.blocks(node) + "\n"
        text = self.block(node)
        return text + "\n" if text else ""

    def blocks(self, nodes: list[Node] | None) -> str:
        return "\n\n".join(part for part in (self.block(node) for node in nodes or []) if part)

    def block(self, node: Node) -> str:
        if isinstance(node, Entity):
            return self.entity(node)
        kind = node_type(node)
        name = self.BLOCK_ENCODERS.get(kind)
        if name is not None:
            return getattr(self, name)(node)
        if kind in self.INLINE_ENCODERS:
            return self.inline(node)
        return self.entity(node)

    def inlines(self, nodes: list[Node] | None) -> str:
        return "".join(self.inline(node) for node in nodes or [])

    def inline(self, node: Node) -> str:
        kind = node_type(node)
        name = None if isinstance(node, Entity) else self.INLINE_ENCODERS.get(kind)
        if name is None:
            log_loss_if_any(FORMAT, "encode", node, {"type": kind})
            return _escape(to_text(node))
        return getattr(self, name)(node)

    def entity(self, node: Node) -> str:
        text = json.dumps(to_json_value(node), indent=2, ensure_ascii=False)
        return f"```{ENTITY_INFO}\n{text}\n```"

    # blocks

    def article(self, article: Article) -> str:
        _lost(article, ("title", "authors", "date_published", "description", "keywords", "content"))
        return _encode_frontmatter(article) + self.blocks(article.content)

    def heading(self, heading: Heading) -> str:
        _lost(heading, ("depth", "content"))
        depth = heading.depth
        if depth > MAX_DEPTH:
            log_loss_if_any(FORMAT, "encode", heading, ["depth"])
            depth = MAX_DEPTH
        return "#" * depth + " " + self.inlines(heading.content)

    def paragraph(self, paragraph: Paragraph) -> str:
        _lost(paragraph, ("content",))
        text = self.inlines(paragraph.content)
        if paragraph.content and isinstance(paragraph.content[0], str):
            text = _escape_block_start(text)
        return text

    def quote_block(self, quote: QuoteBlock) -> str:
        _lost(quote, ("content",))
        inner = self.blocks(quote.content)
        return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))

    def code_block(self, code: CodeBlock) -> str:
        _lost(code, ("text", "programming_language"))
        fence = _fence(code.text)
        return f"{fence}{code.programming_language or ''}\n{code.text}\n{fence}"

    def code_chunk(self, chunk: CodeChunk) -> str:
        _lost(chunk, ("text", "programming_language"))
        fence = _fence(chunk.text)
        language = chunk.programming_language or "text"
        return f"{fence}{language} {CHUNK_KEYWORD}\n{chunk.text}\n{fence}"

    def list(self, node: List) -> str:
        _lost(node, ("items", "order"))
        ordered = node.order != "unordered"
        parts = []
        loose = False
        for index, item in enumerate(node.items):
            if not isinstance(item, ListItem):
                item = ListItem(content=[item])
            _lost(item, ("content", "position", "is_checked"))
            position = item.position if item.position is not None else index + 1
            marker = f"{position}. " if ordered else "- "
            if item.is_checked is not None:
                marker += "[x] " if item.is_checked else "[ ] "
            body = self._item_body(item.content)
            if sum(1 for block in item.content if not isinstance(block, List)) > 1:
                loose = True
            lines = body.split("\n")
            rest = _indent("\n".join(lines[1:]), len(marker)) if len(lines) > 1 else ""
            parts.append(marker + lines[0] + ("\n" + rest if rest else ""))
        return ("\n\n" if loose else "\n").join(parts)

    def _item_body(self, content: list[Node]) -> str:
        pieces: list[str] = []
        for index, block in enumerate(content):
            text = self.block(block)
            if index:
                pieces.append("\n" if isinstance(block, List) else "\n\n")
            pieces.append(text)
        return "".join(pieces)

    def table(self, table: Table) -> str:
        _lost(table, ("rows",))
        rows = [row if isinstance(row, TableRow) else TableRow(cells=[]) for row in table.rows]
        if not rows:
            return ""
        header = rows[0]
        body = rows[1:]
        if header.row_type != "header":
            log_loss_if_any(FORMAT, "encode", header, ["row_type"])
        width = max(len(row.cells) for row in rows)
        lines = [self._table_line(header, width), "| " + " | ".join("---" for _ in range(width)) + " |"]
        lines.extend(self._table_line(row, width) for row in body)
        return "\n".join(lines)

    def _table_line(self, row: TableRow, width: int) -> str:
        _lost(row, ("cells", "row_type"))
        cells = []
        for cell in row.cells:
            if isinstance(cell, TableCell):
                _lost(cell, ("content",))
                cells.append(self.inlines(cell.content).replace("\n", " "))
            else:
                cells.append(self.inline(cell))
        cells.extend("" for _ in range(width - len(cells)))
        return "| " + " | ".join(cells) + " |"

    def datatable(self, datatable: Any) -> str:
        _lost(datatable, ("columns",))
        header = TableRow(cells=[TableCell(content=[column.name]) for column in datatable.columns], row_type="header")
        height = max((len(column.values) for column in datatable.columns), default=0)
        rows = [header]
        for index in range(height):
            rows.append(
                TableRow(
                    cells=[
                        TableCell(content=[to_text(column.values[index])] if index < len(column.values) else [])
                        for column in datatable.columns
                    ]
                )
            )
        return self.table(Table(rows=rows))

    def figure(self, figure: Any) -> str:
        _lost(figure, ("content",))
        return self.blocks(figure.content)

    def collection(self, collection: Collection) -> str:
        _lost(collection, ("parts",))
        return "\n\n***\n\n".join(self.block(part) for part in collection.parts)

    def thematic_break(self, node: ThematicBreak) -> str:
        return "***"

    def math_block(self, math: MathBlock) -> str:
        _lost(math, ("text", "math_language"))
        return f"$$\n{math.text}\n$$"

    # inline

    def text(self, node: str) -> str:
        return _escape(node)

    def primitive(self, node: Any) -> str:
        return _escape(to_text(node))

    def mark(self, mark: Any) -> str:
        _lost(mark, ("content",))
        delimiter = self.MARK_DELIMITERS[mark.type]
        return f"{delimiter}{self.inlines(mark.content)}{delimiter}"

    def link(self, link: Link) -> str:
        _lost(link, ("target", "content", "title"))
        title = f' "{link.title}"' if link.title else ""
        return f"[{self.inlines(link.content)}]({link.target}{title})"

    def image(self, image: ImageObject) -> str:
        _lost(image, ("content_url", "text", "title"))
        title = f' "{image.title}"' if isinstance(image.title, str) and image.title else ""
        return f"![{_escape(image.text or '')}]({image.content_url}{title})"

    def code_fragment(self, code: Any) -> str:
        _lost(code, ("text", "programming_language"))
        longest = max((len(run) for run in re.findall(r"`+", code.text)), default=0)
        ticks = "`" * (longest + 1)
        pad = " " if code.text.startswith("`") or code.text.endswith("`") else ""
        return f"{ticks}{pad}{code.text}{pad}{ticks}"

    def math_fragment(self, math: MathFragment) -> str:
        _lost(math, ("text", "math_language"))
        return f"${math.text}$"

    def cite(self, cite: Cite) -> str:
        _lost(cite, ("target",))
        return f"[@{cite.target}]"

    def cite_group(self, group: CiteGroup) -> str:
        _lost(group, ("items",))
        return "[" + "; ".join(f"@{item.target}" for item in group.items) + "]"

    def quote(self, quote: Any) -> str:
        _lost(quote, ("content",))
        return f"“{self.inlines(quote.content)}”"
