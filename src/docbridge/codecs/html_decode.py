"""Decode HTML elements into document model nodes."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from docbridge.codecs.base import flatten, merge_strings
from docbridge.errors import DecodeError
from docbridge.model import (
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
    Figure,
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
    PropertyValue,
    Quote,
    QuoteBlock,
    Strong,
    Subscript,
    Superscript,
    Table,
    TableCell,
    TableRow,
    ThematicBreak,
    column_index_to_name,
    from_json_value,
    is_inline_content,
)

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_HEADING_RE = re.compile(r"^h([1-6])$")
_LANGUAGE_RE = re.compile(r"^(?:language|lang)-(.+)$")

BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "dl",
        "div",
        "figure",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "ol",
        "p",
        "pre",
        "section",
        "table",
        "ul",
    }
)

_UNWRAP = frozenset(
    {"div", "span", "time", "section", "main", "header", "footer", "nav", "aside", "label", "small", "u", "font", "body", "html", "caption", "tbody", "thead", "tfoot"}
)
_IGNORE = frozenset({"script", "style", "meta", "link", "head", "title", "noscript", "template", "input", "button", "svg"})


def itemtype_of(element: Tag) -> str | None:
    itemtype = element.get("itemtype")
    if not itemtype:
        return None
    if isinstance(itemtype, list):
        itemtype = itemtype[0]
    return itemtype.rstrip("/").rsplit("/", 1)[-1] or None


def decode_href(href: str | None) -> str:
    if not href:
        return "#"
    return href[1:] if href.startswith("#") else href


def _children(element: Tag) -> list[Any]:
    return [child for child in element.children if not isinstance(child, PreformattedString)]


def _prop(element: Tag, name: str, attr: str = "itemprop") -> Tag | None:
    for child in element.children:
        if isinstance(child, Tag) and child.get(attr) == name:
            return child
    return None


def _props(element: Tag, name: str, attr: str = "itemprop") -> list[Tag]:
    return [child for child in element.children if isinstance(child, Tag) and child.get(attr) == name]


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text)


def _trim(nodes: list[Node]) -> list[Node]:
    if nodes and isinstance(nodes[0], str):
        nodes[0] = nodes[0].lstrip()
    if nodes and isinstance(nodes[-1], str):
        nodes[-1] = nodes[-1].rstrip()
    return [node for node in nodes if node != ""]


class HtmlDecoder:
    """Walk a parsed HTML tree and build document model nodes."""

    TAG_DECODERS = {
        "article": "decode_article",
        "p": "decode_paragraph",
        "blockquote": "decode_quote_block",
        "pre": "decode_pre",
        "ul": "decode_list",
        "ol": "decode_list",
        "li": "decode_list_item",
        "table": "decode_table",
        "tr": "decode_table_row",
        "td": "decode_table_cell",
        "th": "decode_table_cell",
        "figure": "decode_figure",
        "figcaption": "decode_flow_children",
        "hr": "decode_thematic_break",
        "em": "decode_mark",
        "i": "decode_mark",
        "strong": "decode_mark",
        "b": "decode_mark",
        "del": "decode_mark",
        "s": "decode_mark",
        "strike": "decode_mark",
        "sup": "decode_mark",
        "sub": "decode_mark",
        "a": "decode_link",
        "q": "decode_quote",
        "cite": "decode_cite",
        "code": "decode_code_fragment",
        "img": "decode_image",
        "math": "decode_mathml",
        "br": "decode_break",
    }

    ITEMTYPE_DECODERS = {
        "Article": "decode_article",
        "CodeChunk": "decode_code_chunk",
        "CodeExpression": "decode_code_expression",
        "Datatable": "decode_datatable",
        "Collection": "decode_collection",
        "CiteGroup": "decode_cite_group",
        "Cite": "decode_cite",
        "Figure": "decode_figure",
        "MathBlock": "decode_math",
        "MathFragment": "decode_math",
        "Person": "decode_person",
        "Organization": "decode_organization",
        "Date": "decode_date",
        "CreativeWork": "decode_work",
        "Periodical": "decode_work",
        "PublicationVolume": "decode_work",
        "PublicationIssue": "decode_work",
        "Entity": "decode_entity",
        "Null": "decode_primitive",
        "Boolean": "decode_primitive",
        "Number": "decode_primitive",
        "Array": "decode_primitive",
        "Object": "decode_primitive",
    }

    MARKS = {
        "em": Emphasis,
        "i": Emphasis,
        "strong": Strong,
        "b": Strong,
        "del": Delete,
        "s": Delete,
        "strike": Delete,
        "sup": Superscript,
        "sub": Subscript,
    }

    # -----------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------

    def decode_html(self, text: str) -> Node:
        soup = BeautifulSoup(text, "html.parser")
        root: Tag = soup
        document = soup.find("html")
        if document is not None:
            body = soup.find("body")
            if body is None:
                raise DecodeError("html", "document does not have a <body>")
            root = body

        nodes = self.decode_children(root, block=True)
        if not nodes:
            logger.warning("No node could be decoded from HTML: %s", text[:10] + "..." if len(text) > 10 else text)
            return ""
        if len(nodes) == 1:
            return nodes[0]
        return nodes

    def decode_node(self, node: Any, *, block: bool = False) -> list[Node]:
        if isinstance(node, PreformattedString):
            return []
        if isinstance(node, NavigableString):
            text = str(node)
            if block and not text.strip():
                return []
            return [_collapse(text)]
        if not isinstance(node, Tag):
            return []

        itemtype = itemtype_of(node)
        if itemtype is not None:
            name = self.ITEMTYPE_DECODERS.get(itemtype)
            if name is not None:
                return getattr(self, name)(node)

        tag = node.name.lower()
        heading = _HEADING_RE.match(tag)
        if heading is not None:
            return self.decode_heading(node, int(heading.group(1)))

        name = self.TAG_DECODERS.get(tag)
        if name is not None:
            return getattr(self, name)(node)
        if itemtype is not None:
            return self.decode_entity(node)
        if tag in _UNWRAP:
            return self.decode_children(node, block=block)
        if tag in _IGNORE:
            return []

        logger.warning("No handler for HTML element <%s>", tag)
        return []

    def decode_children(self, element: Tag, *, block: bool = False) -> list[Node]:
        return flatten(self.decode_node(child, block=block) for child in _children(element))

    def decode_inlines(self, element: Tag) -> list[Node]:
        return _trim(merge_strings(self.decode_children(element)))

    def decode_blocks(self, element: Tag, children: list[Any] | None = None) -> list[Node]:
        """Decode children as blocks, wrapping loose inline runs in paragraphs."""
        nodes = flatten(self.decode_node(child, block=True) for child in (children if children is not None else _children(element)))
        blocks: list[Node] = []
        run: list[Node] = []

        def close_run() -> None:
            content = _trim(merge_strings(run))
            if content:
                if all(isinstance(item, ImageObject) for item in content):
                    blocks.extend(content)
                else:
                    blocks.append(Paragraph(content=content))
            run.clear()

        for node in nodes:
            if isinstance(node, str) or is_inline_content(node):
                run.append(node)
            else:
                close_run()
                blocks.append(node)
        close_run()
        return blocks

    def decode_flow(self, element: Tag) -> list[Node]:
        """Blocks when the element holds block elements, inline content otherwise."""
        if any(isinstance(child, Tag) and child.name in BLOCK_TAGS for child in element.children):
            return self.decode_blocks(element)
        return self.decode_inlines(element)

    def decode_flow_children(self, element: Tag) -> list[Node]:
        return self.decode_flow(element)

    # -----------------------------------------------------------------
    # Shared attributes
    # -----------------------------------------------------------------

    def thing_attrs(self, element: Tag, *, with_id: bool = True) -> dict[str, Any]:
        result: dict[str, Any] = {}
        ident = element.get("id")
        if with_id and ident:
            result["id"] = ident
        meta = element.get("data-meta")
        if meta:
            try:
                result["meta"] = json.loads(meta)
            except ValueError:
                logger.warning("Ignoring invalid data-meta attribute: %s", meta)
        return result

    # -----------------------------------------------------------------
    # Blocks
    # -----------------------------------------------------------------

    def decode_heading(self, element: Tag, level: int) -> list[Node]:
        return [Heading(depth=max(1, level - 1), content=self.decode_inlines(element), **self.thing_attrs(element, with_id=False))]

    def decode_paragraph(self, element: Tag) -> list[Node]:
        return [Paragraph(content=self.decode_inlines(element), **self.thing_attrs(element))]

    def decode_quote_block(self, element: Tag) -> list[Node]:
        return [QuoteBlock(content=self.decode_blocks(element), cite=element.get("cite"), **self.thing_attrs(element))]

    def decode_pre(self, element: Tag) -> list[Node]:
        code = element.find("code")
        language = _language(code) if code is not None else None
        text = (code if code is not None else element).get_text()
        return [CodeBlock(text=text, programming_language=language, **self.thing_attrs(element))]

    def decode_code_chunk(self, element: Tag) -> list[Node]:
        pre = _prop(element, "text")
        text = pre.get_text() if pre is not None else ""
        outputs = None
        container = _prop(element, "outputs", "data-itemprop")
        if container is not None:
            outputs = []
            for output in _props(container, "output"):
                nodes = self.decode_flow(output)
                outputs.append(nodes[0] if len(nodes) == 1 else nodes)
        language = element.get("data-programming-language")
        if language is None and pre is not None and pre.find("code") is not None:
            language = _language(pre.find("code"))
        return [CodeChunk(text=text, programming_language=language, outputs=outputs, **self.thing_attrs(element))]

    def decode_list(self, element: Tag) -> list[Node]:
        if element.name == "ul":
            order = "unordered"
        else:
            order = "descending" if element.has_attr("reversed") else "ascending"
        items = [
            self.decode_list_item(child, index)[0]
            for index, child in enumerate(child for child in element.children if isinstance(child, Tag) and child.name == "li")
        ]
        return [List(order=order, items=items, **self.thing_attrs(element))]

    def decode_list_item(self, element: Tag, index: int | None = None) -> list[Node]:
        position = None
        url = None
        is_checked = None
        children = []
        for child in _children(element):
            if isinstance(child, Tag):
                if child.name == "meta" and child.get("itemprop") == "position":
                    try:
                        position = int(child.get("content", ""))
                    except ValueError:
                        position = None
                    continue
                if child.name == "meta" and child.get("itemprop") == "url":
                    url = child.get("content")
                    continue
                if child.name == "input" and child.get("type") == "checkbox":
                    is_checked = child.has_attr("checked")
                    continue
            children.append(child)

        if index is not None and position == index + 1:
            position = None

        has_blocks = any(isinstance(child, Tag) and child.name in BLOCK_TAGS for child in children)
        if has_blocks:
            content = self.decode_blocks(element, children)
        else:
            inline = _trim(merge_strings(flatten(self.decode_node(child) for child in children)))
            content = [Paragraph(content=inline)] if inline else []
        return [ListItem(content=content, position=position, is_checked=is_checked, url=url, **self.thing_attrs(element))]

    def decode_table(self, element: Tag) -> list[Node]:
        rows: list[TableRow] = []
        label = None
        caption = None
        for child in element.children:
            if not isinstance(child, Tag):
                continue
            if child.name == "caption":
                label_tag = _prop(child, "label", "data-itemprop")
                if label_tag is not None:
                    label = label_tag.get_text()
                    label_tag.extract()
                caption = self.decode_flow(child) or None
            elif child.name == "tr":
                rows.append(self._row(child, None))
            elif child.name in ("thead", "tbody", "tfoot"):
                row_type = {"thead": "header", "tfoot": "footer"}.get(child.name)
                rows.extend(self._row(tr, row_type) for tr in child.find_all("tr", recursive=False))
        return [Table(rows=rows, label=label, caption=caption, **self.thing_attrs(element))]

    def _row(self, element: Tag, row_type: str | None) -> TableRow:
        cells = [
            self._cell(child, in_header=row_type == "header")
            for child in element.children
            if isinstance(child, Tag) and child.name in ("td", "th")
        ]
        return TableRow(cells=cells, row_type=row_type, **self.thing_attrs(element))

    def _cell(self, element: Tag, *, in_header: bool = False) -> TableCell:
        cell_type = "header" if element.name == "th" and not in_header else None
        return TableCell(
            content=self.decode_flow(element),
            cell_type=cell_type,
            col_span=_int_attr(element, "colspan"),
            row_span=_int_attr(element, "rowspan"),
            **self.thing_attrs(element),
        )

    def decode_table_row(self, element: Tag) -> list[Node]:
        return [self._row(element, None)]

    def decode_table_cell(self, element: Tag) -> list[Node]:
        return [self._cell(element)]

    def decode_datatable(self, element: Tag) -> list[Node]:
        columns: list[DatatableColumn] = []
        table = element.find("table")
        if table is not None:
            thead = table.find("thead")
            if thead is not None:
                columns = [
                    DatatableColumn(name=th.get_text() or column_index_to_name(index + 1))
                    for index, th in enumerate(thead.find_all("th"))
                ]
            tbody = table.find("tbody")
            body_rows = tbody.find_all("tr", recursive=False) if tbody is not None else []
            for row in body_rows:
                cells = row.find_all("td", recursive=False)
                while len(columns) < len(cells):
                    columns.append(DatatableColumn(name=column_index_to_name(len(columns) + 1)))
                for index, column in enumerate(columns):
                    column.values.append(cells[index].get_text() if index < len(cells) else None)
        return [Datatable(columns=columns, **self.thing_attrs(element))]

    def decode_figure(self, element: Tag) -> list[Node]:
        label = None
        caption = None
        children = []
        for child in _children(element):
            if isinstance(child, Tag) and child.get("data-itemprop") == "label":
                label = child.get_text()
            elif isinstance(child, Tag) and child.name == "figcaption":
                caption = self.decode_flow(child) or None
            else:
                children.append(child)
        content = self.decode_blocks(element, children)
        return [Figure(label=label, caption=caption, content=content or None, **self.thing_attrs(element))]

    def decode_collection(self, element: Tag) -> list[Node]:
        return [Collection(parts=self.decode_children(element, block=True), **self.thing_attrs(element))]

    def decode_thematic_break(self, element: Tag) -> list[Node]:
        return [ThematicBreak(**self.thing_attrs(element))]

    def decode_math(self, element: Tag) -> list[Node]:
        meta = _prop(element, "text")
        text = meta.get("content", "") if meta is not None else element.get_text()
        language = element.get("data-math-language")
        if itemtype_of(element) == "MathBlock":
            return [MathBlock(text=text, math_language=language, label=element.get("data-label"), **self.thing_attrs(element))]
        return [MathFragment(text=text, math_language=language, **self.thing_attrs(element))]

    def decode_mathml(self, element: Tag) -> list[Node]:
        node_class = MathBlock if element.get("display") == "block" else MathFragment
        return [node_class(text=str(element), math_language="mathml")]

    # -----------------------------------------------------------------
    # Inline
    # -----------------------------------------------------------------

    def decode_mark(self, element: Tag) -> list[Node]:
        return [self.MARKS[element.name](content=self.decode_children(element), **self.thing_attrs(element))]

    def decode_link(self, element: Tag) -> list[Node]:
        href = element.get("href")
        if not href:
            return self.decode_children(element)
        return [
            Link(
                target=href,
                content=self.decode_children(element),
                title=element.get("title"),
                **self.thing_attrs(element),
            )
        ]

    def decode_quote(self, element: Tag) -> list[Node]:
        return [Quote(content=self.decode_children(element), cite=element.get("cite"), **self.thing_attrs(element))]

    def decode_cite(self, element: Tag) -> list[Node]:
        prefix = _prop(element, "citePrefix")
        suffix = _prop(element, "citeSuffix")
        anchor = element.find("a")
        if anchor is not None:
            target = decode_href(anchor.get("href"))
            content = self.decode_children(anchor)
        else:
            target = element.get_text().strip()
            content = [target]
        return [
            Cite(
                target=target,
                prefix=prefix.get_text() if prefix is not None else None,
                suffix=suffix.get_text() if suffix is not None else None,
                content=None if content == [target] else content,
                **self.thing_attrs(element),
            )
        ]

    def decode_cite_group(self, element: Tag) -> list[Node]:
        items = [node for node in self.decode_children(element) if isinstance(node, Cite)]
        return [CiteGroup(items=items, **self.thing_attrs(element))]

    def decode_code_fragment(self, element: Tag) -> list[Node]:
        return [CodeFragment(text=element.get_text(), programming_language=_language(element), **self.thing_attrs(element))]

    def decode_code_expression(self, element: Tag) -> list[Node]:
        code = _prop(element, "text")
        output_tag = _prop(element, "output")
        output = None
        if output_tag is not None:
            nodes = self.decode_children(output_tag)
            output = nodes[0] if len(nodes) == 1 else (nodes or None)
        return [
            CodeExpression(
                text=code.get_text() if code is not None else "",
                programming_language=element.get("data-programming-language"),
                output=output,
                **self.thing_attrs(element),
            )
        ]

    def decode_image(self, element: Tag) -> list[Node]:
        src = element.get("src")
        if not src:
            return []
        return [
            ImageObject(
                content_url=src,
                text=element.get("alt"),
                title=element.get("title"),
                media_type=element.get("data-media-type"),
                **self.thing_attrs(element),
            )
        ]

    def decode_break(self, element: Tag) -> list[Node]:
        return ["\n"]

    def decode_date(self, element: Tag) -> list[Node]:
        return [Date(value=element.get("datetime") or element.get_text(), **self.thing_attrs(element))]

    def decode_primitive(self, element: Tag) -> list[Node]:
        try:
            return [from_json_value(json.loads(element.get_text()))]
        except ValueError:
            logger.warning("Unable to parse %s value: %s", itemtype_of(element), element.get_text())
            return []

    def decode_entity(self, element: Tag) -> list[Node]:
        """Restore a node from an opaque container, or unwrap foreign microdata."""
        try:
            value = json.loads(element.get_text())
        except ValueError:
            if itemtype_of(element) == "Entity":
                logger.warning("Unable to parse opaque %s container", element.get("data-type"))
                return []
            return self.decode_children(element)
        return [from_json_value(value)]

    # -----------------------------------------------------------------
    # People and organizations
    # -----------------------------------------------------------------

    def decode_person(self, element: Tag, organizations: dict[str, Organization] | None = None) -> list[Node]:
        given = [span.get_text() for span in element.select('[itemprop="givenName"]')]
        family = [span.get_text() for span in element.select('[itemprop="familyName"]')]
        name_tag = _prop(element, "name")
        name = None
        if name_tag is not None:
            name = name_tag.get("content") if name_tag.name == "meta" else name_tag.get_text()
            if name_tag.name == "meta" and name == " ".join([*given, *family]):
                name = None
        emails = [anchor.get_text() for anchor in element.select('[itemprop="email"]')]
        affiliations = None
        links = element.select('[itemprop="affiliation"]')
        if links and organizations is not None:
            affiliations = [organizations[link.get("href")] for link in links if link.get("href") in organizations]
        url = _prop(element, "url")
        return [
            Person(
                name=name,
                given_names=given or None,
                family_names=family or None,
                emails=emails or None,
                affiliations=affiliations or None,
                url=url.get("href") if url is not None else None,
                **self.thing_attrs(element),
            )
        ]

    def decode_organization(self, element: Tag) -> list[Node]:
        name = _prop(element, "name")
        address = _prop(element, "address")
        url = _prop(element, "url")
        return [
            Organization(
                name=name.get_text() if name is not None else None,
                address=address.get_text() if address is not None else None,
                url=url.get("href") if url is not None else None,
                **self.thing_attrs(element),
            )
        ]

    def decode_authors(self, element: Tag, affiliations: Tag | None) -> list[Any]:
        organizations: dict[str, Organization] = {}
        if affiliations is not None:
            for item in affiliations.find_all("li", recursive=False):
                organization = self.decode_organization(item)[0]
                organizations[item.get("itemid", "")] = organization

        authors: list[Any] = []
        for item in element.find_all("li", recursive=False):
            kind = itemtype_of(item)
            if kind == "Person":
                authors.extend(self.decode_person(item, organizations))
            elif kind == "Organization":
                authors.extend(self.decode_organization(item))
            else:
                authors.extend(self.decode_children(item))
        return authors

    def _party(self, element: Tag) -> Any:
        if itemtype_of(element) == "Person":
            return self.decode_person(element)[0]
        return self.decode_organization(element)[0]

    # -----------------------------------------------------------------
    # Creative works
    # -----------------------------------------------------------------

    def decode_article(self, element: Tag) -> list[Node]:
        fields: dict[str, Any] = {}
        content_children: list[Any] = []
        affiliations = _prop(element, "affiliations", "data-itemprop")

        for child in _children(element):
            if not isinstance(child, Tag):
                content_children.append(child)
                continue
            prop = child.get("itemprop")
            data_prop = child.get("data-itemprop")
            if prop == "headline":
                fields["title"] = _single_text(self.decode_inlines(child))
            elif data_prop == "authors":
                fields["authors"] = self.decode_authors(child, affiliations)
            elif data_prop == "affiliations":
                continue
            elif prop == "publisher":
                fields["publisher"] = self._party(child)
            elif prop == "datePublished":
                fields["date_published"] = self._date(child)
            elif data_prop == "identifiers":
                fields["identifiers"] = self._identifiers(child)
            elif prop == "keywords" and child.name == "meta":
                keywords = [word.strip() for word in child.get("content", "").split(",")]
                fields["keywords"] = [word for word in keywords if word] or None
            elif prop == "url" and child.name == "a":
                fields["url"] = child.get("href")
            elif data_prop == "description":
                fields["description"] = self._description(child)
            elif data_prop == "references":
                fields["references"] = self._references(child)
            else:
                content_children.append(child)

        content = self.decode_blocks(element, content_children)
        return [Article(content=content or None, **fields, **self.thing_attrs(element))]

    def _date(self, element: Tag) -> Date | str:
        value = element.get("datetime") or element.get_text()
        if itemtype_of(element) == "Date":
            return Date(value=value, **self.thing_attrs(element))
        return value

    def _identifiers(self, element: Tag) -> list[Any]:
        identifiers: list[Any] = []
        for item in element.find_all("li", recursive=False):
            if itemtype_of(item) == "PropertyValue":
                property_id = _prop(item, "propertyID")
                name = _prop(item, "name")
                value = _prop(item, "value")
                identifiers.append(
                    PropertyValue(
                        property_id=property_id.get("content") if property_id is not None else None,
                        name=name.get_text() if name is not None else None,
                        value=value.get_text() if value is not None else "",
                    )
                )
            else:
                identifiers.append(item.get_text())
        return identifiers

    def _description(self, element: Tag) -> str | list[Node]:
        children = [child for child in _children(element) if not (isinstance(child, Tag) and child.name == "h2")]
        if element.has_attr("data-text"):
            return "".join(child.get_text() if isinstance(child, Tag) else str(child) for child in children).strip()
        return self.decode_blocks(element, children)

    def _references(self, element: Tag) -> list[Any]:
        references: list[Any] = []
        listing = element.find("ol")
        if listing is None:
            return references
        for item in listing.find_all("li", recursive=False):
            if itemtype_of(item) is None:
                references.append(item.get_text())
            else:
                references.extend(self.decode_work(item))
        return references

    def decode_work(self, element: Tag) -> list[Node]:
        kind = itemtype_of(element) or "CreativeWork"
        cls = NODE_TYPES.get(kind)
        if cls is None or not issubclass(cls, CreativeWork):
            cls = CreativeWork
        fields: dict[str, Any] = {}
        affiliations = _prop(element, "affiliations", "data-itemprop")
        for child in element.children:
            if not isinstance(child, Tag):
                continue
            prop = child.get("itemprop")
            data_prop = child.get("data-itemprop")
            if data_prop == "authors":
                fields["authors"] = self.decode_authors(child, affiliations)
            elif prop == "datePublished":
                fields["date_published"] = self._date(child)
            elif prop == "headline":
                fields["title"] = _single_text(self.decode_inlines(child))
            elif prop == "name":
                fields["name"] = child.get_text()
            elif prop in ("volumeNumber", "issueNumber", "pagination", "pageStart", "pageEnd"):
                fields[_snake(prop)] = _typed(child)
            elif prop == "isPartOf":
                fields["is_part_of"] = self.decode_work(child)[0]
            elif prop == "url" and child.name == "a":
                fields["url"] = child.get("href")
            elif prop == "publisher":
                fields["publisher"] = self._party(child)
            elif data_prop == "content":
                fields["content"] = self.decode_blocks(child) or None
        names = set(cls.__dataclass_fields__)
        kwargs = {key: value for key, value in fields.items() if key in names}
        return [cls(**kwargs, **self.thing_attrs(element))]


def _language(element: Tag) -> str | None:
    for value in element.get("class") or []:
        match = _LANGUAGE_RE.match(value)
        if match is not None:
            return match.group(1)
    return None


def _int_attr(element: Tag, name: str) -> int | None:
    value = element.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _single_text(nodes: list[Node]) -> str | list[Node]:
    if len(nodes) == 1 and isinstance(nodes[0], str):
        return nodes[0]
    return nodes


def _typed(element: Tag) -> int | str:
    text = element.get_text()
    if element.get("data-type") == "Number":
        try:
            return int(text)
        except ValueError:
            return text
    return text


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
