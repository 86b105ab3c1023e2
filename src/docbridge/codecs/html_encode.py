"""Encode document model nodes into HTML elements."""

from __future__ import annotations

import html
import json
import logging
from dataclasses import replace
from typing import Any

from bs4 import BeautifulSoup, NavigableString, Tag

from docbridge.codecs.base import EncodeContext, Typesetter
from docbridge.log import log_loss_if_any
from docbridge.model import (
    Article,
    Cite,
    CreativeWork,
    Date,
    Entity,
    ListItem,
    Node,
    Organization,
    Paragraph,
    Person,
    PropertyValue,
    TableCell,
    TableRow,
    node_type,
    organization_display_name,
    person_display_name,
    to_json_value,
    to_text,
    unrepresented,
)

logger = logging.getLogger(__name__)

ITEMTYPE_PREFIX = "https://schema.stenci.la/"
HEADING_MAX = 6
FORMAT = "html"


async def default_typesetter(source: str, language: str, display: bool) -> str:
    """Client side markup for MathJax; no typesetting happens here."""
    if language not in ("tex", "latex"):
        return html.escape(source)
    opening, closing = ("\\[", "\\]") if display else ("\\(", "\\)")
    return html.escape(f"{opening}{source}{closing}")


def _lost(node: Node, handled: tuple[str, ...]) -> None:
    log_loss_if_any(FORMAT, "encode", node, unrepresented(node, handled))


class HtmlEncoder:
    """Encode one node tree. Create a new encoder for every top-level encode."""

    BLOCK_ENCODERS = {
        "Article": "encode_article",
        "CreativeWork": "encode_work",
        "Periodical": "encode_work",
        "PublicationVolume": "encode_work",
        "PublicationIssue": "encode_work",
        "Collection": "encode_collection",
        "Figure": "encode_figure",
        "Table": "encode_table",
        "TableRow": "encode_table_row",
        "TableCell": "encode_table_cell",
        "Datatable": "encode_datatable",
        "Heading": "encode_heading",
        "Paragraph": "encode_paragraph",
        "QuoteBlock": "encode_quote_block",
        "CodeBlock": "encode_code_block",
        "CodeChunk": "encode_code_chunk",
        "List": "encode_list",
        "ListItem": "encode_list_item",
        "ThematicBreak": "encode_thematic_break",
        "MathBlock": "encode_math_block",
    }

    INLINE_ENCODERS = {
        "Text": "encode_text",
        "Null": "encode_primitive",
        "Boolean": "encode_primitive",
        "Number": "encode_primitive",
        "Array": "encode_primitive",
        "Object": "encode_primitive",
        "Emphasis": "encode_mark",
        "Strong": "encode_mark",
        "Delete": "encode_mark",
        "Superscript": "encode_mark",
        "Subscript": "encode_mark",
        "Link": "encode_link",
        "Quote": "encode_quote",
        "Cite": "encode_cite",
        "CiteGroup": "encode_cite_group",
        "CodeFragment": "encode_code_fragment",
        "CodeExpression": "encode_code_expression",
        "MathFragment": "encode_math_fragment",
        "ImageObject": "encode_image",
        "Person": "encode_person",
        "Organization": "encode_organization",
        "Date": "encode_date",
    }

    MARK_TAGS = {
        "Emphasis": "em",
        "Strong": "strong",
        "Delete": "del",
        "Superscript": "sup",
        "Subscript": "sub",
    }

    def __init__(self, context: EncodeContext, typesetter: Typesetter = default_typesetter) -> None:
        self.context = context
        self.typesetter = typesetter
        self.soup = BeautifulSoup("", "html.parser")
        self.has_math = False

    # -----------------------------------------------------------------
    # Element construction
    # -----------------------------------------------------------------

    def h(self, name: str, attrs: dict[str, Any] | None = None, *children: Any) -> Tag:
        clean = {key: str(value) for key, value in (attrs or {}).items() if value is not None}
        tag = self.soup.new_tag(name, attrs=clean)
        self._append(tag, children)
        return tag

    def _append(self, tag: Tag, children: Any) -> None:
        for child in children:
            if child is None:
                continue
            if isinstance(child, (list, tuple)):
                self._append(tag, child)
            elif isinstance(child, str) and not isinstance(child, NavigableString):
                if child:
                    tag.append(NavigableString(child))
            else:
                tag.append(child)

    def attrs(self, node: Node, *, itemtype: bool = False, itemprop: str | None = None) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if itemtype:
            result["itemscope"] = ""
            result["itemtype"] = ITEMTYPE_PREFIX + node_type(node)
        if itemprop:
            result["itemprop"] = itemprop
        ident = getattr(node, "id", None)
        if ident:
            result["id"] = ident
        meta = getattr(node, "meta", None)
        if meta:
            result["data-meta"] = json.dumps(meta, ensure_ascii=False)
        return result

    # -----------------------------------------------------------------
    # Dispatch
    # -----------------------------------------------------------------

    def encode_node(self, node: Node) -> Tag | NavigableString | None:
        if isinstance(node, Entity):
            return self.encode_entity(node)
        kind = node_type(node)
        name = self.BLOCK_ENCODERS.get(kind) or self.INLINE_ENCODERS.get(kind)
        if name is None:
            return self.encode_entity(node)
        return getattr(self, name)(node)

    def encode_nodes(self, nodes: list[Node] | None) -> list[Any]:
        return [self.encode_node(node) for node in nodes or []]

    def encode_content(self, content: str | list[Node] | None) -> list[Any]:
        if content is None:
            return []
        if isinstance(content, str):
            return [NavigableString(content)]
        return self.encode_nodes(content)

    def encode_entity(self, node: Node) -> Tag:
        """Opaque container whose text is the canonical JSON of ``node``."""
        return self.h(
            "span",
            {
                "itemscope": "",
                "itemtype": ITEMTYPE_PREFIX + "Entity",
                "data-type": node_type(node),
            },
            json.dumps(to_json_value(node), ensure_ascii=False),
        )

    # -----------------------------------------------------------------
    # Primitives
    # -----------------------------------------------------------------

    def encode_text(self, node: str) -> NavigableString:
        return NavigableString(node)

    def encode_primitive(self, node: Any) -> Tag:
        kind = node_type(node)
        return self.h(
            "span",
            {"itemscope": "", "itemtype": ITEMTYPE_PREFIX + kind},
            json.dumps(to_json_value(node), ensure_ascii=False),
        )

    # -----------------------------------------------------------------
    # Blocks
    # -----------------------------------------------------------------

    def encode_heading(self, heading: Any) -> Tag:
        _lost(heading, ("id", "meta", "depth", "content"))
        level = heading.depth + 1
        if level > HEADING_MAX:
            log_loss_if_any(FORMAT, "encode", heading, ["depth"])
            level = HEADING_MAX
        if heading.id:
            ident = self.context.claim_id(heading.id)
        else:
            ident = self.context.unique_id(to_text(heading.content))
        attrs = self.attrs(heading)
        attrs["id"] = ident
        return self.h(f"h{level}", attrs, self.encode_nodes(heading.content))

    def encode_paragraph(self, paragraph: Any) -> Tag:
        _lost(paragraph, ("id", "meta", "content"))
        return self.h("p", self.attrs(paragraph), self.encode_nodes(paragraph.content))

    def encode_quote_block(self, quote: Any) -> Tag:
        _lost(quote, ("id", "meta", "content", "cite"))
        attrs = self.attrs(quote)
        attrs["cite"] = quote.cite
        return self.h("blockquote", attrs, self.encode_nodes(quote.content))

    def encode_code_block(self, code: Any) -> Tag:
        _lost(code, ("id", "meta", "text", "programming_language"))
        return self.h("pre", self.attrs(code), self._code(code.text, code.programming_language))

    def _code(self, text: str, language: str | None, itemprop: str | None = None) -> Tag:
        attrs: dict[str, Any] = {"itemprop": itemprop}
        if language:
            attrs["class"] = f"language-{language}"
        return self.h("code", attrs, text)

    def encode_code_chunk(self, chunk: Any) -> Tag:
        _lost(chunk, ("id", "meta", "text", "programming_language", "outputs"))
        attrs = self.attrs(chunk, itemtype=True)
        attrs["data-programming-language"] = chunk.programming_language
        outputs = None
        if chunk.outputs is not None:
            outputs = self.h(
                "div",
                {"data-itemprop": "outputs"},
                [self.h("div", {"itemprop": "output"}, self.encode_node(output)) for output in chunk.outputs],
            )
        return self.h(
            "div",
            attrs,
            self.h("pre", {"itemprop": "text"}, self._code(chunk.text, chunk.programming_language)),
            outputs,
        )

    def encode_list(self, node: Any) -> Tag:
        _lost(node, ("id", "meta", "items", "order"))
        attrs = self.attrs(node)
        if node.order == "descending":
            attrs["reversed"] = ""
        items = []
        for index, item in enumerate(node.items):
            if not isinstance(item, ListItem):
                item = ListItem(content=[item])
            if item.position is None:
                item = replace(item, position=index + 1)
            items.append(self.encode_list_item(item))
        return self.h("ul" if node.order == "unordered" else "ol", attrs, items)

    def encode_list_item(self, item: Any) -> Tag:
        _lost(item, ("id", "meta", "content", "position", "is_checked", "url"))
        content = item.content or []
        if len(content) == 1 and isinstance(content[0], Paragraph) and not content[0].id and not content[0].meta:
            content = content[0].content

        checkbox = None
        if item.is_checked is not None:
            checkbox_attrs = {"type": "checkbox", "disabled": ""}
            if item.is_checked:
                checkbox_attrs["checked"] = ""
            checkbox = self.h("input", checkbox_attrs)
        position = None
        if item.position is not None:
            position = self.h("meta", {"itemprop": "position", "content": item.position})
        url = self.h("meta", {"itemprop": "url", "content": item.url}) if item.url else None

        return self.h("li", self.attrs(item), checkbox, position, url, self.encode_nodes(content))

    def encode_table(self, table: Any) -> Tag:
        _lost(table, ("id", "meta", "rows", "label", "caption"))
        caption = None
        if table.label or table.caption:
            label = self.h("label", {"data-itemprop": "label"}, table.label) if table.label else None
            caption = self.h("caption", None, label, self.encode_nodes(table.caption))

        head = [row for row in table.rows if row.row_type == "header"]
        foot = [row for row in table.rows if row.row_type == "footer"]
        body = [row for row in table.rows if row.row_type not in ("header", "footer")]
        return self.h(
            "table",
            self.attrs(table),
            caption,
            self.h("thead", None, [self.encode_table_row(row) for row in head]) if head else None,
            self.h("tbody", None, [self.encode_table_row(row) for row in body]) if body else None,
            self.h("tfoot", None, [self.encode_table_row(row) for row in foot]) if foot else None,
        )

    def encode_table_row(self, row: Any) -> Tag:
        _lost(row, ("id", "meta", "cells", "row_type"))
        header = row.row_type == "header"
        cells = []
        for cell in row.cells:
            if not isinstance(cell, TableCell):
                cell = TableCell(content=[cell])
            cells.append(self.encode_table_cell(cell, in_header=header))
        return self.h("tr", self.attrs(row), cells)

    def encode_table_cell(self, cell: Any, in_header: bool = False) -> Tag:
        _lost(cell, ("id", "meta", "content", "cell_type", "col_span", "row_span"))
        attrs = self.attrs(cell)
        if cell.col_span and cell.col_span != 1:
            attrs["colspan"] = cell.col_span
        if cell.row_span and cell.row_span != 1:
            attrs["rowspan"] = cell.row_span
        tag = "th" if in_header or cell.cell_type == "header" else "td"
        return self.h(tag, attrs, self.encode_nodes(cell.content))

    def encode_datatable(self, datatable: Any) -> Tag:
        _lost(datatable, ("id", "meta", "columns"))
        columns = datatable.columns
        for column in columns:
            _lost(column, ("name", "values"))
        height = max((len(column.values) for column in columns), default=0)
        rows = []
        for index in range(height):
            rows.append(
                self.h(
                    "tr",
                    None,
                    [
                        self.h("td", None, _cell_text(column.values[index] if index < len(column.values) else None))
                        for column in columns
                    ],
                )
            )
        return self.h(
            "div",
            self.attrs(datatable, itemtype=True),
            self.h(
                "table",
                None,
                self.h("thead", None, self.h("tr", None, [self.h("th", None, column.name) for column in columns])),
                self.h("tbody", None, rows),
            ),
        )

    def encode_figure(self, figure: Any) -> Tag:
        _lost(figure, ("id", "meta", "label", "caption", "content"))
        label = self.h("label", {"data-itemprop": "label"}, figure.label) if figure.label else None
        caption = self.h("figcaption", None, self.encode_nodes(figure.caption)) if figure.caption else None
        return self.h(
            "figure",
            self.attrs(figure, itemtype=True),
            label,
            self.encode_nodes(figure.content),
            caption,
        )

    def encode_collection(self, collection: Any) -> Tag:
        _lost(collection, ("id", "meta", "parts"))
        return self.h("div", self.attrs(collection, itemtype=True), self.encode_nodes(collection.parts))

    def encode_thematic_break(self, node: Any) -> Tag:
        _lost(node, ("id", "meta"))
        return self.h("hr", self.attrs(node))

    # -----------------------------------------------------------------
    # Math
    # -----------------------------------------------------------------

    def encode_math_block(self, math: Any) -> Tag:
        _lost(math, ("id", "meta", "text", "math_language", "label"))
        return self._math(math, "div", display=True, label=math.label)

    def encode_math_fragment(self, math: Any) -> Tag:
        _lost(math, ("id", "meta", "text", "math_language"))
        return self._math(math, "span", display=False)

    def _math(self, math: Any, tag: str, *, display: bool, label: str | None = None) -> Tag:
        attrs = self.attrs(math, itemtype=True)
        attrs["data-math-language"] = math.math_language
        attrs["data-label"] = label
        render = self.h("span", {"class": "math-render"}, math.text)
        element = self.h(tag, attrs, self.h("meta", {"itemprop": "text", "content": math.text}), render)
        self.has_math = True
        self.context.defer(self._typeset(render, math.text, math.math_language or "tex", display))
        return element

    async def _typeset(self, target: Tag, source: str, language: str, display: bool) -> None:
        markup = await self.typesetter(source, language, display)
        target.clear()
        target.append(BeautifulSoup(markup, "html.parser"))

    # -----------------------------------------------------------------
    # Inline
    # -----------------------------------------------------------------

    def encode_mark(self, mark: Any) -> Tag:
        _lost(mark, ("id", "meta", "content"))
        return self.h(self.MARK_TAGS[mark.type], self.attrs(mark), self.encode_nodes(mark.content))

    def encode_link(self, link: Any) -> Tag:
        _lost(link, ("id", "meta", "target", "content", "title"))
        attrs = self.attrs(link)
        attrs["href"] = link.target
        attrs["title"] = link.title
        return self.h("a", attrs, self.encode_nodes(link.content))

    def encode_quote(self, quote: Any) -> Tag:
        _lost(quote, ("id", "meta", "content", "cite"))
        attrs = self.attrs(quote)
        attrs["cite"] = quote.cite
        return self.h("q", attrs, self.encode_nodes(quote.content))

    def encode_cite(self, cite: Any) -> Tag:
        _lost(cite, ("id", "meta", "target", "prefix", "suffix", "content"))
        content = self.encode_nodes(cite.content) if cite.content else [cite.target]
        return self.h(
            "cite",
            self.attrs(cite, itemtype=True),
            self.h("span", {"itemprop": "citePrefix"}, cite.prefix) if cite.prefix else None,
            self.h("a", {"href": encode_href(cite.target)}, content),
            self.h("span", {"itemprop": "citeSuffix"}, cite.suffix) if cite.suffix else None,
        )

    def encode_cite_group(self, group: Any) -> Tag:
        _lost(group, ("id", "meta", "items"))
        items = [item if isinstance(item, Cite) else Cite(target=to_text(item)) for item in group.items]
        return self.h("span", self.attrs(group, itemtype=True), [self.encode_cite(item) for item in items])

    def encode_code_fragment(self, code: Any) -> Tag:
        _lost(code, ("id", "meta", "text", "programming_language"))
        tag = self._code(code.text, code.programming_language)
        for key, value in self.attrs(code).items():
            tag[key] = str(value)
        return tag

    def encode_code_expression(self, expr: Any) -> Tag:
        _lost(expr, ("id", "meta", "text", "programming_language", "output"))
        attrs = self.attrs(expr, itemtype=True)
        attrs["data-programming-language"] = expr.programming_language
        output = None
        if expr.output is not None:
            output = self.h("output", {"itemprop": "output"}, self.encode_node(expr.output))
        return self.h("span", attrs, self._code(expr.text, expr.programming_language, itemprop="text"), output)

    def encode_image(self, image: Any) -> Tag:
        _lost(image, ("id", "meta", "content_url", "text", "title", "media_type"))
        attrs = self.attrs(image)
        attrs["src"] = image.content_url
        attrs["alt"] = image.text
        if isinstance(image.title, str):
            attrs["title"] = image.title
        elif image.title is not None:
            log_loss_if_any(FORMAT, "encode", image, ["title"])
        attrs["data-media-type"] = image.media_type
        return self.h("img", attrs)

    def encode_date(self, date: Any, itemprop: str | None = None) -> Tag:
        if isinstance(date, Date):
            _lost(date, ("id", "meta", "value"))
            attrs = self.attrs(date, itemtype=True, itemprop=itemprop)
            value = date.value
        else:
            attrs = {"itemprop": itemprop}
            value = str(date)
        attrs["datetime"] = value
        return self.h("time", attrs, value)

    # -----------------------------------------------------------------
    # People and organizations
    # -----------------------------------------------------------------

    def encode_person(
        self,
        person: Person,
        tag: str = "span",
        itemprop: str | None = None,
        organizations: dict[str, tuple[int, Organization]] | None = None,
    ) -> Tag:
        handled = ["id", "meta", "name", "given_names", "family_names", "emails", "url"]
        if organizations is not None:
            handled.append("affiliations")
        _lost(person, tuple(handled))

        display = person_display_name(person)
        if not person.name and not person.family_names:
            log_loss_if_any(FORMAT, "encode", person, ["name"])

        children: list[Any] = []
        if person.given_names or person.family_names:
            children.append(self.h("meta", {"itemprop": "name", "content": display}))
            if person.given_names:
                children.append(
                    self.h(
                        "span",
                        {"data-itemprop": "givenNames"},
                        _spaced([self.h("span", {"itemprop": "givenName"}, name) for name in person.given_names]),
                    )
                )
            if person.family_names:
                if children[-1].name == "span":
                    children.append(NavigableString(" "))
                children.append(
                    self.h(
                        "span",
                        {"data-itemprop": "familyNames"},
                        _spaced([self.h("span", {"itemprop": "familyName"}, name) for name in person.family_names]),
                    )
                )
        else:
            children.append(self.h("span", {"itemprop": "name"}, display))

        if person.emails:
            children.append(
                self.h(
                    "span",
                    {"data-itemprop": "emails"},
                    [self.h("a", {"itemprop": "email", "href": f"mailto:{email}"}, email) for email in person.emails],
                )
            )

        if person.affiliations and organizations is not None:
            links = []
            for affiliation in person.affiliations:
                entry = organizations.get(affiliation.name or "")
                if entry is None:
                    log_loss_if_any(FORMAT, "encode", affiliation, ["name"])
                    continue
                index, _ = entry
                links.append(self.h("a", {"itemprop": "affiliation", "href": f"#author-organization-{index}"}, str(index)))
            children.append(self.h("span", {"data-itemprop": "affiliations"}, links))

        if person.url:
            children.append(self.h("a", {"itemprop": "url", "href": person.url}, person.url))

        return self.h(tag, self.attrs(person, itemtype=True, itemprop=itemprop), children)

    def encode_organization(
        self,
        organization: Organization,
        tag: str = "span",
        itemprop: str | None = None,
        itemid: str | None = None,
    ) -> Tag:
        _lost(organization, ("id", "meta", "name", "url", "address"))
        if not organization.name:
            log_loss_if_any(FORMAT, "encode", organization, ["name"])
        attrs = self.attrs(organization, itemtype=True, itemprop=itemprop)
        attrs["itemid"] = itemid
        address = None
        if isinstance(organization.address, str):
            address = self.h("span", {"itemprop": "address"}, organization.address)
        elif organization.address is not None:
            log_loss_if_any(FORMAT, "encode", organization, ["address"])
        return self.h(
            tag,
            attrs,
            self.h("span", {"itemprop": "name"}, organization_display_name(organization)),
            address,
            self.h("a", {"itemprop": "url", "href": organization.url}, organization.url) if organization.url else None,
        )

    def encode_authors(self, authors: list[Any]) -> list[Tag]:
        """Authors list plus a deduplicated affiliations list linked by ``#author-organization-{n}``."""
        organizations: dict[str, tuple[int, Organization]] = {}
        for author in authors:
            if isinstance(author, Person):
                for affiliation in author.affiliations or []:
                    if affiliation.name and affiliation.name not in organizations:
                        organizations[affiliation.name] = (len(organizations) + 1, affiliation)

        items = []
        for author in authors:
            if isinstance(author, Person):
                items.append(self.encode_person(author, "li", "author", organizations))
            elif isinstance(author, Organization):
                items.append(self.encode_organization(author, "li", "author"))
            else:
                items.append(self.h("li", {"itemprop": "author"}, self.encode_node(author)))

        elements = [self.h("ol", {"data-itemprop": "authors"}, items)]
        if organizations:
            elements.append(
                self.h(
                    "ol",
                    {"data-itemprop": "affiliations"},
                    [
                        self.encode_organization(org, "li", itemid=f"#author-organization-{index}")
                        for index, org in organizations.values()
                    ],
                )
            )
        return elements

    def _publisher(self, publisher: Any) -> Tag | None:
        if publisher is None:
            return None
        if isinstance(publisher, Person):
            return self.encode_person(publisher, "span", "publisher")
        return self.encode_organization(publisher, "span", "publisher")

    # -----------------------------------------------------------------
    # Creative works
    # -----------------------------------------------------------------

    def encode_article(self, article: Article) -> Tag:
        _lost(
            article,
            (
                "id",
                "meta",
                "title",
                "authors",
                "publisher",
                "date_published",
                "identifiers",
                "keywords",
                "url",
                "description",
                "content",
                "references",
            ),
        )
        title = None
        if article.title is not None:
            title = self.h("h1", {"itemprop": "headline"}, self.encode_content(article.title))

        description = None
        if article.description is not None:
            is_text = isinstance(article.description, str)
            description = self.h(
                "section",
                {"data-itemprop": "description", "data-text": "" if is_text else None},
                self.h("h2", None, "Abstract"),
                self.h("p", None, article.description) if is_text else self.encode_nodes(article.description),
            )

        references = None
        if article.references:
            references = self.h(
                "section",
                {"data-itemprop": "references"},
                self.h("h2", None, "References"),
                self.h("ol", None, [self._reference(reference) for reference in article.references]),
            )

        return self.h(
            "article",
            self.attrs(article, itemtype=True),
            title,
            self.encode_authors(article.authors) if article.authors else None,
            self._publisher(article.publisher),
            self.encode_date(article.date_published, "datePublished") if article.date_published else None,
            self._identifiers(article.identifiers),
            self.h("meta", {"itemprop": "keywords", "content": ", ".join(article.keywords)}) if article.keywords else None,
            self.h("a", {"itemprop": "url", "href": article.url}, article.url) if article.url else None,
            description,
            self.encode_nodes(article.content),
            references,
        )

    def _identifiers(self, identifiers: list[Any] | None) -> Tag | None:
        if not identifiers:
            return None
        items = []
        for identifier in identifiers:
            if isinstance(identifier, PropertyValue):
                _lost(identifier, ("name", "property_id", "value"))
                items.append(
                    self.h(
                        "li",
                        {"itemprop": "identifier", "itemscope": "", "itemtype": ITEMTYPE_PREFIX + "PropertyValue"},
                        self.h("meta", {"itemprop": "propertyID", "content": identifier.property_id})
                        if identifier.property_id
                        else None,
                        self.h("span", {"itemprop": "name"}, identifier.name) if identifier.name else None,
                        self.h("span", {"itemprop": "value"}, to_text(identifier.value)),
                    )
                )
            else:
                items.append(self.h("li", {"itemprop": "identifier"}, to_text(identifier)))
        return self.h("ul", {"data-itemprop": "identifiers"}, items)

    def _reference(self, reference: Any) -> Tag:
        if isinstance(reference, CreativeWork):
            return self.encode_work(reference, "li", "citation")
        return self.h("li", {"itemprop": "citation"}, to_text(reference))

    def encode_work(self, work: CreativeWork, tag: str = "div", itemprop: str | None = None) -> Tag:
        """Bibliographic rendition used for references and non-article works."""
        _lost(
            work,
            (
                "id",
                "meta",
                "name",
                "title",
                "authors",
                "date_published",
                "is_part_of",
                "url",
                "publisher",
                "content",
                "page_start",
                "page_end",
                "pagination",
                "volume_number",
                "issue_number",
            ),
        )
        children: list[Any] = []
        if work.authors:
            children.extend(self.encode_authors(work.authors))
        if work.date_published:
            children.append(self.encode_date(work.date_published, "datePublished"))
        if work.title is not None:
            children.append(self.h("span", {"itemprop": "headline"}, self.encode_content(work.title)))
        if work.name:
            children.append(self.h("span", {"itemprop": "name"}, work.name))
        for field_name, prop in (("volume_number", "volumeNumber"), ("issue_number", "issueNumber")):
            value = getattr(work, field_name, None)
            if value is not None:
                children.append(self.h("span", {"itemprop": prop, "data-type": node_type(value)}, str(value)))
        if work.is_part_of is not None:
            children.append(self.encode_work(work.is_part_of, "span", "isPartOf"))
        for field_name, prop in (("pagination", "pagination"), ("page_start", "pageStart"), ("page_end", "pageEnd")):
            value = getattr(work, field_name, None)
            if value is not None:
                children.append(self.h("span", {"itemprop": prop, "data-type": node_type(value)}, str(value)))
        if work.url:
            children.append(self.h("a", {"itemprop": "url", "href": work.url}, work.url))
        if work.publisher is not None:
            children.append(self._publisher(work.publisher))
        if work.content:
            children.append(self.h("div", {"data-itemprop": "content"}, self.encode_nodes(work.content)))
        return self.h(tag, self.attrs(work, itemtype=True, itemprop=itemprop), children)


def encode_href(target: str) -> str:
    if target.startswith("#") or "://" in target or target.startswith("mailto:"):
        return target
    return f"#{target}"


def _cell_text(value: Node) -> str:
    return "" if value is None else to_text(value)


def _spaced(tags: list[Tag]) -> list[Any]:
    result: list[Any] = []
    for index, tag in enumerate(tags):
        if index:
            result.append(NavigableString(" "))
        result.append(tag)
    return result
