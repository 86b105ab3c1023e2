"""LaTeX codec with a heuristic source parser."""

from __future__ import annotations

import logging
import re
from typing import Any

from docbridge.codecs.base import Codec, flatten, merge_strings, text_of
from docbridge.log import log_loss_if_any
from docbridge.model import (
    Article,
    Cite,
    CiteGroup,
    CodeBlock,
    CodeChunk,
    CodeFragment,
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
    node_type,
    person_display_name,
    person_from_text,
    to_text,
    unrepresented,
)
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile

logger = logging.getLogger(__name__)

FORMAT = "latex"

_SECTION_LEVELS = {
    "section": 1,
    "subsection": 2,
    "subsubsection": 3,
}
SECTION_COMMANDS = {level: name for name, level in _SECTION_LEVELS.items()}
MAX_DEPTH = 3

_MATH_ENVS = ("equation", "equation*", "align", "align*", "gather", "gather*", "multline", "multline*", "displaymath")
_LIST_ENVS = ("itemize", "enumerate")
_CODE_ENVS = ("verbatim", "lstlisting")
_QUOTE_ENVS = ("quote", "quotation")
_BLOCK_ENVS = ("figure", "figure*", "table", "table*", *_MATH_ENVS, *_LIST_ENVS, *_CODE_ENVS, *_QUOTE_ENVS)

_CHECKED = r"$\boxtimes$"
_UNCHECKED = r"$\square$"
_RULE = r"\hrulefill"

_INLINE_MARKS = {
    "emph": Emphasis,
    "textit": Emphasis,
    "textsl": Emphasis,
    "textbf": Strong,
    "sout": Delete,
    "st": Delete,
    "textsuperscript": Superscript,
    "textsubscript": Subscript,
}
_SYMBOLS = {
    "textbackslash": "\\",
    "textasciitilde": "~",
    "textasciicircum": "^",
    "LaTeX": "LaTeX",
    "TeX": "TeX",
    "ldots": "…",
    "dots": "…",
    "S": "§",
}
_DROPPED = {"label", "index", "maketitle", "tableofcontents", "newpage", "clearpage", "noindent", "centering", "thanks"}
_ARITY = {"href": 2}
_CITE_COMMANDS = {"cite", "citep", "citet", "parencite", "textcite", "autocite"}
_ESCAPABLE = "&%$#_{}"
_ESCAPES = {
    "\\": r"\textbackslash{}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
    **{char: "\\" + char for char in _ESCAPABLE},
}
_ESCAPE_RE = re.compile(r"[\\~^&%$#_{}]")
_COMMAND_RE = re.compile(r"\\([a-zA-Z]+)\*?")
_SECTION_RE = re.compile(r"\\(section|subsection|subsubsection)\*?\{")
_ENV_TOKEN_RE = re.compile(r"\\(begin|end)\{([^{}]+)\}")

PREAMBLE = r"""\documentclass{article}
\usepackage[utf8]{inputenc}
\usepackage{amsmath}
\usepackage{amssymb}
\usepackage{graphicx}
\usepackage{hyperref}
\usepackage[normalem]{ulem}
\usepackage{listings}
"""


class LatexCodec(Codec):
    name = "latex"
    media_types = ("application/x-latex", "text/x-tex")
    ext_names = ("tex", "latex")

    async def decode(self, file: VirtualFile) -> Node:
        return _LatexDecoder().decode_document(text_of(file))

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        options = (options or EncodeOptions()).with_defaults()
        encoder = _LatexEncoder()
        if isinstance(node, Article) or options.is_standalone:
            text = encoder.document(node)
        else:
            text = encoder.blocks(node if isinstance(node, list) else [node])
        return VirtualFile(contents=text.rstrip("\n") + "\n")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class _LatexDecoder:
    def decode_document(self, raw: str) -> Article:
        text = _strip_comments(raw)

        title_raw = _extract_command_value(text, "title")
        title = to_text(self.inlines(title_raw)) if title_raw else None
        authors = self._split_authors(_extract_command_value(text, "author") or "")
        date = to_text(self.inlines(_extract_command_value(text, "date") or "")).strip()
        abstract = _extract_environment_body(text, "abstract")
        keywords_raw = _extract_command_value(text, "keywords")

        body = _extract_document_body(text)
        body = re.sub(r"\\begin\{abstract\}.*?\\end\{abstract\}", "", body, flags=re.DOTALL)
        description = to_text(self.inlines(abstract)).strip() if abstract else ""

        return Article(
            title=title or None,
            authors=authors or None,
            date_published=Date(value=date) if date else None,
            description=description or None,
            keywords=[word.strip() for word in keywords_raw.split(",") if word.strip()] if keywords_raw else None,
            content=self.sections(body),
        )

    def _split_authors(self, raw: str) -> list[Person]:
        authors = []
        for part in re.split(r"\\and\b", raw):
            name = re.split(r"\\\\", part)[0]
            name = to_text(self.inlines(name)).strip()
            if name:
                authors.append(person_from_text(name))
        return authors

    def sections(self, body: str) -> list[Node]:
        spans = []
        for match in _SECTION_RE.finditer(body):
            title, title_end = _read_balanced_braces(body, match.end() - 1)
            spans.append((match.start(), title_end, _SECTION_LEVELS[match.group(1)], title))

        if not spans:
            return self.blocks(body)

        content = self.blocks(body[: spans[0][0]])
        for idx, (_start, content_start, level, title) in enumerate(spans):
            content_end = spans[idx + 1][0] if idx + 1 < len(spans) else len(body)
            content.append(Heading(depth=level, content=self.inlines(title)))
            content.extend(self.blocks(body[content_start:content_end]))
        return content

    def blocks(self, text: str) -> list[Node]:
        blocks: list[Node] = []

        i = 0
        while i < len(text):
            hits: list[tuple[int, str]] = []

            for env in _BLOCK_ENVS:
                pos = text.find(f"\\begin{{{env}}}", i)
                if pos != -1:
                    hits.append((pos, env))

            for token, label in (("\\[", "math_bracket"), ("$$", "math_dollar")):
                pos = text.find(token, i)
                if pos != -1:
                    hits.append((pos, label))

            if not hits:
                blocks.extend(self.paragraphs(text[i:]))
                break

            next_pos, kind = min(hits, key=lambda item: item[0])
            if next_pos > i:
                blocks.extend(self.paragraphs(text[i:next_pos]))

            if kind in ("math_bracket", "math_dollar"):
                opener, closer = ("\\[", "\\]") if kind == "math_bracket" else ("$$", "$$")
                end = text.find(closer, next_pos + len(opener))
                if end == -1:
                    blocks.extend(self.paragraphs(text[next_pos:]))
                    break
                blocks.append(self.math_block(text[next_pos + len(opener) : end]))
                i = end + len(closer)
                continue

            option, env_text, end = _extract_environment(text, kind, next_pos)
            blocks.extend(self.environment(kind, option, env_text))
            i = end

        return blocks

    def environment(self, kind: str, option: str | None, env_text: str) -> list[Node]:
        base = kind.rstrip("*")
        if base == "figure":
            return [self.figure(env_text)]
        if base == "table":
            return [self.table(env_text)]
        if kind in _MATH_ENVS:
            return [self.math_block(env_text)]
        if kind in _LIST_ENVS:
            return [self.list(kind, env_text)]
        if kind in _CODE_ENVS:
            return [self.code_block(option, env_text)]
        if kind in _QUOTE_ENVS:
            return [QuoteBlock(content=self.blocks(env_text))]
        return self.paragraphs(env_text)

    def paragraphs(self, text: str) -> list[Node]:
        paragraphs: list[Node] = []
        for part in re.split(r"\n\s*\n", text.replace("\r", "")):
            sentence = _normalize_whitespace(part)
            if not sentence:
                continue
            if sentence == _RULE:
                paragraphs.append(ThematicBreak())
                continue
            content = self.inlines(sentence)
            if content:
                paragraphs.append(Paragraph(content=content))
        return paragraphs

    def math_block(self, text: str) -> MathBlock:
        label = _extract_command_value(text, "label")
        latex = re.sub(r"\\label\{[^{}]*\}", "", text).strip()
        return MathBlock(text=latex, label=label)

    def code_block(self, option: str | None, text: str) -> CodeBlock:
        language = None
        if option:
            match = re.search(r"language\s*=\s*([\w+#-]+)", option)
            language = match.group(1) if match else None
        return CodeBlock(text=text.strip("\n"), programming_language=language)

    def list(self, kind: str, text: str) -> List:
        items = []
        for label, body in _split_items(text):
            is_checked = None
            if label == _CHECKED:
                is_checked = True
            elif label == _UNCHECKED:
                is_checked = False
            items.append(ListItem(content=self.blocks(body), is_checked=is_checked))
        return List(order="ascending" if kind == "enumerate" else "unordered", items=items)

    def figure(self, env_text: str) -> Figure:
        caption = _extract_command_value(env_text, "caption")
        content: list[Node] = []
        for match in re.finditer(r"\\includegraphics(?:\[[^\]]*\])?\{([^{}]+)\}", env_text):
            content.append(ImageObject(content_url=match.group(1).strip()))
        return Figure(
            label=_extract_command_value(env_text, "label"),
            caption=[Paragraph(content=self.inlines(caption))] if caption else None,
            content=content or None,
        )

    def table(self, env_text: str) -> Table:
        caption = _extract_command_value(env_text, "caption")
        tabular = _extract_environment_body(env_text, "tabular") or ""
        tabular = re.sub(r"^\s*\{[^{}]*\}\s*", "", tabular, count=1)
        pieces = [piece.strip() for piece in re.split(r"\\\\", tabular)]
        if pieces:
            pieces[0] = re.sub(r"^(\\hline\s*)+", "", pieces[0])

        rows: list[TableRow] = []
        for index, piece in enumerate(pieces):
            piece = re.sub(r"\\hline", "", piece).strip()
            if not piece:
                continue
            cells = [TableCell(content=self.inlines(cell.strip())) for cell in re.split(r"(?<!\\)&", piece)]
            row_type = None
            if index == 0 and len(pieces) > 1 and pieces[1].startswith("\\hline"):
                row_type = "header"
            rows.append(TableRow(cells=cells, row_type=row_type))

        return Table(
            rows=rows,
            label=_extract_command_value(env_text, "label"),
            caption=[Paragraph(content=self.inlines(caption))] if caption else None,
        )

    # inline

    def inlines(self, text: str | None) -> list[Node]:
        if not text:
            return []
        nodes = merge_strings(flatten(self._inline_parts(_normalize_whitespace(text))))
        cleaned: list[Node] = []
        for node in nodes:
            if isinstance(node, str):
                node = re.sub(r"\s+", " ", node)
            cleaned.append(node)
        if cleaned and isinstance(cleaned[0], str):
            cleaned[0] = cleaned[0].lstrip()
        if cleaned and isinstance(cleaned[-1], str):
            cleaned[-1] = cleaned[-1].rstrip()
        return [node for node in cleaned if node != ""]

    def _inline_parts(self, text: str) -> list[Node]:
        nodes: list[Node] = []
        i = 0
        while i < len(text):
            ch = text[i]
            if ch == "\\":
                nxt = text[i + 1] if i + 1 < len(text) else ""
                if nxt in _ESCAPABLE and nxt:
                    nodes.append(nxt)
                    i += 2
                    continue
                if nxt == "\\":
                    nodes.append(" ")
                    i += 2
                    continue
                if nxt == "(":
                    end = text.find("\\)", i + 2)
                    if end != -1:
                        nodes.append(MathFragment(text=text[i + 2 : end].strip()))
                        i = end + 2
                        continue
                match = _COMMAND_RE.match(text, i)
                if match is None:
                    nodes.append(nxt)
                    i += 2
                    continue
                parsed, i = self._command(text, match)
                nodes.extend(parsed)
                continue
            if ch == "$":
                end = _find_unescaped(text, "$", i + 1)
                if end != -1:
                    nodes.append(MathFragment(text=text[i + 1 : end].strip()))
                    i = end + 1
                    continue
            if ch == "~":
                nodes.append(" ")
            elif ch not in "{}":
                nodes.append(ch)
            i += 1
        return nodes

    def _command(self, text: str, match: re.Match[str]) -> tuple[list[Node], int]:
        name = match.group(1)
        pos = match.end()
        option = None
        if pos < len(text) and text[pos] == "[":
            close = text.find("]", pos)
            if close != -1:
                option = text[pos + 1 : close]
                pos = close + 1
        args: list[str] = []
        while pos < len(text) and text[pos] == "{" and len(args) < _ARITY.get(name, 1):
            value, pos = _read_balanced_braces(text, pos)
            args.append(value)
        return self._expand(name, option, args), pos

    def _expand(self, name: str, option: str | None, args: list[str]) -> list[Node]:
        if name in _SYMBOLS:
            return [_SYMBOLS[name]]
        if name in _DROPPED:
            return []
        if name in _INLINE_MARKS:
            return [_INLINE_MARKS[name](content=self.inlines(args[0] if args else ""))]
        if name in ("texttt", "verb"):
            return [CodeFragment(text=to_text(self._inline_parts(args[0])) if args else "")]
        if name == "href" and len(args) == 2 and args[0].strip():
            return [Link(target=args[0].strip(), content=self.inlines(args[1]))]
        if name == "url" and args and args[0].strip():
            return [Link(target=args[0].strip(), content=[args[0].strip()])]
        if name == "ref" and args:
            return [Link(target="#" + args[0].strip(), content=[args[0].strip()])]
        if name in _CITE_COMMANDS and args:
            keys = [key.strip() for key in args[0].split(",") if key.strip()]
            cites = [Cite(target=key) for key in keys]
            if option and cites:
                cites[-1] = Cite(target=keys[-1], suffix=option)
            if len(cites) == 1:
                return cites
            return [CiteGroup(items=cites)] if cites else []
        if name == "footnote":
            logger.warning("Dropping LaTeX footnote: %s", args[0] if args else "")
            return []
        if name == "includegraphics" and args:
            return [ImageObject(content_url=args[0].strip())]
        if args:
            return self._inline_parts(args[0])
        return []


def _find_unescaped(text: str, char: str, start: int) -> int:
    pos = text.find(char, start)
    while pos != -1 and text[pos - 1] == "\\":
        pos = text.find(char, pos + 1)
    return pos


def _split_items(text: str) -> list[tuple[str | None, str]]:
    """Top level ``\\item`` entries of a list environment body."""
    items: list[tuple[str | None, str]] = []
    depth = 0
    starts: list[tuple[int, int, str | None]] = []
    for match in re.finditer(r"\\(begin|end)\{[^{}]+\}|\\item\b(\s*\[([^\]]*)\])?", text):
        token = match.group(1)
        if token == "begin":
            depth += 1
        elif token == "end":
            depth -= 1
        elif depth == 0:
            starts.append((match.start(), match.end(), match.group(3)))
    for idx, (_start, body_start, label) in enumerate(starts):
        body_end = starts[idx + 1][0] if idx + 1 < len(starts) else len(text)
        items.append((label.strip() if label else None, text[body_start:body_end]))
    return items


def _strip_comments(text: str) -> str:
    lines = []
    for line in text.splitlines():
        stripped = re.sub(r"(?<!\\)%.*$", "", line)
        lines.append(stripped)
    return "\n".join(lines)


def _extract_document_body(text: str) -> str:
    doc_match = re.search(r"\\begin\{document\}(.*?)\\end\{document\}", text, flags=re.DOTALL)
    return doc_match.group(1) if doc_match else text


def _extract_command_value(text: str, command: str) -> str | None:
    match = re.search(rf"\\{command}\*?\{{", text)
    if not match:
        return None
    value, _end = _read_balanced_braces(text, match.end() - 1)
    return value


def _extract_environment(text: str, env: str, start: int) -> tuple[str | None, str, int]:
    """Body of the ``env`` environment beginning at ``start``, honouring nesting.

    Returns the optional ``[...]`` argument, the body and the end offset.
    """
    begin = f"\\begin{{{env}}}"
    begin_idx = text.find(begin, start)
    if begin_idx == -1:
        return None, "", start
    content_start = begin_idx + len(begin)
    option = None
    if text.startswith("[", content_start):
        close = text.find("]", content_start)
        if close != -1:
            option = text[content_start + 1 : close]
            content_start = close + 1

    depth = 1
    for match in _ENV_TOKEN_RE.finditer(text, content_start):
        if match.group(2) != env:
            continue
        depth += 1 if match.group(1) == "begin" else -1
        if depth == 0:
            return option, text[content_start : match.start()], match.end()
    return option, text[content_start:], len(text)


def _extract_environment_body(text: str, env: str) -> str | None:
    match = re.search(rf"\\begin\{{{re.escape(env)}\}}(.*?)\\end\{{{re.escape(env)}\}}", text, flags=re.DOTALL)
    return match.group(1) if match else None


def _read_balanced_braces(text: str, brace_start: int) -> tuple[str, int]:
    if brace_start >= len(text) or text[brace_start] != "{":
        return "", brace_start
    depth = 0
    chars = []
    i = brace_start
    while i < len(text):
        ch = text[i]
        if ch == "{" and (i == 0 or text[i - 1] != "\\"):
            depth += 1
            if depth > 1:
                chars.append(ch)
        elif ch == "}" and (i == 0 or text[i - 1] != "\\"):
            depth -= 1
            if depth == 0:
                return "".join(chars), i + 1
            chars.append(ch)
        else:
            if depth >= 1:
                chars.append(ch)
        i += 1
    return "".join(chars), i


def _normalize_whitespace(text: str) -> str:
    text = text.replace("\n", " ")
    return re.sub(r"\s+", " ", text).strip()


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def escape(text: str) -> str:
    return _ESCAPE_RE.sub(lambda match: _ESCAPES[match.group(0)], text)


def _lost(node: Node, handled: tuple[str, ...]) -> None:
    log_loss_if_any(FORMAT, "encode", node, unrepresented(node, handled))


class _LatexEncoder:
    BLOCK_ENCODERS = {
        "Heading": "heading",
        "Paragraph": "paragraph",
        "QuoteBlock": "quote_block",
        "CodeBlock": "code_block",
        "CodeChunk": "code_block",
        "List": "list",
        "Table": "table",
        "Datatable": "datatable",
        "Figure": "figure",
        "ThematicBreak": "thematic_break",
        "MathBlock": "math_block",
    }

    INLINE_COMMANDS = {
        "Emphasis": "emph",
        "Strong": "textbf",
        "Delete": "sout",
        "Superscript": "textsuperscript",
        "Subscript": "textsubscript",
    }

    def document(self, node: Node) -> str:
        article = node if isinstance(node, Article) else Article(content=node if isinstance(node, list) else [node])
        _lost(article, ("title", "authors", "date_published", "description", "content"))
        parts = [PREAMBLE]
        if article.title:
            parts.append(f"\\title{{{self.inlines(article.title) if isinstance(article.title, list) else escape(article.title)}}}")
        if article.authors:
            names = []
            for author in article.authors:
                handled = ("name", "given_names", "family_names") if isinstance(author, Person) else ("name",)
                _lost(author, handled)
                names.append(escape(person_display_name(author) if isinstance(author, Person) else to_text(author)))
            parts.append("\\author{" + " \\and ".join(names) + "}")
        if article.date_published is not None:
            parts.append(f"\\date{{{escape(to_text(article.date_published))}}}")
        parts.append("")
        parts.append("\\begin{document}")
        if article.title:
            parts.append("\\maketitle")
        if article.description:
            abstract = (
                escape(article.description)
                if isinstance(article.description, str)
                else self.blocks(article.description)
            )
            parts.append(f"\\begin{{abstract}}\n{abstract}\n\\end{{abstract}}")
        parts.append("")
        body = self.blocks(article.content or [])
        if body:
            parts.append(body)
        parts.append("\\end{document}")
        return "\n".join(parts)

    def blocks(self, nodes: list[Node]) -> str:
        return "\n\n".join(part for part in (self.block(node) for node in nodes) if part)

    def block(self, node: Node) -> str:
        name = self.BLOCK_ENCODERS.get(node_type(node))
        if name is not None:
            return getattr(self, name)(node)
        if isinstance(node, ImageObject):
            return self.image(node)
        if isinstance(node, Article):
            _lost(node, ("content",))
            return self.blocks(node.content or [])
        if isinstance(node, (str, int, float, bool)) or node is None:
            return self.inline(node)
        log_loss_if_any(FORMAT, "encode", node, {"type": node_type(node)})
        return escape(to_text(node))

    def inlines(self, nodes: list[Node] | None) -> str:
        return "".join(self.inline(node) for node in nodes or [])

    def inline(self, node: Node) -> str:
        if isinstance(node, str):
            return escape(node)
        if node is None or isinstance(node, (bool, int, float)):
            return escape(to_text(node))
        kind = node_type(node)
        if kind in self.INLINE_COMMANDS:
            _lost(node, ("content",))
            return f"\\{self.INLINE_COMMANDS[kind]}{{{self.inlines(node.content)}}}"
        if isinstance(node, Link):
            _lost(node, ("target", "content"))
            return f"\\href{{{node.target}}}{{{self.inlines(node.content)}}}"
        if isinstance(node, CodeFragment):
            _lost(node, ("text",))
            return f"\\texttt{{{escape(node.text)}}}"
        if isinstance(node, MathFragment):
            _lost(node, ("text", "math_language"))
            return f"${node.text}$"
        if isinstance(node, Cite):
            _lost(node, ("target", "suffix"))
            suffix = f"[{node.suffix}]" if node.suffix else ""
            return f"\\cite{suffix}{{{node.target}}}"
        if isinstance(node, CiteGroup):
            _lost(node, ("items",))
            return "\\cite{" + ",".join(item.target for item in node.items) + "}"
        if isinstance(node, ImageObject):
            return self.image(node)
        if kind == "Quote":
            _lost(node, ("content",))
            return f"``{self.inlines(node.content)}''"
        log_loss_if_any(FORMAT, "encode", node, {"type": kind})
        return escape(to_text(node))

    # blocks

    def heading(self, heading: Heading) -> str:
        _lost(heading, ("depth", "content"))
        depth = heading.depth
        if depth > MAX_DEPTH:
            log_loss_if_any(FORMAT, "encode", heading, ["depth"])
            depth = MAX_DEPTH
        return f"\\{SECTION_COMMANDS[depth]}{{{self.inlines(heading.content)}}}"

    def paragraph(self, paragraph: Paragraph) -> str:
        _lost(paragraph, ("content",))
        return self.inlines(paragraph.content)

    def quote_block(self, quote: QuoteBlock) -> str:
        _lost(quote, ("content",))
        return f"\\begin{{quote}}\n{self.blocks(quote.content)}\n\\end{{quote}}"

    def code_block(self, code: CodeBlock | CodeChunk) -> str:
        _lost(code, ("text", "programming_language"))
        if code.programming_language:
            return (
                f"\\begin{{lstlisting}}[language={code.programming_language}]\n"
                f"{code.text}\n\\end{{lstlisting}}"
            )
        return f"\\begin{{verbatim}}\n{code.text}\n\\end{{verbatim}}"

    def list(self, node: List) -> str:
        _lost(node, ("items", "order"))
        env = "itemize" if node.order == "unordered" else "enumerate"
        lines = [f"\\begin{{{env}}}"]
        for index, item in enumerate(node.items):
            if not isinstance(item, ListItem):
                item = ListItem(content=[item])
            handled: tuple[str, ...] = ("content", "is_checked")
            if item.position in (None, index + 1):
                handled += ("position",)
            _lost(item, handled)
            label = ""
            if item.is_checked is not None:
                label = f"[{_CHECKED if item.is_checked else _UNCHECKED}]"
            lines.append(f"\\item{label} {self.blocks(item.content)}")
        lines.append(f"\\end{{{env}}}")
        return "\n".join(lines)

    def table(self, table: Table) -> str:
        _lost(table, ("rows", "label", "caption"))
        width = max((len(row.cells) for row in table.rows), default=1)
        lines = ["\\begin{table}", "\\centering"]
        if table.caption:
            lines.append(f"\\caption{{{self._caption(table.caption)}}}")
        if table.label:
            lines.append(f"\\label{{{table.label}}}")
        lines.append("\\begin{tabular}{" + " ".join("l" for _ in range(width)) + "}")
        lines.append("\\hline")
        for row in table.rows:
            _lost(row, ("cells", "row_type"))
            cells = []
            for cell in row.cells:
                if isinstance(cell, TableCell):
                    _lost(cell, ("content", "cell_type"))
                    cells.append(self.inlines(cell.content))
                else:
                    cells.append(self.inline(cell))
            lines.append(" & ".join(cells) + " \\\\")
            if row.row_type == "header":
                lines.append("\\hline")
        lines.append("\\hline")
        lines.append("\\end{tabular}")
        lines.append("\\end{table}")
        return "\n".join(lines)

    def datatable(self, datatable: Any) -> str:
        _lost(datatable, ("columns",))
        header = TableRow(cells=[TableCell(content=[column.name]) for column in datatable.columns], row_type="header")
        height = max((len(column.values) for column in datatable.columns), default=0)
        rows = [header]
        for index in range(height):
            cells = []
            for column in datatable.columns:
                value = column.values[index] if index < len(column.values) else None
                cells.append(TableCell(content=[to_text(value)] if value is not None else []))
            rows.append(TableRow(cells=cells))
        return self.table(Table(rows=rows))

    def figure(self, figure: Figure) -> str:
        _lost(figure, ("content", "label", "caption"))
        lines = ["\\begin{figure}", "\\centering"]
        body = self.blocks(figure.content or [])
        if body:
            lines.append(body)
        if figure.caption:
            lines.append(f"\\caption{{{self._caption(figure.caption)}}}")
        if figure.label:
            lines.append(f"\\label{{{figure.label}}}")
        lines.append("\\end{figure}")
        return "\n".join(lines)

    def _caption(self, caption: list[Node]) -> str:
        parts = []
        for node in caption:
            parts.append(self.inlines(node.content) if isinstance(node, Paragraph) else self.inline(node))
        return " ".join(parts)

    def image(self, image: ImageObject) -> str:
        _lost(image, ("content_url",))
        return f"\\includegraphics[width=\\linewidth]{{{image.content_url}}}"

    def thematic_break(self, node: ThematicBreak) -> str:
        return _RULE

    def math_block(self, math: MathBlock) -> str:
        _lost(math, ("text", "math_language", "label"))
        label = f"\\label{{{math.label}}}\n" if math.label else ""
        return f"\\begin{{equation}}\n{label}{math.text}\n\\end{{equation}}"
