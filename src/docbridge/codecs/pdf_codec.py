"""PDF codec using PyMuPDF.

Decoding reconstructs headings and paragraphs from positioned text lines.
Encoding lays out the bundled standalone HTML rendition with ``fitz.Story``.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
import mimetypes
import re
import statistics
from dataclasses import dataclass
from operator import attrgetter

import fitz

from docbridge.codecs.base import Codec
from docbridge.codecs.html_codec import THEMES_DIR, HtmlCodec
from docbridge.errors import DecodeError
from docbridge.model import Article, Date, Heading, ImageObject, Node, Paragraph, person_from_text
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile, as_bytes, dump

logger = logging.getLogger(__name__)

_NUMBERED_HEADING_RE = re.compile(r"^(\d+(?:\.\d+)*)\.?\s+(.+)$")
_PDF_DATE_RE = re.compile(r"^D:(\d{4})(\d{2})?(\d{2})?")

PAGE_FORMAT = "a4"
PAGE_MARGIN = 72  # 2.54cm in points
MIN_IMAGE_SIDE = 120
MIN_IMAGE_AREA = 20_000
DEFAULT_BODY_SIZE = 10.0


class PdfCodec(Codec):
    name = "pdf"
    media_types = ("application/pdf",)
    ext_names = ("pdf",)
    is_binary = True

    def __init__(self, *, embed_images: bool = True) -> None:
        self.embed_images = embed_images

    async def decode(self, file: VirtualFile) -> Node:
        data = as_bytes(file)
        try:
            return await asyncio.to_thread(self._decode_bytes, data)
        except (RuntimeError, ValueError) as exc:
            raise DecodeError(self.name, str(exc)) from exc

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        options = (options or EncodeOptions()).with_defaults()
        html_options = EncodeOptions(format="html", is_standalone=True, is_bundle=True, theme=options.theme)
        html = dump(await HtmlCodec().encode(node, html_options))
        css = (THEMES_DIR / f"{html_options.resolved_theme}.css").read_text(encoding="utf-8")
        data = await asyncio.to_thread(_render_pdf, html, css)
        return VirtualFile(contents=data, path=options.file_path)

    # decoding

    def _decode_bytes(self, data: bytes) -> Article:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            metadata = doc.metadata or {}
            lines = [line for page in doc for line in _page_lines(page)]
            sizes = [line.size for line in lines if line.size > 0]
            body_size = statistics.median(sizes) if sizes else DEFAULT_BODY_SIZE

            title = (metadata.get("title") or "").strip() or _infer_title(lines, body_size)
            content = _build_blocks(lines, body_size, title)
            if self.embed_images:
                content.extend(_document_images(doc))
        finally:
            doc.close()

        authors = _split_authors((metadata.get("author") or "").strip())
        date = _normalize_date(metadata.get("creationDate") or metadata.get("modDate"))
        return Article(
            title=title or None,
            authors=[person_from_text(name) for name in authors] or None,
            date_published=Date(value=date) if date else None,
            description=_extract_abstract(lines, body_size) or None,
            content=content,
        )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_pdf(html: str, css: str) -> bytes:
    story = fitz.Story(html=html, user_css=css)
    buffer = io.BytesIO()
    writer = fitz.DocumentWriter(buffer)
    mediabox = fitz.paper_rect(PAGE_FORMAT)
    where = mediabox + (PAGE_MARGIN, PAGE_MARGIN, -PAGE_MARGIN, -PAGE_MARGIN)

    more = True
    while more:
        device = writer.begin_page(mediabox)
        more, _filled = story.place(where)
        story.draw(device)
        writer.end_page()
    writer.close()
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Text reconstruction
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _TextLine:
    text: str
    size: float
    page: int
    column: int
    x0: float
    y0: float
    x1: float
    y1: float
    page_height: float

    @property
    def order(self) -> tuple[int, int, float, float]:
        return self.page, self.column, self.y0, self.x0

    @property
    def region(self) -> tuple[int, int]:
        return self.page, self.column


def _document_images(doc: fitz.Document) -> list[Node]:
    images: list[Node] = []
    seen: set[int] = set()
    for page in doc:
        for xref, _smask, width, height, *_rest in page.get_images(full=True):
            if xref in seen or min(width, height) < MIN_IMAGE_SIDE or width * height < MIN_IMAGE_AREA:
                continue
            seen.add(xref)
            extracted = doc.extract_image(xref)
            if not extracted.get("image"):
                continue
            mime = mimetypes.guess_type(f"x.{extracted.get('ext') or 'png'}")[0] or "application/octet-stream"
            encoded = base64.b64encode(extracted["image"]).decode("ascii")
            images.append(
                ImageObject(
                    content_url=f"data:{mime};base64,{encoded}",
                    media_type=mime,
                    text=f"Figure (page {page.number + 1})",
                )
            )
    return images


def _page_lines(page: fitz.Page) -> list[_TextLine]:
    """Text lines of ``page`` in reading order, split into two columns."""
    width = float(page.rect.width)
    height = float(page.rect.height)

    lines: list[_TextLine] = []
    for block in page.get_text("dict").get("blocks", []):
        if block.get("type") != 0:
            continue
        for line in block.get("lines", []):
            spans = [span for span in line.get("spans", []) if (span.get("text") or "").strip()]
            if not spans:
                continue
            spans.sort(key=lambda span: float(span["bbox"][0]))
            x0, y0, x1, y1 = (float(value) for value in line.get("bbox") or block["bbox"])
            lines.append(
                _TextLine(
                    text=_normalize_space(" ".join(span["text"] for span in spans)),
                    size=max(float(span.get("size") or 0.0) for span in spans),
                    page=int(page.number),
                    column=int(x0 >= width * 0.53),
                    x0=x0,
                    y0=y0,
                    x1=x1,
                    y1=y1,
                    page_height=height,
                )
            )

    lines.sort(key=attrgetter("order"))
    return [line for line in _join_fragments(lines) if not _is_page_number(line)]


def _join_fragments(lines: list[_TextLine]) -> list[_TextLine]:
    """Join pieces that PyMuPDF reports separately although they share a baseline."""
    joined: list[_TextLine] = []
    for line in lines:
        last = joined[-1] if joined else None
        if last is None or not _same_row(last, line):
            joined.append(line)
            continue
        last.text = _normalize_space(f"{last.text} {line.text}")
        last.x1 = max(last.x1, line.x1)
        last.y1 = max(last.y1, line.y1)
        last.size = max(last.size, line.size)
    return joined


def _same_row(left: _TextLine, right: _TextLine) -> bool:
    return (
        left.region == right.region
        and abs(right.y0 - left.y0) <= 1.2
        and abs(right.size - left.size) <= 2.5
        and right.x0 - left.x1 <= 260
    )


def _is_page_number(line: _TextLine) -> bool:
    return line.text.isdigit() and len(line.text) <= 3 and line.y0 > line.page_height * 0.9


def _infer_title(lines: list[_TextLine], body_size: float) -> str | None:
    """Largest prominent line on the first page that reads like a title."""
    candidates = [
        line
        for line in lines
        if line.page == 0 and line.size >= body_size * 1.3 and _reads_like_title(line.text)
    ]
    if not candidates:
        return None
    return max(candidates, key=attrgetter("size")).text


def _reads_like_title(text: str) -> bool:
    if not 3 <= len(text) <= 150 or "@" in text or _NUMBERED_HEADING_RE.match(text):
        return False
    return sum(char.isalpha() for char in text) >= 0.45 * len(text)


def _extract_abstract(lines: list[_TextLine], body_size: float) -> str:
    marker = next((index for index, line in enumerate(lines) if line.text.lower() == "abstract"), None)
    if marker is None:
        return ""

    body: list[_TextLine] = []
    for line in lines[marker + 1 :]:
        if _parse_numbered_heading(line.text):
            break
        if line.size >= body_size * 0.9:
            body.append(line)

    paragraphs = _paragraphs(body, body_size)
    return paragraphs[0] if paragraphs else ""


def _build_blocks(lines: list[_TextLine], body_size: float, title: str | None) -> list[Node]:
    """Headings from numbered lines, paragraphs from the lines between them.

    Text ahead of the first heading (title, authors, abstract) is left to the
    metadata. Without any numbered heading every line except the title is body.
    """
    headings: dict[int, Heading] = {}
    for index, line in enumerate(lines):
        heading = _as_heading(line, body_size)
        if heading is not None:
            headings[index] = heading
    if not headings:
        return _paragraph_nodes([line for line in lines if line.text != title], body_size)

    blocks: list[Node] = []
    section: list[_TextLine] | None = None
    for index, line in enumerate(lines):
        if index in headings:
            if section is not None:
                blocks.extend(_paragraph_nodes(section, body_size))
            blocks.append(headings[index])
            section = []
        elif section is not None:
            section.append(line)
    blocks.extend(_paragraph_nodes(section or [], body_size))
    return blocks


def _as_heading(line: _TextLine, body_size: float) -> Heading | None:
    parsed = _parse_numbered_heading(line.text)
    if parsed is None:
        return None
    number, title = parsed
    if not _is_valid_heading_candidate(number, title, line.size, body_size):
        return None
    return Heading(depth=number.count(".") + 1, content=[title])


def _parse_numbered_heading(text: str) -> tuple[str, str] | None:
    match = _NUMBERED_HEADING_RE.match(text)
    if not match:
        return None
    return match.group(1), _normalize_space(match.group(2))


def _is_valid_heading_candidate(number: str, title: str, font_size: float, body_font: float) -> bool:
    """Numbered headings are short, capitalised and at least body sized."""
    if not title or len(title) > 120 or title.endswith(".") or "@" in title:
        return False

    # Rows of a numeric table also start with a number.
    letters = [char for char in title if char.isalpha()]
    digits = sum(char.isdigit() for char in title)
    if len(letters) < 3 or len(letters) < 0.22 * len(title) or letters[0].islower():
        return False
    if digits > max(3, int(len(letters) * 1.2)):
        return False

    parts = number.split(".")
    if len(parts) > 4 or not all(part.isdigit() and 0 < int(part) <= 20 for part in parts):
        return False
    return font_size >= body_font * (1.08 if len(parts) == 1 else 0.95)


def _paragraph_nodes(lines: list[_TextLine], body_size: float) -> list[Node]:
    return [Paragraph(content=[text]) for text in _paragraphs(lines, body_size)]


def _paragraphs(lines: list[_TextLine], body_size: float) -> list[str]:
    """Group lines into paragraphs on vertical gaps, column and page changes."""
    gap_limit = max(body_size * 0.95, 11.5)
    paragraphs: list[str] = []
    previous: _TextLine | None = None
    for line in sorted(lines, key=attrgetter("order")):
        if previous is None or line.region != previous.region or line.y0 - previous.y1 > gap_limit:
            paragraphs.append(line.text)
        elif paragraphs[-1].endswith("-") and line.text[:1].islower():
            paragraphs[-1] = paragraphs[-1][:-1] + line.text
        else:
            paragraphs[-1] = f"{paragraphs[-1]} {line.text}"
        previous = line
    return [text for text in map(_normalize_space, paragraphs) if text]


def _normalize_space(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _split_authors(raw: str) -> list[str]:
    return [part.strip() for part in re.split(r";|,| and ", raw) if part.strip()]


def _normalize_date(raw: str | None) -> str | None:
    """PDF ``D:YYYYMMDDHHmmSS`` dates as ISO dates; other values unchanged."""
    if not raw:
        return None
    clean = raw.strip()
    match = _PDF_DATE_RE.match(clean)
    if match is None:
        return clean
    year, month, day = match.group(1), match.group(2) or "01", match.group(3) or "01"
    return f"{year}-{month}-{day}"
