"""HTML codec."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from docbridge.codecs.base import Codec, EncodeContext, Typesetter, read_head, text_of
from docbridge.codecs.html_decode import HtmlDecoder
from docbridge.codecs.html_encode import HtmlEncoder, default_typesetter
from docbridge.model import Article, Node, to_text
from docbridge.options import DEFAULT_THEME, THEMES, EncodeOptions
from docbridge.transforms import bundle
from docbridge.vfile import VirtualFile

logger = logging.getLogger(__name__)

_HTML_START_RE = re.compile(r"^\s*(<!doctype\s+html|<html[\s>])", re.IGNORECASE)

PACKAGE_DIR = Path(__file__).resolve().parent.parent
TEMPLATE_PATH = PACKAGE_DIR / "template" / "standalone.html"
THEMES_DIR = PACKAGE_DIR / "themes"
MATHJAX_SRC = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-chtml.js"


class HtmlCodec(Codec):
    name = "html"
    media_types = ("text/html",)
    ext_names = ("html", "htm")

    def __init__(self, typesetter: Typesetter | None = None, template_path: Path | None = None) -> None:
        self.typesetter = typesetter or default_typesetter
        template_path = template_path or TEMPLATE_PATH
        loader = FileSystemLoader(str(template_path.parent))
        self._env = Environment(loader=loader, autoescape=True, trim_blocks=True, lstrip_blocks=True)
        self._template_name = template_path.name

    async def sniff(self, content: str) -> bool:
        return _HTML_START_RE.match(await read_head(content)) is not None

    async def decode(self, file: VirtualFile) -> Node:
        return HtmlDecoder().decode_html(text_of(file))

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        options = (options or EncodeOptions()).with_defaults()
        if options.is_bundle:
            node = await bundle(node)

        context = EncodeContext(options=options)
        encoder = HtmlEncoder(context, self.typesetter)
        nodes = node if isinstance(node, list) else [node]
        elements = [encoder.encode_node(item) for item in nodes]
        await context.settle()

        body = "".join(str(element) for element in elements if element is not None)
        if options.is_standalone:
            body = self.render_page(node, body, options, has_math=encoder.has_math)
        return VirtualFile(contents=body)

    def render_page(self, node: Node, body: str, options: EncodeOptions, *, has_math: bool = False) -> str:
        title = "Untitled"
        if isinstance(node, Article) and node.title:
            title = to_text(node.title)

        if options.theme and options.theme not in THEMES:
            logger.warning("Unknown theme '%s', using '%s'", options.theme, DEFAULT_THEME)
        theme_path = THEMES_DIR / f"{options.resolved_theme}.css"
        theme_css = None
        theme_href = None
        if options.is_bundle:
            theme_css = theme_path.read_text(encoding="utf-8")
        else:
            theme_href = theme_path.as_uri()

        template = self._env.get_template(self._template_name)
        return template.render(
            lang="en",
            title=title,
            theme_css=theme_css,
            theme_href=theme_href,
            has_math=has_math,
            mathjax_src=MATHJAX_SRC,
            body=body,
        )
