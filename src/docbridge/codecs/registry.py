"""Ordered codec registry and format dispatch."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Callable
from pathlib import PurePath

from docbridge.codecs.base import Codec
from docbridge.errors import CodecNotFoundError
from docbridge.vfile import is_path

logger = logging.getLogger(__name__)

CodecFactory = Callable[[], Codec]


def _csv() -> Codec:
    from docbridge.codecs.csv_codec import CsvCodec

    return CsvCodec()


def _xlsx() -> Codec:
    from docbridge.codecs.xlsx_codec import XlsxCodec

    return XlsxCodec()


def _html() -> Codec:
    from docbridge.codecs.html_codec import HtmlCodec

    return HtmlCodec()


def _ipynb() -> Codec:
    from docbridge.codecs.ipynb_codec import IpynbCodec

    return IpynbCodec()


def _latex() -> Codec:
    from docbridge.codecs.latex_codec import LatexCodec

    return LatexCodec()


def _md() -> Codec:
    from docbridge.codecs.md_codec import MarkdownCodec

    return MarkdownCodec()


def _pdf() -> Codec:
    from docbridge.codecs.pdf_codec import PdfCodec

    return PdfCodec()


def _txt() -> Codec:
    from docbridge.codecs.txt_codec import TxtCodec

    return TxtCodec()


def _yaml() -> Codec:
    from docbridge.codecs.yaml_codec import YamlCodec

    return YamlCodec()


def _json() -> Codec:
    from docbridge.codecs.json_codec import JsonCodec

    return JsonCodec()


# Order breaks ties: tabular formats, then documents, then data interchange.
DEFAULT_FACTORIES: dict[str, CodecFactory] = {
    "csv": _csv,
    "xlsx": _xlsx,
    "html": _html,
    "ipynb": _ipynb,
    "latex": _latex,
    "md": _md,
    "pdf": _pdf,
    "txt": _txt,
    "yaml": _yaml,
    "json": _json,
}

FALLBACK_CODEC = "txt"


def _build_mime_types() -> mimetypes.MimeTypes:
    types = mimetypes.MimeTypes()
    for media_type, ext in (
        ("text/markdown", ".md"),
        ("text/markdown", ".markdown"),
        ("application/x-ipynb+json", ".ipynb"),
        ("text/yaml", ".yaml"),
        ("text/yaml", ".yml"),
        ("application/x-latex", ".latex"),
        ("text/tab-separated-values", ".tsv"),
        ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", ".xlsx"),
    ):
        types.add_type(media_type, ext)
    return types


_MIME_TYPES = _build_mime_types()


def guess_media_type(name: str) -> str | None:
    media_type, _ = _MIME_TYPES.guess_type(name, strict=False)
    return media_type


class CodecRegistry:
    """Codecs keyed by name, constructed on first use."""

    def __init__(self, factories: dict[str, CodecFactory] | None = None) -> None:
        self._factories = dict(DEFAULT_FACTORIES if factories is None else factories)
        self._instances: dict[str, Codec] = {}

    @property
    def names(self) -> list[str]:
        return list(self._factories)

    def register(self, name: str, factory: CodecFactory) -> None:
        self._factories[name] = factory
        self._instances.pop(name, None)

    def load(self, name: str) -> Codec | None:
        """Codec called ``name``, or ``None`` when it is absent or fails to load."""
        codec = self._instances.get(name)
        if codec is not None:
            return codec
        factory = self._factories.get(name)
        if factory is None:
            return None
        try:
            codec = factory()
        except ImportError:
            return None
        except Exception as exc:
            logger.warning("Unable to load codec '%s': %s", name, exc)
            return None
        self._instances[name] = codec
        return codec

    def get(self, name: str) -> Codec:
        codec = self.load(name)
        if codec is None:
            raise CodecNotFoundError(name)
        return codec

    async def match(
        self,
        content: str | None = None,
        format: str | None = None,
        is_output: bool = False,
    ) -> Codec:
        """Codec for ``content`` and/or ``format``, falling back to plain text."""
        codec = await self.resolve(content, format, is_output)
        if codec is not None:
            return codec
        logger.warning(
            "No codec could be found for content '%s' for format '%s'. Falling back to plain text codec.",
            _truncate(content),
            format,
        )
        return self.get(FALLBACK_CODEC)

    async def resolve(
        self,
        content: str | None = None,
        format: str | None = None,
        is_output: bool = False,
    ) -> Codec | None:
        """Codec for ``content`` and/or ``format``, or ``None`` when nothing matches.

        A codec named after the extension wins outright. Otherwise codecs are
        tried in registry order against the file name, extension, media type
        and finally the content itself.
        """
        file_name: str | None = None
        ext_name: str | None = None
        media_type: str | None = None

        if content and (is_output or is_path(content)):
            path = PurePath(content)
            file_name = path.name
            ext_name = path.suffix[1:].lower() or None
            media_type = guess_media_type(path.name)

        if format:
            if "/" in format:
                media_type = format
            else:
                ext_name = format.lower()
                media_type = guess_media_type(f"file.{ext_name}")

        if ext_name is not None:
            codec = self.load(ext_name)
            if codec is not None:
                return codec

        for name in self._factories:
            codec = self.load(name)
            if codec is None:
                continue
            if file_name is not None and file_name in codec.file_names:
                return codec
            if ext_name is not None and ext_name in codec.ext_names:
                return codec
            if media_type is not None and media_type in codec.media_types:
                return codec
            if content is not None and not is_output and await codec.sniff(content):
                return codec
        return None


def _truncate(content: str | None, limit: int = 64) -> str | None:
    if content is None or len(content) <= limit:
        return content
    return content[: limit - 3] + "..."


registry = CodecRegistry()


async def match(content: str | None = None, format: str | None = None, is_output: bool = False) -> Codec:
    return await registry.match(content, format, is_output)


def get_codec(name: str) -> Codec:
    return registry.get(name)
