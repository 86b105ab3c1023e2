"""Tree transforms applied between decoding and encoding."""

from __future__ import annotations

import asyncio
import base64
import dataclasses
import logging
import mimetypes
from pathlib import Path
from urllib.parse import unquote, urlparse

from docbridge.model import Entity, ImageObject, Node

logger = logging.getLogger(__name__)


async def bundle(node: Node, base_dir: Path | str | None = None) -> Node:
    """Return a copy of ``node`` with local image files inlined as data URIs.

    The source tree is left untouched. Remote URLs and data URIs are kept
    as they are; missing files are logged and kept as references.
    """
    root = Path(base_dir) if base_dir is not None else Path.cwd()
    return await asyncio.to_thread(_bundle, node, root)


def _bundle(node: Node, base_dir: Path) -> Node:
    if isinstance(node, ImageObject):
        data_uri = _maybe_embed(node.content_url, base_dir)
        if data_uri is None:
            return node
        uri, media_type = data_uri
        return dataclasses.replace(node, content_url=uri, media_type=node.media_type or media_type)
    if isinstance(node, Entity):
        return node
    if dataclasses.is_dataclass(node) and not isinstance(node, type):
        changes = {}
        for item in dataclasses.fields(node):
            value = getattr(node, item.name)
            if isinstance(value, list) or (dataclasses.is_dataclass(value) and not isinstance(value, type)):
                changes[item.name] = _bundle(value, base_dir)
        return dataclasses.replace(node, **changes) if changes else node
    if isinstance(node, list):
        return [_bundle(item, base_dir) for item in node]
    return node


def _maybe_embed(url: str, base_dir: Path) -> tuple[str, str] | None:
    if url.startswith("data:"):
        return None
    parsed = urlparse(url)
    if parsed.scheme not in ("", "file") or (parsed.scheme == "" and parsed.netloc):
        return None

    path = Path(unquote(parsed.path)).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    if not path.exists() or not path.is_file():
        logger.warning("Unable to bundle missing file: %s", url)
        return None

    mime, _ = mimetypes.guess_type(path.name)
    mime = mime or "application/octet-stream"
    data = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{data}", mime
