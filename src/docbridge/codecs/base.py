"""Codec interface and the per-call encoding context."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from slugify import slugify

from docbridge.model import Node
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile, is_path

logger = logging.getLogger(__name__)


class Codec(ABC):
    """Decode a format into the document model and encode the model back."""

    name: ClassVar[str]
    media_types: ClassVar[tuple[str, ...]] = ()
    ext_names: ClassVar[tuple[str, ...]] = ()
    file_names: ClassVar[tuple[str, ...]] = ()
    is_binary: ClassVar[bool] = False

    async def sniff(self, content: str) -> bool:
        return False

    @abstractmethod
    async def decode(self, file: VirtualFile) -> Node:
        """Parse ``file`` into a document model node."""

    @abstractmethod
    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        """Serialise ``node`` into a new file."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---------------------------------------------------------------------------
# Per-call encoding state
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class EncodeContext:
    """State owned by one top-level ``encode`` call.

    Holds the id slugger and the deferred renders that must settle before the
    output is serialised.
    """

    options: EncodeOptions = field(default_factory=EncodeOptions)
    used_ids: set[str] = field(default_factory=set)
    pending: list[Awaitable[Any]] = field(default_factory=list)

    def unique_id(self, text: str, *, fallback: str = "section") -> str:
        base = slugify(text, separator="-") or fallback
        return _dedupe_id(base, self.used_ids)

    def claim_id(self, ident: str) -> str:
        return _dedupe_id(ident, self.used_ids)

    def defer(self, render: Awaitable[Any]) -> None:
        self.pending.append(render)

    async def settle(self) -> None:
        """Await every deferred render. Failures are logged, not raised."""
        while self.pending:
            batch, self.pending = self.pending, []
            results = await asyncio.gather(*batch, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    logger.warning("Deferred render failed: %s", result)


def _dedupe_id(candidate: str, used: set[str]) -> str:
    if candidate not in used:
        used.add(candidate)
        return candidate

    idx = 2
    while True:
        numbered = f"{candidate}-{idx}"
        if numbered not in used:
            used.add(numbered)
            return numbered
        idx += 1


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def flatten(items: Iterable[Any]) -> list[Node]:
    """Flatten nested decode results, dropping empty string placeholders."""
    result: list[Node] = []
    for item in items:
        if isinstance(item, list):
            result.extend(flatten(item))
        elif isinstance(item, str) and item == "":
            continue
        else:
            result.append(item)
    return result


def merge_strings(nodes: Iterable[Node]) -> list[Node]:
    merged: list[Node] = []
    for node in nodes:
        if isinstance(node, str) and merged and isinstance(merged[-1], str):
            merged[-1] += node
        else:
            merged.append(node)
    return merged


def text_of(file: VirtualFile) -> str:
    data = file.contents
    if data is None:
        if file.path is None:
            return ""
        data = Path(file.path).read_bytes()
    if isinstance(data, bytes):
        return data.decode("utf-8-sig", errors="replace")
    return data


async def read_head(content: str, size: int = 2048) -> str:
    """First ``size`` characters of ``content``, reading from disk when it is a path."""
    if is_path(content):
        target = Path(content).expanduser()
        if not target.is_file():
            return ""
        data = await asyncio.to_thread(_read_prefix, target, size)
        return data.decode("utf-8", errors="replace")
    return content[:size]


async def read_all(content: str) -> str:
    if is_path(content):
        target = Path(content).expanduser()
        if not target.is_file():
            return ""
        data = await asyncio.to_thread(target.read_bytes)
        return data.decode("utf-8", errors="replace")
    return content


def _read_prefix(path: Path, size: int) -> bytes:
    with path.open("rb") as handle:
        return handle.read(size)


Typesetter = Callable[[str, str, bool], Awaitable[str]]
