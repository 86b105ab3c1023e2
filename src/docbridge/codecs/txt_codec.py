"""Plain text codec, also the dispatch fallback."""

from __future__ import annotations

from docbridge.codecs.base import Codec, text_of
from docbridge.model import Node, to_text
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile


class TxtCodec(Codec):
    name = "txt"
    media_types = ("text/plain",)
    ext_names = ("txt", "text")

    async def decode(self, file: VirtualFile) -> Node:
        return text_of(file)

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        return VirtualFile(contents=to_text(node))
