"""JSON codec for the canonical form of the document model."""

from __future__ import annotations

import json

from docbridge.codecs.base import Codec, read_all, text_of
from docbridge.errors import DecodeError
from docbridge.model import Node, from_json_value, to_json_value
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile


class JsonCodec(Codec):
    name = "json"
    media_types = ("application/json",)
    ext_names = ("json",)

    async def sniff(self, content: str) -> bool:
        text = (await read_all(content)).strip()
        if not text or text[0] not in "{[":
            return False
        try:
            json.loads(text)
        except ValueError:
            return False
        return True

    async def decode(self, file: VirtualFile) -> Node:
        text = text_of(file)
        try:
            value = json.loads(text)
        except ValueError as exc:
            raise DecodeError(self.name, str(exc)) from exc
        return from_json_value(value)

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        return VirtualFile(contents=json.dumps(to_json_value(node), indent=2, ensure_ascii=False))
