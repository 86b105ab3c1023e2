"""YAML codec for the canonical form of the document model."""

from __future__ import annotations

import yaml

from docbridge.codecs.base import Codec, read_all, read_head, text_of
from docbridge.errors import DecodeError
from docbridge.model import Node, from_json_value, to_json_value
from docbridge.options import EncodeOptions
from docbridge.vfile import VirtualFile


class YamlCodec(Codec):
    name = "yaml"
    media_types = ("text/yaml", "text/x-yaml", "application/yaml", "application/x-yaml")
    ext_names = ("yaml", "yml")

    async def sniff(self, content: str) -> bool:
        head = await read_head(content)
        if not head.startswith("---"):
            return False
        try:
            yaml.safe_load(await read_all(content))
        except yaml.YAMLError:
            return False
        return True

    async def decode(self, file: VirtualFile) -> Node:
        try:
            value = yaml.safe_load(text_of(file))
        except yaml.YAMLError as exc:
            raise DecodeError(self.name, str(exc)) from exc
        return from_json_value(value)

    async def encode(self, node: Node, options: EncodeOptions | None = None) -> VirtualFile:
        text = yaml.safe_dump(to_json_value(node), sort_keys=False, allow_unicode=True)
        return VirtualFile(contents=text)
