"""Codec package."""

from .base import Codec, EncodeContext
from .registry import CodecRegistry, get_codec, match, registry

__all__ = ["Codec", "CodecRegistry", "EncodeContext", "get_codec", "match", "registry"]
