"""Convert documents between formats through a common document model."""

from .api import convert, decode, dump, encode, handled, load, read, write
from .codecs import get_codec, match
from .errors import CodecNotFoundError, ConversionError, DecodeError, DocbridgeError, EncodeError
from .log import Loss, LossReport, collect_losses
from .options import EncodeOptions
from .vfile import VirtualFile

__all__ = [
    "convert",
    "decode",
    "dump",
    "encode",
    "handled",
    "load",
    "read",
    "write",
    "get_codec",
    "match",
    "CodecNotFoundError",
    "ConversionError",
    "DecodeError",
    "DocbridgeError",
    "EncodeError",
    "Loss",
    "LossReport",
    "collect_losses",
    "EncodeOptions",
    "VirtualFile",
]
