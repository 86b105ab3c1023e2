"""Top level conversion entry points."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

from docbridge.codecs.base import Codec
from docbridge.codecs.registry import match, registry
from docbridge.errors import ConversionError, DecodeError, DocbridgeError, EncodeError
from docbridge.model import Node
from docbridge.options import EncodeOptions
from docbridge.transforms import bundle
from docbridge.vfile import VirtualFile, create, is_path
from docbridge.vfile import dump as dump_file
from docbridge.vfile import load as load_file
from docbridge.vfile import write as write_file

logger = logging.getLogger(__name__)


async def decode(file: VirtualFile, content: str | None = None, format: str | None = None) -> Node:
    """Decode ``file`` with the codec matching ``content`` and ``format``."""
    codec = await match(content, format)
    return await _decode_with(codec, file)


async def encode(node: Node, options: EncodeOptions | None = None) -> VirtualFile:
    """Encode ``node`` with the codec matching ``options.file_path`` or ``options.format``."""
    options = options or EncodeOptions()
    if not options.file_path and not options.format:
        raise ValueError("Either file_path or format must be supplied to encode")
    codec = await match(options.file_path, options.format, is_output=True)
    return await _encode_with(codec, node, options)


async def load(content: str, format: str) -> Node:
    """Decode in-memory ``content`` in ``format``."""
    return await decode(load_file(content), None, format)


async def dump(node: Node, format: str, options: EncodeOptions | None = None) -> str:
    """Encode ``node`` in ``format`` and return the text."""
    options = dataclasses.replace(options or EncodeOptions(), format=format)
    file = await encode(node, options)
    if file.is_binary:
        raise ConversionError(f"Format '{format}' produces binary content; write it to a file instead")
    return dump_file(file)


async def read(content: str, format: str | None = None) -> Node:
    """Decode ``content``, which is a path (``-`` for stdin) or the document itself."""
    file = await create(content)
    return await decode(file, content, format)


async def write(node: Node, file_path: str, options: EncodeOptions | None = None) -> None:
    """Encode ``node`` and write it to ``file_path`` (``-`` for stdout)."""
    options = dataclasses.replace(options or EncodeOptions(), file_path=file_path)
    file = await encode(node, options)
    await write_file(file, file_path)


async def convert(
    input: str,
    output_path: str | None = None,
    *,
    to: str | None = None,
    from_: str | None = None,
    options: EncodeOptions | None = None,
) -> str:
    """Convert ``input`` into another format.

    Without ``output_path`` or ``to`` the input format is reused. Returns the
    encoded text, or ``output_path`` when the output format is binary.
    """
    options = options or EncodeOptions()

    input_file = await create(input)
    input_codec = await match(input, from_)
    node = await _decode_with(input_codec, input_file)

    if options.is_bundle:
        base_dir = Path(input).expanduser().parent if input != "-" and is_path(input) else None
        node = await bundle(node, base_dir)

    if output_path is None and to is None:
        output_codec = input_codec
    else:
        output_codec = await match(output_path, to, is_output=True)

    if output_codec.is_binary and output_path in (None, "-"):
        raise ConversionError(f"Output format '{output_codec.name}' is binary; an output path is required")

    options = dataclasses.replace(options, format=output_codec.name, file_path=output_path)
    output_file = await _encode_with(output_codec, node, options)
    if output_path is not None:
        await write_file(output_file, output_path)

    if output_file.is_binary:
        return output_path
    return dump_file(output_file)


async def handled(content: str | None = None, format: str | None = None) -> bool:
    """Whether a codec other than the plain text fallback handles the input."""
    return await registry.resolve(content, format) is not None


async def _decode_with(codec: Codec, file: VirtualFile) -> Node:
    try:
        return await codec.decode(file)
    except DocbridgeError:
        raise
    except Exception as exc:
        raise DecodeError(codec.name, str(exc)) from exc


async def _encode_with(codec: Codec, node: Node, options: EncodeOptions) -> VirtualFile:
    try:
        return await codec.encode(node, options)
    except DocbridgeError:
        raise
    except Exception as exc:
        raise EncodeError(codec.name, str(exc)) from exc
