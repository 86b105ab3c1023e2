"""Exception hierarchy for docbridge."""

from __future__ import annotations


class DocbridgeError(Exception):
    """Base class for all docbridge errors."""


class CodecNotFoundError(DocbridgeError):
    """No codec is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No codec registered with name '{name}'")
        self.name = name


class DecodeError(DocbridgeError):
    """A document could not be decoded into the document model."""

    def __init__(self, format_name: str, message: str) -> None:
        super().__init__(f"Unable to decode {format_name}: {message}")
        self.format = format_name


class EncodeError(DocbridgeError):
    """A node could not be encoded into the target format."""

    def __init__(self, format_name: str, message: str) -> None:
        super().__init__(f"Unable to encode {format_name}: {message}")
        self.format = format_name


class ConversionError(DocbridgeError):
    """A conversion could not be completed."""
