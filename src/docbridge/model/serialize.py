"""Canonical JSON-compatible form of the document model."""

from __future__ import annotations

import copy
import dataclasses
import re
from typing import Any

from docbridge.model.nodes import NODE_TYPES, Entity, Node

_CAMEL_RE = re.compile(r"_([a-z])")
_SNAKE_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _camel(name: str) -> str:
    return _CAMEL_RE.sub(lambda match: match.group(1).upper(), name)


def _snake(name: str) -> str:
    return _SNAKE_RE.sub("_", name).lower()


def _is_required(item: dataclasses.Field) -> bool:
    return item.default is dataclasses.MISSING and item.default_factory is dataclasses.MISSING


def to_json_value(node: Node) -> Any:
    """Convert a node tree into plain dicts, lists and scalars.

    Keys are camelCase with ``type`` first. ``None`` fields and empty optional
    lists are omitted.
    """
    if isinstance(node, Entity):
        return copy.deepcopy(node.data)
    if dataclasses.is_dataclass(node) and not isinstance(node, type):
        value: dict[str, Any] = {"type": node.type}
        for item in dataclasses.fields(node):
            field_value = getattr(node, item.name)
            if field_value is None:
                continue
            if field_value == [] and not _is_required(item):
                continue
            value[_camel(item.name)] = to_json_value(field_value)
        return value
    if isinstance(node, (list, tuple)):
        return [to_json_value(item) for item in node]
    if isinstance(node, dict):
        return {str(key): to_json_value(item) for key, item in node.items()}
    return node


def from_json_value(value: Any) -> Node:
    """Inverse of :func:`to_json_value`; unknown tagged dicts become :class:`Entity`."""
    if isinstance(value, list):
        return [from_json_value(item) for item in value]
    if not isinstance(value, dict):
        return value

    kind = value.get("type")
    if not isinstance(kind, str):
        return {key: from_json_value(item) for key, item in value.items()}

    cls = NODE_TYPES.get(kind)
    if cls is None:
        return Entity(data=value)

    names = {item.name for item in dataclasses.fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, item in value.items():
        if key == "type":
            continue
        name = _snake(key)
        if name not in names:
            return Entity(data=value)
        kwargs[name] = item if name == "meta" else from_json_value(item)
    try:
        return cls(**kwargs)
    except (TypeError, ValueError):
        return Entity(data=value)
