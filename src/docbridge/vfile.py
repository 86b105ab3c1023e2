"""In-memory or on-disk file container passed between codecs."""

from __future__ import annotations

import asyncio
import re
import sys
from dataclasses import dataclass
from pathlib import Path

_PATH_PREFIX_RE = re.compile(r"^(/|\./|\.\./|~(?:[\\/]|$)|[A-Za-z]:[\\/])")


@dataclass(slots=True)
class VirtualFile:
    contents: str | bytes | None = None
    path: str | None = None

    @property
    def is_binary(self) -> bool:
        return isinstance(self.contents, bytes)


def load(content: str | bytes) -> VirtualFile:
    return VirtualFile(contents=content)


async def read(path: str) -> VirtualFile:
    """Read ``path`` into a file. ``-`` reads standard input."""
    if path == "-":
        data = await asyncio.to_thread(sys.stdin.buffer.read)
        return VirtualFile(contents=data)
    target = Path(path).expanduser()
    data = await asyncio.to_thread(target.read_bytes)
    return VirtualFile(contents=data, path=str(target))


async def create(content: str | bytes) -> VirtualFile:
    if isinstance(content, str) and is_path(content):
        return await read(content)
    return load(content)


async def write(file: VirtualFile, path: str) -> None:
    """Write contents to ``path``. ``-`` writes to standard output."""
    data = file.contents
    if data is None and file.path is not None:
        data = await asyncio.to_thread(Path(file.path).read_bytes)
    if data is None:
        data = b""
    if isinstance(data, str):
        data = data.encode("utf-8")

    if path == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return

    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(target.write_bytes, data)


def dump(file: VirtualFile) -> str:
    data = file.contents
    if data is None:
        if file.path is None:
            return ""
        data = Path(file.path).read_bytes()
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def as_bytes(file: VirtualFile) -> bytes:
    data = file.contents
    if data is None:
        return Path(file.path).read_bytes() if file.path else b""
    return data.encode("utf-8") if isinstance(data, str) else data


def is_path(content: str) -> bool:
    """Heuristic: a short single line that exists on disk or looks like a path."""
    if not content or "\n" in content or len(content) >= 1000:
        return False
    if content == "-":
        return True
    if _PATH_PREFIX_RE.match(content):
        return True
    try:
        return Path(content).exists()
    except (OSError, ValueError):
        return False
