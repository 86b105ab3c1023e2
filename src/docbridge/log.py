"""Logging helpers and the loss report side channel."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Literal

import click

from docbridge.model import node_type

logger = logging.getLogger(__name__)

Direction = Literal["encode", "decode"]


@dataclass(slots=True, frozen=True)
class Loss:
    format: str
    direction: Direction
    node_type: str
    property: str


@dataclass(slots=True)
class LossReport:
    """Every property dropped during one conversion, in the order it was dropped."""

    entries: list[Loss] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def properties(self, kind: str | None = None) -> set[str]:
        return {
            entry.property
            for entry in self.entries
            if kind is None or entry.node_type == kind
        }


_active_report: ContextVar[LossReport | None] = ContextVar("docbridge_loss_report", default=None)


@contextmanager
def collect_losses() -> Iterator[LossReport]:
    """Record losses reported inside the block into a fresh :class:`LossReport`."""
    report = LossReport()
    token = _active_report.set(report)
    try:
        yield report
    finally:
        _active_report.reset(token)


def log_loss_if_any(
    format_name: str,
    direction: Direction,
    node: Any,
    lost: Mapping[str, Any] | Iterable[str] | None,
) -> None:
    if not lost:
        return
    names = sorted(lost.keys() if isinstance(lost, Mapping) else lost)
    if not names:
        return

    kind = node_type(node)
    logger.warning(
        "Lost properties when %s %s %s: %s",
        "encoding to" if direction == "encode" else "decoding from",
        format_name,
        kind,
        ", ".join(names),
    )

    report = _active_report.get()
    if report is not None:
        report.entries.extend(Loss(format_name, direction, kind, name) for name in names)


# ---------------------------------------------------------------------------
# Command line logging
# ---------------------------------------------------------------------------


class ClickEchoHandler(logging.Handler):
    """Route log records through ``click.echo`` on stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(level: str | int = "WARNING") -> None:
    handler = ClickEchoHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))

    package_logger = logging.getLogger("docbridge")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.propagate = False
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    package_logger.setLevel(level)
