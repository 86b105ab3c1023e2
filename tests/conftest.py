from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo ``configure_logging`` so later tests can use ``caplog``."""
    yield
    package_logger = logging.getLogger("docbridge")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
