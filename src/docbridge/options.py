"""Per-call encoding options."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

THEMES = ("plain", "paper")
DEFAULT_THEME = "plain"


@dataclass(slots=True, frozen=True)
class EncodeOptions:
    format: str | None = None
    file_path: str | None = None
    is_standalone: bool = False
    is_bundle: bool = False
    theme: str | None = None

    def with_defaults(self) -> EncodeOptions:
        """Fill unset values from ``DOCBRIDGE_THEME`` and ``DOCBRIDGE_STANDALONE``."""
        theme = self.theme or os.environ.get("DOCBRIDGE_THEME") or None
        standalone = self.is_standalone
        env_standalone = os.environ.get("DOCBRIDGE_STANDALONE")
        if not standalone and env_standalone is not None:
            standalone = env_standalone.strip().lower() in {"1", "true", "yes", "on"}
        return replace(self, theme=theme, is_standalone=standalone)

    @property
    def resolved_theme(self) -> str:
        return self.theme if self.theme in THEMES else DEFAULT_THEME
