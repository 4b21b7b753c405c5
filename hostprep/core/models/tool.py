"""
Host facts — architecture identifier and tool presence.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Architecture(str, Enum):
    """Host CPU architecture, as far as artifact selection cares."""

    X86_64 = "x86_64"
    AARCH64 = "aarch64"
    UNSUPPORTED = "unsupported"

    @property
    def supported(self) -> bool:
        return self is not Architecture.UNSUPPORTED


class ToolStatus(BaseModel):
    """Presence and version of one tool, probed at a point in time."""

    tool: str
    label: str = ""
    installed: bool = False
    version: str | None = None
    path: str | None = None

    def describe(self) -> str:
        """One-line human description (used by the summary)."""
        if not self.installed:
            return "not installed"
        return self.version or "installed"
