"""
Host adapter base — the contract between provisioning steps and the machine.

Steps never call ``subprocess`` or touch the filesystem directly. Every
probe and every side effect goes through a Host, so the whole pipeline
can run against ``MockHost`` in tests and in ``--mock`` mode.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Outcome of one command run on the host. Never an exception."""

    cmd: list[str] = Field(default_factory=list)
    ok: bool = False
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str = ""
    elapsed_ms: int = 0

    @property
    def first_line(self) -> str:
        """First non-empty output line (version banners live here)."""
        for stream in (self.stdout, self.stderr):
            for line in stream.splitlines():
                if line.strip():
                    return line.strip()
        return ""

    @property
    def message(self) -> str:
        """Best available explanation of a failure."""
        return self.error or self.stderr.strip() or f"exit {self.returncode}"


class Host(ABC):
    """Abstract base class for provisioning targets.

    Implementations MUST NOT raise from ``run``: failures (missing binary,
    non-zero exit, timeout) come back as a failed CommandResult.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Host identifier for logs (e.g. 'local', 'mock')."""

    @abstractmethod
    def machine(self) -> str:
        """Raw machine architecture name, as ``uname -m`` prints it."""

    @abstractmethod
    def which(self, binary: str) -> str | None:
        """Path of ``binary`` on PATH, or None."""

    @abstractmethod
    def run(
        self,
        cmd: list[str],
        *,
        needs_sudo: bool = False,
        timeout: int | None = None,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Run a command and capture its output.

        ``env`` holds extra variables for the command itself; they must
        reach it even when it is run through sudo.
        """

    @abstractmethod
    def user_exists(self, user: str) -> bool:
        """Whether a login principal with this name exists."""

    @abstractmethod
    def path_exists(self, path: str) -> bool:
        """Whether anything (file, link, dir) exists at ``path``."""

    @abstractmethod
    def is_socket(self, path: str) -> bool:
        """Whether ``path`` exists and is a Unix socket."""

    @abstractmethod
    def make_scratch(self, root: str | None, prefix: str) -> Path:
        """Create a fresh, exclusively-owned scratch directory."""

    @abstractmethod
    def remove_tree(self, path: Path) -> bool:
        """Remove a directory tree. Returns True once it is gone."""

    def has(self, binary: str) -> bool:
        return self.which(binary) is not None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
