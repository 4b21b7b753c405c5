"""
Local host adapter — runs commands on the machine we are executing on.

This is the SINGLE PLACE where ``subprocess.run`` is called for
provisioning. Sudo handling, logging and error capture are centralised
here.
"""

from __future__ import annotations

import logging
import os
import platform
import pwd
import shutil
import stat
import subprocess
import tempfile
import time
from pathlib import Path

from hostprep.adapters.base import CommandResult, Host

logger = logging.getLogger(__name__)

# Keep receipts readable: package managers can print a lot.
_OUTPUT_TAIL = 2000


class LocalHost(Host):
    """Provision the current machine.

    Args:
        use_sudo: Prefix privileged commands with ``sudo -n`` when not
            running as root. Non-interactive: a password prompt fails
            the command instead of hanging the run.
        timeout: Default per-command timeout in seconds.
    """

    def __init__(self, use_sudo: bool = True, timeout: int = 600):
        self._use_sudo = use_sudo
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "local"

    def machine(self) -> str:
        return platform.machine()

    def which(self, binary: str) -> str | None:
        return shutil.which(binary)

    def run(
        self,
        cmd: list[str],
        *,
        needs_sudo: bool = False,
        timeout: int | None = None,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        timeout = timeout or self._timeout
        full_cmd = list(cmd)
        if env:
            # sudo resets the environment; env(1) runs inside it
            full_cmd = ["env", *(f"{k}={v}" for k, v in env.items())] + full_cmd
        if needs_sudo and self._use_sudo and os.geteuid() != 0:
            full_cmd = ["sudo", "-n"] + full_cmd

        logger.debug("Executing: %s (cwd=%s)", " ".join(full_cmd), cwd)
        start = time.monotonic()
        try:
            result = subprocess.run(
                full_cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=cwd,
            )
        except FileNotFoundError:
            return CommandResult(
                cmd=full_cmd,
                error=f"Command not found: {full_cmd[0]}",
            )
        except subprocess.TimeoutExpired:
            return CommandResult(
                cmd=full_cmd,
                error=f"Command timed out ({timeout}s)",
            )
        except Exception as e:
            logger.exception("Subprocess error: %s", full_cmd)
            return CommandResult(cmd=full_cmd, error=str(e))

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout[-_OUTPUT_TAIL:] if result.stdout else ""
        stderr = result.stderr[-_OUTPUT_TAIL:] if result.stderr else ""

        if result.returncode != 0:
            logger.debug("Exit %d: %s", result.returncode, stderr.strip())

        return CommandResult(
            cmd=full_cmd,
            ok=result.returncode == 0,
            returncode=result.returncode,
            stdout=stdout,
            stderr=stderr,
            error="" if result.returncode == 0 else f"Command failed (exit {result.returncode})",
            elapsed_ms=elapsed_ms,
        )

    def user_exists(self, user: str) -> bool:
        if not user:
            return False
        try:
            pwd.getpwnam(user)
        except KeyError:
            return False
        return True

    def path_exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_socket(self, path: str) -> bool:
        try:
            return stat.S_ISSOCK(os.stat(path).st_mode)
        except OSError:
            return False

    def make_scratch(self, root: str | None, prefix: str) -> Path:
        if root:
            Path(root).mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=f"{prefix}{os.getpid()}-", dir=root))

    def remove_tree(self, path: Path) -> bool:
        shutil.rmtree(path, ignore_errors=True)
        return not path.exists()
