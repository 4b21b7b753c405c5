"""
Mock host — in-memory simulation of a provisioning target.

Used in ``--mock`` mode and by the test-suite to run the whole pipeline
without touching the machine. The simulation understands the handful of
commands the steps issue (package installs and index refreshes,
systemctl, groupadd/usermod, curl, unzip, chmod, ln, the AWS installer,
version probes) and mutates its state the way the real host would.
Anything else succeeds if its binary is present.
"""

from __future__ import annotations

import posixpath
from pathlib import Path

from hostprep.adapters.base import CommandResult, Host

_PACKAGE_MANAGERS = ("dnf", "yum", "apt-get")

# Utilities a fresh Linux host always has; never looked up on PATH.
_CORE_UTILS = ("systemctl", "groupadd", "usermod", "chmod", "ln", "mkdir", "rm")

# Package → binaries it provides. "plugin:" entries are docker CLI plugins.
DEFAULT_PACKAGES: dict[str, list[str]] = {
    "git": ["git"],
    "docker": ["docker"],
    "docker.io": ["docker"],
    "unzip": ["unzip"],
    "docker-compose-plugin": ["plugin:compose"],
}

VERSION_BANNERS: dict[str, str] = {
    "curl": "curl 8.5.0 (x86_64-redhat-linux-gnu) libcurl/8.5.0",
    "unzip": "UnZip 6.00 of 20 April 2009, by Info-ZIP.",
    "git": "git version 2.43.0",
    "docker": "Docker version 25.0.3, build 4debf41",
    "docker-compose": "Docker Compose version v2.20.2",
    "aws": "aws-cli/2.15.30 Python/3.11.8 Linux/6.1.0 exe/x86_64",
}


class MockHost(Host):
    """Simulated host with mutable, inspectable state.

    Every command is appended to ``call_log``. Individual commands can
    be forced to fail with ``set_failure``.
    """

    def __init__(
        self,
        machine: str = "x86_64",
        binaries: dict[str, str] | None = None,
        users: set[str] | None = None,
        packages: dict[str, list[str]] | None = None,
        socket_path: str = "/var/run/docker.sock",
        socket_on_start: bool = True,
        scratch_root: str = "/tmp",
        index_stale: bool = False,
    ):
        self._machine = machine
        self.binaries: dict[str, str] = dict(binaries or {})
        self.users: set[str] = set(users or ())
        self.packages: dict[str, list[str]] = dict(
            DEFAULT_PACKAGES if packages is None else packages
        )
        self.socket_path = socket_path
        self.socket_on_start = socket_on_start
        self.scratch_root = scratch_root
        # Empty package lists: installs fail until the index is refreshed
        self.index_stale = index_stale

        self.plugins: set[str] = set()
        self.groups: dict[str, set[str]] = {}
        self.services: dict[str, str] = {}
        self.sockets: dict[str, int] = {}
        self.files: set[str] = set()
        self.dirs: set[str] = set()
        self.links: dict[str, str] = {}
        self.downloads: list[str] = []
        self.installed: list[str] = []
        self.call_log: list[list[str]] = []
        self.call_env: list[dict[str, str]] = []

        self._failures: list[tuple[tuple[str, ...], str]] = []
        self._scratch_count = 0

    @classmethod
    def fresh(cls, machine: str = "x86_64", user: str = "ec2-user", **kwargs) -> MockHost:
        """A bare dnf-based host: curl and the package manager, nothing else."""
        return cls(
            machine=machine,
            binaries={"curl": "/usr/bin/curl", "dnf": "/usr/bin/dnf"},
            users={"root", user},
            **kwargs,
        )

    # ── Configuration ───────────────────────────────────────────

    def set_failure(self, *prefix: str, error: str = "Mock failure") -> None:
        """Make every command starting with ``prefix`` fail."""
        self._failures.append((tuple(prefix), error))

    def commands(self, *prefix: str) -> list[list[str]]:
        """Logged commands starting with ``prefix``."""
        n = len(prefix)
        return [c for c in self.call_log if tuple(c[:n]) == prefix]

    # ── Host protocol ───────────────────────────────────────────

    @property
    def name(self) -> str:
        return "mock"

    def machine(self) -> str:
        return self._machine

    def which(self, binary: str) -> str | None:
        return self.binaries.get(binary)

    def user_exists(self, user: str) -> bool:
        return user in self.users

    def path_exists(self, path: str) -> bool:
        return (
            path in self.files
            or path in self.dirs
            or path in self.sockets
            or path in self.links
        )

    def is_socket(self, path: str) -> bool:
        return path in self.sockets

    def make_scratch(self, root: str | None, prefix: str) -> Path:
        self._scratch_count += 1
        path = posixpath.join(root or self.scratch_root, f"{prefix}mock-{self._scratch_count}")
        self.dirs.add(path)
        return Path(path)

    def remove_tree(self, path: Path) -> bool:
        base = str(path)
        inside = base.rstrip("/") + "/"
        self.dirs = {d for d in self.dirs if d != base and not d.startswith(inside)}
        self.files = {f for f in self.files if not f.startswith(inside)}
        return True

    def run(
        self,
        cmd: list[str],
        *,
        needs_sudo: bool = False,
        timeout: int | None = None,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        cmd = list(cmd)
        self.call_log.append(cmd)
        self.call_env.append(dict(env or {}))

        for prefix, error in self._failures:
            if tuple(cmd[: len(prefix)]) == prefix:
                return self._fail(cmd, error, returncode=1)

        head = cmd[0]
        if head in _PACKAGE_MANAGERS and "install" in cmd:
            return self._pkg_install(cmd)
        if head in _PACKAGE_MANAGERS and "update" in cmd:
            if head not in self.binaries:
                return self._fail(cmd, f"Command not found: {head}", returncode=None)
            self.index_stale = False
            return self._ok(cmd)
        if head == "systemctl":
            return self._systemctl(cmd)
        if head == "groupadd":
            self.groups.setdefault(cmd[-1], set())
            return self._ok(cmd)
        if head == "usermod":
            return self._usermod(cmd)
        if head == "curl" and "-o" in cmd:
            return self._curl(cmd)
        if head == "unzip" and "-d" in cmd:
            return self._unzip(cmd)
        if head == "chmod":
            return self._chmod(cmd)
        if head == "ln":
            return self._ln(cmd)
        if head.endswith("/aws/install"):
            return self._aws_install(cmd)
        if cmd[:3] == ["docker", "compose", "version"]:
            if "docker" in self.binaries and "compose" in self.plugins:
                return self._ok(cmd, "Docker Compose version v2.24.6")
            return self._fail(cmd, "docker: 'compose' is not a docker command.")
        if head in _CORE_UTILS:
            return self._ok(cmd)
        if head in self.binaries or head in self.binaries.values():
            name = posixpath.basename(head)
            return self._ok(cmd, VERSION_BANNERS.get(name, f"{name} (mock)"))
        return self._fail(cmd, f"Command not found: {head}")

    # ── Simulation ──────────────────────────────────────────────

    def _ok(self, cmd: list[str], stdout: str = "") -> CommandResult:
        return CommandResult(cmd=cmd, ok=True, returncode=0, stdout=stdout)

    def _fail(self, cmd: list[str], error: str, returncode: int | None = 1) -> CommandResult:
        return CommandResult(
            cmd=cmd, ok=False, returncode=returncode, stderr=error, error=error,
        )

    def _pkg_install(self, cmd: list[str]) -> CommandResult:
        pm = cmd[0]
        if pm not in self.binaries:
            return self._fail(cmd, f"Command not found: {pm}", returncode=None)
        names = [c for c in cmd[1:] if c != "install" and not c.startswith("-")]
        if self.index_stale:
            return self._fail(cmd, f"E: Unable to locate package {names[0]}", returncode=100)
        missing = [n for n in names if n not in self.packages]
        if missing:
            return self._fail(cmd, f"No match for argument: {missing[0]}")
        for pkg in names:
            for provided in self.packages[pkg]:
                if provided.startswith("plugin:"):
                    self.plugins.add(provided.split(":", 1)[1])
                else:
                    self.binaries[provided] = f"/usr/bin/{provided}"
            self.installed.append(pkg)
        return self._ok(cmd, "Complete!")

    def _systemctl(self, cmd: list[str]) -> CommandResult:
        service = cmd[-1]
        if "enable" in cmd or "start" in cmd:
            if service not in self.binaries:
                return self._fail(cmd, f"Unit {service}.service not found.")
            self.services[service] = "active" if ("--now" in cmd or "start" in cmd) else "enabled"
            if service == "docker" and self.socket_on_start:
                self.sockets.setdefault(self.socket_path, 0o660)
        return self._ok(cmd)

    def _usermod(self, cmd: list[str]) -> CommandResult:
        user = cmd[-1]
        if user not in self.users:
            return self._fail(cmd, f"usermod: user '{user}' does not exist")
        group = cmd[cmd.index("-aG") + 1]
        if group not in self.groups:
            return self._fail(cmd, f"usermod: group '{group}' does not exist")
        self.groups[group].add(user)
        return self._ok(cmd)

    def _curl(self, cmd: list[str]) -> CommandResult:
        if "curl" not in self.binaries:
            return self._fail(cmd, "Command not found: curl", returncode=None)
        dest = cmd[cmd.index("-o") + 1]
        url = next(c for c in cmd if c.startswith("http"))
        self.downloads.append(url)
        self.files.add(dest)
        return self._ok(cmd)

    def _unzip(self, cmd: list[str]) -> CommandResult:
        if "unzip" not in self.binaries:
            return self._fail(cmd, "Command not found: unzip", returncode=None)
        archive = next(c for c in cmd[1:] if not c.startswith("-"))
        if archive not in self.files:
            return self._fail(cmd, f"cannot find or open {archive}")
        dest = cmd[cmd.index("-d") + 1]
        self.dirs.add(dest)
        self.files.add(posixpath.join(dest, "aws", "install"))
        return self._ok(cmd)

    def _chmod(self, cmd: list[str]) -> CommandResult:
        mode, path = cmd[1], cmd[2]
        if path in self.sockets:
            self.sockets[path] = int(mode, 8)
            return self._ok(cmd)
        if path not in self.files:
            return self._fail(cmd, f"chmod: cannot access '{path}': No such file or directory")
        if mode == "+x":
            self.binaries.setdefault(posixpath.basename(path), path)
        return self._ok(cmd)

    def _ln(self, cmd: list[str]) -> CommandResult:
        target, link = cmd[-2], cmd[-1]
        if self.path_exists(link):
            return self._fail(cmd, f"ln: failed to create symbolic link '{link}': File exists")
        self.links[link] = target
        return self._ok(cmd)

    def _aws_install(self, cmd: list[str]) -> CommandResult:
        if cmd[0] not in self.files:
            return self._fail(cmd, f"Command not found: {cmd[0]}", returncode=None)
        bin_dir = cmd[cmd.index("--bin-dir") + 1] if "--bin-dir" in cmd else "/usr/local/bin"
        aws = posixpath.join(bin_dir, "aws")
        self.binaries["aws"] = aws
        self.files.add(aws)
        return self._ok(cmd, f"You can now run: {aws} --version")
