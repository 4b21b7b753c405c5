"""
Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Raw machine names (``uname -m`` / ``platform.machine()``) that map to a
# supported artifact architecture. Docker Compose and AWS CLI both publish
# assets under the uname-style names, so that is what we normalise to.
ARCH_ALIASES: dict[str, str] = {
    "x86_64": "x86_64",
    "x86-64": "x86_64",
    "amd64": "x86_64",
    "AMD64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "ARM64": "aarch64",
}

# Pinned standalone compose release used when no plugin package exists.
COMPOSE_FALLBACK_VERSION = "v2.20.2"

COMPOSE_URL_TEMPLATE = (
    "https://github.com/docker/compose/releases/download/"
    "{version}/docker-compose-linux-{arch}"
)

AWS_CLI_URL_TEMPLATE = "https://awscli.amazonaws.com/awscli-exe-linux-{arch}.zip"

# Scratch workspace directory name prefix (pid and a random suffix follow).
SCRATCH_PREFIX = "install-tools-"

# Install command prefixes per package manager. Package names are appended.
INSTALL_COMMANDS: dict[str, list[str]] = {
    "dnf": ["dnf", "-y", "install"],
    "yum": ["yum", "-y", "install"],
    "apt": ["apt-get", "install", "-y"],
}

# Detection order when package_manager is "auto".
PACKAGE_MANAGER_BINARIES: dict[str, str] = {
    "dnf": "dnf",
    "yum": "yum",
    "apt": "apt-get",
}

# Package index refresh, run once per run before the first install.
# Fresh Debian/Ubuntu images ship with empty package lists.
REFRESH_COMMANDS: dict[str, list[str]] = {
    "apt": ["apt-get", "update"],
}

# Extra environment for installs (no debconf prompts on apt).
INSTALL_ENV: dict[str, dict[str, str]] = {
    "apt": {"DEBIAN_FRONTEND": "noninteractive"},
}
