"""
Detection — Package manager selection and install command building.
"""

from __future__ import annotations

import logging

from hostprep.adapters.base import Host
from hostprep.core.data.constants import INSTALL_COMMANDS, PACKAGE_MANAGER_BINARIES
from hostprep.core.data.recipes import TOOL_RECIPES

logger = logging.getLogger(__name__)


def detect_package_manager(host: Host, preferred: str = "auto") -> str | None:
    """Return the package manager to install with, or None if there is none.

    An explicitly configured manager is used as-is when its binary is
    present. ``auto`` takes the first available in dnf → yum → apt order.
    """
    if preferred != "auto":
        binary = PACKAGE_MANAGER_BINARIES.get(preferred)
        if binary and host.has(binary):
            return preferred
        logger.warning("Configured package manager %r not found on host", preferred)
        return None

    for pm, binary in PACKAGE_MANAGER_BINARIES.items():
        if host.has(binary):
            logger.debug("Detected package manager: %s", pm)
            return pm
    return None


def install_command(tool: str, pm: str | None) -> list[str] | None:
    """Full install command for ``tool`` with ``pm``, or None if unsupported."""
    if pm is None:
        return None
    packages = TOOL_RECIPES.get(tool, {}).get("packages", {}).get(pm)
    if not packages:
        return None
    return INSTALL_COMMANDS[pm] + list(packages)
