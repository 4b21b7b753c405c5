"""
Detection — Architecture normalisation and artifact URL selection.

Pure functions: no host access. The raw machine name comes from the
config or the host adapter.
"""

from __future__ import annotations

from hostprep.core.data.constants import (
    ARCH_ALIASES,
    AWS_CLI_URL_TEMPLATE,
    COMPOSE_URL_TEMPLATE,
)
from hostprep.core.models.tool import Architecture


def normalize_architecture(machine: str) -> Architecture:
    """Map a raw machine name (``uname -m``) to a supported Architecture.

    >>> normalize_architecture("arm64")
    <Architecture.AARCH64: 'aarch64'>
    """
    canonical = ARCH_ALIASES.get((machine or "").strip())
    if canonical is None:
        return Architecture.UNSUPPORTED
    return Architecture(canonical)


def compose_download_url(arch: Architecture, version: str) -> str | None:
    """Standalone compose binary URL, or None for unsupported hosts."""
    if not arch.supported:
        return None
    return COMPOSE_URL_TEMPLATE.format(version=version, arch=arch.value)


def aws_cli_download_url(arch: Architecture) -> str | None:
    """AWS CLI v2 installer archive URL, or None for unsupported hosts."""
    if not arch.supported:
        return None
    return AWS_CLI_URL_TEMPLATE.format(arch=arch.value)
