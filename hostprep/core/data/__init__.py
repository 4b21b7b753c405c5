"""
Data layer — static recipes and constants, no logic.
"""

from hostprep.core.data.constants import (  # noqa: F401
    ARCH_ALIASES,
    AWS_CLI_URL_TEMPLATE,
    COMPOSE_FALLBACK_VERSION,
    COMPOSE_URL_TEMPLATE,
    INSTALL_COMMANDS,
    INSTALL_ENV,
    PACKAGE_MANAGER_BINARIES,
    REFRESH_COMMANDS,
    SCRATCH_PREFIX,
)
from hostprep.core.data.recipes import TOOL_RECIPES  # noqa: F401
