"""
Detection — read-only probes of the host and pure host-fact helpers.
"""

from hostprep.core.detection.arch import (  # noqa: F401
    aws_cli_download_url,
    compose_download_url,
    normalize_architecture,
)
from hostprep.core.detection.package_manager import (  # noqa: F401
    detect_package_manager,
    install_command,
)
from hostprep.core.detection.tool_version import (  # noqa: F401
    compose_plugin_available,
    probe_compose,
    probe_summary,
    probe_tool,
    tool_works,
)
