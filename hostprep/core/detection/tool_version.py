"""
Detection — Tool presence and version probes.

Read-only: looks binaries up on PATH and runs their version command.
Results are never cached; every call re-probes the host.
"""

from __future__ import annotations

from hostprep.adapters.base import Host
from hostprep.core.data.recipes import TOOL_RECIPES
from hostprep.core.models.tool import ToolStatus

# Tools reported by the final summary, in display order.
SUMMARY_TOOLS = ("git", "docker", "compose", "aws-cli")


def probe_tool(host: Host, tool: str) -> ToolStatus:
    """Presence and version banner of one recipe tool."""
    recipe = TOOL_RECIPES[tool]
    label = recipe.get("label", tool)
    path = host.which(recipe.get("cli", tool))
    if path is None:
        return ToolStatus(tool=tool, label=label)

    result = host.run(recipe["version"], timeout=30)
    return ToolStatus(
        tool=tool,
        label=label,
        installed=True,
        version=result.first_line if result.ok else None,
        path=path,
    )


def tool_works(host: Host, tool: str) -> bool:
    """Present on PATH AND its version command succeeds."""
    recipe = TOOL_RECIPES[tool]
    if not host.has(recipe.get("cli", tool)):
        return False
    return host.run(recipe["version"], timeout=30).ok


def compose_plugin_available(host: Host) -> bool:
    """Whether ``docker compose version`` succeeds."""
    if not host.has("docker"):
        return False
    return host.run(["docker", "compose", "version"], timeout=30).ok


def probe_compose(host: Host) -> ToolStatus:
    """Compose plugin first, then the standalone binary."""
    plugin = TOOL_RECIPES["docker-compose-plugin"]
    if host.has("docker"):
        result = host.run(plugin["version"], timeout=30)
        if result.ok:
            return ToolStatus(
                tool="compose",
                label=plugin["label"],
                installed=True,
                version=result.first_line,
                path=host.which("docker"),
            )

    binary = probe_tool(host, "docker-compose")
    if binary.installed:
        return binary.model_copy(update={"tool": "compose"})
    return ToolStatus(tool="compose", label=plugin["label"])


def probe_summary(host: Host) -> list[ToolStatus]:
    """Re-probe every managed tool for the end-of-run summary."""
    statuses: list[ToolStatus] = []
    for tool in SUMMARY_TOOLS:
        if tool == "compose":
            statuses.append(probe_compose(host))
        else:
            statuses.append(probe_tool(host, tool))
    return statuses
