"""
Package steps — tools that come straight from the package manager.
"""

from __future__ import annotations

import logging

from hostprep.adapters.base import CommandResult, Host
from hostprep.core.data.constants import INSTALL_ENV, REFRESH_COMMANDS
from hostprep.core.data.recipes import TOOL_RECIPES
from hostprep.core.detection.package_manager import install_command
from hostprep.core.detection.tool_version import probe_tool
from hostprep.core.models.receipt import FailureKind, Receipt, Severity
from hostprep.core.steps.base import Step, StepContext

logger = logging.getLogger(__name__)

PACKAGE_INDEX_REFRESHED = "package_index_refreshed"


def refresh_package_index(host: Host, ctx: StepContext) -> None:
    """Refresh the package lists once per run, where the manager needs it.

    A failed refresh is only logged: the install that follows reports
    the real error.
    """
    if ctx.flags.get(PACKAGE_INDEX_REFRESHED):
        return
    ctx.flags[PACKAGE_INDEX_REFRESHED] = True

    cmd = REFRESH_COMMANDS.get(ctx.package_manager or "")
    if cmd is None:
        return
    logger.info("Refreshing %s package lists", ctx.package_manager)
    result = host.run(
        cmd,
        needs_sudo=True,
        timeout=ctx.timeout,
        env=INSTALL_ENV.get(ctx.package_manager or ""),
    )
    if not result.ok:
        logger.warning("Package list refresh failed: %s", result.message)


def install_tool(host: Host, ctx: StepContext, tool: str) -> CommandResult | None:
    """Install ``tool`` with the run's package manager.

    Returns None when there is no install command for it on this host.
    """
    cmd = install_command(tool, ctx.package_manager)
    if cmd is None:
        return None
    refresh_package_index(host, ctx)
    logger.info("Installing %s with %s", tool, ctx.package_manager)
    return host.run(
        cmd,
        needs_sudo=True,
        timeout=ctx.timeout,
        env=INSTALL_ENV.get(ctx.package_manager or ""),
    )


class PackageStep(Step):
    """Install one recipe tool with the host package manager if missing."""

    tool: str = ""

    def check(self, host: Host, ctx: StepContext) -> bool:
        return host.has(TOOL_RECIPES[self.tool]["cli"])

    def satisfied_message(self, host: Host, ctx: StepContext) -> str:
        return f"{self.tool} already installed: {probe_tool(host, self.tool).describe()}"

    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        cmd = install_command(self.tool, ctx.package_manager)
        result = install_tool(host, ctx, self.tool)
        if result is None:
            kind = (
                FailureKind.MISSING_REQUIRED_TOOL
                if self.severity is Severity.FATAL
                else FailureKind.MISSING_OPTIONAL_TOOL
            )
            return self.fail(
                f"No supported package manager to install {self.tool}",
                failure_kind=kind,
            )

        if not result.ok:
            return self.fail(
                f"Failed to install {self.tool} via {ctx.package_manager}: {result.message}. "
                "You may need to enable additional repositories.",
                metadata={"command": cmd},
            )
        return self.ok(
            f"Installed {self.tool} via {ctx.package_manager}",
            metadata={"command": cmd},
        )


class VersionControlStep(PackageStep):
    name = "version-control"
    label = "Version control (git)"
    severity = Severity.WARN
    tool = "git"


class ContainerRuntimeStep(PackageStep):
    """Nothing downstream works without the runtime, hence FATAL."""

    name = "container-runtime"
    label = "Container runtime (docker)"
    severity = Severity.FATAL
    tool = "docker"
