"""
Preflight — the download and extraction tools later steps rely on.

curl is only checked, never installed: Amazon Linux ships curl-minimal,
which conflicts with the full curl package. unzip is installed if
missing, best-effort.
"""

from __future__ import annotations

from hostprep.adapters.base import Host
from hostprep.core.detection.tool_version import probe_tool
from hostprep.core.models.receipt import FailureKind, Receipt, Severity
from hostprep.core.steps.base import Step, StepContext
from hostprep.core.steps.packages import install_tool

DOWNLOAD_TOOL_MISSING = "download_tool_missing"


class PreflightStep(Step):
    name = "preflight"
    label = "Preflight"
    severity = Severity.WARN

    def check(self, host: Host, ctx: StepContext) -> bool:
        return host.has("curl") and host.has("unzip")

    def satisfied_message(self, host: Host, ctx: StepContext) -> str:
        curl = probe_tool(host, "curl").describe()
        unzip = probe_tool(host, "unzip").describe()
        return f"curl present: {curl}; unzip present: {unzip}"

    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        problems: list[str] = []
        notes: list[str] = []

        if host.has("curl"):
            notes.append(f"curl present: {probe_tool(host, 'curl').describe()}")
        else:
            ctx.flags[DOWNLOAD_TOOL_MISSING] = True
            problems.append(
                "curl is not installed; downloads in later steps will fail. "
                "Install curl manually (not installed automatically to avoid "
                "package conflicts)."
            )

        if host.has("unzip"):
            notes.append(f"unzip present: {probe_tool(host, 'unzip').describe()}")
        else:
            result = install_tool(host, ctx, "unzip")
            if result is not None and result.ok:
                notes.append("unzip installed")
            else:
                reason = result.message if result is not None else "no supported package manager"
                problems.append(f"Failed to install unzip ({reason}). Install it manually if needed.")

        if problems:
            return self.warn(
                " ".join(problems),
                failure_kind=FailureKind.MISSING_OPTIONAL_TOOL,
                metadata={"notes": notes},
            )
        return self.ok("; ".join(notes))
