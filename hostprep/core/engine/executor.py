"""
Engine executor — runs the provisioning checklist against a host.

Flow:
    resolve host facts → open scratch workspace → run steps in order
    → (abort on the first fatal receipt) → remove workspace → re-probe

The scratch workspace is removed in a ``finally`` block, so it is gone
after every run, including runs that hit a fatal step.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from hostprep.adapters.base import Host
from hostprep.core.config.loader import ProvisionerConfig
from hostprep.core.data.constants import SCRATCH_PREFIX
from hostprep.core.detection.arch import normalize_architecture
from hostprep.core.detection.package_manager import detect_package_manager
from hostprep.core.detection.tool_version import probe_summary
from hostprep.core.models.receipt import Receipt
from hostprep.core.models.tool import Architecture, ToolStatus
from hostprep.core.steps import Step, StepContext, default_steps

logger = logging.getLogger(__name__)

ReceiptCallback = Callable[[Receipt], None]


@dataclass
class ScratchWorkspace:
    """Run-scoped staging directory."""

    path: Path
    removed: bool = False


@contextmanager
def scratch_workspace(host: Host, root: str | None) -> Iterator[ScratchWorkspace]:
    """Create the workspace on entry and remove it on ANY exit."""
    workspace = ScratchWorkspace(path=host.make_scratch(root, SCRATCH_PREFIX))
    logger.info("Temporary workdir: %s", workspace.path)
    try:
        yield workspace
    finally:
        workspace.removed = host.remove_tree(workspace.path)
        if not workspace.removed:
            logger.warning("Could not remove scratch workspace %s", workspace.path)


@dataclass
class ProvisionReport:
    """Result of one provisioning run."""

    host: str = ""
    machine: str = ""
    architecture: Architecture = Architecture.UNSUPPORTED
    package_manager: str | None = None
    target_user: str = ""
    dry_run: bool = False
    receipts: list[Receipt] = field(default_factory=list)
    aborted_by: Receipt | None = None
    summary: list[ToolStatus] = field(default_factory=list)

    @property
    def warnings(self) -> list[Receipt]:
        return [r for r in self.receipts if r.status == "warning"]

    @property
    def access_granted(self) -> bool:
        """Whether the target user was added to the runtime group this run."""
        return any(r.step == "access-grant" and r.status == "ok" for r in self.receipts)

    @property
    def aborted(self) -> bool:
        return self.aborted_by is not None

    @property
    def status(self) -> str:
        if self.aborted:
            return "failed"
        if self.warnings:
            return "degraded"
        return "ok"

    @property
    def exit_code(self) -> int:
        return 1 if self.aborted else 0

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "machine": self.machine,
            "architecture": self.architecture.value,
            "package_manager": self.package_manager,
            "target_user": self.target_user,
            "dry_run": self.dry_run,
            "status": self.status,
            "exit_code": self.exit_code,
            "aborted_by": self.aborted_by.step if self.aborted_by else None,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
            "summary": [s.model_dump(mode="json") for s in self.summary],
        }


def provision(
    host: Host,
    config: ProvisionerConfig,
    *,
    steps: list[Step] | None = None,
    dry_run: bool = False,
    machine: str | None = None,
    on_receipt: ReceiptCallback | None = None,
) -> ProvisionReport:
    """Bring ``host`` to the desired tool state.

    Args:
        host: Target host adapter.
        config: Resolved provisioner configuration.
        steps: Override the checklist (tests); defaults to ``default_steps()``.
        dry_run: Run checks only; report what would be applied.
        machine: Raw machine name to use instead of asking the host.
        on_receipt: Called with each receipt as soon as it is produced,
            so the caller can print progress line by line.

    Returns:
        ProvisionReport. ``exit_code`` is 1 iff a fatal step failed.
    """
    steps = default_steps() if steps is None else steps
    machine = machine or host.machine()
    arch = normalize_architecture(machine)
    pm = detect_package_manager(host, config.package_manager)

    report = ProvisionReport(
        host=host.name,
        machine=machine,
        architecture=arch,
        package_manager=pm,
        target_user=config.target_user,
        dry_run=dry_run,
    )

    def record(receipt: Receipt) -> None:
        report.receipts.append(receipt)
        if on_receipt is not None:
            on_receipt(receipt)

    logger.info(
        "Provisioning %s host (machine=%s, arch=%s, pm=%s)",
        host.name, machine, arch.value, pm or "none",
    )

    with scratch_workspace(host, config.scratch_root) as workspace:
        ctx = StepContext(
            config=config,
            machine=machine,
            arch=arch,
            package_manager=pm,
            scratch=workspace.path,
            dry_run=dry_run,
        )
        for step in steps:
            receipt = step.run(host, ctx)
            record(receipt)

            status_marker = {"ok": "✓", "skipped": "⊘", "warning": "!"}.get(receipt.status, "✗")
            logger.info("%s %s → %s", status_marker, step.name, receipt.status)

            if receipt.fatal:
                report.aborted_by = receipt
                logger.error("Aborting: %s", receipt.error)
                break

    if workspace.removed:
        record(Receipt.success("cleanup", f"Removed {workspace.path}", label="Cleanup"))
    else:
        record(Receipt.warn("cleanup", f"Could not remove {workspace.path}", label="Cleanup"))

    report.summary = probe_summary(host)
    return report
