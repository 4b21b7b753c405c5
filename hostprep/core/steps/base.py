"""
Step base — the contract every provisioning step implements.

A step is idempotent: ``check`` reports whether its outcome already
holds on the host, ``apply`` makes it hold. ``severity`` says what a
failed ``apply`` means for the run: WARN steps degrade to a warning,
FATAL steps abort the pipeline.

Steps return receipts. ``Step.run`` is the only entry point the engine
uses and it NEVER raises.

To create a new step:
    1. Subclass Step
    2. Set name, label, severity
    3. Implement apply (and check, unless the step always acts)
    4. Add it to ``default_steps()`` in the right position
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hostprep.adapters.base import Host
from hostprep.core.config.loader import ProvisionerConfig
from hostprep.core.models.receipt import FailureKind, Receipt, Severity
from hostprep.core.models.tool import Architecture

logger = logging.getLogger(__name__)


@dataclass
class StepContext:
    """Run-wide facts shared by all steps. Resolved once by the engine."""

    config: ProvisionerConfig
    machine: str
    arch: Architecture
    package_manager: str | None
    scratch: Path | None = None
    dry_run: bool = False
    flags: dict[str, Any] = field(default_factory=dict)

    @property
    def timeout(self) -> int:
        return self.config.command_timeout


class Step(ABC):
    """Abstract base class for provisioning steps."""

    name: str = ""
    label: str = ""
    severity: Severity = Severity.WARN

    def check(self, host: Host, ctx: StepContext) -> bool:
        """Whether the desired state already holds. Default: always act."""
        return False

    def satisfied_message(self, host: Host, ctx: StepContext) -> str:
        """Output for the skip receipt when ``check`` passes."""
        return f"{self.label} already satisfied"

    @abstractmethod
    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        """Bring the host to the desired state and return a receipt."""

    def run(self, host: Host, ctx: StepContext) -> Receipt:
        """Check, then apply. Unexpected errors become receipts."""
        start = time.monotonic()
        try:
            if self.check(host, ctx):
                receipt = Receipt.skip(self.name, self.satisfied_message(host, ctx))
            elif ctx.dry_run:
                receipt = Receipt.skip(
                    self.name,
                    f"[dry-run] would apply: {self.label}",
                    metadata={"dry_run": True},
                )
            else:
                receipt = self.apply(host, ctx)
        except Exception as e:
            logger.exception("Step %s raised", self.name)
            receipt = self.fail(f"Unexpected error: {e}")

        receipt.label = self.label
        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt

    # ── Receipt helpers ─────────────────────────────────────────

    def ok(self, output: str, **kwargs: Any) -> Receipt:
        return Receipt.success(self.name, output, **kwargs)

    def warn(
        self,
        message: str,
        failure_kind: FailureKind | None = None,
        **kwargs: Any,
    ) -> Receipt:
        logger.warning("%s: %s", self.label, message)
        return Receipt.warn(self.name, message, failure_kind=failure_kind, **kwargs)

    def fail(
        self,
        error: str,
        failure_kind: FailureKind = FailureKind.DOWNLOAD_OR_INSTALL_FAILURE,
        **kwargs: Any,
    ) -> Receipt:
        """A failed apply, shaped by this step's severity."""
        if self.severity is Severity.WARN:
            return self.warn(error, failure_kind=failure_kind, **kwargs)
        logger.error("%s: %s", self.label, error)
        return Receipt.failure(
            self.name, error, failure_kind=failure_kind, fatal=True, **kwargs,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} severity={self.severity.value}>"
