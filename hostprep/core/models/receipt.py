"""
Receipt model — the step execution contract.

Every provisioning step returns a Receipt. Steps NEVER raise for
expected failures: a missing tool, a failed install or an unsupported
architecture is captured here and the engine decides whether the run
continues.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Severity(str, Enum):
    """What a failed step means for the rest of the run."""

    WARN = "warn"     # report and continue
    FATAL = "fatal"   # abort the run with a non-zero exit


class FailureKind(str, Enum):
    """Why a step did not reach its desired state."""

    MISSING_OPTIONAL_TOOL = "missing_optional_tool"
    MISSING_REQUIRED_TOOL = "missing_required_tool"
    UNSUPPORTED_ARCHITECTURE = "unsupported_architecture"
    DOWNLOAD_OR_INSTALL_FAILURE = "download_or_install_failure"


class Receipt(BaseModel):
    """Result of running one provisioning step."""

    step: str
    label: str = ""
    status: Literal["ok", "skipped", "warning", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    failure_kind: FailureKind | None = None
    fatal: bool = False

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the step reached its desired state."""
        return self.status in ("ok", "skipped")

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(step=step, status="ok", output=output, **kwargs)

    @classmethod
    def skip(cls, step: str, reason: str = "", **kwargs: Any) -> Receipt:
        """Create a skip receipt (outcome already satisfied)."""
        return cls(step=step, status="skipped", output=reason, **kwargs)

    @classmethod
    def warn(
        cls,
        step: str,
        message: str,
        failure_kind: FailureKind | None = None,
        **kwargs: Any,
    ) -> Receipt:
        """Create a warning receipt: something is missing but the run goes on."""
        return cls(
            step=step,
            status="warning",
            output=message,
            failure_kind=failure_kind,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        step: str,
        error: str,
        failure_kind: FailureKind = FailureKind.DOWNLOAD_OR_INSTALL_FAILURE,
        fatal: bool = False,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            step=step,
            status="failed",
            error=error,
            failure_kind=failure_kind,
            fatal=fatal,
            **kwargs,
        )
