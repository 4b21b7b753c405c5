"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from hostprep.core.models import Receipt, Severity, Architecture
"""

from hostprep.core.models.receipt import FailureKind, Receipt, Severity
from hostprep.core.models.tool import Architecture, ToolStatus

__all__ = [
    "Architecture",
    "FailureKind",
    "Receipt",
    "Severity",
    "ToolStatus",
]
