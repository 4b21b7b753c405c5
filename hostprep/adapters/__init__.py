"""Adapters — bindings to the machine being provisioned.

Public re-exports for convenient access.
"""

from hostprep.adapters.base import CommandResult, Host
from hostprep.adapters.local import LocalHost
from hostprep.adapters.mock import MockHost

__all__ = [
    "CommandResult",
    "Host",
    "LocalHost",
    "MockHost",
]
