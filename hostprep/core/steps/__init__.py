"""
Provisioning steps, and the fixed order they run in.
"""

from hostprep.core.steps.base import Step, StepContext
from hostprep.core.steps.cloud_cli import CloudCliStep
from hostprep.core.steps.compose import ComposeStep
from hostprep.core.steps.packages import ContainerRuntimeStep, PackageStep, VersionControlStep
from hostprep.core.steps.preflight import PreflightStep
from hostprep.core.steps.runtime import AccessGrantStep, RuntimeActivationStep
from hostprep.core.steps.socket import SocketPermissionsStep


def default_steps() -> list[Step]:
    """The provisioning checklist. Cleanup and summary are run by the engine."""
    return [
        PreflightStep(),
        VersionControlStep(),
        ContainerRuntimeStep(),
        RuntimeActivationStep(),
        AccessGrantStep(),
        ComposeStep(),
        CloudCliStep(),
        SocketPermissionsStep(),
    ]


__all__ = [
    "AccessGrantStep",
    "CloudCliStep",
    "ComposeStep",
    "ContainerRuntimeStep",
    "PackageStep",
    "PreflightStep",
    "RuntimeActivationStep",
    "SocketPermissionsStep",
    "Step",
    "StepContext",
    "VersionControlStep",
    "default_steps",
]
