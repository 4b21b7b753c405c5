from hostprep.core.engine.executor import (  # noqa: F401
    ProvisionReport,
    ScratchWorkspace,
    provision,
    scratch_workspace,
)
