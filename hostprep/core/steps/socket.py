"""
Socket permissions — open the runtime control socket to local users.

The mode comes from ``ProvisionerConfig.socket_mode`` (0o777 unless
configured otherwise). A socket that does not exist yet is a warning.
"""

from __future__ import annotations

from hostprep.adapters.base import Host
from hostprep.core.models.receipt import Receipt, Severity
from hostprep.core.steps.base import Step, StepContext


class SocketPermissionsStep(Step):
    name = "socket-permissions"
    label = "Runtime socket permissions"
    severity = Severity.WARN

    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        path = ctx.config.socket_path
        mode = format(ctx.config.socket_mode, "o")

        if not host.is_socket(path):
            return self.warn(
                f"{path} does not exist yet; set its permissions once the runtime is running",
            )

        result = host.run(["chmod", mode, path], needs_sudo=True, timeout=ctx.timeout)
        if not result.ok:
            return self.fail(f"Could not set permissions on {path}: {result.message}")
        return self.ok(f"Set permissions on {path} to 0{mode}", metadata={"mode": mode})
