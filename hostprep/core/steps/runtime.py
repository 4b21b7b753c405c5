"""
Runtime steps — service activation and non-root access.
"""

from __future__ import annotations

from hostprep.adapters.base import Host
from hostprep.core.models.receipt import Receipt, Severity
from hostprep.core.steps.base import Step, StepContext


class RuntimeActivationStep(Step):
    """Enable the runtime at boot and start it now.

    Always acts: ``systemctl enable --now`` is a no-op on a service that
    is already enabled and running.
    """

    name = "runtime-activation"
    label = "Runtime service"
    severity = Severity.WARN

    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        service = ctx.config.runtime_service
        result = host.run(
            ["systemctl", "enable", "--now", service],
            needs_sudo=True,
            timeout=ctx.timeout,
        )
        if not result.ok:
            return self.fail(f"Could not enable and start {service}: {result.message}")
        return self.ok(f"{service} service enabled and started")


class AccessGrantStep(Step):
    """Add the target principal to the runtime group.

    ``groupadd -f`` and ``usermod -aG`` are both idempotent, so the step
    always acts. A missing principal is a warning, not a failure.
    """

    name = "access-grant"
    label = "Runtime access"
    severity = Severity.WARN

    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        user = ctx.config.target_user
        group = ctx.config.runtime_group

        if not user or not host.user_exists(user):
            return self.warn(
                f"User {user or '<unset>'!r} does not exist on this host; "
                f"not adding anyone to the {group} group",
            )

        # groupadd -f exits 0 when the group exists; a failure here shows
        # up again in usermod, which is what we report.
        host.run(["groupadd", "-f", group], needs_sudo=True, timeout=ctx.timeout)
        result = host.run(
            ["usermod", "-aG", group, user],
            needs_sudo=True,
            timeout=ctx.timeout,
        )
        if not result.ok:
            return self.fail(f"Could not add {user} to the {group} group: {result.message}")

        return self.ok(
            f"Added {user} to the {group} group",
            metadata={
                "user": user,
                "group": group,
                "notes": [
                    f"{user} must log out and back in for {group} group membership to take effect",
                ],
            },
        )
