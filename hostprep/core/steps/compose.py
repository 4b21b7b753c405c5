"""
Compose tooling — plugin package first, pinned standalone binary second.

Order of preference:
    1. ``docker compose`` (or a working ``docker-compose``) already there
    2. the ``docker-compose-plugin`` package
    3. the pinned, architecture-matched release binary from GitHub,
       installed to ``<local_bin>/docker-compose`` and linked into
       ``<system_bin>``

An unsupported architecture on the fallback path aborts the run before
anything is downloaded.
"""

from __future__ import annotations

import logging
import posixpath

from hostprep.adapters.base import Host
from hostprep.core.detection.arch import compose_download_url
from hostprep.core.detection.tool_version import (
    compose_plugin_available,
    probe_compose,
    tool_works,
)
from hostprep.core.models.receipt import FailureKind, Receipt, Severity
from hostprep.core.steps.base import Step, StepContext
from hostprep.core.steps.packages import install_tool
from hostprep.core.steps.preflight import DOWNLOAD_TOOL_MISSING

logger = logging.getLogger(__name__)


class ComposeStep(Step):
    name = "compose"
    label = "Compose tooling"
    severity = Severity.FATAL

    def check(self, host: Host, ctx: StepContext) -> bool:
        return compose_plugin_available(host) or tool_works(host, "docker-compose")

    def satisfied_message(self, host: Host, ctx: StepContext) -> str:
        return f"compose already available: {probe_compose(host).describe()}"

    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        result = install_tool(host, ctx, "docker-compose-plugin")
        if result is not None:
            if result.ok and compose_plugin_available(host):
                return self.ok(
                    f"Installed docker-compose-plugin via {ctx.package_manager}",
                    metadata={"method": "package"},
                )
            logger.info(
                "docker-compose-plugin not available via %s (%s); falling back to binary",
                ctx.package_manager,
                result.message,
            )

        return self._install_binary(host, ctx)

    def _install_binary(self, host: Host, ctx: StepContext) -> Receipt:
        version = ctx.config.compose_fallback_version
        url = compose_download_url(ctx.arch, version)
        if url is None:
            return self.fail(
                f"Unsupported architecture for fallback compose binary: {ctx.machine}",
                failure_kind=FailureKind.UNSUPPORTED_ARCHITECTURE,
            )

        target = posixpath.join(ctx.config.local_bin, "docker-compose")
        logger.info("Downloading docker-compose %s from %s", version, url)
        result = host.run(
            ["curl", "-fsSL", "-o", target, url],
            needs_sudo=True,
            timeout=ctx.timeout,
        )
        if not result.ok:
            hint = " (curl is not installed)" if ctx.flags.get(DOWNLOAD_TOOL_MISSING) else ""
            return self.fail(
                f"Failed to download compose binary from {url}{hint}: {result.message}",
                metadata={"url": url},
            )

        result = host.run(["chmod", "+x", target], needs_sudo=True, timeout=ctx.timeout)
        if not result.ok:
            return self.fail(f"Could not make {target} executable: {result.message}")

        link = posixpath.join(ctx.config.system_bin, "docker-compose")
        if not host.path_exists(link):
            linked = host.run(["ln", "-s", target, link], needs_sudo=True, timeout=ctx.timeout)
            if not linked.ok:
                logger.warning("Could not link %s -> %s: %s", link, target, linked.message)

        return self.ok(
            f"Installed docker-compose {version} binary to {target}",
            metadata={"method": "binary", "url": url, "path": target},
        )
