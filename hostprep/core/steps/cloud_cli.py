"""
Cloud CLI — AWS CLI v2 from the official bundled installer.

The archive is fetched into the run's scratch workspace, extracted
there, and its ``aws/install`` script is run in update-or-install mode
against fixed install/bin directories.
"""

from __future__ import annotations

import logging
import posixpath

from hostprep.adapters.base import Host
from hostprep.core.detection.arch import aws_cli_download_url
from hostprep.core.detection.tool_version import probe_tool, tool_works
from hostprep.core.models.receipt import FailureKind, Receipt, Severity
from hostprep.core.steps.base import Step, StepContext
from hostprep.core.steps.preflight import DOWNLOAD_TOOL_MISSING

logger = logging.getLogger(__name__)


class CloudCliStep(Step):
    name = "cloud-cli"
    label = "Cloud CLI (aws)"
    severity = Severity.FATAL

    def check(self, host: Host, ctx: StepContext) -> bool:
        return tool_works(host, "aws-cli")

    def satisfied_message(self, host: Host, ctx: StepContext) -> str:
        return f"AWS CLI already installed: {probe_tool(host, 'aws-cli').describe()}"

    def apply(self, host: Host, ctx: StepContext) -> Receipt:
        url = aws_cli_download_url(ctx.arch)
        if url is None:
            return self.fail(
                f"Unsupported architecture for AWS CLI installer: {ctx.machine}",
                failure_kind=FailureKind.UNSUPPORTED_ARCHITECTURE,
            )
        if ctx.scratch is None:
            return self.fail("No scratch workspace to stage the AWS CLI installer in")

        scratch = str(ctx.scratch)
        archive = posixpath.join(scratch, "awscliv2.zip")
        extract_dir = posixpath.join(scratch, "awscli")

        logger.info("Downloading AWS CLI from %s", url)
        result = host.run(["curl", "-fsSL", "-o", archive, url], timeout=ctx.timeout)
        if not result.ok:
            hint = " (curl is not installed)" if ctx.flags.get(DOWNLOAD_TOOL_MISSING) else ""
            return self.fail(
                f"Failed to download AWS CLI from {url}{hint}: {result.message}",
                metadata={"url": url},
            )

        result = host.run(["unzip", "-q", archive, "-d", extract_dir], timeout=ctx.timeout)
        if not result.ok:
            return self.fail(f"Failed to extract {archive}: {result.message}")

        installer = posixpath.join(extract_dir, "aws", "install")
        bin_dir = ctx.config.local_bin
        result = host.run(
            [
                installer,
                "--install-dir", ctx.config.aws_install_dir,
                "--bin-dir", bin_dir,
                "--update",
            ],
            needs_sudo=True,
            timeout=ctx.timeout,
        )
        if not result.ok:
            return self.fail(f"AWS CLI install failed: {result.message}")

        version = host.run([posixpath.join(bin_dir, "aws"), "--version"], timeout=30)
        return self.ok(
            f"AWS CLI installed: {version.first_line or 'version unknown'}",
            metadata={"url": url},
        )
