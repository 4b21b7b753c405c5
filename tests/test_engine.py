"""
Tests for the provisioning engine — ordering, abort, cleanup, idempotence.

Everything runs against MockHost, so no command touches the machine.
"""

from hostprep.adapters.mock import MockHost
from hostprep.core.config.loader import ProvisionerConfig
from hostprep.core.engine.executor import (
    ProvisionReport,
    provision,
    scratch_workspace,
)
from hostprep.core.models.receipt import FailureKind, Receipt, Severity
from hostprep.core.models.tool import Architecture
from hostprep.core.steps import default_steps
from hostprep.core.steps.base import Step

STEP_ORDER = [
    "preflight",
    "version-control",
    "container-runtime",
    "runtime-activation",
    "access-grant",
    "compose",
    "cloud-cli",
    "socket-permissions",
    "cleanup",
]


def _steps(report: ProvisionReport) -> list[str]:
    return [r.step for r in report.receipts]


def _receipt(report: ProvisionReport, step: str) -> Receipt:
    return next(r for r in report.receipts if r.step == step)


# ── Fresh host ──────────────────────────────────────────────────


class TestFreshHost:
    def test_fresh_x86_64_host_ends_fully_provisioned(self, fresh_host, config):
        report = provision(fresh_host, config)

        assert report.exit_code == 0
        assert report.status == "ok"
        assert _steps(report) == STEP_ORDER
        assert all(r.ok for r in report.receipts)

        assert fresh_host.has("git")
        assert fresh_host.has("docker")
        assert "compose" in fresh_host.plugins
        assert fresh_host.which("aws") == "/usr/local/bin/aws"
        assert fresh_host.services["docker"] == "active"
        assert "ec2-user" in fresh_host.groups["docker"]
        assert fresh_host.sockets["/var/run/docker.sock"] == 0o777

    def test_summary_reports_all_tools(self, fresh_host, config):
        report = provision(fresh_host, config)
        summary = {s.tool: s for s in report.summary}
        assert list(summary) == ["git", "docker", "compose", "aws-cli"]
        assert all(s.installed for s in summary.values())
        assert summary["git"].version == "git version 2.43.0"
        assert summary["compose"].version.startswith("Docker Compose version")

    def test_report_facts(self, fresh_host, config):
        report = provision(fresh_host, config)
        assert report.host == "mock"
        assert report.machine == "x86_64"
        assert report.architecture is Architecture.X86_64
        assert report.package_manager == "dnf"
        assert report.target_user == "ec2-user"

    def test_aws_cli_downloaded_for_host_arch(self, fresh_host, config):
        provision(fresh_host, config)
        assert fresh_host.downloads == [
            "https://awscli.amazonaws.com/awscli-exe-linux-x86_64.zip",
        ]

    def test_arm64_alias_selects_aarch64_artifacts(self, config):
        host = MockHost.fresh(machine="arm64", packages={
            "git": ["git"], "docker": ["docker"], "unzip": ["unzip"],
        })
        report = provision(host, config)

        assert report.exit_code == 0
        assert report.architecture is Architecture.AARCH64
        assert host.downloads == [
            "https://github.com/docker/compose/releases/download/v2.20.2/"
            "docker-compose-linux-aarch64",
            "https://awscli.amazonaws.com/awscli-exe-linux-aarch64.zip",
        ]

    def test_machine_override_beats_host(self, fresh_host, config):
        report = provision(fresh_host, config, machine="aarch64")
        assert report.machine == "aarch64"
        assert report.architecture is Architecture.AARCH64
        assert fresh_host.downloads == [
            "https://awscli.amazonaws.com/awscli-exe-linux-aarch64.zip",
        ]

    def test_on_receipt_streams_every_receipt(self, fresh_host, config):
        seen: list[str] = []
        report = provision(fresh_host, config, on_receipt=lambda r: seen.append(r.step))
        assert seen == _steps(report)

    def test_receipts_carry_labels(self, fresh_host, config):
        report = provision(fresh_host, config)
        assert all(r.label for r in report.receipts)


# ── Idempotence ─────────────────────────────────────────────────


class TestIdempotence:
    def test_second_run_downloads_and_installs_nothing(self, fresh_host, config):
        provision(fresh_host, config)
        installed = list(fresh_host.installed)
        downloads = list(fresh_host.downloads)
        fresh_host.call_log.clear()

        report = provision(fresh_host, config)

        assert report.exit_code == 0
        assert fresh_host.installed == installed
        assert fresh_host.downloads == downloads
        assert fresh_host.commands("dnf") == []
        assert fresh_host.commands("curl", "-fsSL") == []

    def test_second_run_skips_install_steps(self, fresh_host, config):
        provision(fresh_host, config)
        report = provision(fresh_host, config)
        for step in ("preflight", "version-control", "container-runtime", "compose", "cloud-cli"):
            assert _receipt(report, step).status == "skipped", step

    def test_second_run_with_standalone_compose_does_not_redownload(self, config):
        # No plugin package: compose comes from the pinned binary
        host = MockHost.fresh(packages={
            "git": ["git"], "docker": ["docker"], "unzip": ["unzip"],
        })
        provision(host, config)
        compose_url = (
            "https://github.com/docker/compose/releases/download/v2.20.2/"
            "docker-compose-linux-x86_64"
        )
        assert host.downloads.count(compose_url) == 1
        assert host.links["/usr/bin/docker-compose"] == "/usr/local/bin/docker-compose"

        report = provision(host, config)
        assert _receipt(report, "compose").status == "skipped"
        assert host.downloads.count(compose_url) == 1

    def test_preinstalled_tools_left_alone(self, config):
        host = MockHost.fresh()
        host.binaries.update(git="/usr/bin/git", unzip="/usr/bin/unzip")
        report = provision(host, config)
        assert _receipt(report, "version-control").status == "skipped"
        assert "git" not in host.installed
        assert "unzip" not in host.installed


# ── Fatal aborts ────────────────────────────────────────────────


class TestFatalAbort:
    def test_unsupported_architecture_aborts_without_downloading(self, config):
        host = MockHost.fresh(machine="s390x", packages={
            "git": ["git"], "docker": ["docker"], "unzip": ["unzip"],
        })
        report = provision(host, config)

        assert report.exit_code == 1
        assert report.status == "failed"
        assert report.architecture is Architecture.UNSUPPORTED
        assert report.aborted_by.step == "compose"
        assert report.aborted_by.failure_kind is FailureKind.UNSUPPORTED_ARCHITECTURE
        assert host.downloads == []
        assert "cloud-cli" not in _steps(report)
        assert "socket-permissions" not in _steps(report)

    def test_unsupported_arch_with_plugin_aborts_at_cloud_cli(self, config):
        host = MockHost.fresh(machine="riscv64")
        report = provision(host, config)
        assert report.exit_code == 1
        assert report.aborted_by.step == "cloud-cli"
        assert report.aborted_by.failure_kind is FailureKind.UNSUPPORTED_ARCHITECTURE
        assert host.downloads == []

    def test_runtime_install_failure_aborts(self, fresh_host, config):
        fresh_host.set_failure("dnf", "-y", "install", "docker", error="No match for argument: docker")
        report = provision(fresh_host, config)

        assert report.exit_code == 1
        assert report.aborted_by.step == "container-runtime"
        assert "enable additional repositories" in report.aborted_by.error
        assert _steps(report)[-1] == "cleanup"
        assert "compose" not in _steps(report)

    def test_no_package_manager_is_missing_required_tool(self, config):
        host = MockHost(binaries={"curl": "/usr/bin/curl"}, users={"ec2-user"})
        report = provision(host, config)
        assert report.package_manager is None
        assert report.aborted_by.step == "container-runtime"
        assert report.aborted_by.failure_kind is FailureKind.MISSING_REQUIRED_TOOL

    def test_aws_download_failure_aborts(self, fresh_host, config):
        fresh_host.set_failure("curl", "-fsSL", "-o", error="Could not resolve host")
        report = provision(fresh_host, config)
        assert report.exit_code == 1
        assert report.aborted_by.step == "cloud-cli"
        assert report.aborted_by.failure_kind is FailureKind.DOWNLOAD_OR_INSTALL_FAILURE


# ── Warnings ────────────────────────────────────────────────────


class TestWarnings:
    def test_missing_principal_is_a_warning(self, fresh_host):
        config = ProvisionerConfig(target_user="ghost")
        report = provision(fresh_host, config)

        assert report.exit_code == 0
        assert report.status == "degraded"
        grant = _receipt(report, "access-grant")
        assert grant.status == "warning"
        assert "ghost" in grant.output
        assert fresh_host.commands("usermod") == []

    def test_missing_socket_is_a_warning(self, config):
        host = MockHost.fresh(socket_on_start=False)
        report = provision(host, config)
        assert report.exit_code == 0
        assert _receipt(report, "socket-permissions").status == "warning"
        assert host.commands("chmod", "777") == []

    def test_runtime_activation_failure_does_not_abort(self, fresh_host, config):
        fresh_host.set_failure("systemctl", error="System has not been booted with systemd")
        report = provision(fresh_host, config)
        assert report.exit_code == 0
        assert _receipt(report, "runtime-activation").status == "warning"
        assert _receipt(report, "cloud-cli").ok

    def test_git_failure_does_not_abort(self, fresh_host, config):
        fresh_host.set_failure("dnf", "-y", "install", "git")
        report = provision(fresh_host, config)
        assert report.exit_code == 0
        assert _receipt(report, "version-control").status == "warning"
        assert len(report.warnings) == 1

    def test_missing_curl_warns_then_download_fails(self, config):
        host = MockHost(
            binaries={"dnf": "/usr/bin/dnf"},
            users={"ec2-user"},
            packages={"git": ["git"], "docker": ["docker"], "unzip": ["unzip"]},
        )
        report = provision(host, config)
        pre = _receipt(report, "preflight")
        assert pre.status == "warning"
        assert pre.failure_kind is FailureKind.MISSING_OPTIONAL_TOOL
        assert report.aborted_by.step == "compose"
        assert "curl is not installed" in report.aborted_by.error


# ── Scratch workspace ───────────────────────────────────────────


class TestScratchWorkspace:
    def test_removed_after_success(self, fresh_host, config):
        report = provision(fresh_host, config)
        assert not any(d.startswith("/tmp/install-tools-") for d in fresh_host.dirs)
        assert _receipt(report, "cleanup").status == "ok"

    def test_removed_after_fatal_abort(self, config):
        host = MockHost.fresh(machine="s390x", packages={
            "git": ["git"], "docker": ["docker"], "unzip": ["unzip"],
        })
        report = provision(host, config)
        assert report.aborted
        assert not any(d.startswith("/tmp/install-tools-") for d in host.dirs)
        assert not any(f.startswith("/tmp/install-tools-") for f in host.files)
        assert _receipt(report, "cleanup").status == "ok"

    def test_removed_when_step_raises(self, fresh_host, config):
        class Boom(Step):
            name = "boom"
            label = "Boom"
            severity = Severity.FATAL

            def apply(self, host, ctx):
                raise RuntimeError("kaboom")

        report = provision(fresh_host, config, steps=[Boom()])
        assert report.aborted_by.step == "boom"
        assert "kaboom" in report.aborted_by.error
        assert not any(d.startswith("/tmp/install-tools-") for d in fresh_host.dirs)

    def test_context_manager_removes_on_exception(self, fresh_host):
        try:
            with scratch_workspace(fresh_host, None) as ws:
                assert str(ws.path) in fresh_host.dirs
                raise ValueError("stop")
        except ValueError:
            pass
        assert ws.removed
        assert str(ws.path) not in fresh_host.dirs

    def test_scratch_root_honoured(self, fresh_host):
        config = ProvisionerConfig(target_user="ec2-user", scratch_root="/var/tmp")
        report = provision(fresh_host, config)
        assert _receipt(report, "cleanup").output.startswith("Removed /var/tmp/install-tools-")

    def test_cleanup_failure_is_a_warning(self, fresh_host, config):
        fresh_host.remove_tree = lambda path: False
        report = provision(fresh_host, config)
        assert report.exit_code == 0
        assert _receipt(report, "cleanup").status == "warning"


# ── Dry run ─────────────────────────────────────────────────────


class TestDryRun:
    def test_changes_nothing(self, fresh_host, config):
        report = provision(fresh_host, config, dry_run=True)
        assert report.dry_run
        assert report.exit_code == 0
        assert fresh_host.installed == []
        assert fresh_host.downloads == []
        assert fresh_host.commands("systemctl") == []

    def test_reports_what_would_apply(self, fresh_host, config):
        report = provision(fresh_host, config, dry_run=True)
        git = _receipt(report, "version-control")
        assert git.status == "skipped"
        assert git.metadata["dry_run"] is True
        assert "would apply" in git.output


# ── Report ──────────────────────────────────────────────────────


class TestProvisionReport:
    def test_to_dict(self, fresh_host, config):
        data = provision(fresh_host, config).to_dict()
        assert data["status"] == "ok"
        assert data["exit_code"] == 0
        assert data["architecture"] == "x86_64"
        assert data["aborted_by"] is None
        assert [r["step"] for r in data["receipts"]] == STEP_ORDER
        assert len(data["summary"]) == 4

    def test_empty_report_is_ok(self):
        report = ProvisionReport()
        assert report.status == "ok"
        assert report.exit_code == 0

    def test_default_steps_order(self):
        assert [s.name for s in default_steps()] == STEP_ORDER[:-1]


# ── Package index ───────────────────────────────────────────────


class TestPackageIndex:
    def test_apt_lists_refreshed_once_before_first_install(self, config):
        host = MockHost(
            binaries={"curl": "/usr/bin/curl", "apt-get": "/usr/bin/apt-get"},
            users={"ec2-user"},
            index_stale=True,
        )
        report = provision(host, config)

        assert report.exit_code == 0
        assert host.commands("apt-get", "update") == [["apt-get", "update"]]
        first_install = next(i for i, c in enumerate(host.call_log) if "install" in c)
        assert host.call_log.index(["apt-get", "update"]) < first_install

    def test_dnf_needs_no_refresh(self, fresh_host, config):
        provision(fresh_host, config)
        assert fresh_host.commands("dnf", "makecache") == []
        assert not any("update" in c for c in fresh_host.commands("dnf"))
