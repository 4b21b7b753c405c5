"""
hostprep — CLI entrypoint.

Usage:
    hostprep --help
    sudo hostprep provision
    hostprep provision --mock
    hostprep status
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from hostprep import __version__
from hostprep.adapters.base import Host
from hostprep.core.config.loader import ConfigError, ProvisionerConfig, load_config
from hostprep.core.models.receipt import Receipt
from hostprep.core.models.tool import ToolStatus
from hostprep.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)

_STATUS_STYLE = {
    "ok": ("✓", "green"),
    "skipped": ("⊘", "cyan"),
    "warning": ("⚠", "yellow"),
    "failed": ("✗", "red"),
}


@click.group()
@click.version_option(version=__version__, prog_name="hostprep")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (every command run).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to hostprep.yml (default: $HOSTPREP_CONFIG or auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """hostprep — install and configure git, Docker, Compose and the AWS CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


def _load_config_or_exit(ctx: click.Context) -> ProvisionerConfig:
    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _make_host(config: ProvisionerConfig, mock: bool) -> Host:
    if mock:
        from hostprep.adapters.mock import MockHost

        return MockHost.fresh(
            user=config.target_user or "ec2-user",
            socket_path=config.socket_path,
        )

    from hostprep.adapters.local import LocalHost

    return LocalHost(use_sudo=config.use_sudo, timeout=config.command_timeout)


def _echo_receipt(receipt: Receipt, verbose: bool = False) -> None:
    marker, color = _STATUS_STYLE.get(receipt.status, ("?", "white"))
    label = receipt.label or receipt.step
    click.secho(f"   {marker} {label}", fg=color, nl=False)
    detail = receipt.error if receipt.failed else receipt.output
    click.echo(f" — {detail}" if detail else "")
    for note in receipt.metadata.get("notes", []):
        click.echo(f"     │ {note}")
    if verbose and receipt.duration_ms:
        click.echo(f"     │ {receipt.duration_ms}ms")


def _echo_summary(summary: list[ToolStatus]) -> None:
    click.secho("   Summary:", fg="white", bold=True)
    for status in summary:
        color = "green" if status.installed else "yellow"
        click.echo(f"     • {status.label or status.tool}: ", nl=False)
        click.secho(status.describe(), fg=color)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Check only; change nothing.")
@click.option("--mock", is_flag=True, help="Run against a simulated fresh host.")
@click.pass_context
def provision(ctx: click.Context, as_json: bool, dry_run: bool, mock: bool) -> None:
    """Bring this host to the desired tool state.

    Every step is idempotent: tools that are already present are left
    alone. Exits 1 only when the container runtime cannot be installed
    or the compose fallback / AWS CLI cannot be installed.
    """
    from hostprep.core.engine.executor import provision as run_provision

    config = _load_config_or_exit(ctx)
    host = _make_host(config, mock)
    quiet = ctx.obj.get("quiet", False)
    verbose = ctx.obj.get("verbose", False)

    if as_json:
        report = run_provision(host, config, dry_run=dry_run)
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(report.exit_code)

    if not quiet:
        mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
        click.secho(f"\n⚡ {mode_label}Provisioning {host.name} host", fg="cyan", bold=True)
        click.echo()

    report = run_provision(
        host,
        config,
        dry_run=dry_run,
        on_receipt=lambda r: _echo_receipt(r, verbose=verbose),
    )

    click.echo()
    if not quiet:
        _echo_summary(report.summary)
        click.echo()

    aborted = report.aborted_by
    if aborted is not None:
        click.secho(f"   ❌ Aborted at {aborted.label}", fg="red", bold=True)
        click.echo()
        sys.exit(report.exit_code)

    if report.warnings:
        click.secho(
            f"   Completed with {len(report.warnings)} warning(s).",
            fg="yellow",
            bold=True,
        )
    else:
        click.secho("   Installation complete.", fg="green", bold=True)

    if report.access_granted and not quiet:
        click.echo(
            f"   Log out and back in as {report.target_user} to use docker without sudo."
        )
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--mock", is_flag=True, help="Probe a simulated fresh host.")
@click.pass_context
def status(ctx: click.Context, as_json: bool, mock: bool) -> None:
    """Show presence and version of each managed tool."""
    from hostprep.core.detection.tool_version import probe_summary

    config = _load_config_or_exit(ctx)
    summary = probe_summary(_make_host(config, mock))

    if as_json:
        click.echo(json.dumps([s.model_dump(mode="json") for s in summary], indent=2))
        return

    click.echo()
    _echo_summary(summary)
    click.echo()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
