"""
Data — Tool recipes.

One entry per tool the provisioner manages or probes. Pure data.

Fields:
    label       Human-readable name.
    cli         Binary looked up on PATH to decide presence.
    packages    Package names per package manager. A tool without an
                entry for the host's package manager cannot be
                installed through it.
    version     Command whose output is shown in the summary.
"""

from __future__ import annotations

TOOL_RECIPES: dict[str, dict] = {
    "curl": {
        "label": "curl",
        "cli": "curl",
        # Never installed: Amazon Linux ships curl-minimal, which
        # conflicts with the full curl package.
        "packages": {},
        "version": ["curl", "--version"],
    },
    "unzip": {
        "label": "unzip",
        "cli": "unzip",
        "packages": {
            "dnf": ["unzip"],
            "yum": ["unzip"],
            "apt": ["unzip"],
        },
        "version": ["unzip", "-v"],
    },
    "git": {
        "label": "git",
        "cli": "git",
        "packages": {
            "dnf": ["git"],
            "yum": ["git"],
            "apt": ["git"],
        },
        "version": ["git", "--version"],
    },
    "docker": {
        "label": "docker",
        "cli": "docker",
        "packages": {
            "dnf": ["docker"],
            "yum": ["docker"],
            "apt": ["docker.io"],
        },
        "version": ["docker", "--version"],
    },
    "docker-compose-plugin": {
        "label": "docker compose",
        "cli": "docker",
        "packages": {
            "dnf": ["docker-compose-plugin"],
            "yum": ["docker-compose-plugin"],
            "apt": ["docker-compose-plugin"],
        },
        "version": ["docker", "compose", "version"],
    },
    "docker-compose": {
        "label": "docker-compose (binary)",
        "cli": "docker-compose",
        "packages": {},
        "version": ["docker-compose", "--version"],
    },
    "aws-cli": {
        "label": "aws",
        "cli": "aws",
        # AWS CLI v2 only ships as the bundled installer; distro
        # packages are v1.
        "packages": {},
        "version": ["aws", "--version"],
    },
}
