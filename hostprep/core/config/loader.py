"""
Configuration loader — reads hostprep.yml and the ambient environment.

Provisioning takes no flags. Everything tunable lives in an optional
YAML file; the identity of the user who receives runtime access comes
from the environment. Both are resolved ONCE here and handed to the
provisioner as an explicit ProvisionerConfig, so nothing in the run
reads ``os.environ`` behind the caller's back.
"""

from __future__ import annotations

import getpass
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hostprep.core.data.constants import COMPOSE_FALLBACK_VERSION

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "hostprep.yml"

# Env var pointing at an explicit config file
CONFIG_ENV_VAR = "HOSTPREP_CONFIG"


class ConfigError(Exception):
    """Raised when provisioner configuration is invalid or unreadable."""


class ProvisionerConfig(BaseModel):
    """Everything a provisioning run needs besides the host itself."""

    model_config = ConfigDict(extra="forbid")

    target_user: str = ""             # receives runtime group membership
    package_manager: Literal["auto", "dnf", "yum", "apt"] = "auto"

    compose_fallback_version: str = COMPOSE_FALLBACK_VERSION
    local_bin: str = "/usr/local/bin"
    system_bin: str = "/usr/bin"
    aws_install_dir: str = "/usr/local/aws-cli"
    scratch_root: str | None = None   # None = system temp dir

    runtime_service: str = "docker"
    runtime_group: str = "docker"
    socket_path: str = "/var/run/docker.sock"
    # World read/write on the runtime socket: any local user can talk
    # to the daemon.
    socket_mode: int = 0o777

    command_timeout: int = Field(default=600, gt=0)
    use_sudo: bool = True

    @field_validator("socket_mode", mode="before")
    @classmethod
    def _parse_octal(cls, value: Any) -> Any:
        """Accept ``"0777"`` / ``"777"`` / ``"0o777"`` as octal strings."""
        if isinstance(value, str):
            text = value.strip().lower().removeprefix("0o")
            try:
                return int(text, 8)
            except ValueError as e:
                raise ValueError(f"socket_mode must be an octal mode, got {value!r}") from e
        return value

    @field_validator("socket_mode")
    @classmethod
    def _check_mode_range(cls, value: int) -> int:
        # Permission bits only. An unquoted YAML 777 is the decimal 777
        # (0o1411) and lands here.
        if not 0 <= value <= 0o777:
            raise ValueError(
                f"socket_mode must be between 0 and 0777, got {oct(value)}; "
                "quote it or write it with a leading zero (\"0777\")"
            )
        return value


def resolve_target_user(env: Mapping[str, str] | None = None) -> str:
    """The non-privileged principal who should get runtime access.

    ``SUDO_USER`` first (the person who ran ``sudo hostprep``), then
    ``USER``, then the current login name.
    """
    env = os.environ if env is None else env
    for var in ("SUDO_USER", "USER"):
        value = env.get(var, "").strip()
        if value:
            return value
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for hostprep.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to hostprep.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading provisioner config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "hostprep" key or be flat
    section = data.get("hostprep", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected 'hostprep' to be a mapping in {path}")
    return dict(section)


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    search: bool = True,
) -> ProvisionerConfig:
    """Load configuration from file (if any) and the environment.

    Precedence for the file: ``path`` > ``$HOSTPREP_CONFIG`` >
    ``hostprep.yml`` found upward from cwd (when ``search``) > defaults.
    ``target_user`` falls back to the environment when the file does not
    set it.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    env = os.environ if env is None else env

    if path is None and env.get(CONFIG_ENV_VAR):
        path = Path(env[CONFIG_ENV_VAR])
    if path is None and search:
        path = find_config_file()

    data = _read_yaml(path) if path is not None else {}

    if not data.get("target_user"):
        data["target_user"] = resolve_target_user(env)

    try:
        config = ProvisionerConfig.model_validate(data)
    except ValidationError as e:
        source = path or "defaults"
        raise ConfigError(f"Invalid provisioner configuration ({source}): {e}") from e

    logger.info(
        "Config loaded from %s (target user: %s)",
        path or "defaults",
        config.target_user or "<none>",
    )
    return config
