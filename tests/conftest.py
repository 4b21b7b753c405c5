"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from hostprep.adapters.mock import MockHost
from hostprep.core.config.loader import ProvisionerConfig
from hostprep.core.detection.arch import normalize_architecture
from hostprep.core.steps.base import StepContext

TARGET_USER = "ec2-user"


@pytest.fixture
def config() -> ProvisionerConfig:
    """Default config with a known target user."""
    return ProvisionerConfig(target_user=TARGET_USER)


@pytest.fixture
def fresh_host() -> MockHost:
    """A bare x86_64 dnf host: curl and dnf, nothing else."""
    return MockHost.fresh(user=TARGET_USER)


@pytest.fixture
def make_ctx(config: ProvisionerConfig):
    """Build a StepContext for running a single step in isolation."""

    def _make(
        host: MockHost,
        *,
        machine: str | None = None,
        package_manager: str | None = "dnf",
        scratch: str | None = "/tmp/install-tools-test",
        **overrides,
    ) -> StepContext:
        cfg = config.model_copy(update=overrides) if overrides else config
        raw = machine or host.machine()
        if scratch:
            host.dirs.add(scratch)
        return StepContext(
            config=cfg,
            machine=raw,
            arch=normalize_architecture(raw),
            package_manager=package_manager,
            scratch=Path(scratch) if scratch else None,
        )

    return _make
