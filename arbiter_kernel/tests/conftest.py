"""Pytest configuration for arbiter_kernel tests.

Provides recording fakes: every resource and task hook appends a tuple to a
shared call log, so tests can assert on the exact order of callbacks across
resources and tasks.

Key Principles:
- The kernel is tested without any real task or resource implementation
- Assertions are made on observable hook calls and introspection, not on
  private tables
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

# Add the project root to the path for imports
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from arbiter_protocols import Resource, Task


# =============================================================================
# PYTEST MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (may use mocks)"
    )
    config.addinivalue_line(
        "markers", "integration: Multi-tick scheduling scenarios"
    )
    config.addinivalue_line(
        "markers", "kernel: Kernel-level tests"
    )


# =============================================================================
# RECORDING FAKES
# =============================================================================

CallLog = List[Tuple]


class RecordingResource(Resource):
    """Resource that records its hook calls."""

    def __init__(self, name: str, log: CallLog):
        super().__init__(name)
        self.log = log

    def setup(self) -> None:
        self.log.append((self.name, "setup"))

    def update(self) -> None:
        self.log.append((self.name, "update"))

    def teardown(self) -> None:
        self.log.append((self.name, "teardown"))


class RecordingTask(Task):
    """Task that records its hook calls.

    Set ``done = True`` to make is_done() report completion on the next tick.
    """

    def __init__(self, name: str, log: CallLog, *resources: Resource):
        super().__init__(*resources, name=name)
        self.log = log
        self.done = False
        self.steps = 0
        self.setups = 0
        self.teardowns: List[bool] = []

    def setup(self) -> None:
        self.setups += 1
        self.log.append((self.name, "setup"))

    def step(self) -> None:
        self.steps += 1
        self.log.append((self.name, "step"))

    def teardown(self, interrupted: bool) -> None:
        self.teardowns.append(interrupted)
        self.log.append((self.name, "teardown", interrupted))

    def is_done(self) -> bool:
        return self.done


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def call_log() -> CallLog:
    return []


@pytest.fixture
def make_resource(call_log):
    """Factory for recording resources."""
    def _make(name: str) -> RecordingResource:
        return RecordingResource(name, call_log)

    return _make


@pytest.fixture
def make_task(call_log):
    """Factory for recording tasks."""
    def _make(name: str, *resources: Resource) -> RecordingTask:
        return RecordingTask(name, call_log, *resources)

    return _make


@pytest.fixture
def drive(make_resource):
    return make_resource("drive")


@pytest.fixture
def arm(make_resource):
    return make_resource("arm")


@pytest.fixture
def settings():
    """Settings isolated from environment and .env files."""
    from arbiter_kernel.settings import ArbiterSettings

    return ArbiterSettings(_env_file=None)


@pytest.fixture
def arbiter(mock_logger, settings, drive, arm):
    """An Arbiter with drive and arm registered, not yet enabled."""
    from arbiter_kernel.kernel import Arbiter
    from arbiter_shared.id_generator import SequentialIdGenerator

    arbiter = Arbiter(
        logger=mock_logger,
        settings=settings,
        id_generator=SequentialIdGenerator(),
    )
    arbiter.register_resources(drive, arm)
    return arbiter


@pytest.fixture
def enabled_arbiter(arbiter, call_log):
    """The arbiter fixture after enable(), with the call log cleared."""
    arbiter.enable()
    call_log.clear()
    return arbiter


def hooks_of(log: CallLog, name: str, hook: Optional[str] = None) -> List[Tuple]:
    """Entries of the call log belonging to one object (and hook)."""
    return [
        entry for entry in log
        if entry[0] == name and (hook is None or entry[1] == hook)
    ]


@pytest.fixture
def hooks():
    return hooks_of
