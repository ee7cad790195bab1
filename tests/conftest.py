"""
Pytest configuration and fixtures.
"""

import sys
from collections import deque
from pathlib import Path

import pytest

# Add src to path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: exercises threads or subprocesses")

    print("\n" + "=" * 80)
    print("🧪 PYTEST CONFIGURATION")
    print("=" * 80)
    print(f"   Python: {sys.version.split()[0]}")
    print(f"   Platform: {sys.platform}")
    print(f"   Src path: {src_path}")
    print("=" * 80 + "\n")


def pytest_collection_modifyitems(config, items):
    """
    Modify test items to add helpful markers.
    """
    for item in items:
        nodeid = item.nodeid.lower()
        if "orchestrator" in nodeid or "headless" in nodeid or "session" in nodeid:
            item.add_marker("integration")


class RecordingSink:
    """Screen sink that records writes instead of emitting escape codes."""

    def __init__(self, width: int = 80, height: int = 24):
        self.size = (width, height)
        self.writes = []
        self.flushes = 0
        self.cleared = 0
        self.cursor = None
        self.entered = False

    def enter(self) -> None:
        self.entered = True

    def exit(self) -> None:
        self.entered = False

    def clear(self) -> None:
        self.cleared += 1

    def write_at(self, x, y, text, style) -> None:
        self.writes.append((x, y, text, style))

    def place_cursor(self, x, y, visible) -> None:
        self.cursor = (x, y, visible)

    def flush(self) -> None:
        self.flushes += 1


class FakeKeys:
    """Key source fed from a list."""

    def __init__(self, keys=()):
        self.pending = deque(keys)
        self.started = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.started = False

    def feed(self, *keys) -> None:
        self.pending.extend(keys)

    def is_key_available(self) -> bool:
        return bool(self.pending)

    def read_key(self):
        return self.pending.popleft() if self.pending else None


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def keys():
    return FakeKeys()


@pytest.fixture
def project(tmp_path):
    """A project directory with plan and build prompts."""
    (tmp_path / "PLAN.PROMPT.md").write_text("Plan the work", encoding="utf-8")
    (tmp_path / "BUILD.PROMPT.md").write_text("Build the next job", encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(project):
    from overseer.config import HarnessConfig

    return HarnessConfig(
        working_directory=project,
        agent_command=["agent"],
        iteration_delay=0.0,
        verify_after_iteration=True,
    )
