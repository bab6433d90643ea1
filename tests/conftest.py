"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path
from unittest.mock import Mock

import pytest

from vigil.core.deadline import Deadline
from vigil.core.repo_utils import CONFIG_FILENAME

# ============================================================================
# Environment Isolation
# ============================================================================
# Every test gets its own server state directory and global config location
# so nothing leaks into (or out of) the user's ~/.vigil and ~/.config.


@pytest.fixture(autouse=True)
def vigil_home(monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point VIGIL_HOME at a fresh, short directory.

    Uses a short base path (/tmp) to stay under the AF_UNIX path length
    limit (~104 chars on macOS); pytest's tmp_path can exceed it.
    """
    short_tmp = Path(tempfile.mkdtemp(prefix="vgl_", dir="/tmp"))
    monkeypatch.setenv("VIGIL_HOME", str(short_tmp))
    yield short_tmp
    shutil.rmtree(short_tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_global_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point XDG_CONFIG_HOME at an empty directory."""
    xdg = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    return xdg


# ============================================================================
# Project Helpers
# ============================================================================


def create_project(path: Path, config_text: str = "") -> Path:
    """Create a vigil project (a directory holding .vigilconfig).

    Args:
        path: Directory to turn into a project root.
        config_text: TOML written to .vigilconfig.

    Returns:
        The resolved project root.
    """
    path.mkdir(parents=True, exist_ok=True)
    (path / CONFIG_FILENAME).write_text(config_text)
    return path.resolve()


@pytest.fixture
def vigil_project(tmp_path: Path) -> Path:
    """Project root with an empty .vigilconfig and a few source files."""
    root = create_project(tmp_path / "project")
    (root / "src").mkdir()
    (root / "src" / "main.py").write_text("print('hello')\n")
    (root / "README.md").write_text("# project\n")
    return root


# ============================================================================
# Time Control
# ============================================================================
# Deadline takes its clock and sleep function as arguments; these fakes let
# tests drive time without actually waiting.


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it.

    Attributes:
        now: Current time in seconds.
        sleeps: Every duration passed to sleep(), in order.
    """

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_deadline(fake_clock: FakeClock) -> Callable[[int], Deadline]:
    """Factory for deadlines driven by fake_clock.

    Example:
        def test_something(make_deadline):
            deadline = make_deadline(5)  # armed 5s from fake "now"
            unbounded = make_deadline(0)
    """

    def _make(seconds: int = 0) -> Deadline:
        return Deadline.after(seconds, clock=fake_clock, sleeper=fake_clock.sleep)

    return _make


# ============================================================================
# Orchestrator Collaborators
# ============================================================================


@pytest.fixture
def mock_handle() -> Mock:
    """Connection handle as returned by a successful connect."""
    handle = Mock()
    handle.server_pid = 4242
    handle.ping.return_value = True
    return handle


@pytest.fixture
def mock_transport(mock_handle: Mock) -> Mock:
    """Transport whose connect() succeeds unless side_effect is replaced.

    Example:
        def test_busy(mock_transport):
            mock_transport.connect.side_effect = [ServerBusy("busy"), handle]
    """
    transport = Mock()
    transport.connect.return_value = mock_handle
    return transport


@pytest.fixture
def mock_launcher() -> Mock:
    return Mock()


@pytest.fixture
def mock_reporter() -> Mock:
    return Mock()
