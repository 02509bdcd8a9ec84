"""
Pytest configuration and shared fixtures for mediashrink tests.
"""

import sys
import tempfile
import threading
from pathlib import Path
from typing import Generator, Iterable, List, Optional

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mediashrink.errors import TranscodeCancelled  # noqa: E402
from mediashrink.probe import VideoInfo  # noqa: E402


class FakeRunner:
    """
    Stand-in for HandBrakeRunner.

    Writes an output file of a fixed size for every call instead of
    encoding. Segment encodes are recognized by --start-at.
    """

    def __init__(
        self,
        segment_size: int = 10_000,
        full_size: int = 500_000,
        fail_segments: Iterable[int] = (),
        fail_inputs: Iterable[str] = (),
        cancel_inputs: Iterable[str] = (),
    ):
        self.segment_size = segment_size
        self.full_size = full_size
        self.fail_segments = set(fail_segments)
        self.fail_inputs = set(fail_inputs)
        self.cancel_inputs = set(cancel_inputs)
        self.calls: List[List[str]] = []

    @staticmethod
    def _value(args: List[str], flag: str) -> str:
        return args[args.index(flag) + 1]

    @property
    def segment_calls(self) -> List[List[str]]:
        return [c for c in self.calls if "--start-at" in c]

    @property
    def full_calls(self) -> List[List[str]]:
        return [c for c in self.calls if "--start-at" not in c]

    def run(self, args, cancel: Optional[threading.Event] = None) -> int:
        args = list(args)
        self.calls.append(args)
        inp = Path(self._value(args, "-i"))
        out = Path(self._value(args, "-o"))

        if "--start-at" in args:
            segment_no = int(out.name.rsplit("size-test-", 1)[1].split(".")[0])
            if segment_no in self.fail_segments:
                return 1
            out.write_bytes(b"\0" * self.segment_size)
            return 0

        if inp.name in self.cancel_inputs:
            out.write_bytes(b"partial")
            if cancel is not None:
                cancel.set()
            raise TranscodeCancelled("encode cancelled")
        if inp.name in self.fail_inputs:
            out.write_bytes(b"partial")
            return 1
        out.write_bytes(b"\0" * self.full_size)
        return 0


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_dir(temp_dir: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = temp_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def mock_xdg_dirs(temp_dir: Path, monkeypatch):
    """Mock XDG directories to use temporary paths."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(temp_dir / "state"))


@pytest.fixture
def default_config():
    """Return a default Config instance for testing."""
    from mediashrink.config import Config

    return Config()


@pytest.fixture
def fake_runner_factory():
    return FakeRunner


@pytest.fixture
def make_input(temp_dir: Path):
    """Create an input video file of a given size."""

    def _make(name: str = "movie.mp4", size: int = 1_000_000) -> Path:
        path = temp_dir / name
        path.write_bytes(b"\0" * size)
        return path

    return _make


@pytest.fixture
def fake_inspect():
    """Probe replacement: every file is an SDR video of the given duration."""

    def _factory(duration: float = 3600.0, is_hdr: bool = False):
        def _inspect(path: Path) -> VideoInfo:
            return VideoInfo(
                path=path,
                is_hdr=is_hdr,
                duration=duration,
                width=1920,
                height=1080,
                codec="h264",
                video_bitrate=8_000_000,
            )

        return _inspect

    return _factory


@pytest.fixture
def tools_present(monkeypatch):
    """Pretend HandBrakeCLI is installed."""
    import mediashrink.transcoder

    monkeypatch.setattr(mediashrink.transcoder, "check_tool_available", lambda tool=None: None)
