"""
Shared test fixtures for StreamPack tests.

Provides:
- Isolated upload/output roots per test (tmp_path)
- A deterministic stub ProcessRunner standing in for ffmpeg
- Test client (httpx AsyncClient over ASGITransport)
- Sample upload payloads
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import AsyncGenerator, Callable, Iterable, List, Optional, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
_test_storage_dir = tempfile.mkdtemp(prefix="streampack_test_")
os.environ["UPLOAD_FOLDER"] = os.path.join(_test_storage_dir, "uploads")
os.environ["OUTPUT_FOLDER"] = os.path.join(_test_storage_dir, "streams")
os.environ["LOG_LEVEL"] = "DEBUG"

from streampack.api.deps import get_process_runner
from streampack.core.config import Settings, get_settings
from streampack.main import app
from streampack.services.ffmpeg_runner import FFmpegTimeout, ProcessResult


# =============================================================================
# Stub transcoder
# =============================================================================

GATE_TIMEOUT_SECONDS = 30


def format_of(args: Sequence[str]) -> str:
    """Which format a packaging command targets, judged by its output file."""
    return "hls" if str(args[-1]).endswith(".m3u8") else "dash"


class StubRunner:
    """
    ProcessRunner that imitates ffmpeg without running it.

    On success it writes the entry file named by the last argument plus one
    segment, recording the input path inside the entry file so tests can
    tell which upload produced which tree.
    """

    def __init__(
        self,
        returncode: int = 0,
        fail_formats: Iterable[str] = (),
        timeout_formats: Iterable[str] = (),
        write_outputs: bool = True,
        gate: Optional[threading.Event] = None,
    ):
        self.returncode = returncode
        self.fail_formats = set(fail_formats)
        self.timeout_formats = set(timeout_formats)
        self.write_outputs = write_outputs
        self.gate = gate
        self.calls: List[List[str]] = []
        self._lock = threading.Lock()

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        args = [str(arg) for arg in args]
        with self._lock:
            self.calls.append(args)

        # Hold the conversion open until the test releases the gate
        if self.gate is not None and not self.gate.wait(GATE_TIMEOUT_SECONDS):
            raise FFmpegTimeout("stub gate never opened")

        fmt = format_of(args)
        if fmt in self.timeout_formats:
            raise FFmpegTimeout("stub timeout", output="frame=1 stalled")

        if self.returncode != 0 or fmt in self.fail_formats:
            return ProcessResult(returncode=self.returncode or 1, output="Invalid data found when processing input")

        if self.write_outputs:
            entry = Path(args[-1])
            source = args[args.index("-i") + 1]
            entry.write_text(f"#STUB {fmt}\nsource={source}\n", encoding="utf-8")
            segment = "playlist0.ts" if fmt == "hls" else "init-0.m4s"
            (entry.parent / segment).write_bytes(b"\x00segment")

        return ProcessResult(returncode=0, output=f"stub {fmt} ok")

    def calls_for(self, fmt: str) -> List[List[str]]:
        return [call for call in self.calls if format_of(call) == fmt]


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with upload/output roots isolated under tmp_path."""
    return Settings(
        upload_folder=str(tmp_path / "uploads"),
        output_folder=str(tmp_path / "streams"),
        transcode_timeout_seconds=30,
    )


@pytest.fixture
def make_runner() -> Callable[..., StubRunner]:
    """Factory for StubRunner instances with custom behaviour."""
    return StubRunner


@pytest.fixture
def stub_runner() -> StubRunner:
    """Stub runner that always succeeds and writes entry files."""
    return StubRunner()


# =============================================================================
# Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(
    test_settings: Settings,
    stub_runner: StubRunner,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide an async HTTP client for testing the FastAPI application.

    Overrides settings and the process runner so every test gets its own
    storage roots and never invokes a real ffmpeg.
    """
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_process_runner] = lambda: stub_runner

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# Sample File Fixtures
# =============================================================================


@pytest.fixture
def sample_video_mp4() -> bytes:
    """
    Minimal MP4-looking payload (ftyp box header).

    The stub runner never decodes it, so only the bytes matter.
    """
    return b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 64
