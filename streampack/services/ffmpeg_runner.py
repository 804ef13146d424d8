"""
FFmpeg Runner with Timeout Enforcement

Runs external transcoder commands with:
- Combined stdout/stderr capture for diagnostics
- Strict timeout enforcement
- Process group management for clean termination

The orchestrator only depends on the ProcessRunner protocol, so tests can
swap in a deterministic stub instead of a real ffmpeg binary.
"""

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class FFmpegTimeout(Exception):
    """Raised when FFmpeg exceeds the allowed timeout."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class FFmpegError(Exception):
    """Raised when FFmpeg cannot be started at all."""

    pass


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and combined output of a finished child process."""

    returncode: int
    output: str


class ProcessRunner(Protocol):
    """Capability to run a child process to completion."""

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        ...


class SubprocessRunner:
    """
    ProcessRunner backed by subprocess.Popen.

    The child runs in its own session so the whole process group can be
    killed on timeout.
    """

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """
        Run a command synchronously and capture its combined output.

        Args:
            args: Command as list of arguments
            cwd: Optional working directory
            timeout: Maximum allowed runtime in seconds (None = unbounded)

        Returns:
            ProcessResult with the exit status and combined output

        Raises:
            FFmpegTimeout: If the process exceeds the timeout
            FFmpegError: If the process cannot be started
        """
        cmd: List[str] = [str(arg) for arg in args]
        logger.debug(f"Running command: {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                universal_newlines=True,
                errors="replace",
                cwd=str(cwd) if cwd is not None else None,
                start_new_session=True,
            )
        except OSError as e:
            raise FFmpegError(f"Failed to start {cmd[0]}: {e}") from e

        start_time = time.time()
        try:
            output, _ = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            elapsed = time.time() - start_time
            logger.warning(f"{cmd[0]} timeout after {elapsed:.1f}s (limit: {timeout}s)")
            _kill_process_group(process)
            output, _ = process.communicate()
            raise FFmpegTimeout(
                f"{cmd[0]} exceeded timeout of {timeout} seconds",
                output=output or "",
            )

        return ProcessResult(returncode=process.returncode, output=output or "")


def _kill_process_group(process: subprocess.Popen) -> None:
    """
    Kill a process and its entire process group with SIGKILL.

    Errors during termination are logged, not raised.
    """
    try:
        pgid = os.getpgid(process.pid)
        logger.info(f"Killing process group {pgid}")
        os.killpg(pgid, signal.SIGKILL)
    except ProcessLookupError:
        logger.debug("Process already terminated")
    except OSError as e:
        logger.warning(f"Error killing process group: {e}")
        try:
            process.kill()
        except OSError:
            logger.debug("Fallback kill failed", exc_info=True)


def validate_ffmpeg_available(ffmpeg_binary: str = "ffmpeg") -> bool:
    """
    Check if FFmpeg is available and working.

    Returns:
        True if FFmpeg is available, False otherwise
    """
    try:
        result = subprocess.run(
            [ffmpeg_binary, "-version"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"FFmpeg not available: {e}")
        return False
