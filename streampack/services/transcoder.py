"""
Transcode Orchestrator

Packages a stored upload into two adaptive-streaming trees by invoking
ffmpeg once per target format:

- HLS:  {output}/hls/playlist.m3u8 + .ts segments
- DASH: {output}/dash/manifest.mpd + init-*.m4s / chunk-*.m4s segments

Each invocation is synchronous. The two formats write to disjoint
directories and only read the shared input, so they may run concurrently.
Nothing is rolled back when one format fails.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from streampack.core.storage import (
    DASH_DIR_NAME,
    DASH_ENTRY_FILE,
    HLS_DIR_NAME,
    HLS_ENTRY_FILE,
    VideoLayout,
)
from streampack.services.ffmpeg_runner import (
    FFmpegError,
    FFmpegTimeout,
    ProcessRunner,
    SubprocessRunner,
)

logger = logging.getLogger(__name__)


StreamFormat = Literal["hls", "dash"]
ConversionStatus = Literal["done", "failed", "timeout"]

# Tail of the process output kept for diagnostics
DIAGNOSTICS_LIMIT = 4000

# HLS packaging parameters
HLS_SEGMENT_SECONDS = 10
HLS_PROFILE = "baseline"
HLS_LEVEL = "3.0"

# DASH packaging parameters
DASH_GOP_FRAMES = 60
DASH_VIDEO_BITRATE = "1500k"
DASH_AUDIO_BITRATE = "128k"
DASH_INIT_SEGMENT_NAME = "init-$RepresentationID$.m4s"
DASH_MEDIA_SEGMENT_NAME = "chunk-$RepresentationID$-$Number%05d$.m4s"
DASH_ADAPTATION_SETS = "id=0,streams=v id=1,streams=a"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of packaging one format."""

    format: StreamFormat
    status: ConversionStatus
    diagnostics: str = ""
    returncode: Optional[int] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == "done"


def build_hls_command(ffmpeg_binary: str, input_path: Path, output_dir: Path) -> List[str]:
    """
    Build the ffmpeg command that packages input_path as HLS.

    10 second segments, unbounded playlist, H.264 baseline profile level 3.0.
    """
    return [
        ffmpeg_binary,
        "-y",
        "-i", str(input_path),
        "-profile:v", HLS_PROFILE,
        "-level", HLS_LEVEL,
        "-start_number", "0",
        "-hls_time", str(HLS_SEGMENT_SECONDS),
        "-hls_list_size", "0",
        "-f", "hls",
        str(output_dir / HLS_ENTRY_FILE),
    ]


def build_dash_command(ffmpeg_binary: str, input_path: Path, output_dir: Path) -> List[str]:
    """
    Build the ffmpeg command that packages input_path as DASH.

    H.264 video at 1500k and AAC audio at 128k with a fixed 60 frame GOP
    and scene-cut detection disabled. Segments are template named and split
    into one video and one audio adaptation set.
    """
    gop = str(DASH_GOP_FRAMES)
    return [
        ffmpeg_binary,
        "-y",
        "-i", str(input_path),
        "-map", "0:v",
        "-map", "0:a",
        "-c:v", "libx264",
        "-x264-params", f"keyint={gop}:min-keyint={gop}:no-scenecut=1",
        "-b:v:0", DASH_VIDEO_BITRATE,
        "-c:a", "aac",
        "-b:a", DASH_AUDIO_BITRATE,
        "-bf", "1",
        "-keyint_min", gop,
        "-g", gop,
        "-sc_threshold", "0",
        "-f", "dash",
        "-use_template", "1",
        "-use_timeline", "1",
        "-init_seg_name", DASH_INIT_SEGMENT_NAME,
        "-media_seg_name", DASH_MEDIA_SEGMENT_NAME,
        "-adaptation_sets", DASH_ADAPTATION_SETS,
        str(output_dir / DASH_ENTRY_FILE),
    ]


class TranscodeOrchestrator:
    """
    Runs the HLS and DASH packaging commands through a ProcessRunner.

    Usage:
        orchestrator = TranscodeOrchestrator(SubprocessRunner())
        hls, dash = orchestrator.package_all(record.path, layout)
        if hls.ok and dash.ok:
            ...
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        ffmpeg_binary: str = "ffmpeg",
        timeout_seconds: Optional[float] = None,
        verify_entry_files: bool = True,
    ):
        self.runner = runner or SubprocessRunner()
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout_seconds = timeout_seconds
        self.verify_entry_files = verify_entry_files

    def package_hls(self, input_path: Path, output_dir: Path) -> ConversionResult:
        """Package input_path as HLS into output_dir."""
        cmd = build_hls_command(self.ffmpeg_binary, input_path, output_dir)
        return self._convert("hls", cmd, input_path, output_dir / HLS_ENTRY_FILE)

    def package_dash(self, input_path: Path, output_dir: Path) -> ConversionResult:
        """Package input_path as DASH into output_dir."""
        cmd = build_dash_command(self.ffmpeg_binary, input_path, output_dir)
        return self._convert("dash", cmd, input_path, output_dir / DASH_ENTRY_FILE)

    def package_all(
        self,
        input_path: Path,
        layout: VideoLayout,
        parallel: bool = False,
    ) -> Tuple[ConversionResult, ConversionResult]:
        """
        Package both formats for one upload.

        Both conversions always run, even if the first fails.

        Returns:
            (hls_result, dash_result)
        """
        if not parallel:
            hls = self.package_hls(input_path, layout.hls_dir)
            dash = self.package_dash(input_path, layout.dash_dir)
            return hls, dash

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="transcode") as pool:
            hls_future = pool.submit(self.package_hls, input_path, layout.hls_dir)
            dash_future = pool.submit(self.package_dash, input_path, layout.dash_dir)
            return hls_future.result(), dash_future.result()

    def _convert(
        self,
        fmt: StreamFormat,
        cmd: List[str],
        input_path: Path,
        entry_file: Path,
    ) -> ConversionResult:
        label = fmt.upper()
        start_time = time.time()

        try:
            entry_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"{label} conversion failed: cannot create {entry_file.parent}: {e}")
            return ConversionResult(format=fmt, status="failed", diagnostics=str(e))

        logger.info(f"Starting {label} conversion for {input_path}")

        try:
            result = self.runner.run(cmd, timeout=self.timeout_seconds)
        except FFmpegTimeout as e:
            elapsed = time.time() - start_time
            logger.error(f"{label} conversion timed out after {elapsed:.1f}s: {e}")
            return ConversionResult(
                format=fmt,
                status="timeout",
                diagnostics=_tail(e.output),
                duration_seconds=elapsed,
            )
        except FFmpegError as e:
            logger.error(f"{label} conversion failed: {e}")
            return ConversionResult(format=fmt, status="failed", diagnostics=str(e))

        elapsed = time.time() - start_time
        diagnostics = _tail(result.output)

        if result.returncode != 0:
            logger.error(
                f"{label} conversion failed with code {result.returncode}\nOutput: {diagnostics}"
            )
            return ConversionResult(
                format=fmt,
                status="failed",
                diagnostics=diagnostics,
                returncode=result.returncode,
                duration_seconds=elapsed,
            )

        if self.verify_entry_files and not entry_file.is_file():
            logger.error(f"{label} conversion exited 0 but wrote no entry file {entry_file}")
            return ConversionResult(
                format=fmt,
                status="failed",
                diagnostics=f"missing entry file {entry_file.name}\n{diagnostics}",
                returncode=result.returncode,
                duration_seconds=elapsed,
            )

        logger.info(f"{label} conversion completed for {input_path} in {elapsed:.1f}s")
        return ConversionResult(
            format=fmt,
            status="done",
            diagnostics=diagnostics,
            returncode=result.returncode,
            duration_seconds=elapsed,
        )


def _tail(output: str) -> str:
    return output[-DIAGNOSTICS_LIMIT:] if len(output) > DIAGNOSTICS_LIMIT else output
