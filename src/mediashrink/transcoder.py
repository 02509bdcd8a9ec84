"""
Batch transcoding orchestration.

Files are processed one at a time. Per file:

1. Skip if the output already exists (unless overwrite is set)
2. Skip if a .skip marker exists (only when savings checking is enabled)
3. Probe the input
4. Estimate the output size and skip on insufficient savings
5. Encode to "<output>.tmp" and rename it into place

The cancellation event is checked between files and before each encode.
"""

import enum
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from mediashrink.capabilities import HANDBRAKE_BIN, check_tool_available, hardware_available
from mediashrink.config import Config
from mediashrink.encoder import build_handbrake_args, generate_output_path, in_progress_path, select_encoder
from mediashrink.errors import (
    CommitError,
    EncodeError,
    EstimationError,
    MediaShrinkError,
    ProbeError,
    TranscodeCancelled,
)
from mediashrink.estimate import Runner, check_size_savings
from mediashrink.probe import VideoInfo, inspect_video
from mediashrink.skip import has_skip_marker
from mediashrink.ui.text import format_bitrate, format_duration, format_size

logger = logging.getLogger(__name__)


class FileOutcome(enum.Enum):
    DONE = "done"
    SKIPPED_EXISTS = "skipped_exists"
    SKIPPED_MARKER = "skipped_marker"
    SKIPPED_SAVINGS = "skipped_savings"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_skip(self) -> bool:
        return self in (FileOutcome.SKIPPED_EXISTS, FileOutcome.SKIPPED_MARKER, FileOutcome.SKIPPED_SAVINGS)


@dataclass
class RunStats:
    """Per-run counters and outcomes."""

    total: int = 0
    ok: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False
    outcomes: Dict[Path, FileOutcome] = field(default_factory=dict)
    started: float = field(default_factory=time.monotonic)
    finished: Optional[float] = None

    def record(self, path: Path, outcome: FileOutcome) -> None:
        self.outcomes[path] = outcome
        if outcome is FileOutcome.DONE:
            self.ok += 1
        elif outcome.is_skip:
            self.skipped += 1
        elif outcome is FileOutcome.FAILED:
            self.failed += 1
        elif outcome is FileOutcome.CANCELLED:
            self.cancelled = True

    def finish(self) -> None:
        self.finished = time.monotonic()

    @property
    def elapsed(self) -> float:
        end = self.finished if self.finished is not None else time.monotonic()
        return end - self.started


# -------------------- MEDIA SUMMARY --------------------


def media_summary(info: VideoInfo, size: int, original_size: int = 0) -> str:
    """One-line key=value summary of a media file."""
    resolution = f"{info.width}x{info.height}" if info.width and info.height else "unknown"
    fields = [
        f"resolution={resolution}",
        f"duration={format_duration(info.duration)}",
        f"size={format_size(size)!r}",
        f"bitrate={format_bitrate(info.video_bitrate)!r}",
        f"codec={info.codec or 'unknown'}",
        f"hdr={info.is_hdr}",
    ]
    if original_size > 0:
        fields.append(f"size_ratio={size / original_size * 100:.1f}%")
    return " ".join(fields)


def log_media_summary(
    path: Path,
    original_size: int = 0,
    info: Optional[VideoInfo] = None,
    inspect: Callable[[Path], VideoInfo] = inspect_video,
) -> None:
    """Log the media summary of a file. Failures are logged, never raised."""
    try:
        if info is None:
            info = inspect(path)
        size = path.stat().st_size
    except (MediaShrinkError, OSError) as e:
        logger.warning("Failed to print media info file=%s error=%s", path, e)
        return
    logger.info("Media info file=%s %s", path.name, media_summary(info, size, original_size))


# -------------------- ORCHESTRATOR --------------------


class Transcoder:
    """
    Sequential batch transcoder.

    Args:
        cfg: Run configuration.
        runner: Object running HandBrakeCLI, see HandBrakeRunner.
        inspect: Probe function returning a VideoInfo.
        hardware: Force hardware encoder availability; detected when None.
    """

    def __init__(
        self,
        cfg: Config,
        runner: Runner,
        inspect: Optional[Callable[[Path], VideoInfo]] = None,
        hardware: Optional[bool] = None,
    ):
        self.cfg = cfg
        self.runner = runner
        self.inspect = inspect if inspect is not None else inspect_video
        self.hardware = hardware

    def run(self, files: List[Path], cancel: Optional[threading.Event] = None) -> RunStats:
        """
        Transcode every file in order.

        Per-file failures are recorded and the batch moves on. Cancellation
        stops the loop and is reported through RunStats.cancelled.

        Raises:
            ToolUnavailableError: If HandBrakeCLI is not installed.
        """
        cancel = cancel or threading.Event()
        check_tool_available(HANDBRAKE_BIN)

        if self.hardware is None:
            self.hardware = hardware_available()

        stats = RunStats(total=len(files))
        logger.info("Processing files count=%d", len(files))

        for idx, path in enumerate(files, 1):
            if cancel.is_set():
                logger.info("Cancelled, stopping file processing")
                stats.cancelled = True
                break

            try:
                outcome = self.transcode_file(path, idx, len(files), cancel)
            except TranscodeCancelled:
                logger.info("Cancelled, stopping file processing file=%s", path.name)
                stats.record(path, FileOutcome.CANCELLED)
                break
            except (MediaShrinkError, OSError) as e:
                logger.error("Failed to transcode file file=%s error=%s", path, e)
                outcome = FileOutcome.FAILED
            stats.record(path, outcome)

        stats.finish()
        logger.info(
            "Run finished ok=%d skipped=%d failed=%d cancelled=%s",
            stats.ok,
            stats.skipped,
            stats.failed,
            stats.cancelled,
        )
        return stats

    def transcode_file(
        self,
        path: Path,
        index: int = 1,
        total: int = 1,
        cancel: Optional[threading.Event] = None,
    ) -> FileOutcome:
        """
        Process one file.

        Raises:
            ProbeError: If the input cannot be probed.
            EncodeError: If HandBrakeCLI fails.
            CommitError: If the finished output cannot be renamed.
            TranscodeCancelled: If the cancel event is set.
        """
        logger.info("Processing file current=%d total=%d file=%s", index, total, path.name)

        final_output = generate_output_path(path, self.cfg.suffix)
        if not self.cfg.overwrite and final_output.exists():
            logger.info("Output file already exists, skipping file=%s", final_output)
            return FileOutcome.SKIPPED_EXISTS

        if self.cfg.savings_check_enabled and has_skip_marker(path):
            logger.info("Skipping media with skip file file=%s", path.name)
            return FileOutcome.SKIPPED_MARKER

        info = self.inspect(path)
        try:
            original_size = path.stat().st_size
        except OSError as e:
            raise ProbeError(path, f"failed to stat input: {e}") from e

        log_media_summary(path, info=info)

        hardware = bool(self.hardware)
        encoder = select_encoder(info, hardware)

        if self.cfg.savings_check_enabled:
            try:
                decision = check_size_savings(
                    path,
                    original_size,
                    info,
                    encoder,
                    self.cfg.quality,
                    self.cfg.min_savings_percent,
                    self.runner,
                    cancel,
                )
            except EstimationError as e:
                logger.warning("Size estimation failed, proceeding with transcode file=%s error=%s", path.name, e)
            else:
                if decision.skip:
                    return FileOutcome.SKIPPED_SAVINGS

        if cancel is not None and cancel.is_set():
            raise TranscodeCancelled("cancelled before encode")

        logger.info(
            "Transcoding file=%s encoder=%s quality=%d hdr=%s",
            path.name,
            encoder,
            self.cfg.quality,
            info.is_hdr,
        )
        started = time.monotonic()
        self.encode(path, final_output, encoder, cancel)

        logger.info(
            "Transcoding completed file=%s output=%s elapsed=%.1fs",
            path.name,
            final_output.name,
            time.monotonic() - started,
        )
        log_media_summary(final_output, original_size=original_size, inspect=self.inspect)
        return FileOutcome.DONE

    def encode(
        self,
        input_path: Path,
        final_output: Path,
        encoder: str,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """
        Encode to the in-progress path and rename it over the final path.

        The temp file is removed on every failure except a failed rename,
        where it is left for inspection.
        """
        tmp = in_progress_path(final_output)
        args = build_handbrake_args(input_path, tmp, encoder, self.cfg.quality)
        keep_tmp = False
        try:
            rc = self.runner.run(args, cancel)
            if rc != 0:
                raise EncodeError(f"HandBrakeCLI failed (rc={rc})", returncode=rc)
            if not tmp.exists():
                raise EncodeError("HandBrakeCLI exited cleanly but wrote no output")
            keep_tmp = True
            try:
                os.replace(tmp, final_output)
            except OSError as e:
                raise CommitError(f"failed to rename {tmp} to {final_output}: {e}") from e
        finally:
            if not keep_tmp:
                try:
                    tmp.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.warning("Failed to remove temp file file=%s error=%s", tmp, e)
