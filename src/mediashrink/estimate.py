"""
Output size estimation by segment sampling.

Three 10 second segments, taken at 25%, 50% and 75% of the timeline, are
encoded with the production encoder and quality. Their average byte rate
is extrapolated to the whole duration. The estimate decides whether a full
encode is worth running; when it is not, a skip marker is written so later
runs leave the file alone.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

from mediashrink.encoder import build_handbrake_args, segment_output_path
from mediashrink.errors import EncodeError, EstimationError, TranscodeCancelled
from mediashrink.probe import VideoInfo
from mediashrink.skip import REASON_INSUFFICIENT_SAVINGS, SkipRecord, now_iso, write_skip_marker

logger = logging.getLogger(__name__)

SEGMENT_DURATION = 10.0  # seconds
SEGMENT_POSITIONS = (0.25, 0.50, 0.75)


class Runner(Protocol):
    def run(self, args: Sequence[str], cancel: Optional[threading.Event] = None) -> int: ...


@dataclass
class SavingsDecision:
    """Result of the pre-encode savings check."""

    skip: bool
    original_size: int
    estimated_size: int
    required_size: int
    savings_percent: float


def required_size(original_size: int, min_savings_percent: int) -> int:
    """Largest output size that still meets the savings threshold."""
    return int(original_size * (100 - min_savings_percent) / 100)


def savings_percent(original_size: int, estimated_size: int) -> float:
    return (original_size - estimated_size) / original_size * 100


def _encode_segment(
    input_path: Path,
    segment_no: int,
    start_at: float,
    encoder: str,
    quality: int,
    runner: Runner,
    cancel: Optional[threading.Event],
) -> int:
    """Encode one segment and return its size. The throwaway file is always removed."""
    out = segment_output_path(input_path, segment_no)
    args = build_handbrake_args(input_path, out, encoder, quality, start_at=start_at, stop_at=SEGMENT_DURATION)
    try:
        rc = runner.run(args, cancel)
        if rc != 0:
            raise EncodeError(f"HandBrakeCLI failed (rc={rc})", returncode=rc)
        try:
            return out.stat().st_size
        except OSError as e:
            raise EncodeError(f"failed to stat segment output: {e}") from e
    finally:
        try:
            out.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to clean up test file file=%s error=%s", out, e)


def estimate_output_size(
    input_path: Path,
    video_info: VideoInfo,
    encoder: str,
    quality: int,
    runner: Runner,
    cancel: Optional[threading.Event] = None,
) -> int:
    """
    Estimate the full-encode output size of a file.

    Segments that fail are logged and left out of the average.

    Returns:
        Estimated size in bytes.

    Raises:
        EstimationError: If no segment could be encoded.
        TranscodeCancelled: If the cancel event is set.
    """
    total_size = 0
    successful = 0

    for i, pos in enumerate(SEGMENT_POSITIONS):
        if cancel is not None and cancel.is_set():
            raise TranscodeCancelled("cancelled during size estimation")

        segment_no = i + 1
        start_at = video_info.duration * pos
        try:
            size = _encode_segment(input_path, segment_no, start_at, encoder, quality, runner, cancel)
        except EncodeError as e:
            logger.warning("Failed to encode test segment segment=%d error=%s", segment_no, e)
            continue

        total_size += size
        successful += 1

    if successful == 0:
        raise EstimationError("failed to encode any test segments")

    avg_bytes_per_second = total_size / (successful * SEGMENT_DURATION)
    estimated = int(avg_bytes_per_second * video_info.duration)

    logger.debug(
        "Size estimation successful_segments=%d avg_bytes_per_second=%d estimated_size_bytes=%d",
        successful,
        int(avg_bytes_per_second),
        estimated,
    )
    return estimated


def check_size_savings(
    input_path: Path,
    original_size: int,
    video_info: VideoInfo,
    encoder: str,
    quality: int,
    min_savings_percent: int,
    runner: Runner,
    cancel: Optional[threading.Event] = None,
) -> SavingsDecision:
    """
    Estimate the output and decide whether the full encode should run.

    On insufficient savings a skip marker is written next to the input.

    Raises:
        EstimationError: If the estimate could not be produced. Callers
            proceed with the full encode.
        TranscodeCancelled: If the cancel event is set.
    """
    if original_size <= 0:
        raise EstimationError("original file is empty")

    logger.info("Estimating output size file=%s", input_path.name)
    estimated = estimate_output_size(input_path, video_info, encoder, quality, runner, cancel)

    pct = savings_percent(original_size, estimated)
    decision = SavingsDecision(
        skip=pct < min_savings_percent,
        original_size=original_size,
        estimated_size=estimated,
        required_size=required_size(original_size, min_savings_percent),
        savings_percent=pct,
    )

    if decision.skip:
        logger.info(
            "Skipping file, insufficient space savings file=%s savings=%.1f%% min_savings=%d%%",
            input_path.name,
            pct,
            min_savings_percent,
        )
        record = SkipRecord(
            reason=REASON_INSUFFICIENT_SAVINGS,
            quality=quality,
            encoder=encoder,
            timestamp=now_iso(),
            original_size_bytes=original_size,
            estimated_size_bytes=estimated,
            required_size_bytes=decision.required_size,
        )
        write_skip_marker(input_path, record)
    else:
        logger.info(
            "Size estimation passed threshold file=%s savings=%.1f%% min_savings=%d%%",
            input_path.name,
            pct,
            min_savings_percent,
        )
    return decision
