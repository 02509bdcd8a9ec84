"""
Encoder selection and HandBrakeCLI argument building.

Contains:
- HDR/hardware aware encoder selection
- Output and temp path naming
- HandBrakeCLI command building for full and segment encodes
"""

from pathlib import Path
from typing import List, Optional

from mediashrink.probe import VideoInfo

# -------------------- ENCODERS --------------------

ENCODER_VT_10BIT = "vt_h265_10bit"
ENCODER_VT_8BIT = "vt_h265"
ENCODER_X265_10BIT = "x265_10bit"
ENCODER_X265_8BIT = "x265"

ALL_ENCODERS = (ENCODER_VT_10BIT, ENCODER_VT_8BIT, ENCODER_X265_10BIT, ENCODER_X265_8BIT)

OUTPUT_CONTAINER = "mkv"
TMP_SUFFIX = ".tmp"


def select_encoder(video_info: VideoInfo, hardware_available: bool) -> str:
    """
    Choose the HandBrake encoder for a file.

    VideoToolbox when the host supports it, x265 otherwise. 10-bit variants
    for HDR content, 8-bit for SDR.
    """
    if hardware_available:
        return ENCODER_VT_10BIT if video_info.is_hdr else ENCODER_VT_8BIT
    return ENCODER_X265_10BIT if video_info.is_hdr else ENCODER_X265_8BIT


# -------------------- PATHS --------------------


def generate_output_path(input_path: Path, suffix: str) -> Path:
    """
    Build the final output path next to the input.

    The extension is always replaced by .mkv:
    "movie.mp4" with suffix "-optimized" becomes "movie-optimized.mkv".
    """
    return input_path.parent / f"{input_path.stem}{suffix}.{OUTPUT_CONTAINER}"


def in_progress_path(final_output: Path) -> Path:
    """Temp path the encoder writes to before the atomic rename."""
    return final_output.with_name(final_output.name + TMP_SUFFIX)


def segment_output_path(input_path: Path, segment_no: int) -> Path:
    """Throwaway output for a size-estimation segment."""
    return input_path.with_name(f"{input_path.name}.size-test-{segment_no}.{OUTPUT_CONTAINER}")


# -------------------- COMMAND BUILDING --------------------


def build_handbrake_args(
    input_path: Path,
    output_path: Path,
    encoder: str,
    quality: int,
    start_at: Optional[float] = None,
    stop_at: Optional[float] = None,
) -> List[str]:
    """
    Build HandBrakeCLI arguments (without the executable).

    Args:
        input_path: Source file.
        output_path: Where HandBrake writes the result.
        encoder: Encoder identifier from select_encoder().
        quality: Constant quality value.
        start_at: Optional start offset in seconds (segment encodes).
        stop_at: Optional segment length in seconds (segment encodes).

    Returns:
        Argument list. All audio and subtitle tracks are passed through and
        the container is always Matroska.
    """
    args = ["-i", str(input_path), "-o", str(output_path)]

    if start_at is not None:
        args += ["--start-at", f"duration:{start_at:.0f}"]
    if stop_at is not None:
        args += ["--stop-at", f"duration:{stop_at:.0f}"]

    args += ["--verbose", "1"]
    args += ["--encoder", encoder]
    args += ["--quality", str(quality)]
    args += ["--all-audio", "--all-subtitles"]
    args += ["--format", "av_mkv"]
    return args
