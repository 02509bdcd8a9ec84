"""
Video inspection with ffprobe.

Produces a VideoInfo (duration, HDR flag and a few display fields) for a
file. The ffprobe JSON is read into typed dataclasses with optional
fields, since ffprobe only emits a field when it applies.

HDR detection is a heuristic: the raw probe text is lower-cased and
scanned for color primaries, transfer functions and 10-bit pixel formats.
10-bit SDR material is therefore reported as HDR. Encoder choice and skip
thresholds are tuned against this behavior, so it is kept as is.
"""

import json
import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from mediashrink.capabilities import FFPROBE_BIN
from mediashrink.errors import ProbeError

logger = logging.getLogger(__name__)

HDR_INDICATORS = (
    "bt2020",
    "smpte2084",
    "arib-std-b67",
    "color_primaries=bt2020",
    "color_transfer=smpte2084",
    "yuv420p10le",
    "yuv422p10le",
    "yuv444p10le",
)

_DURATION_RE = re.compile(r'"duration"\s*:\s*"([^"]+)"')


# -------------------- TYPED PROBE MODEL --------------------


def _opt_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _opt_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass
class ProbeFormat:
    """The `format` section of ffprobe output."""

    duration: Optional[str] = None
    size: Optional[int] = None
    bit_rate: Optional[int] = None
    format_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbeFormat":
        return cls(
            duration=_opt_str(data.get("duration")),
            size=_opt_int(data.get("size")),
            bit_rate=_opt_int(data.get("bit_rate")),
            format_name=_opt_str(data.get("format_name")),
        )


@dataclass
class ProbeStream:
    """One entry of the `streams` list of ffprobe output."""

    index: int = 0
    codec_type: Optional[str] = None
    codec_name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    pix_fmt: Optional[str] = None
    color_primaries: Optional[str] = None
    color_transfer: Optional[str] = None
    bit_rate: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProbeStream":
        return cls(
            index=_opt_int(data.get("index")) or 0,
            codec_type=_opt_str(data.get("codec_type")),
            codec_name=_opt_str(data.get("codec_name")),
            width=_opt_int(data.get("width")),
            height=_opt_int(data.get("height")),
            pix_fmt=_opt_str(data.get("pix_fmt")),
            color_primaries=_opt_str(data.get("color_primaries")),
            color_transfer=_opt_str(data.get("color_transfer")),
            bit_rate=_opt_int(data.get("bit_rate")),
        )


@dataclass
class ProbeResult:
    """Parsed ffprobe output."""

    format: ProbeFormat = field(default_factory=ProbeFormat)
    streams: List[ProbeStream] = field(default_factory=list)

    @classmethod
    def from_json(cls, text: str) -> "ProbeResult":
        """Parse ffprobe JSON. Raises ValueError on malformed input."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("ffprobe output is not a JSON object")
        fmt = data.get("format") or {}
        streams = data.get("streams") or []
        return cls(
            format=ProbeFormat.from_dict(fmt if isinstance(fmt, dict) else {}),
            streams=[ProbeStream.from_dict(s) for s in streams if isinstance(s, dict)],
        )

    @property
    def video_stream(self) -> Optional[ProbeStream]:
        return next((s for s in self.streams if s.codec_type == "video"), None)


@dataclass(frozen=True)
class VideoInfo:
    """Metadata about one input, produced once per file."""

    path: Path
    is_hdr: bool
    duration: float  # seconds
    width: Optional[int] = None
    height: Optional[int] = None
    codec: Optional[str] = None
    video_bitrate: Optional[int] = None


# -------------------- PARSING --------------------


def detect_hdr(probe_output: str) -> bool:
    """Return True if any HDR indicator appears in the probe text (case-insensitive)."""
    output = probe_output.lower()
    return any(indicator in output for indicator in HDR_INDICATORS)


def parse_duration(probe_output: str, result: Optional[ProbeResult] = None) -> float:
    """
    Extract the duration in seconds.

    Uses format.duration from the typed result when available and falls back
    to a pattern match over the raw text.

    Raises:
        ValueError: If no positive duration can be parsed.
    """
    candidates = []
    if result is not None and result.format.duration:
        candidates.append(result.format.duration)
    m = _DURATION_RE.search(probe_output)
    if m:
        candidates.append(m.group(1))

    for raw in candidates:
        try:
            duration = float(raw)
        except ValueError:
            continue
        if duration > 0:
            return duration
    raise ValueError("could not parse video duration from ffprobe output")


def run_ffprobe(path: Path, timeout: float = 60.0) -> str:
    """Run ffprobe on a file and return its raw JSON text."""
    cmd = [
        FFPROBE_BIN,
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(path),
    ]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, errors="replace", timeout=timeout)
    except (OSError, subprocess.SubprocessError) as e:
        raise ProbeError(path, f"ffprobe failed: {e}") from e
    if proc.returncode != 0:
        raise ProbeError(path, f"ffprobe failed (rc={proc.returncode})")
    return proc.stdout


def inspect_video(path: Path) -> VideoInfo:
    """
    Probe a file and build its VideoInfo.

    Args:
        path: Input video path.

    Returns:
        VideoInfo with duration and HDR flag.

    Raises:
        ProbeError: If ffprobe fails or no duration can be parsed.
    """
    output = run_ffprobe(path)

    result: Optional[ProbeResult]
    try:
        result = ProbeResult.from_json(output)
    except ValueError as e:
        logger.debug("ffprobe output is not valid JSON, using pattern extraction file=%s error=%s", path, e)
        result = None

    try:
        duration = parse_duration(output, result)
    except ValueError as e:
        raise ProbeError(path, f"failed to parse video duration: {e}") from e

    stream = result.video_stream if result is not None else None
    bitrate = None
    if stream is not None:
        bitrate = stream.bit_rate
    if bitrate is None and result is not None:
        bitrate = result.format.bit_rate

    return VideoInfo(
        path=path,
        is_hdr=detect_hdr(output),
        duration=duration,
        width=stream.width if stream else None,
        height=stream.height if stream else None,
        codec=stream.codec_name if stream else None,
        video_bitrate=bitrate,
    )
