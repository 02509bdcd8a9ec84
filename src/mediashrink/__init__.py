"""
mediashrink - Bulk, hardware-aware video shrinking with HandBrakeCLI.

Each input is encoded to HEVC with VideoToolbox when available (x265
otherwise), after a sampled size estimate shows that the result will be
meaningfully smaller. Files that would not shrink enough get a `.skip`
marker so later runs leave them alone.

Example usage:
    # As a command-line tool
    $ mediashrink movie.mp4
    $ mediashrink -l files.txt --quality 60 --min-savings-percent 30

    # As a Python module
    from pathlib import Path
    from mediashrink import Config, HandBrakeRunner, Transcoder

    cfg = Config.for_library(quality=60)
    stats = Transcoder(cfg, HandBrakeRunner(progress=False)).run([Path("movie.mp4")])
"""

__version__ = "0.3.0"
__author__ = "mediashrink contributors"
__license__ = "MIT"
__url__ = "https://github.com/mediashrink/mediashrink"
__description__ = "Bulk, hardware-aware video shrinking with HandBrakeCLI"

# Public API exports
from mediashrink.config import Config, get_app_dirs, load_config_file
from mediashrink.encoder import build_handbrake_args, generate_output_path, select_encoder
from mediashrink.errors import (
    CommitError,
    ConfigError,
    EncodeError,
    EstimationError,
    MediaShrinkError,
    ProbeError,
    ToolUnavailableError,
    TranscodeCancelled,
)
from mediashrink.estimate import check_size_savings, estimate_output_size
from mediashrink.probe import VideoInfo, inspect_video
from mediashrink.runner import HandBrakeRunner
from mediashrink.skip import SkipRecord, has_skip_marker, read_skip_marker
from mediashrink.transcoder import FileOutcome, RunStats, Transcoder

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    "__url__",
    # Config
    "Config",
    "get_app_dirs",
    "load_config_file",
    # Encoding
    "select_encoder",
    "generate_output_path",
    "build_handbrake_args",
    "HandBrakeRunner",
    # Probing
    "VideoInfo",
    "inspect_video",
    # Estimation and skip markers
    "estimate_output_size",
    "check_size_savings",
    "SkipRecord",
    "has_skip_marker",
    "read_skip_marker",
    # Orchestration
    "Transcoder",
    "FileOutcome",
    "RunStats",
    # Errors
    "MediaShrinkError",
    "ToolUnavailableError",
    "ConfigError",
    "ProbeError",
    "EstimationError",
    "EncodeError",
    "CommitError",
    "TranscodeCancelled",
]
