"""
Host capability detection for mediashrink.

Checks that HandBrakeCLI and ffprobe are installed and whether the
VideoToolbox hardware encoder can be used. Detection reads HandBrakeCLI's
own help listing instead of running a trial encode.
"""

import logging
import platform
import shutil
import subprocess
from typing import Tuple

from mediashrink.errors import ToolUnavailableError

logger = logging.getLogger(__name__)

HANDBRAKE_BIN = "HandBrakeCLI"
FFPROBE_BIN = "ffprobe"

HARDWARE_PROFILE = "videotoolbox"
SOFTWARE_PROFILE = "software"

# Tokens in `HandBrakeCLI --help` that indicate VideoToolbox encoders
_VT_TOKENS = ("vt_h265", "VideoToolbox")

# VideoToolbox only exists on macOS
_HW_PLATFORM = "Darwin"


def check_tool_available(tool: str = HANDBRAKE_BIN) -> None:
    """
    Verify that an external tool is on PATH.

    Raises:
        ToolUnavailableError: If the tool cannot be found.
    """
    if shutil.which(tool) is None:
        hint = "Install with: brew install handbrake" if tool == HANDBRAKE_BIN else ""
        raise ToolUnavailableError(tool, hint)


def tool_available(tool: str) -> bool:
    """Return True if the tool is on PATH."""
    return shutil.which(tool) is not None


def detect_hardware_encoder(timeout: float = 10.0) -> Tuple[bool, str]:
    """
    Check whether the VideoToolbox encoder profile is usable on this host.

    Only probed on macOS; other platforms report unavailable without
    running anything.

    Returns:
        Tuple of (available, profile).

    Raises:
        OSError, subprocess.SubprocessError: If HandBrakeCLI cannot be queried.
            Callers treat this as "unavailable".
    """
    if platform.system() != _HW_PLATFORM:
        return False, SOFTWARE_PROFILE

    result = subprocess.run(
        [HANDBRAKE_BIN, "--help"],
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout,
    )
    # HandBrakeCLI prints its help to stdout or stderr depending on version
    help_text = (result.stdout or "") + (result.stderr or "")
    if any(token in help_text for token in _VT_TOKENS):
        return True, HARDWARE_PROFILE
    return False, SOFTWARE_PROFILE


def hardware_available() -> bool:
    """Detect the hardware encoder, falling back to software on any probe failure."""
    try:
        available, profile = detect_hardware_encoder()
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Failed to detect VideoToolbox error=%s", e)
        return False
    logger.info("VideoToolbox support available=%s profile=%s", available, profile)
    return available
