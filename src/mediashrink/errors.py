"""
Exception types for mediashrink.

Fatal errors (missing tools, bad configuration) abort the whole run.
Per-file errors abort one file and the batch moves on. Cancellation
always propagates to the caller.
"""

from pathlib import Path
from typing import Optional


class MediaShrinkError(Exception):
    """Base class for all mediashrink errors."""


class ToolUnavailableError(MediaShrinkError):
    """A required external tool is not installed."""

    def __init__(self, tool: str, hint: str = ""):
        self.tool = tool
        self.hint = hint
        msg = f"{tool} not found in PATH"
        if hint:
            msg += f". {hint}"
        super().__init__(msg)


class ConfigError(MediaShrinkError):
    """Invalid configuration or unreadable input list."""


class ProbeError(MediaShrinkError):
    """Metadata probe failed or returned unusable output for a file."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class EstimationError(MediaShrinkError):
    """Size estimation could not produce a result."""


class EncodeError(MediaShrinkError):
    """The encoder exited with a non-zero status."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class CommitError(MediaShrinkError):
    """The finished temp output could not be renamed into place."""


class TranscodeCancelled(MediaShrinkError):
    """The run was cancelled by a signal."""
