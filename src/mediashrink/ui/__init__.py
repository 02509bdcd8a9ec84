"""
User interface components for mediashrink.

The HandBrake progress bar renderer and Rich-based tables.
"""

from mediashrink.ui.console import ConsoleUI
from mediashrink.ui.progress import (
    ProgressFilter,
    ProgressState,
    ResizeListener,
    TerminalWidth,
    format_progress_line,
    render_progress_bar,
)

__all__ = [
    "ConsoleUI",
    "ProgressFilter",
    "ProgressState",
    "ResizeListener",
    "TerminalWidth",
    "format_progress_line",
    "render_progress_bar",
]
