"""
HandBrake progress rendering.

HandBrakeCLI rewrites its progress line with carriage returns and ends
other messages with newlines. ProgressFilter buffers characters and treats
both as line ends: a carriage return updates the bar in place, a newline
checks for completion, warnings and errors.

The terminal width is shared by both output readers and refreshed from a
SIGWINCH listener thread, so it lives in TerminalWidth behind a
reader/writer lock.
"""

import codecs
import logging
import os
import re
import signal
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, Optional, TextIO

logger = logging.getLogger(__name__)

DEFAULT_TERM_WIDTH = 80
MIN_BAR_WIDTH = 10

BLOCKS = ("▏", "▎", "▍", "▌", "▋", "▊", "▉", "█")

# Encoding: task 1 of 1, 2.31 %
# Encoding: task 1 of 1, 4.50 % (224.12 fps, avg 226.07 fps, ETA 00h02m48s)
PROGRESS_RE = re.compile(
    r"Encoding: task \d+ of \d+, (\d+\.\d+) %(?:\s+\((\d+\.\d+) fps,.*ETA (\d+h\d+m\d+s)\))?"
)

DONE_MARKER = "Encode done!"
ALERT_MARKERS = ("ERROR", "WARNING")


# -------------------- SHARED TERMINAL WIDTH --------------------


class ReadWriteLock:
    """Many readers or one writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            while self._readers > 0:
                self._cond.wait()
            yield


def detect_terminal_width(default: int = DEFAULT_TERM_WIDTH) -> int:
    """Columns of the terminal on stdout, or the default when stdout is not a terminal."""
    try:
        if not sys.stdout.isatty():
            return default
        return os.get_terminal_size(sys.stdout.fileno()).columns
    except (AttributeError, OSError, ValueError):
        return default


class TerminalWidth:
    """Terminal width shared between the renderers and the resize listener."""

    def __init__(self, probe: Callable[[], int] = detect_terminal_width):
        self._probe = probe
        self._lock = ReadWriteLock()
        self._width = DEFAULT_TERM_WIDTH
        self.refresh()

    def refresh(self) -> int:
        width = self._probe()
        with self._lock.write_locked():
            self._width = width
        return width

    def get(self) -> int:
        with self._lock.read_locked():
            return self._width


class ResizeListener:
    """
    Refresh a TerminalWidth whenever the terminal is resized.

    The SIGWINCH handler only sets an event; a daemon thread does the
    refresh so the write lock is never taken inside a signal handler.
    """

    def __init__(self, width: TerminalWidth):
        self.width = width
        self._pending = threading.Event()
        self._stopped = False
        self._thread: Optional[threading.Thread] = None
        self._old_handler = None

    def start(self) -> bool:
        """Install the handler. Returns False where SIGWINCH cannot be used."""
        if not hasattr(signal, "SIGWINCH"):
            return False
        if threading.current_thread() is not threading.main_thread():
            return False
        self._old_handler = signal.signal(signal.SIGWINCH, self._on_signal)
        self._thread = threading.Thread(target=self._run, name="resize_listener", daemon=True)
        self._thread.start()
        return True

    def _on_signal(self, _sig, _frm) -> None:
        self._pending.set()

    def _run(self) -> None:
        while True:
            self._pending.wait()
            if self._stopped:
                return
            self._pending.clear()
            self.width.refresh()

    def stop(self) -> None:
        if self._thread is None:
            return
        signal.signal(signal.SIGWINCH, self._old_handler or signal.SIG_DFL)
        self._stopped = True
        self._pending.set()
        self._thread.join(timeout=1.0)
        self._thread = None


# -------------------- BAR RENDERING --------------------


def render_progress_bar(percent_str: str, term_width: int, extra_text: str = "") -> str:
    """
    Build a bracketed bar that fits the terminal next to the percent text.

    The cell at the fill boundary uses one of 8 partial block glyphs.

    Returns:
        The bar, or "" if the percent is not a number or the terminal is too
        narrow for a bar of at least MIN_BAR_WIDTH cells.
    """
    try:
        percent = float(percent_str)
    except ValueError:
        return ""
    percent = max(0.0, min(100.0, percent))

    percent_text = f" {percent_str}%"
    total_text_width = len(percent_text) + len(extra_text)

    if term_width < MIN_BAR_WIDTH + total_text_width + 2:
        return ""

    bar_width = term_width - total_text_width - 2
    exact = percent / 100.0 * bar_width
    filled = int(exact)

    cells = []
    for i in range(bar_width):
        if i < filled:
            cells.append(BLOCKS[-1])
        elif i == filled and exact - filled > 0:
            cells.append(BLOCKS[min(int((exact - filled) * 8), len(BLOCKS) - 1)])
        else:
            cells.append(" ")
    return "[" + "".join(cells) + "]"


def format_progress_line(percent_str: str, term_width: int, extra_text: str = "") -> str:
    """Bar plus percent text, or percent text alone when no bar fits."""
    bar = render_progress_bar(percent_str, term_width, extra_text)
    if bar:
        return f"{bar} {percent_str}%{extra_text}"
    return f"{percent_str}%{extra_text}"


# -------------------- STREAM FILTER --------------------


@dataclass
class ProgressState:
    """Last progress values seen on one output stream."""

    percent: float = 0.0
    fps: Optional[float] = None
    eta: Optional[str] = None


class ProgressFilter:
    """Turn raw HandBrakeCLI output into an in-place progress bar."""

    def __init__(
        self,
        terminal_width: TerminalWidth,
        out: Optional[TextIO] = None,
        enabled: bool = True,
        on_progress: Optional[Callable[[ProgressState], None]] = None,
        write_lock: Optional[threading.Lock] = None,
    ):
        self.terminal_width = terminal_width
        self.out = out if out is not None else sys.stdout
        self.enabled = enabled
        self.on_progress = on_progress
        self.write_lock = write_lock if write_lock is not None else threading.Lock()
        self.state = ProgressState()

    def _write(self, text: str) -> None:
        with self.write_lock:
            self.out.write(text)
            self.out.flush()

    def feed(self, stream: BinaryIO, chunk_size: int = 4096) -> None:
        """Consume a byte stream until EOF."""
        read = getattr(stream, "read1", stream.read)
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buf = []

        while True:
            chunk = read(chunk_size)
            if not chunk:
                break
            for ch in decoder.decode(chunk):
                if ch == "\r":
                    self.handle_carriage_return("".join(buf))
                    buf.clear()
                elif ch == "\n":
                    self.handle_newline("".join(buf))
                    buf.clear()
                else:
                    buf.append(ch)

        buf.append(decoder.decode(b"", final=True))
        rest = "".join(buf)
        if rest:
            self.handle_trailing(rest)

    def _match_progress(self, line: str) -> Optional["re.Match[str]"]:
        m = PROGRESS_RE.search(line)
        if m is None:
            return None
        self.state.percent = float(m.group(1))
        if m.group(2):
            self.state.fps = float(m.group(2))
            self.state.eta = m.group(3)
        if self.on_progress is not None:
            self.on_progress(self.state)
        return m

    def _draw(self, m: "re.Match[str]") -> None:
        if not self.enabled:
            logger.debug("Encoding progress percent=%s fps=%s eta=%s", m.group(1), m.group(2), m.group(3))
            return
        percent_str = m.group(1)
        extra_text = ""
        if m.group(2):
            extra_text = f" ({m.group(2)} fps, ETA {m.group(3)})"
        self._write("\r" + format_progress_line(percent_str, self.terminal_width.get(), extra_text))

    def handle_carriage_return(self, line: str) -> None:
        m = self._match_progress(line)
        if m is not None:
            self._draw(m)

    def handle_newline(self, line: str) -> None:
        if DONE_MARKER in line:
            self.state.percent = 100.0
            if self.enabled:
                completion_text = " - Encode done!"
                self._write("\r" + format_progress_line("100.0", self.terminal_width.get(), completion_text) + "\n")
            else:
                logger.debug("HandBrakeCLI: %s", line.strip())
        elif any(marker in line for marker in ALERT_MARKERS):
            if self.enabled:
                self._write(f"\n{line}\n")
            else:
                logger.warning("HandBrakeCLI: %s", line.strip())
        else:
            m = self._match_progress(line)
            if m is not None:
                self._draw(m)
            elif line.strip():
                logger.debug("HandBrakeCLI: %s", line.rstrip())

    def handle_trailing(self, line: str) -> None:
        if self.enabled:
            self._write(f"{line}\n")
        else:
            logger.debug("HandBrakeCLI: %s", line.rstrip())
