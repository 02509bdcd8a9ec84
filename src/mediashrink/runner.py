"""
HandBrakeCLI subprocess runner.

Each run starts one HandBrakeCLI process, reads its stdout and stderr on two
threads through ProgressFilter, and waits for it while watching the shared
cancellation event. Running processes are tracked so a signal handler can
stop all of them.
"""

import logging
import shlex
import subprocess
import threading
from typing import BinaryIO, List, Optional, Sequence, TextIO

from mediashrink.capabilities import HANDBRAKE_BIN
from mediashrink.errors import EncodeError, TranscodeCancelled
from mediashrink.ui.progress import ProgressFilter, TerminalWidth

logger = logging.getLogger(__name__)

# Track all running HandBrakeCLI processes for cleanup on shutdown
_active_processes: List[subprocess.Popen] = []
_processes_lock = threading.Lock()


def register_process(proc: subprocess.Popen) -> None:
    """Register a process for tracking."""
    with _processes_lock:
        _active_processes.append(proc)


def unregister_process(proc: subprocess.Popen) -> None:
    """Unregister a process from tracking."""
    with _processes_lock:
        if proc in _active_processes:
            _active_processes.remove(proc)


def active_process_count() -> int:
    with _processes_lock:
        return len(_active_processes)


def stop_process(proc: subprocess.Popen, timeout: float = 5.0) -> None:
    """Ask a process to terminate, then kill it if it does not exit in time."""
    if proc.poll() is not None:
        return
    try:
        proc.terminate()
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.warning("Process did not stop, killing pid=%s", proc.pid)
        proc.kill()
        proc.wait()
    except ProcessLookupError:
        pass


def terminate_all_processes(timeout: float = 5.0) -> None:
    """Terminate all tracked processes."""
    with _processes_lock:
        procs = list(_active_processes)

    if not procs:
        return

    logger.info("Stopping processes count=%d", len(procs))
    for proc in procs:
        stop_process(proc, timeout=timeout)


class HandBrakeRunner:
    """
    Run HandBrakeCLI with live progress output.

    Args:
        executable: Command prefix used in place of "HandBrakeCLI".
        terminal_width: Shared width used by the progress bar.
        progress: Draw progress bars; when False only log the output.
        out: Stream progress is drawn to (stdout by default).
        poll_interval: Seconds between cancellation checks.
        kill_timeout: Seconds to wait after terminate before killing.
    """

    def __init__(
        self,
        executable: Optional[Sequence[str]] = None,
        terminal_width: Optional[TerminalWidth] = None,
        progress: bool = True,
        out: Optional[TextIO] = None,
        poll_interval: float = 0.2,
        kill_timeout: float = 5.0,
    ):
        self.executable = list(executable) if executable else [HANDBRAKE_BIN]
        self.terminal_width = terminal_width or TerminalWidth()
        self.progress = progress
        self.out = out
        self.poll_interval = poll_interval
        self.kill_timeout = kill_timeout

    def _pump(self, stream: BinaryIO, write_lock: threading.Lock) -> None:
        filt = ProgressFilter(self.terminal_width, out=self.out, enabled=self.progress, write_lock=write_lock)
        try:
            filt.feed(stream)
        except (OSError, ValueError) as e:
            logger.debug("Output reader stopped error=%s", e)

    def run(self, args: List[str], cancel: Optional[threading.Event] = None) -> int:
        """
        Run HandBrakeCLI to completion.

        Args:
            args: Arguments after the executable.
            cancel: Event that stops the process when set.

        Returns:
            The process exit status.

        Raises:
            EncodeError: If the process cannot be started.
            TranscodeCancelled: If the cancel event stopped the process.
        """
        if cancel is not None and cancel.is_set():
            raise TranscodeCancelled("cancelled before start")

        cmd = self.executable + list(args)
        logger.debug("Running cmd=%s", shlex.join(cmd))

        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as e:
            raise EncodeError(f"failed to start {cmd[0]}: {e}") from e

        register_process(proc)
        # stdout and stderr share one terminal line
        write_lock = threading.Lock()
        readers = [
            threading.Thread(target=self._pump, args=(proc.stdout, write_lock), name="handbrake_stdout", daemon=True),
            threading.Thread(target=self._pump, args=(proc.stderr, write_lock), name="handbrake_stderr", daemon=True),
        ]
        for t in readers:
            t.start()

        cancelled = False
        try:
            while True:
                try:
                    proc.wait(timeout=self.poll_interval)
                    break
                except subprocess.TimeoutExpired:
                    pass
                if cancel is not None and cancel.is_set():
                    logger.info("Stopping HandBrakeCLI pid=%s", proc.pid)
                    stop_process(proc, timeout=self.kill_timeout)
                    break
            # the tool may exit on its own after the interrupt reached it
            cancelled = cancel is not None and cancel.is_set()
        finally:
            if proc.poll() is None:
                stop_process(proc, timeout=self.kill_timeout)
            for t in readers:
                t.join()
            for pipe in (proc.stdout, proc.stderr):
                if pipe is not None:
                    pipe.close()
            unregister_process(proc)

        if cancelled:
            raise TranscodeCancelled("encode cancelled")

        logger.debug("HandBrakeCLI finished rc=%s", proc.returncode)
        return proc.returncode
