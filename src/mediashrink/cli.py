"""
Command-line interface for mediashrink.

This is the main entry point for the application.
"""

import argparse
import logging
import signal
import subprocess
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from mediashrink import __author__, __license__, __url__, __version__
from mediashrink.capabilities import FFPROBE_BIN, HANDBRAKE_BIN, detect_hardware_encoder, tool_available
from mediashrink.config import (
    DEFAULT_MIN_SAVINGS_PERCENT,
    DEFAULT_QUALITY,
    DEFAULT_SUFFIX,
    TOML_AVAILABLE,
    Config,
    apply_config_to_args,
    collect_input_files,
    get_app_dirs,
    load_config_file,
    save_default_config,
)
from mediashrink.errors import ConfigError, ToolUnavailableError
from mediashrink.logs import configure_logging
from mediashrink.notifications import (
    check_notification_support,
    notify_interrupted,
    notify_partial,
    notify_success,
)
from mediashrink.runner import HandBrakeRunner, terminate_all_processes
from mediashrink.skip import read_skip_marker, remove_skip_markers
from mediashrink.transcoder import RunStats, Transcoder
from mediashrink.ui.console import ConsoleUI
from mediashrink.ui.progress import ResizeListener, TerminalWidth
from mediashrink.ui.text import fmt_hms

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_FILES_FAILED = 2
EXIT_CANCELLED = 130


# -------------------- ARGUMENT PARSING --------------------


def _split_files(values: Optional[List[str]]) -> List[str]:
    """Flatten repeated, comma separated --files values."""
    files: List[str] = []
    for value in values or []:
        files.extend(part.strip() for part in value.split(",") if part.strip())
    return files


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediashrink",
        description="Shrink video files with HandBrakeCLI, skipping files that would not get smaller enough.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s movie.mp4                     # Transcode one file
  %(prog)s -l files.txt -q 60            # Files listed in a text file, lower quality
  %(prog)s -f a.mkv,b.mkv -m 0           # Always transcode, no size estimation
  %(prog)s --suffix=-small movie.mp4     # A suffix starting with "-" needs the = form
  %(prog)s --show-skip -l files.txt      # Show why files were skipped
  %(prog)s --clean-skip movie.mp4        # Forget a skip decision
  %(prog)s --check-requirements          # Check HandBrakeCLI, ffprobe, VideoToolbox
        """,
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}\nAuthor: {__author__}\nLicense: {__license__}\nURL: {__url__}",
    )

    parser.add_argument("file", nargs="*", help="Video files to process")

    in_group = parser.add_argument_group("Input")
    in_group.add_argument(
        "-f",
        "--files",
        action="append",
        default=[],
        metavar="FILES",
        help="Comma separated list of files (repeatable)",
    )
    in_group.add_argument("-l", "--file-list", metavar="PATH", help="Text file with one path per line")

    out_group = parser.add_argument_group("Output settings")
    out_group.add_argument(
        "-s",
        "--suffix",
        default=DEFAULT_SUFFIX,
        help=f"Output file suffix, pass as --suffix=-VALUE when it starts with \"-\" (default: {DEFAULT_SUFFIX})",
    )
    out_group.add_argument("-o", "--overwrite", action="store_true", help="Overwrite existing output files")

    enc_group = parser.add_argument_group("Encoding")
    enc_group.add_argument(
        "-q",
        "--quality",
        type=int,
        default=DEFAULT_QUALITY,
        help=f"HandBrake quality, 0-100, higher is better (default: {DEFAULT_QUALITY})",
    )
    enc_group.add_argument(
        "-m",
        "--min-savings-percent",
        type=int,
        default=DEFAULT_MIN_SAVINGS_PERCENT,
        metavar="PERCENT",
        help=f"Skip files estimated to save less than this, 0 disables estimation "
        f"(default: {DEFAULT_MIN_SAVINGS_PERCENT})",
    )

    ui_group = parser.add_argument_group("Output and logging")
    ui_group.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    ui_group.add_argument("--no-progress", action="store_false", dest="progress", help="Disable progress bars")
    ui_group.add_argument("--no-notify", action="store_false", dest="notify", help="Disable desktop notifications")

    util_group = parser.add_argument_group("Utility commands")
    util_group.add_argument("--check-requirements", action="store_true", help="Check external tools and exit")
    util_group.add_argument("--show-dirs", action="store_true", help="Show config and state directories")
    util_group.add_argument("--show-skip", action="store_true", help="Show the skip markers of the given files")
    util_group.add_argument("--clean-skip", action="store_true", help="Delete the skip markers of the given files")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> Tuple[Config, argparse.Namespace]:
    """Parse command-line arguments and return config + raw namespace."""
    parsed = build_parser().parse_args(argv)

    cfg = Config(
        files=list(parsed.file) + _split_files(parsed.files),
        file_list=parsed.file_list,
        suffix=parsed.suffix,
        overwrite=parsed.overwrite,
        quality=parsed.quality,
        min_savings_percent=parsed.min_savings_percent,
        debug=parsed.verbose,
        progress=parsed.progress,
        notify=parsed.notify,
    )
    return cfg, parsed


# -------------------- UTILITY COMMANDS --------------------


def check_requirements(ui: ConsoleUI) -> int:
    """Check system requirements. Returns 0 if mandatory tools are present."""
    rows: List[Tuple[str, bool, str]] = []

    handbrake_ok = tool_available(HANDBRAKE_BIN)
    rows.append((HANDBRAKE_BIN, handbrake_ok, "mandatory" if handbrake_ok else "brew install handbrake"))

    ffprobe_ok = tool_available(FFPROBE_BIN)
    rows.append((FFPROBE_BIN, ffprobe_ok, "mandatory" if ffprobe_ok else "brew install ffmpeg"))

    py = sys.version_info
    rows.append(("Python", py >= (3, 8), f"{py.major}.{py.minor}.{py.micro}"))

    if handbrake_ok:
        try:
            hw_ok, profile = detect_hardware_encoder()
            rows.append(("VideoToolbox", hw_ok, f"profile={profile}"))
        except (OSError, subprocess.SubprocessError) as e:
            rows.append(("VideoToolbox", False, f"detection failed: {e}"))
    else:
        rows.append(("VideoToolbox", False, f"needs {HANDBRAKE_BIN}"))

    rows.append(("TOML config", TOML_AVAILABLE, "tomllib/tomli" if TOML_AVAILABLE else "INI only"))
    notif = check_notification_support()
    rows.append(("Notifications", notif["any"], "notify-send or plyer"))

    ui.print_requirements(rows)
    return EXIT_OK if handbrake_ok and ffprobe_ok else EXIT_FATAL


def handle_utility_commands(
    cfg: Config, args: argparse.Namespace, ui: ConsoleUI, app_dirs: Dict[str, Path]
) -> Optional[int]:
    """Handle utility commands that exit immediately."""
    if args.check_requirements:
        return check_requirements(ui)

    if args.show_dirs:
        ui.print_dirs(app_dirs)
        return EXIT_OK

    if not (args.show_skip or args.clean_skip):
        return None

    files = collect_input_files(cfg)
    if not files:
        logger.error("No input files given")
        return EXIT_FATAL

    if args.show_skip:
        ui.print_skip_records([(f, read_skip_marker(f)) for f in files])
        return EXIT_OK

    removed, failed = remove_skip_markers(files)
    ui.log(f"Removed {removed} skip file(s)" + (f", {failed} failed" if failed else ""))
    return EXIT_OK if failed == 0 else EXIT_FATAL


# -------------------- SIGNALS --------------------


def install_cancel_handlers(cancel: threading.Event) -> Dict[int, object]:
    """
    Route SIGINT and SIGTERM to the cancellation event.

    A second signal stops running HandBrakeCLI processes immediately.

    Returns:
        The previous handlers, for restore_signal_handlers().
    """

    def _handler(signum, _frame):
        if cancel.is_set():
            terminate_all_processes(timeout=1.0)
            return
        logger.warning("Interrupt received, finishing up signal=%s", signal.Signals(signum).name)
        cancel.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    return previous


def restore_signal_handlers(previous: Dict[int, object]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def send_run_notification(cfg: Config, stats: RunStats) -> None:
    if not cfg.notify:
        return
    total_time = fmt_hms(stats.elapsed)
    if stats.cancelled:
        notify_interrupted()
    elif stats.failed == 0 and stats.skipped == 0 and stats.ok > 0:
        if cfg.notify_on_success:
            notify_success(stats.ok, total_time)
    elif stats.failed > 0:
        if cfg.notify_on_failure:
            notify_partial(stats.ok, stats.failed, stats.skipped, total_time)
    elif stats.ok > 0 or stats.skipped > 0:
        if cfg.notify_on_success:
            notify_partial(stats.ok, stats.failed, stats.skipped, total_time)


def exit_code_for(stats: RunStats) -> int:
    if stats.cancelled:
        return EXIT_CANCELLED
    return EXIT_OK if stats.failed == 0 else EXIT_FILES_FAILED


# -------------------- MAIN --------------------


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    cfg, args = parse_args(argv)
    configure_logging(cfg.debug)

    ui = ConsoleUI()
    app_dirs = get_app_dirs()

    if not (args.check_requirements or args.show_dirs):
        try:
            save_default_config(app_dirs["config"])
        except OSError as e:
            logger.warning("Failed to write default config dir=%s error=%s", app_dirs["config"], e)
        file_config = load_config_file(app_dirs["config"])
        if file_config:
            apply_config_to_args(file_config, cfg)

    cfg.apply_script_mode()

    try:
        cfg.validate()
        result = handle_utility_commands(cfg, args, ui, app_dirs)
        if result is not None:
            return result
        files = collect_input_files(cfg)
    except ConfigError as e:
        logger.error("%s", e)
        return EXIT_FATAL

    if not files:
        logger.error("No input files given, use FILE, --files or --file-list")
        return EXIT_FATAL

    cancel = threading.Event()
    previous_handlers = install_cancel_handlers(cancel)

    width = TerminalWidth()
    resize_listener = ResizeListener(width)
    resize_listener.start()

    runner = HandBrakeRunner(terminal_width=width, progress=cfg.progress)
    try:
        stats = Transcoder(cfg, runner).run(files, cancel)
    except ToolUnavailableError as e:
        logger.error("%s", e)
        return EXIT_FATAL
    finally:
        resize_listener.stop()
        restore_signal_handlers(previous_handlers)

    ui.print_summary(stats)
    send_run_notification(cfg, stats)
    return exit_code_for(stats)


if __name__ == "__main__":
    sys.exit(main())
