"""Tests for UI modules."""

import io
from pathlib import Path

from rich.console import Console


def _ui():
    from mediashrink.ui.console import ConsoleUI

    buf = io.StringIO()
    return ConsoleUI(Console(file=buf, width=200, no_color=True, highlight=False)), buf


class TestTextHelpers:
    """Tests for plain-text formatting."""

    def test_fmt_hms(self):
        from mediashrink.ui.text import fmt_hms

        assert fmt_hms(0) == "00:00:00"
        assert fmt_hms(59) == "00:00:59"
        assert fmt_hms(3661) == "01:01:01"
        assert fmt_hms(-5) == "00:00:00"

    def test_shorten(self):
        from mediashrink.ui.text import shorten

        assert shorten("short", 10) == "short"
        assert shorten("verylongstring", 10) == "verylon..."
        assert shorten("abcdef", 2) == "ab"
        assert shorten("abcdef", 0) == ""

    def test_format_duration(self):
        from mediashrink.ui.text import format_duration

        assert format_duration(0) == "0:00"
        assert format_duration(125.9) == "2:05"
        assert format_duration(3600) == "1:00:00"

    def test_format_size(self):
        from mediashrink.ui.text import format_size

        assert format_size(512) == "0.5 KB"
        assert format_size(5 * 1024**2) == "5.0 MB"
        assert format_size(2 * 1024**3) == "2.0 GB"

    def test_format_bitrate(self):
        from mediashrink.ui.text import format_bitrate

        assert format_bitrate(None) == "unknown"
        assert format_bitrate(0) == "unknown"
        assert format_bitrate(640_000) == "640 kbps"
        assert format_bitrate(12_500_000) == "12.5 Mbps"


class TestConsoleUI:
    """Tests for the table output."""

    def test_print_summary(self):
        from mediashrink.transcoder import RunStats

        ui, buf = _ui()
        stats = RunStats(total=4, ok=2, skipped=1, failed=1)
        stats.finish()
        ui.print_summary(stats)

        out = buf.getvalue()
        assert "Summary" in out
        assert "Transcoded" in out
        assert "Interrupted" not in out

    def test_print_summary_cancelled(self):
        from mediashrink.transcoder import RunStats

        ui, buf = _ui()
        ui.print_summary(RunStats(cancelled=True))
        assert "Interrupted" in buf.getvalue()

    def test_print_skip_records(self):
        from mediashrink.skip import SkipRecord

        ui, buf = _ui()
        rec = SkipRecord("insufficient_savings", 70, "vt_h265", "2026-01-01T00:00:00+00:00", 2048, 1900, 1600)
        ui.print_skip_records([(Path("/m/a.mp4"), rec), (Path("/m/b.mp4"), None)])

        out = buf.getvalue()
        assert "a.mp4" in out
        assert "insufficient_savings" in out
        assert "vt_h265" in out
        assert "2.0 KB" in out
        assert "none" in out

    def test_print_requirements(self):
        ui, buf = _ui()
        ui.print_requirements([("HandBrakeCLI", True, "/usr/bin/HandBrakeCLI"), ("ffprobe", False, "not found")])

        out = buf.getvalue()
        assert "available" in out
        assert "missing" in out

    def test_print_dirs(self):
        ui, buf = _ui()
        ui.print_dirs({"config": Path("/tmp/cfg/mediashrink")})
        assert "/tmp/cfg/mediashrink" in buf.getvalue()
