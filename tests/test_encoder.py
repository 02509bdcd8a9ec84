"""
Tests for encoder selection, output naming and HandBrakeCLI arguments.
"""

from pathlib import Path

import pytest

from mediashrink.encoder import (
    ALL_ENCODERS,
    build_handbrake_args,
    generate_output_path,
    in_progress_path,
    segment_output_path,
    select_encoder,
)
from mediashrink.probe import VideoInfo


def _info(is_hdr: bool) -> VideoInfo:
    return VideoInfo(path=Path("in.mkv"), is_hdr=is_hdr, duration=60.0)


class TestSelectEncoder:
    """Tests for the HDR x hardware decision table."""

    @pytest.mark.parametrize(
        "hardware,hdr,expected",
        [
            (True, True, "vt_h265_10bit"),
            (True, False, "vt_h265"),
            (False, True, "x265_10bit"),
            (False, False, "x265"),
        ],
    )
    def test_table(self, hardware, hdr, expected):
        assert select_encoder(_info(hdr), hardware) == expected

    def test_table_covers_every_encoder(self):
        chosen = {select_encoder(_info(hdr), hw) for hw in (True, False) for hdr in (True, False)}
        assert chosen == set(ALL_ENCODERS)


class TestOutputPaths:
    """Tests for output, temp and segment path naming."""

    def test_generate_output_path(self):
        assert generate_output_path(Path("video.mp4"), "-optimized") == Path("video-optimized.mkv")

    def test_container_always_mkv(self):
        """Input extension never leaks into the output name."""
        for name in ("a.avi", "a.mkv", "a.m4v", "a.mov"):
            assert generate_output_path(Path("/media") / name, "-small").name == "a-small.mkv"

    def test_output_next_to_input(self):
        out = generate_output_path(Path("/media/shows/ep1.mp4"), "-optimized")
        assert out.parent == Path("/media/shows")

    def test_in_progress_path(self):
        assert in_progress_path(Path("/m/video-optimized.mkv")) == Path("/m/video-optimized.mkv.tmp")

    def test_segment_output_path(self):
        assert segment_output_path(Path("/m/video.mp4"), 2) == Path("/m/video.mp4.size-test-2.mkv")


class TestBuildHandbrakeArgs:
    """Tests for HandBrakeCLI argument lists."""

    def test_full_encode_args(self):
        args = build_handbrake_args(Path("in.mp4"), Path("out.mkv.tmp"), "vt_h265", 70)
        assert args == [
            "-i",
            "in.mp4",
            "-o",
            "out.mkv.tmp",
            "--verbose",
            "1",
            "--encoder",
            "vt_h265",
            "--quality",
            "70",
            "--all-audio",
            "--all-subtitles",
            "--format",
            "av_mkv",
        ]

    def test_segment_args(self):
        """Start and stop come right after the output, rounded to whole seconds."""
        args = build_handbrake_args(Path("in.mp4"), Path("seg.mkv"), "x265", 55, start_at=900.4, stop_at=10.0)
        assert args[4:8] == ["--start-at", "duration:900", "--stop-at", "duration:10"]
        assert args[args.index("--quality") + 1] == "55"
        assert "--start-at" not in build_handbrake_args(Path("a"), Path("b"), "x265", 1)
