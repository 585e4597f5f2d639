"""Tests for segment building, frame scanning and scan reports."""

from __future__ import annotations

import json

import numpy as np
import pytest

from rtcvad.config import AppConfig
from rtcvad.reporting import build_scan_report, write_scan_report
from rtcvad.scan import ScanResult, iter_frames, load_pcm, scan_pcm
from rtcvad.segments import SegmentBuilder, SpeechSegment, _fmt_ts


# ── helpers ──────────────────────────────────────────────────────────

def _segments(decisions: list[bool], frame_ms: int = 10) -> list[SpeechSegment]:
    b = SegmentBuilder(frame_ms)
    out = []
    for d in decisions:
        seg = b.add(d)
        if seg is not None:
            out.append(seg)
    last = b.flush()
    if last is not None:
        out.append(last)
    return out


# ── SegmentBuilder ───────────────────────────────────────────────────

class TestSegmentBuilder:
    def test_empty(self):
        assert _segments([]) == []

    def test_single_run(self):
        segs = _segments([True, True, True])
        assert len(segs) == 1
        assert segs[0].is_speech is True
        assert segs[0].frames == 3
        assert segs[0].t0 == 0.0
        assert segs[0].t1 == 0.03

    def test_alternating_runs(self):
        segs = _segments([False, True, True, False], frame_ms=20)
        assert [s.is_speech for s in segs] == [False, True, False]
        assert [s.seg_id for s in segs] == ["seg_0001", "seg_0002", "seg_0003"]
        assert segs[1].t0 == 0.02
        assert segs[1].t1 == 0.06
        assert segs[2].t1 == 0.08

    def test_contiguous(self):
        segs = _segments([True, False, True, False, False])
        for a, b in zip(segs, segs[1:]):
            assert a.t1 == b.t0

    def test_counters(self):
        b = SegmentBuilder(10)
        for d in [True, False, False]:
            b.add(d)
        b.flush()
        assert b.frame_count == 3
        assert b.seg_count == 2

    def test_segment_immutable(self):
        seg = _segments([True])[0]
        with pytest.raises(Exception):
            seg.t0 = 5.0  # type: ignore[misc]


class TestSpeechSegment:
    def test_txt_line(self):
        seg = SpeechSegment("seg_0001", 61.5, 62.25, True, 75)
        assert seg.to_txt_line() == "[00:01:01.500 - 00:01:02.250] SPEECH"

    def test_txt_line_silence(self):
        seg = SpeechSegment("seg_0002", 0.0, 0.01, False, 1)
        assert seg.to_txt_line().endswith("silence")

    def test_to_dict(self):
        seg = SpeechSegment("seg_0001", 0.0, 0.03, True, 3)
        assert seg.to_dict() == {
            "seg_id": "seg_0001", "t0": 0.0, "t1": 0.03,
            "is_speech": True, "frames": 3,
        }

    def test_fmt_ts_hours(self):
        assert _fmt_ts(3725.5) == "01:02:05.500"


# ── frames ───────────────────────────────────────────────────────────

class TestIterFrames:
    def test_full_frames_only(self):
        pcm = np.arange(250, dtype=np.int16)
        frames = list(iter_frames(pcm, 80))
        assert len(frames) == 3
        assert all(len(f) == 80 for f in frames)
        assert frames[1][0] == 80

    def test_non_positive_size(self):
        with pytest.raises(ValueError):
            list(iter_frames(np.zeros(10, dtype=np.int16), 0))


class TestLoadPcm:
    def test_reads_little_endian(self, tmp_path):
        p = tmp_path / "a.pcm"
        np.array([1, -2, 300], dtype="<i2").tofile(p)
        pcm = load_pcm(p)
        assert pcm.dtype == np.int16
        assert pcm.tolist() == [1, -2, 300]

    def test_odd_byte_count(self, tmp_path):
        p = tmp_path / "bad.pcm"
        p.write_bytes(b"\x00\x01\x02")
        with pytest.raises(ValueError):
            load_pcm(p)


# ── scan_pcm ─────────────────────────────────────────────────────────

class TestScanPcm:
    def test_scan(self, detector, stub):
        stub.process_script = [0, 1, 1, 0]
        pcm = np.zeros(80 * 4 + 10, dtype=np.int16)
        result = scan_pcm(detector, pcm)
        assert result.frame_count == 4
        assert result.speech_frames == 2
        assert result.speech_ratio == 0.5
        assert result.dropped_samples == 10
        assert [s.is_speech for s in result.segments] == [False, True, False]
        assert stub.count("process") == 4
        assert result.duration_sec == pytest.approx(0.04)

    def test_uses_detector_config(self, detector, stub):
        detector.sample_rate = 16000
        detector.frame_length = 20
        pcm = np.zeros(640, dtype=np.int16)
        result = scan_pcm(detector, pcm)
        assert result.frame_count == 2
        assert result.sample_rate == 16000
        assert result.frame_ms == 20
        assert stub.calls[-1] == ("process", stub.handle, 16000, 640, 320)

    def test_empty(self, detector):
        result = scan_pcm(detector, np.zeros(0, dtype=np.int16))
        assert result.frame_count == 0
        assert result.segments == []
        assert result.speech_ratio == 0.0


# ── reporting ────────────────────────────────────────────────────────

class TestScanReport:
    def _result(self) -> ScanResult:
        return ScanResult(
            sample_rate=16000, frame_ms=20, mode=2,
            segments=_segments([True, True, False], frame_ms=20),
            frame_count=3, speech_frames=2, dropped_samples=5,
        )

    def test_build(self):
        cfg = AppConfig()
        cfg.engine.library_path = "/opt/libwebrtcvad.so"
        report = build_scan_report("in.pcm", cfg, self._result())
        assert report["source"] == "in.pcm"
        assert report["config"]["engine"]["library_path"] == "/opt/libwebrtcvad.so"
        assert report["config"]["vad"] == {"sample_rate": 16000, "frame_ms": 20, "mode": 2}
        assert report["stats"]["speech_ratio"] == 0.6667
        assert report["stats"]["segment_count"] == 2
        assert report["stats"]["dropped_samples"] == 5
        assert report["segments"][0]["seg_id"] == "seg_0001"

    def test_write(self, tmp_path):
        report = build_scan_report("in.pcm", AppConfig(), self._result())
        path = write_scan_report(report, str(tmp_path / "nested"), "in")
        assert path.name == "scan_report_in.json"
        assert json.loads(path.read_text(encoding="utf-8")) == report
