"""Scan report generation: consolidated per-file summary."""

from __future__ import annotations

import json
from pathlib import Path

from rtcvad.config import AppConfig
from rtcvad.scan import ScanResult


def build_scan_report(
    source: str,
    config: AppConfig,
    result: ScanResult,
) -> dict:
    """Build a scan report dict.

    The config snapshot records what the detector actually ran with
    (taken from *result*), plus the engine location from *config*.
    """
    return {
        "source": source,
        "config": {
            "engine": {
                "library_path": config.engine.library_path,
                "search_dirs": list(config.engine.search_dirs),
            },
            "vad": {
                "sample_rate": result.sample_rate,
                "frame_ms": result.frame_ms,
                "mode": result.mode,
            },
        },
        "stats": {
            "frame_count": result.frame_count,
            "speech_frames": result.speech_frames,
            "speech_ratio": round(result.speech_ratio, 4),
            "duration_sec": round(result.duration_sec, 3),
            "dropped_samples": result.dropped_samples,
            "segment_count": len(result.segments),
        },
        "segments": [s.to_dict() for s in result.segments],
    }


def write_scan_report(
    report: dict,
    output_dir: str,
    stem: str,
) -> Path:
    """Write scan report to ``scan_report_<stem>.json``."""
    p = Path(output_dir) / f"scan_report_{stem}.json"
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(report, f, ensure_ascii=False, indent=2)
    return p
