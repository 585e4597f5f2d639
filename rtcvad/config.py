"""Configuration loading and dataclass definitions."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import List, Optional

import yaml


@dataclass
class EngineConfig:
    library_path: Optional[str] = None
    search_dirs: List[str] = field(default_factory=list)


@dataclass
class VadConfig:
    sample_rate: int = 8000
    frame_ms: int = 10
    mode: int = 0


@dataclass
class ReportingConfig:
    scan_report_enabled: bool = True


@dataclass
class AppConfig:
    output_dir: str = "outputs"
    engine: EngineConfig = field(default_factory=EngineConfig)
    vad: VadConfig = field(default_factory=VadConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)


def load_config(path: str) -> AppConfig:
    """Load configuration from a YAML file."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return _build_config(data)


def _build_config(data: dict) -> AppConfig:
    return AppConfig(
        output_dir=data.get("output_dir", "outputs"),
        engine=_build_engine(data.get("engine", {})),
        vad=_build_vad(data.get("vad", {})),
        reporting=_build_reporting(data.get("reporting", {})),
    )


def _build_engine(d: dict) -> EngineConfig:
    return EngineConfig(
        library_path=d.get("library_path"),
        search_dirs=list(d.get("search_dirs") or []),
    )


def _build_vad(d: dict) -> VadConfig:
    return VadConfig(
        sample_rate=d.get("sample_rate", 8000),
        frame_ms=d.get("frame_ms", 10),
        mode=d.get("mode", 0),
    )


def _build_reporting(d: dict) -> ReportingConfig:
    return ReportingConfig(
        scan_report_enabled=d.get("scan_report_enabled", True),
    )


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Merge CLI arguments into the loaded config (CLI wins)."""
    if args.library:
        config.engine.library_path = args.library
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.sample_rate is not None:
        config.vad.sample_rate = args.sample_rate
    if args.frame_ms is not None:
        config.vad.frame_ms = args.frame_ms
    if args.mode is not None:
        config.vad.mode = args.mode
    if args.no_report:
        config.reporting.scan_report_enabled = False
    return config


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    p = argparse.ArgumentParser(
        prog="rtcvad",
        description="Frame-level voice activity detection with the WebRTC engine.",
    )
    p.add_argument("input", nargs="?", default=None,
                    help="Raw 16-bit little-endian mono PCM file to scan")
    p.add_argument("--config", type=str, default="config.yaml",
                    help="Path to YAML config file (default: config.yaml)")
    p.add_argument("--library", type=str,
                    help="Path to the native VAD library (overrides config)")
    p.add_argument("--sample-rate", type=int,
                    help="Sample rate in Hz (overrides config)")
    p.add_argument("--frame-ms", type=int,
                    help="Frame length in ms (overrides config)")
    p.add_argument("--mode", type=int,
                    help="Operating mode 0-3, higher is more aggressive (overrides config)")
    p.add_argument("--output-dir", type=str,
                    help="Output directory for scan reports (overrides config)")
    p.add_argument("--no-report", action="store_true",
                    help="Do not write the JSON scan report")
    p.add_argument("--probe", action="store_true",
                    help="Load the engine, list accepted rate/length pairs and exit")
    return p
