"""rtcvad: frame-level voice activity detection over the WebRTC engine.

Run with:
    python -m rtcvad.main --config config.yaml input.pcm
    python -m rtcvad.main --probe

Pipeline:
    Raw PCM → frames → native VAD → speech/silence segments → report
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Optional

from rtcvad.config import (
    AppConfig,
    apply_cli_overrides,
    build_arg_parser,
    load_config,
)
from rtcvad.errors import VadError
from rtcvad.native import VadLibrary, WebRtcLibrary
from rtcvad.reporting import build_scan_report, write_scan_report
from rtcvad.scan import ScanResult, load_pcm, scan_pcm
from rtcvad.vad import (
    FrameLength,
    SampleRate,
    VoiceActivityDetector,
    required_samples,
)


def _ts() -> str:
    return time.strftime("%H:%M:%S")


def _open_library(config: AppConfig) -> VadLibrary:
    lib = WebRtcLibrary(config.engine.library_path, config.engine.search_dirs)
    print("[engine] loaded native VAD library")
    return lib


# ── probe ────────────────────────────────────────────────────────────

def probe(
    config: AppConfig,
    library: Optional[VadLibrary] = None,
) -> list[tuple[int, int, bool]]:
    """Check which (rate, length) pairs the engine accepts.

    Also creates and closes one detector so a broken ``init`` shows up.
    Returns ``(rate, length_ms, accepted)`` rows.
    """
    lib = library if library is not None else _open_library(config)
    with VoiceActivityDetector(lib):
        pass

    rows: list[tuple[int, int, bool]] = []
    for rate in SampleRate:
        for length in FrameLength:
            samples = required_samples(rate, length)
            status = lib.valid_rate_and_frame_length(int(rate), samples)
            rows.append((int(rate), int(length), status == 0))
    return rows


def _print_probe(rows: list[tuple[int, int, bool]]) -> None:
    print(f"{'Rate (Hz)':>9} {'Frame':>6} {'Samples':>8} {'Status':>9}")
    print("-" * 36)
    for rate, length, ok in rows:
        samples = required_samples(rate, length)
        status = "ACCEPTED" if ok else "REJECTED"
        print(f"{rate:>9} {length:>4}ms {samples:>8} {status:>9}")


# ── scan ─────────────────────────────────────────────────────────────

def run(
    config: AppConfig,
    input_path: Path,
    library: Optional[VadLibrary] = None,
) -> ScanResult:
    """Scan one PCM file and print/write the results."""
    print(f"Input           : {input_path}")
    print(f"Sample rate     : {config.vad.sample_rate} Hz")
    print(f"Frame length    : {config.vad.frame_ms} ms")
    print(f"Mode            : {config.vad.mode}")
    print(f"Output dir      : {config.output_dir}")
    print()

    pcm = load_pcm(input_path)
    lib = library if library is not None else _open_library(config)

    with VoiceActivityDetector.from_config(config, library=lib) as detector:
        print(f"[{_ts()}] [scan] {len(pcm)} samples, "
              f"{detector.frame_samples} samples/frame")
        result = scan_pcm(detector, pcm)

    print("-" * 60)
    for seg in result.segments:
        print(f"  {seg.to_txt_line()}  ({seg.frames} frames)")
    print("-" * 60)
    print(f"Frames          : {result.frame_count}")
    print(f"Speech frames   : {result.speech_frames} "
          f"({result.speech_ratio * 100:.1f}%)")
    print(f"Segments        : {len(result.segments)}")
    if result.dropped_samples:
        print(f"[scan] WARNING: {result.dropped_samples} trailing samples "
              f"did not fill a frame and were skipped")

    if config.reporting.scan_report_enabled:
        report = build_scan_report(str(input_path), config, result)
        path = write_scan_report(report, config.output_dir, input_path.stem)
        print(f"Scan report     : {path}")

    return result


# ── entry point ──────────────────────────────────────────────────────

def main(argv: Optional[list[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    # Load config
    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(str(config_path))
    elif args.config != "config.yaml":
        print(f"Error: config file not found: {args.config}")
        sys.exit(1)
    else:
        config = AppConfig()

    config = apply_cli_overrides(config, args)

    # --probe: engine check (early exit)
    if args.probe:
        try:
            rows = probe(config)
        except VadError as e:
            print(f"Error: {e}")
            sys.exit(1)
        _print_probe(rows)
        sys.exit(0)

    if not args.input:
        print("Error: no input file given (use --probe to check the engine)")
        sys.exit(1)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: input file not found: {args.input}")
        sys.exit(1)

    try:
        run(config, input_path)
    except (VadError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
