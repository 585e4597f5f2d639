"""Frame-by-frame scanning of raw PCM audio."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List

import numpy as np

from rtcvad.segments import SegmentBuilder, SpeechSegment
from rtcvad.vad import VoiceActivityDetector


@dataclass
class ScanResult:
    sample_rate: int
    frame_ms: int
    mode: int
    segments: List[SpeechSegment] = field(default_factory=list)
    frame_count: int = 0
    speech_frames: int = 0
    dropped_samples: int = 0

    @property
    def speech_ratio(self) -> float:
        if self.frame_count == 0:
            return 0.0
        return self.speech_frames / self.frame_count

    @property
    def duration_sec(self) -> float:
        return self.frame_count * self.frame_ms / 1000


def load_pcm(path: str | Path) -> np.ndarray:
    """Read a raw little-endian 16-bit mono PCM file."""
    p = Path(path)
    if p.stat().st_size % 2:
        raise ValueError(f"{p} has an odd byte count; not 16-bit PCM")
    return np.fromfile(p, dtype="<i2").astype(np.int16, copy=False)


def iter_frames(pcm: np.ndarray, samples_per_frame: int) -> Iterator[np.ndarray]:
    """Yield consecutive full frames; a trailing partial frame is skipped."""
    if samples_per_frame <= 0:
        raise ValueError(f"samples_per_frame must be positive, got {samples_per_frame}")
    n_frames = len(pcm) // samples_per_frame
    for i in range(n_frames):
        yield pcm[i * samples_per_frame:(i + 1) * samples_per_frame]


def scan_pcm(detector: VoiceActivityDetector, pcm: np.ndarray) -> ScanResult:
    """Classify every frame of *pcm* at the detector's configuration."""
    samples = detector.frame_samples
    frame_ms = int(detector.frame_length)
    result = ScanResult(
        sample_rate=int(detector.sample_rate),
        frame_ms=frame_ms,
        mode=int(detector.operating_mode),
    )
    builder = SegmentBuilder(frame_ms)

    for frame in iter_frames(pcm, samples):
        speech = detector.has_speech(frame)
        if speech:
            result.speech_frames += 1
        closed = builder.add(speech)
        if closed is not None:
            result.segments.append(closed)

    last = builder.flush()
    if last is not None:
        result.segments.append(last)
    result.frame_count = builder.frame_count
    result.dropped_samples = len(pcm) - result.frame_count * samples
    return result
