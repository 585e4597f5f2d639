"""Speech segments: runs of consecutive frames with the same decision.

Segments are immutable once closed; the builder only ever appends.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class SpeechSegment:
    """Immutable run of speech or silence frames."""
    seg_id: str
    t0: float
    t1: float
    is_speech: bool
    frames: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_txt_line(self) -> str:
        ts0 = _fmt_ts(self.t0)
        ts1 = _fmt_ts(self.t1)
        label = "SPEECH" if self.is_speech else "silence"
        return f"[{ts0} - {ts1}] {label}"


class SegmentBuilder:
    """Folds per-frame decisions into segments with sequential IDs."""

    def __init__(self, frame_ms: int) -> None:
        self.frame_ms: int = frame_ms
        self._seg_counter: int = 0
        self._frame_index: int = 0
        self._run_start: int = 0
        self._run_speech: Optional[bool] = None

    def add(self, is_speech: bool) -> Optional[SpeechSegment]:
        """Record one frame; return the segment it closed, if any."""
        closed = None
        if self._run_speech is not None and is_speech != self._run_speech:
            closed = self._close()
        if self._run_speech is None:
            self._run_start = self._frame_index
            self._run_speech = is_speech
        self._frame_index += 1
        return closed

    def flush(self) -> Optional[SpeechSegment]:
        """Close and return the open run (called at end of input)."""
        if self._run_speech is None:
            return None
        return self._close()

    def _close(self) -> SpeechSegment:
        self._seg_counter += 1
        frames = self._frame_index - self._run_start
        seg = SpeechSegment(
            seg_id=f"seg_{self._seg_counter:04d}",
            t0=round(self._run_start * self.frame_ms / 1000, 3),
            t1=round(self._frame_index * self.frame_ms / 1000, 3),
            is_speech=bool(self._run_speech),
            frames=frames,
        )
        self._run_speech = None
        return seg

    @property
    def seg_count(self) -> int:
        return self._seg_counter

    @property
    def frame_count(self) -> int:
        return self._frame_index


def _fmt_ts(seconds: float) -> str:
    """Format seconds as HH:MM:SS.mmm."""
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = seconds % 60
    return f"{h:02d}:{m:02d}:{s:06.3f}"
