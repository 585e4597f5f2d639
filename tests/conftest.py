"""Shared fixtures: an in-memory stand-in for the native VAD engine."""

from __future__ import annotations

from typing import Optional

import pytest

from rtcvad.native import VadLibrary
from rtcvad.vad import VoiceActivityDetector


class StubLibrary(VadLibrary):
    """Scripted engine that records every call.

    Status codes are plain attributes so tests can change them between
    calls.  ``valid_pairs`` (if set) restricts which (rate, samples)
    combinations ``valid_rate_and_frame_length`` accepts.
    """

    def __init__(self, handle: Optional[int] = 0x1000) -> None:
        self.handle = handle
        self.init_status = 0
        self.set_mode_status = 0
        self.valid_status = 0
        self.valid_pairs: Optional[set[tuple[int, int]]] = None
        self.process_status = 0
        self.process_script: list[int] = []
        self.calls: list[tuple] = []

    def create(self):
        self.calls.append(("create",))
        return self.handle

    def init(self, handle):
        self.calls.append(("init", handle))
        return self.init_status

    def set_mode(self, handle, mode):
        self.calls.append(("set_mode", handle, mode))
        return self.set_mode_status

    def valid_rate_and_frame_length(self, rate, samples):
        self.calls.append(("valid", rate, samples))
        if self.valid_pairs is not None:
            return 0 if (rate, samples) in self.valid_pairs else -1
        return self.valid_status

    def process(self, handle, rate, frame, samples):
        self.calls.append(("process", handle, rate, len(frame), samples))
        if self.process_script:
            return self.process_script.pop(0)
        return self.process_status

    def free(self, handle):
        self.calls.append(("free", handle))

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


@pytest.fixture
def stub() -> StubLibrary:
    return StubLibrary()


@pytest.fixture
def detector(stub):
    d = VoiceActivityDetector(stub)
    yield d
    d.close()
