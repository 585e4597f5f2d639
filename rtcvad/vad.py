"""Voice Activity Detection over the native WebRTC engine.

The engine validates its own arguments quickly, so the detector calls it
first and only inspects the arguments after a call has failed, to say
*why* it failed.  The exceptions are the audio buffer checks (``None``,
wrong type, too short), which always run before ``process`` because the
engine would otherwise read past the end of the buffer.
"""

from __future__ import annotations

import operator
import threading
from enum import IntEnum
from typing import Optional, Union

import numpy as np

from rtcvad.errors import (
    DisposedError,
    InitializationError,
    InvalidArgumentError,
    InvalidEnumValueError,
    InvalidHandleError,
    NativeOperationError,
    VadError,
)
from rtcvad.native import VadLibrary, WebRtcLibrary


class SampleRate(IntEnum):
    """Sample rates accepted by the engine, in Hz."""
    KHZ_8 = 8000
    KHZ_16 = 16000
    KHZ_32 = 32000
    KHZ_48 = 48000


class FrameLength(IntEnum):
    """Frame durations accepted by the engine, in milliseconds."""
    MS_10 = 10
    MS_20 = 20
    MS_30 = 30


class OperatingMode(IntEnum):
    """Aggressiveness: higher values report speech less often."""
    HIGH_QUALITY = 0
    LOW_BITRATE = 1
    AGGRESSIVE = 2
    VERY_AGGRESSIVE = 3


Frame = Union[bytes, bytearray, memoryview, np.ndarray]


def required_samples(sample_rate: int, frame_length: int) -> int:
    """Number of 16-bit samples in one frame of *frame_length* ms."""
    return int(sample_rate) // 1000 * int(frame_length)


def required_bytes(sample_rate: int, frame_length: int) -> int:
    return required_samples(sample_rate, frame_length) * 2


def _valid_values(enum_cls: type[IntEnum]) -> list[int]:
    return [m.value for m in enum_cls]


def _is_member(enum_cls: type[IntEnum], value: object) -> bool:
    if isinstance(value, bool):
        return False
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


def _coerce(enum_cls: type[IntEnum], value: int) -> int:
    """Return the enum member for *value*, or *value* itself if unknown."""
    return enum_cls(value) if _is_member(enum_cls, value) else value


def _to_int(value: object, enum_cls: type[IntEnum], operation: str) -> int:
    try:
        return operator.index(value)  # type: ignore[arg-type]
    except TypeError:
        raise InvalidEnumValueError(
            value, enum_cls.__name__, _valid_values(enum_cls),
            operation=operation, args=(value,),
        ) from None


def _frame_bytes(frame: object, args: tuple) -> bytes:
    """Convert a supported frame type to bytes, or raise.

    ``bytes`` pass through unchanged; ``bytearray``, ``memoryview`` and
    int16 arrays are copied once per call.  Pass ``bytes`` on hot paths.
    """
    if frame is None:
        raise InvalidArgumentError(
            "Audio frame is required (got None)",
            operation="Process", args=args,
        )
    if isinstance(frame, np.ndarray):
        if frame.dtype != np.int16 or frame.ndim != 1:
            raise InvalidArgumentError(
                f"Audio array must be 1-D int16, got {frame.ndim}-D "
                f"{frame.dtype}",
                operation="Process", args=args,
            )
        return np.ascontiguousarray(frame).tobytes()
    if isinstance(frame, bytes):
        return frame
    if isinstance(frame, (bytearray, memoryview)):
        return bytes(frame)
    raise InvalidArgumentError(
        f"Audio frame must be bytes-like or an int16 numpy array, "
        f"got {type(frame).__name__}",
        operation="Process", args=args,
    )


class VoiceActivityDetector:
    """Owns one native detector handle and its validated configuration.

    Defaults: 8 kHz, 10 ms frames, ``OperatingMode.HIGH_QUALITY``.
    Use as a context manager, or call ``close()``, to release the handle.
    Calls on one instance are serialised by an internal lock, but the
    engine itself is not reentrant, so use one detector per worker.
    """

    def __init__(self, library: Optional[VadLibrary] = None) -> None:
        self._lib: VadLibrary = (
            library if library is not None else WebRtcLibrary()
        )
        self._lock = threading.Lock()
        self._closed = False
        self._rate: int = SampleRate.KHZ_8
        self._length: int = FrameLength.MS_10
        self._mode: int = OperatingMode.HIGH_QUALITY

        self._handle = self._lib.create()
        try:
            status = self._lib.init(self._handle)
            self._check_init(status)
            self.operating_mode = OperatingMode.HIGH_QUALITY
        except BaseException:
            self._release()
            raise

    @classmethod
    def from_config(
        cls, config, library: Optional[VadLibrary] = None,
    ) -> "VoiceActivityDetector":
        """Build a detector from an ``AppConfig`` (engine + vad sections)."""
        if library is None:
            library = WebRtcLibrary(
                config.engine.library_path, config.engine.search_dirs,
            )
        detector = cls(library)
        try:
            detector.sample_rate = config.vad.sample_rate
            detector.frame_length = config.vad.frame_ms
            detector.operating_mode = config.vad.mode
        except VadError:
            detector.close()
            raise
        return detector

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------

    @property
    def sample_rate(self) -> int:
        """Sample rate used by ``has_speech`` when none is given."""
        return self._rate

    @sample_rate.setter
    def sample_rate(self, value: int) -> None:
        with self._lock:
            self._ensure_open("ValidRateAndFrameLength", (value,))
            self._validate_rate_and_length(value, self._length)
            self._rate = _coerce(SampleRate, value)

    @property
    def frame_length(self) -> int:
        """Frame length in ms used by ``has_speech`` when none is given."""
        return self._length

    @frame_length.setter
    def frame_length(self, value: int) -> None:
        with self._lock:
            self._ensure_open("ValidRateAndFrameLength", (value,))
            self._validate_rate_and_length(self._rate, value)
            self._length = _coerce(FrameLength, value)

    @property
    def operating_mode(self) -> int:
        return self._mode

    @operating_mode.setter
    def operating_mode(self, value: int) -> None:
        with self._lock:
            self._ensure_open("SetMode", (value,))
            mode = _to_int(value, OperatingMode, "SetMode")
            status = self._lib.set_mode(self._handle, mode)
            if status != 0:
                raise self._diagnose(
                    "SetMode", "set operating mode",
                    (self._handle, mode), status,
                    (OperatingMode, value),
                )
            self._mode = _coerce(OperatingMode, value)

    @property
    def frame_samples(self) -> int:
        return required_samples(self._rate, self._length)

    @property
    def frame_bytes(self) -> int:
        return required_bytes(self._rate, self._length)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # detection
    # ------------------------------------------------------------------

    def has_speech(
        self,
        frame: Frame,
        sample_rate: Optional[int] = None,
        frame_length: Optional[int] = None,
    ) -> bool:
        """Return True if *frame* contains speech.

        Without *sample_rate* / *frame_length* the stored configuration is
        used; explicit values apply to this call only.  The frame must hold
        at least ``required_samples(rate, length)`` 16-bit samples; extra
        trailing data is ignored by the engine.
        Argument checks run before the closed check, so a closed detector
        given a bad rate or buffer raises that error, not ``DisposedError``.
        """
        rate = self._rate if sample_rate is None else sample_rate
        length = self._length if frame_length is None else frame_length
        rate_i = _to_int(rate, SampleRate, "Process")
        length_i = _to_int(length, FrameLength, "Process")
        samples = required_samples(rate_i, length_i)

        data = _frame_bytes(frame, (rate_i, length_i))
        if len(data) < samples * 2:
            raise InvalidArgumentError(
                f"Audio must contain at least {samples} 16-bit samples "
                f"({samples * 2} bytes), got {len(data)} bytes",
                operation="Process",
                args=(rate_i, length_i),
            )

        with self._lock:
            self._ensure_open("Process", (rate_i, length_i))
            status = self._lib.process(self._handle, rate_i, data, samples)
            if status == 0:
                return False
            if status == 1:
                return True
            raise self._diagnose(
                "Process", "process audio frame",
                (self._handle, rate_i, "<frame>", samples), status,
                (SampleRate, rate), (FrameLength, length),
            )

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Free the native handle.  Further calls are no-ops."""
        with self._lock:
            if self._closed:
                return
            self._release()

    def __enter__(self) -> "VoiceActivityDetector":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"<VoiceActivityDetector {state} rate={int(self._rate)} "
            f"length={int(self._length)}ms mode={int(self._mode)}>"
        )

    # ------------------------------------------------------------------
    # validation (failure path only)
    # ------------------------------------------------------------------

    def _release(self) -> None:
        try:
            if self._lib is not None and self._handle:
                self._lib.free(self._handle)
        finally:
            self._handle = None
            self._closed = True

    def _ensure_open(self, operation: str, args: tuple) -> None:
        if self._closed:
            raise DisposedError(
                f"Cannot call {operation}: detector has been closed.",
                operation=operation, args=args,
            )

    def _check_init(self, status: int) -> None:
        if status == 0:
            return
        handle = self._handle
        if not handle:
            raise InvalidHandleError(
                f"Invalid WebRTC handle [Init({handle}) = {status}].",
                operation="Init", args=(handle,), status=status,
            )
        raise InitializationError(
            f"Could not initialize WebRTC [Init({handle}) = {status}].",
            operation="Init", args=(handle,), status=status,
        )

    def _validate_rate_and_length(self, rate: object, length: object) -> None:
        rate_i = _to_int(rate, SampleRate, "ValidRateAndFrameLength")
        length_i = _to_int(length, FrameLength, "ValidRateAndFrameLength")
        samples = required_samples(rate_i, length_i)
        status = self._lib.valid_rate_and_frame_length(rate_i, samples)
        if status != 0:
            raise self._diagnose(
                "ValidRateAndFrameLength", "validate rate/length",
                (rate_i, samples), status,
                (SampleRate, rate), (FrameLength, length),
            )

    def _diagnose(
        self,
        operation: str,
        verb: str,
        args: tuple,
        status: int,
        *enum_checks: tuple,
    ) -> VadError:
        """Classify a failed native call into the error to raise.

        Order: released handle, then each enum argument, then the opaque
        native failure.
        """
        if not self._handle:
            return DisposedError(
                "Invalid WebRTC handle; detector appears to have been closed.",
                operation=operation, args=args, status=status,
            )
        for enum_cls, value in enum_checks:
            if not _is_member(enum_cls, value):
                return InvalidEnumValueError(
                    value, enum_cls.__name__, _valid_values(enum_cls),
                    operation=operation, args=args, status=status,
                )
        args_str = ", ".join(str(a) for a in args)
        return NativeOperationError(
            f"Could not {verb} [{operation}({args_str}) = {status}].",
            operation=operation, args=args, status=status,
        )
