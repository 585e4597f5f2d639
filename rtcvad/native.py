"""Native WebRTC VAD engine: capability set and ctypes binding."""

from __future__ import annotations

import ctypes
import ctypes.util
import os
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from rtcvad.errors import EngineUnavailableError


LIBRARY_ENV_VAR = "RTCVAD_LIBRARY"

# name -> (argtypes, restype)
_SIGNATURES = {
    "WebRtcVad_Create": ([], ctypes.c_void_p),
    "WebRtcVad_Init": ([ctypes.c_void_p], ctypes.c_int),
    "WebRtcVad_set_mode": ([ctypes.c_void_p, ctypes.c_int], ctypes.c_int),
    "WebRtcVad_ValidRateAndFrameLength": (
        [ctypes.c_int, ctypes.c_size_t], ctypes.c_int,
    ),
    "WebRtcVad_Process": (
        [ctypes.c_void_p, ctypes.c_int, ctypes.c_char_p, ctypes.c_size_t],
        ctypes.c_int,
    ),
    "WebRtcVad_Free": ([ctypes.c_void_p], None),
}


class VadLibrary(ABC):
    """Operations the detector needs from a VAD engine.

    All methods except ``create`` and ``free`` return the engine's raw
    status code.  Handles are opaque; ``None`` is the null handle.
    """

    @abstractmethod
    def create(self) -> Optional[int]:
        """Allocate a new detector instance."""

    @abstractmethod
    def init(self, handle: Optional[int]) -> int:
        """Initialise *handle*; must precede any other call on it."""

    @abstractmethod
    def set_mode(self, handle: Optional[int], mode: int) -> int:
        ...

    @abstractmethod
    def valid_rate_and_frame_length(self, rate: int, samples: int) -> int:
        ...

    @abstractmethod
    def process(
        self, handle: Optional[int], rate: int, frame: bytes, samples: int,
    ) -> int:
        """Classify one frame: 0 = no speech, 1 = speech, other = error."""

    @abstractmethod
    def free(self, handle: Optional[int]) -> None:
        """Release *handle*.  Not safe to call twice on the same handle."""


def _platform_library_name() -> str:
    if sys.platform == "win32":
        return "WebRtcVad.dll"
    if sys.platform == "darwin":
        return "libwebrtcvad.dylib"
    return "libwebrtcvad.so"


def candidate_paths(
    library_path: Optional[str] = None,
    search_dirs: Sequence[str] = (),
) -> List[str]:
    """Return the ordered list of library locations to try.

    Explicit path, ``RTCVAD_LIBRARY``, configured search dirs, the current
    directory, ``find_library`` and finally the bare file name (left to the
    system loader).  Duplicates are removed, first occurrence wins.
    """
    name = _platform_library_name()
    candidates: List[str] = []
    if library_path:
        candidates.append(library_path)
    env_path = os.environ.get(LIBRARY_ENV_VAR)
    if env_path:
        candidates.append(env_path)
    for d in search_dirs:
        candidates.append(os.path.join(d, name))
    candidates.append(os.path.join(os.getcwd(), name))
    found = ctypes.util.find_library("webrtcvad")
    if found:
        candidates.append(found)
    candidates.append(name)

    seen: set[str] = set()
    unique: List[str] = []
    for c in candidates:
        if c not in seen:
            seen.add(c)
            unique.append(c)
    return unique


def load_library(
    library_path: Optional[str] = None,
    search_dirs: Sequence[str] = (),
) -> ctypes.CDLL:
    """Load the first loadable candidate or raise ``EngineUnavailableError``."""
    searched = candidate_paths(library_path, search_dirs)
    failures: List[str] = []
    for path in searched:
        try:
            return ctypes.CDLL(path)
        except OSError as e:
            failures.append(f"{path}: {e}")

    cwd = os.getcwd()
    detail = "; ".join(failures)
    raise EngineUnavailableError(
        f"Unable to load '{_platform_library_name()}' or a dependency. "
        f"Be sure it exists in '{cwd}', set {LIBRARY_ENV_VAR}, or place it "
        f"elsewhere in the library search path. Tried: {detail}",
        searched=searched,
        cwd=cwd,
    )


class WebRtcLibrary(VadLibrary):
    """ctypes binding to the WebRTC C VAD API."""

    def __init__(
        self,
        library_path: Optional[str] = None,
        search_dirs: Sequence[str] = (),
        lib: Optional[ctypes.CDLL] = None,
    ) -> None:
        self._lib = lib if lib is not None else load_library(
            library_path, search_dirs,
        )
        self._bind()

    # ------------------------------------------------------------------
    def _bind(self) -> None:
        for name, (argtypes, restype) in _SIGNATURES.items():
            try:
                fn = getattr(self._lib, name)
            except AttributeError as e:
                raise EngineUnavailableError(
                    f"VAD library {self._lib!r} does not export '{name}'",
                    searched=[str(getattr(self._lib, "_name", self._lib))],
                    cwd=os.getcwd(),
                ) from e
            fn.argtypes = argtypes
            fn.restype = restype

    # ------------------------------------------------------------------
    def create(self) -> Optional[int]:
        return self._lib.WebRtcVad_Create()

    def init(self, handle: Optional[int]) -> int:
        return self._lib.WebRtcVad_Init(handle)

    def set_mode(self, handle: Optional[int], mode: int) -> int:
        return self._lib.WebRtcVad_set_mode(handle, mode)

    def valid_rate_and_frame_length(self, rate: int, samples: int) -> int:
        return self._lib.WebRtcVad_ValidRateAndFrameLength(rate, samples)

    def process(
        self, handle: Optional[int], rate: int, frame: bytes, samples: int,
    ) -> int:
        return self._lib.WebRtcVad_Process(handle, rate, frame, samples)

    def free(self, handle: Optional[int]) -> None:
        self._lib.WebRtcVad_Free(handle)
