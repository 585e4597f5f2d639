"""Error taxonomy for the native VAD adapter.

Every error derives from ``VadError`` plus the closest builtin, so callers
can catch either ``VadError`` or the usual ``ValueError`` / ``RuntimeError``
/ ``OSError``.
"""

from __future__ import annotations

from typing import Optional, Sequence


class VadError(Exception):
    """Base class for all adapter failures.

    ``operation``, ``args`` and ``status`` describe the native call that
    failed, when there was one.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        args: tuple = (),
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.call_args = tuple(args)
        self.status = status


class EngineUnavailableError(VadError, OSError):
    """The native VAD library could not be located or loaded."""

    def __init__(self, message: str, searched: Sequence[str], cwd: str) -> None:
        super().__init__(message, operation="load")
        self.searched = list(searched)
        self.cwd = cwd


class InitializationError(VadError, RuntimeError):
    """``init`` returned a non-zero status."""


class InvalidHandleError(InitializationError):
    """``init`` failed and the native handle is null."""


class InvalidArgumentError(VadError, ValueError):
    """Audio buffer is missing, too short or of an unsupported type."""


class InvalidEnumValueError(VadError, ValueError):
    """A configuration value is outside the engine's recognised set."""

    def __init__(
        self,
        value: object,
        enum_name: str,
        valid: Sequence[int],
        operation: Optional[str] = None,
        args: tuple = (),
        status: Optional[int] = None,
    ) -> None:
        valid_str = ", ".join(str(v) for v in valid)
        super().__init__(
            f"{value!r} was not a valid {enum_name}. "
            f"Valid values are [{valid_str}].",
            operation=operation,
            args=args,
            status=status,
        )
        self.value = value
        self.enum_name = enum_name
        self.valid = list(valid)


class DisposedError(VadError, RuntimeError):
    """Operation attempted after the detector released its handle."""


class NativeOperationError(VadError, RuntimeError):
    """Native call failed and no local diagnosis explains why."""
