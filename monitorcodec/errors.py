"""Error types raised by the monitor codec."""

from typing import Any


class CodecError(Exception):
    """Base class for all monitor codec errors."""

    pass


class DecodeError(CodecError):
    """Raised when a monitor document is malformed or a field has the wrong JSON type.

    Attributes:
        field: JSON key of the offending field, or None if the whole document is bad.
        offset: Character offset of a JSON syntax error, or None if not applicable.
    """

    def __init__(self, message: str, *, field: str | None = None, offset: int | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.offset = offset


class TypeMismatch(DecodeError):
    """Raised when an optional numeric field holds neither a number of its kind nor null."""

    def __init__(self, field: str, raw: Any, expected: str = "number") -> None:
        super().__init__(f"Field '{field}' expects {expected} or null, got {raw!r}", field=field)
        self.raw = raw


class UnknownMonitorType(CodecError):
    """Raised when the `type` discriminator is not one of the known monitor types."""

    def __init__(self, monitor_type: str) -> None:
        super().__init__(f"Unknown monitor type: {monitor_type!r}")
        self.monitor_type = monitor_type


class EncodeError(CodecError):
    """Raised when a monitor value cannot be serialized."""

    pass
