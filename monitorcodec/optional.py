"""Optional numeric values that keep "no value" apart from zero.

A monitor threshold can be missing, explicitly null, or set to a number,
and ``0`` is a perfectly valid threshold. Fields of that kind hold either
``NO_VALUE`` or ``Some(v)`` instead of a bare number, and the JSON
mapping for each field is described by an ``OptionalNumber``.

On input a missing key and an explicit ``null`` both decode to ``NO_VALUE``.
On output each field has an explicit unset policy: omit the key, or emit
``null`` so that an update request clears the value on the server.
"""

import math
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

from .errors import EncodeError, TypeMismatch

T = TypeVar("T")

# Numeric kinds
FLOAT = "float"  # general thresholds; integers are widened to float
UINT = "uint"  # counts and durations; non-negative integers only
NUMERIC_KINDS = (FLOAT, UINT)

# Largest value of an unsigned field on the wire (uint64)
MAX_UINT = 2**64 - 1

# What to emit for a field holding no value
OMIT_IF_UNSET = "omit"
NULL_IF_UNSET = "null"
UNSET_POLICIES = (OMIT_IF_UNSET, NULL_IF_UNSET)


class NoValue:
    """Marker for an optional field that holds no value. Use the ``NO_VALUE`` singleton."""

    __slots__ = ()
    _instance: "NoValue | None" = None

    def __new__(cls) -> "NoValue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> tuple:
        return (NoValue, ())


NO_VALUE = NoValue()


@dataclass(frozen=True)
class Some(Generic[T]):
    """An optional field that holds a value."""

    value: T


Opt = Some[T] | NoValue


def is_set(opt: "Opt[Any]") -> bool:
    """Return True if the optional holds a value."""
    return isinstance(opt, Some)


def value_or(opt: "Opt[T]", default: T) -> T:
    """Return the held value, or ``default`` when the optional is unset."""
    if isinstance(opt, Some):
        return opt.value
    return default


def from_nullable(value: T | None) -> "Opt[T]":
    """Wrap a plain value, mapping None to ``NO_VALUE``."""
    if value is None:
        return NO_VALUE
    return Some(value)


def _is_number(raw: Any) -> bool:
    # bool is an int subclass but never a valid number on the wire
    return isinstance(raw, (int, float)) and not isinstance(raw, bool)


@dataclass(frozen=True)
class OptionalNumber:
    """JSON mapping for one optional numeric monitor field.

    Attributes:
        attr: Attribute name on the monitor dataclass.
        key: JSON key on the wire.
        kind: FLOAT or UINT.
        unset: OMIT_IF_UNSET or NULL_IF_UNSET.
    """

    attr: str
    key: str
    kind: str = FLOAT
    unset: str = OMIT_IF_UNSET

    def __post_init__(self) -> None:
        if self.kind not in NUMERIC_KINDS:
            raise ValueError(f"Invalid numeric kind '{self.kind}' for '{self.key}'. Must be one of: {NUMERIC_KINDS}")
        if self.unset not in UNSET_POLICIES:
            raise ValueError(f"Invalid unset policy '{self.unset}' for '{self.key}'. Must be one of: {UNSET_POLICIES}")

    @property
    def _expected(self) -> str:
        return "an unsigned integer" if self.kind == UINT else "a number"

    def _parse(self, raw: Any) -> float | int | None:
        """Return the number for ``raw`` per this field's kind, or None if it does not fit."""
        if not _is_number(raw):
            return None
        if self.kind == UINT:
            if isinstance(raw, float) or not (0 <= raw <= MAX_UINT):
                return None
            return raw
        if isinstance(raw, float) and not math.isfinite(raw):
            return None
        try:
            return float(raw)
        except OverflowError:
            return None

    def decode(self, obj: Mapping[str, Any]) -> "Opt[float] | Opt[int]":
        """Read this field from a parsed monitor object.

        Raises:
            TypeMismatch: If the value is neither null nor a number of this field's kind.
        """
        raw = obj.get(self.key)
        if raw is None:
            return NO_VALUE
        value = self._parse(raw)
        if value is None:
            raise TypeMismatch(self.key, raw, self._expected)
        return Some(value)

    def encode(self, opt: Any, out: dict[str, Any]) -> None:
        """Write this field into ``out`` according to its unset policy.

        Raises:
            EncodeError: If ``opt`` is not NO_VALUE or Some(number of this field's kind).
        """
        if opt is NO_VALUE:
            if self.unset == NULL_IF_UNSET:
                out[self.key] = None
            return
        if not isinstance(opt, Some):
            raise EncodeError(f"Field '{self.attr}' must be NO_VALUE or Some(...), got {opt!r}")
        value = self._parse(opt.value)
        if value is None:
            raise EncodeError(f"Field '{self.attr}' must hold {self._expected}, got {opt.value!r}")
        out[self.key] = value
