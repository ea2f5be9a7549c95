"""Decode and encode monitor resources on the JSON wire format.

Every monitor object carries a ``type`` discriminator. Decoding reads that
field first, picks the variant from ``MONITOR_CLASSES`` and then reads the
variant's declared fields from its schema table. Encoding walks the same
table, so the set and order of emitted keys is fixed per variant.

The codec holds no state and performs no I/O; all functions are safe to
call from several threads at once.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .errors import CodecError, DecodeError, EncodeError, UnknownMonitorType
from .models import (
    CONNECTIVITY,
    EXPRESSION,
    EXTERNAL,
    HOST,
    SERVICE,
    ConnectivityMonitor,
    ExpressionMonitor,
    ExternalHttpMonitor,
    HeaderField,
    HostMetricMonitor,
    Monitor,
    ServiceMetricMonitor,
)
from .optional import FLOAT, MAX_UINT, NULL_IF_UNSET, OMIT_IF_UNSET, UINT, OptionalNumber

logger = logging.getLogger(__name__)

# Plain field kinds
STRING = "string"
BOOL = "bool"
COUNT = "count"  # non-negative integer, 0 when unset
STRING_LIST = "string_list"
HEADER_LIST = "header_list"

_LIST_KINDS = (STRING_LIST, HEADER_LIST)

# Raw input accepted by the decode functions
RawMonitor = bytes | bytearray | str | Mapping[str, Any]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _describe(raw: Any) -> str:
    if raw is None:
        return "null"
    if isinstance(raw, bool):
        return "boolean"
    if isinstance(raw, (int, float)):
        return "number"
    if isinstance(raw, str):
        return "string"
    if isinstance(raw, list):
        return "array"
    if isinstance(raw, Mapping):
        return "object"
    return type(raw).__name__


def _is_count(raw: Any) -> bool:
    return isinstance(raw, int) and not isinstance(raw, bool) and 0 <= raw <= MAX_UINT


@dataclass(frozen=True)
class PlainField:
    """JSON mapping for a monitor field that is not an optional number.

    With OMIT_IF_UNSET a scalar holding its zero value and a list holding
    None are left out of the output. With NULL_IF_UNSET a None list is
    emitted as ``null``. An empty list is always emitted as ``[]``.
    """

    attr: str
    key: str
    kind: str
    unset: str = OMIT_IF_UNSET

    def _mismatch(self, raw: Any, expected: str) -> DecodeError:
        return DecodeError(f"Field '{self.key}' expects {expected}, got {_describe(raw)}", field=self.key)

    def decode(self, obj: Mapping[str, Any]) -> Any:
        raw = obj.get(self.key)
        if self.kind == STRING:
            if raw is None:
                return ""
            if not isinstance(raw, str):
                raise self._mismatch(raw, "a string")
            return raw
        if self.kind == BOOL:
            if raw is None:
                return False
            if not isinstance(raw, bool):
                raise self._mismatch(raw, "a boolean")
            return raw
        if self.kind == COUNT:
            if raw is None:
                return 0
            if not _is_count(raw):
                raise self._mismatch(raw, "an unsigned integer")
            return raw
        if raw is None:
            return None
        if not isinstance(raw, list):
            raise self._mismatch(raw, "an array")
        if self.kind == STRING_LIST:
            for item in raw:
                if not isinstance(item, str):
                    raise self._mismatch(item, "an array of strings")
            return tuple(raw)
        return tuple(self._decode_header(item) for item in raw)

    def _decode_header(self, item: Any) -> HeaderField:
        if not isinstance(item, Mapping):
            raise self._mismatch(item, "an array of header objects")
        # null name or value reads as an empty string
        name = item.get("name")
        value = item.get("value")
        name = "" if name is None else name
        value = "" if value is None else value
        if not isinstance(name, str) or not isinstance(value, str):
            raise DecodeError(f"Field '{self.key}' has a header with a non-string name or value", field=self.key)
        return HeaderField(name=name, value=value)

    def encode(self, value: Any, out: dict[str, Any]) -> None:
        if self.kind in _LIST_KINDS:
            self._encode_list(value, out)
            return
        if self.kind == STRING:
            valid = isinstance(value, str)
        elif self.kind == BOOL:
            valid = isinstance(value, bool)
        else:
            valid = _is_count(value)
        if not valid:
            raise EncodeError(f"Field '{self.attr}' has invalid value {value!r} for a {self.kind} field")
        if not value and self.unset == OMIT_IF_UNSET:
            return
        out[self.key] = value

    def _encode_list(self, value: Any, out: dict[str, Any]) -> None:
        if value is None:
            if self.unset == NULL_IF_UNSET:
                out[self.key] = None
            return
        if self.kind == STRING_LIST:
            if not all(isinstance(item, str) for item in value):
                raise EncodeError(f"Field '{self.attr}' must contain only strings")
            out[self.key] = list(value)
            return
        if not all(isinstance(item, HeaderField) for item in value):
            raise EncodeError(f"Field '{self.attr}' must contain only HeaderField values")
        out[self.key] = [{"name": header.name, "value": header.value} for header in value]


@dataclass(frozen=True)
class TypeField:
    """The ``type`` discriminator: never read into the value, always written."""

    attr: str = "type"
    key: str = "type"

    def encode(self, value: str, out: dict[str, Any]) -> None:
        out[self.key] = value


_COMMON_FIELDS = (
    PlainField("id", "id", STRING),
    PlainField("name", "name", STRING),
    PlainField("memo", "memo", STRING),
    TypeField(),
    PlainField("is_mute", "isMute", BOOL),
    PlainField("notification_interval", "notificationInterval", COUNT),
)

_SCOPE_FIELDS = (
    PlainField("scopes", "scopes", STRING_LIST),
    PlainField("exclude_scopes", "excludeScopes", STRING_LIST),
)


def _thresholds() -> tuple[OptionalNumber, ...]:
    # Unset thresholds are sent as null
    return (
        OptionalNumber("warning", "warning", FLOAT, NULL_IF_UNSET),
        OptionalNumber("critical", "critical", FLOAT, NULL_IF_UNSET),
    )


# Field table per variant, in output order
SCHEMAS: dict[type[Monitor], tuple] = {
    ConnectivityMonitor: _COMMON_FIELDS + _SCOPE_FIELDS,
    HostMetricMonitor: _COMMON_FIELDS
    + (
        PlainField("metric", "metric", STRING),
        PlainField("operator", "operator", STRING),
        *_thresholds(),
        PlainField("duration", "duration", COUNT),
        PlainField("max_check_attempts", "maxCheckAttempts", COUNT),
    )
    + _SCOPE_FIELDS,
    ServiceMetricMonitor: _COMMON_FIELDS
    + (
        PlainField("service", "service", STRING),
        PlainField("metric", "metric", STRING),
        PlainField("operator", "operator", STRING),
        *_thresholds(),
        PlainField("duration", "duration", COUNT),
        PlainField("max_check_attempts", "maxCheckAttempts", COUNT),
    ),
    ExternalHttpMonitor: _COMMON_FIELDS
    + (
        PlainField("method", "method", STRING),
        PlainField("url", "url", STRING),
        PlainField("max_check_attempts", "maxCheckAttempts", COUNT),
        PlainField("service", "service", STRING),
        OptionalNumber("response_time_critical", "responseTimeCritical", FLOAT),
        OptionalNumber("response_time_warning", "responseTimeWarning", FLOAT),
        OptionalNumber("response_time_duration", "responseTimeDuration", UINT),
        PlainField("request_body", "requestBody", STRING),
        PlainField("contains_string", "containsString", STRING),
        OptionalNumber("certification_expiration_critical", "certificationExpirationCritical", UINT),
        OptionalNumber("certification_expiration_warning", "certificationExpirationWarning", UINT),
        PlainField("skip_certificate_verification", "skipCertificateVerification", BOOL),
        PlainField("headers", "headers", HEADER_LIST, NULL_IF_UNSET),
    ),
    ExpressionMonitor: _COMMON_FIELDS
    + (
        PlainField("expression", "expression", STRING),
        PlainField("operator", "operator", STRING),
        *_thresholds(),
    ),
}

# Discriminator value -> variant
MONITOR_CLASSES: dict[str, type[Monitor]] = {
    CONNECTIVITY: ConnectivityMonitor,
    HOST: HostMetricMonitor,
    SERVICE: ServiceMetricMonitor,
    EXTERNAL: ExternalHttpMonitor,
    EXPRESSION: ExpressionMonitor,
}


def _parse_json(raw: bytes | bytearray | str) -> Any:
    """Parse JSON text, turning every parser failure into a DecodeError."""
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Malformed JSON: {e.msg} at offset {e.pos}", offset=e.pos) from e
    except UnicodeDecodeError as e:
        raise DecodeError(f"Monitor JSON is not valid UTF-8: {e.reason} at offset {e.start}", offset=e.start) from e
    except ValueError as e:
        raise DecodeError(f"Malformed JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("Malformed JSON: nesting too deep") from e


def _load_object(raw: RawMonitor) -> Mapping[str, Any]:
    if isinstance(raw, (bytes, bytearray, str)):
        raw = _parse_json(raw)
    if not isinstance(raw, Mapping):
        raise DecodeError(f"Monitor must be a JSON object, got {_describe(raw)}")
    return raw


def _peek_type(obj: Mapping[str, Any]) -> str:
    monitor_type = obj.get("type")
    if monitor_type is None:
        return ""
    if not isinstance(monitor_type, str):
        raise DecodeError(f"Field 'type' expects a string, got {_describe(monitor_type)}", field="type")
    return monitor_type


def decode_monitor(raw: RawMonitor) -> Monitor:
    """Decode one monitor object into its variant.

    Args:
        raw: JSON text (bytes or str) or an already parsed JSON object.

    Returns:
        The concrete monitor selected by the object's ``type``.

    Raises:
        UnknownMonitorType: If ``type`` is missing or not a known monitor type.
        DecodeError: If the JSON is malformed or a field has the wrong type.
    """
    obj = _load_object(raw)
    monitor_type = _peek_type(obj)
    cls = MONITOR_CLASSES.get(monitor_type)
    if cls is None:
        raise UnknownMonitorType(monitor_type)

    values = {spec.attr: spec.decode(obj) for spec in SCHEMAS[cls] if not isinstance(spec, TypeField)}
    return cls(**values)


def unwrap_monitors(document: Any) -> list[Any]:
    """Return the raw monitor objects of a list response.

    Accepts JSON text, an object with a ``monitors`` key, or a list of
    raw monitors. Items are returned untouched.

    Raises:
        DecodeError: If the document has none of these shapes.
    """
    if isinstance(document, (bytes, bytearray, str)):
        document = _parse_json(document)
    if isinstance(document, Mapping):
        if "monitors" not in document:
            raise DecodeError("Monitor list document is missing 'monitors' key", field="monitors")
        document = document["monitors"]
        if document is None:
            return []
    if not isinstance(document, list):
        raise DecodeError(f"'monitors' must be an array, got {_describe(document)}", field="monitors")
    return list(document)


def decode_monitors(document: Any) -> list[Monitor]:
    """Decode every monitor of a list response, in order.

    Decoding stops at the first invalid monitor; callers that want to
    skip bad entries should loop over ``unwrap_monitors`` themselves.

    Raises:
        UnknownMonitorType: If a monitor has an unknown type.
        DecodeError: If the document or a monitor is malformed.
    """
    raws = unwrap_monitors(document)
    logger.debug("Decoding %d monitors", len(raws))
    monitors: list[Monitor] = []
    for index, raw in enumerate(raws):
        try:
            monitors.append(decode_monitor(raw))
        except CodecError:
            logger.debug("Monitor at index %d failed to decode", index)
            raise
    return monitors


def encode_monitor(monitor: Monitor) -> dict[str, Any]:
    """Encode a monitor as a JSON-serializable dict.

    Raises:
        EncodeError: If the value is not a known monitor variant or a field is invalid.
    """
    schema = SCHEMAS.get(type(monitor))
    if schema is None:
        raise EncodeError(f"Cannot encode {type(monitor).__name__}: not a monitor variant")

    out: dict[str, Any] = {}
    for spec in schema:
        spec.encode(getattr(monitor, spec.attr), out)
    return out


def encode_monitors(monitors: Iterable[Monitor]) -> list[dict[str, Any]]:
    """Encode monitors in order."""
    return [encode_monitor(monitor) for monitor in monitors]


def dumps_monitor(monitor: Monitor, indent: int | None = None) -> str:
    """Serialize one monitor to JSON text."""
    return json.dumps(encode_monitor(monitor), indent=indent, ensure_ascii=False, allow_nan=False)


def dumps_monitors(monitors: Iterable[Monitor], indent: int | None = None) -> str:
    """Serialize monitors as a ``{"monitors": [...]}`` document."""
    return json.dumps(
        {"monitors": encode_monitors(monitors)},
        indent=indent,
        ensure_ascii=False,
        allow_nan=False,
    )
