"""Data models for monitor resources.

Monitors form a closed set of variants selected by the ``type`` field on
the wire. Each variant is a frozen dataclass that inherits the attributes
shared by all monitors from ``Monitor``.
"""

from dataclasses import dataclass, field
from typing import ClassVar

from .optional import NO_VALUE, Opt

# Discriminator values
CONNECTIVITY = "connectivity"
HOST = "host"
SERVICE = "service"
EXTERNAL = "external"
EXPRESSION = "expression"

MONITOR_TYPES = (CONNECTIVITY, HOST, SERVICE, EXTERNAL, EXPRESSION)


@dataclass(frozen=True)
class HeaderField:
    """HTTP request header sent by an external HTTP monitor."""

    name: str
    value: str


@dataclass(frozen=True)
class Monitor:
    """Attributes shared by every monitor kind.

    ``Monitor`` is abstract: values are always one of the concrete
    variants below. ``type`` is fixed per variant and cannot be passed
    to the constructor.

    List attributes (see ``list_fields``) keep three states apart:
    None when unset, an empty tuple when explicitly empty, and a
    populated tuple. Any sequence given at construction is stored as
    a tuple.

    Attributes:
        id: Monitor ID assigned by the server, empty for new monitors.
        name: Display name.
        memo: Free-form note.
        type: Discriminator value of the variant.
        is_mute: Whether notifications are muted.
        notification_interval: Minutes between repeated notifications, 0 for none.
    """

    list_fields: ClassVar[tuple[str, ...]] = ()

    id: str = ""
    name: str = ""
    memo: str = ""
    type: str = field(default="", init=False)
    is_mute: bool = False
    notification_interval: int = 0

    def __post_init__(self) -> None:
        if type(self) is Monitor:
            raise TypeError("Monitor is abstract; construct one of the concrete monitor classes")
        for name in self.list_fields:
            value = getattr(self, name)
            if value is None or isinstance(value, tuple):
                continue
            if isinstance(value, (str, bytes)):
                raise TypeError(f"'{name}' must be a sequence, not {type(value).__name__}")
            object.__setattr__(self, name, tuple(value))


@dataclass(frozen=True)
class ConnectivityMonitor(Monitor):
    """Host connectivity (heartbeat) monitor."""

    list_fields: ClassVar[tuple[str, ...]] = ("scopes", "exclude_scopes")

    type: str = field(default=CONNECTIVITY, init=False)
    scopes: tuple[str, ...] | None = None
    exclude_scopes: tuple[str, ...] | None = None


@dataclass(frozen=True)
class HostMetricMonitor(Monitor):
    """Threshold monitor on a host metric.

    Attributes:
        metric: Host metric name.
        operator: Comparison operator, ">" or "<".
        warning: Warning threshold.
        critical: Critical threshold.
        duration: Number of points averaged before comparing.
        max_check_attempts: Consecutive failures before alerting.
        scopes: Services or roles the monitor applies to.
        exclude_scopes: Services or roles excluded from the monitor.
    """

    list_fields: ClassVar[tuple[str, ...]] = ("scopes", "exclude_scopes")

    type: str = field(default=HOST, init=False)
    metric: str = ""
    operator: str = ""
    warning: Opt[float] = NO_VALUE
    critical: Opt[float] = NO_VALUE
    duration: int = 0
    max_check_attempts: int = 0
    scopes: tuple[str, ...] | None = None
    exclude_scopes: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ServiceMetricMonitor(Monitor):
    """Threshold monitor on a service metric."""

    type: str = field(default=SERVICE, init=False)
    service: str = ""
    metric: str = ""
    operator: str = ""
    warning: Opt[float] = NO_VALUE
    critical: Opt[float] = NO_VALUE
    duration: int = 0
    max_check_attempts: int = 0


@dataclass(frozen=True)
class ExternalHttpMonitor(Monitor):
    """Synthetic HTTP check run from outside.

    Response time thresholds are milliseconds and may be fractional.
    ``response_time_duration`` and the certificate expiration thresholds
    (days) are unsigned integers.

    ``headers`` is None by default and is sent as ``null``; an empty
    tuple is sent as ``[]``.
    """

    list_fields: ClassVar[tuple[str, ...]] = ("headers",)

    type: str = field(default=EXTERNAL, init=False)
    method: str = ""
    url: str = ""
    max_check_attempts: int = 0
    service: str = ""
    response_time_critical: Opt[float] = NO_VALUE
    response_time_warning: Opt[float] = NO_VALUE
    response_time_duration: Opt[int] = NO_VALUE
    request_body: str = ""
    contains_string: str = ""
    certification_expiration_critical: Opt[int] = NO_VALUE
    certification_expiration_warning: Opt[int] = NO_VALUE
    skip_certificate_verification: bool = False
    headers: tuple[HeaderField, ...] | None = None


@dataclass(frozen=True)
class ExpressionMonitor(Monitor):
    """Threshold monitor on a computed expression over metrics."""

    type: str = field(default=EXPRESSION, init=False)
    expression: str = ""
    operator: str = ""
    warning: Opt[float] = NO_VALUE
    critical: Opt[float] = NO_VALUE
