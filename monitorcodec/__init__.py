"""monitorcodec - Typed decoding and encoding of monitoring service monitor resources."""

import argparse
import logging
import sys
from typing import Any

from .codec import (
    MONITOR_CLASSES,
    decode_monitor,
    decode_monitors,
    dumps_monitor,
    dumps_monitors,
    encode_monitor,
    encode_monitors,
    unwrap_monitors,
)
from .errors import CodecError, DecodeError, EncodeError, TypeMismatch, UnknownMonitorType
from .models import (
    MONITOR_TYPES,
    ConnectivityMonitor,
    ExpressionMonitor,
    ExternalHttpMonitor,
    HeaderField,
    HostMetricMonitor,
    Monitor,
    ServiceMetricMonitor,
)
from .optional import NO_VALUE, NoValue, Opt, Some, from_nullable, is_set, value_or

__version__ = "0.1.0"

__all__ = [
    "MONITOR_CLASSES",
    "MONITOR_TYPES",
    "NO_VALUE",
    "CodecError",
    "ConnectivityMonitor",
    "DecodeError",
    "EncodeError",
    "ExpressionMonitor",
    "ExternalHttpMonitor",
    "HeaderField",
    "HostMetricMonitor",
    "Monitor",
    "NoValue",
    "Opt",
    "ServiceMetricMonitor",
    "Some",
    "TypeMismatch",
    "UnknownMonitorType",
    "decode_monitor",
    "decode_monitors",
    "dumps_monitor",
    "dumps_monitors",
    "encode_monitor",
    "encode_monitors",
    "from_nullable",
    "is_set",
    "main",
    "unwrap_monitors",
    "value_or",
]

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the command-line tool."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _load_or_exit(path: str) -> list[Any]:
    """Load raw monitors from a definition file, exiting on failure."""
    from .config import ConfigError, load_definitions

    try:
        raws = load_definitions(path)
    except ConfigError as e:
        logger.error("Cannot load %s: %s", path, e)
        sys.exit(1)
    logger.debug("Loaded %d monitor definitions from %s", len(raws), path)
    return raws


def _monitor_key(monitor: Monitor) -> str:
    """Identity used to match monitors across files: the ID, or the name for unsaved monitors."""
    return monitor.id or f"name:{monitor.name}"


def _cmd_validate(args: argparse.Namespace) -> None:
    """Execute the validate command - decode every monitor and report failures."""
    _setup_logging(args.verbose)
    raws = _load_or_exit(args.file)

    failures = 0
    for index, raw in enumerate(raws):
        try:
            monitor = decode_monitor(raw)
        except CodecError as e:
            failures += 1
            print(f"✗ FAILED [{index}]: {e}")
            continue
        print(f"✓ OK [{index}]: {monitor.type} {monitor.id or '-'} {monitor.name}".rstrip())

    print(f"\nResult: {len(raws) - failures}/{len(raws)} monitors valid")

    if failures:
        sys.exit(1)


def _cmd_normalize(args: argparse.Namespace) -> None:
    """Execute the normalize command - rewrite definitions in canonical JSON form."""
    from .config import ConfigError, load_output_config

    _setup_logging(args.verbose)

    try:
        config = load_output_config(indent=args.indent, skip_invalid=args.skip_invalid or None)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    raws = _load_or_exit(args.file)

    monitors: list[Monitor] = []
    for index, raw in enumerate(raws):
        try:
            monitors.append(decode_monitor(raw))
        except CodecError as e:
            if not config.skip_invalid:
                logger.error("Monitor %d is invalid: %s", index, e)
                sys.exit(1)
            logger.warning("Skipping monitor %d: %s", index, e)

    try:
        output = dumps_monitors(monitors, indent=config.indent or None)
    except EncodeError as e:
        logger.error("Encoding failed: %s", e)
        sys.exit(1)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output + "\n")
        logger.info("Wrote %d monitors to %s", len(monitors), args.output)
    else:
        print(output)


def _cmd_diff(args: argparse.Namespace) -> None:
    """Execute the diff command - compare two definition files monitor by monitor."""
    _setup_logging(args.verbose)

    documents = []
    for path in (args.old, args.new):
        try:
            monitors = decode_monitors(_load_or_exit(path))
        except CodecError as e:
            logger.error("Invalid monitor in %s: %s", path, e)
            sys.exit(1)
        encoded: dict[str, dict[str, Any]] = {}
        for monitor in monitors:
            key = _monitor_key(monitor)
            if key in encoded:
                logger.warning("Duplicate monitor %s in %s; keeping the last one", key, path)
            encoded[key] = encode_monitor(monitor)
        documents.append(encoded)

    old, new = documents
    changes = 0

    for key, encoded in new.items():
        if key not in old:
            changes += 1
            print(f"+ {key} ({encoded['type']})")
            continue
        previous = old[key]
        changed = sorted(k for k in previous.keys() | encoded.keys() if previous.get(k) != encoded.get(k))
        if changed:
            changes += 1
            print(f"~ {key}: {', '.join(changed)}")

    for key, encoded in old.items():
        if key not in new:
            changes += 1
            print(f"- {key} ({encoded['type']})")

    if not changes:
        print("No differences")
        return

    print(f"\n{changes} monitor(s) differ")
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the monitorcodec command."""
    parser = argparse.ArgumentParser(
        description="monitorcodec - check and normalize monitor definition files"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"monitorcodec {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Validate subcommand
    validate_parser = subparsers.add_parser(
        "validate",
        help="Decode every monitor in a definition file and report failures",
    )
    validate_parser.add_argument("file", help="Definition file (.json or .yaml)")
    validate_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    validate_parser.set_defaults(func=_cmd_validate)

    # Normalize subcommand
    normalize_parser = subparsers.add_parser(
        "normalize",
        help="Print definitions as canonical JSON",
    )
    normalize_parser.add_argument("file", help="Definition file (.json or .yaml)")
    normalize_parser.add_argument(
        "-o", "--output",
        help="Write to this file instead of stdout",
    )
    normalize_parser.add_argument(
        "--indent",
        type=int,
        help="Spaces per indentation level, 0 for compact (default: 2)",
    )
    normalize_parser.add_argument(
        "--skip-invalid",
        action="store_true",
        help="Skip monitors that fail to decode instead of aborting",
    )
    normalize_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    normalize_parser.set_defaults(func=_cmd_normalize)

    # Diff subcommand
    diff_parser = subparsers.add_parser(
        "diff",
        help="Show monitors added, removed or changed between two definition files",
    )
    diff_parser.add_argument("old", help="Original definition file")
    diff_parser.add_argument("new", help="Updated definition file")
    diff_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    diff_parser.set_defaults(func=_cmd_diff)

    args = parser.parse_args(argv)
    args.func(args)
