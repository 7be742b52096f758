"""
Command line front-end: ``port-terminator`` (alias ``pt``).

Examples::

    port-terminator 3000 8080
    pt -r 3000-3010 --force
    pt 5432 --method tcp --dry-run --json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

import orjson

from . import __version__
from .config import ConfigurationError, TerminatorOptions
from .errors import OperationTimeoutError, PermissionDeniedError, PortTerminatorError, error_reason
from .logging_config import setup_logging
from .models import PROTOCOL_FILTERS, TerminationResult
from .terminator import PortTerminator
from .validators import DEFAULT_MAX_RANGE_SIZE, validate_port_range, validate_ports

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

PERMISSION_HINT = "Try running with elevated privileges (sudo on macOS/Linux, Administrator on Windows)."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="port-terminator",
        description="Terminate the processes listening on one or more ports",
    )
    parser.add_argument("ports", nargs="*", help="Port numbers to free")
    parser.add_argument("-r", "--range", dest="port_range", metavar="START-END", help="Inclusive port range, e.g. 3000-3010")
    parser.add_argument("-f", "--force", action="store_true", help="Kill immediately without a graceful shutdown")
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        metavar="MS",
        help="Maximum time to wait for a port to be released (default: 30000)",
    )
    parser.add_argument(
        "-g",
        "--graceful-timeout",
        type=int,
        metavar="MS",
        help="Grace period before a forceful kill (default: 5000)",
    )
    parser.add_argument(
        "-m",
        "--method",
        type=str.lower,
        choices=PROTOCOL_FILTERS,
        help="Protocol to target: tcp, udp or both (default: both)",
    )
    parser.add_argument("-n", "--dry-run", action="store_true", help="List the processes that would be terminated")
    parser.add_argument("-j", "--json", action="store_true", help="Print results as JSON")
    parser.add_argument("-s", "--silent", action="store_true", help="Only report errors")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def collect_ports(positional: Sequence[str], port_range: Optional[str]) -> List[int]:
    """Merge positional ports and an optional range into a sorted, duplicate-free list."""
    ports = set(validate_ports(positional))
    if port_range:
        ports.update(validate_port_range(port_range, DEFAULT_MAX_RANGE_SIZE))
    return sorted(ports)


def build_options(args: argparse.Namespace) -> TerminatorOptions:
    return TerminatorOptions.from_env().with_overrides(
        protocol=args.method,
        force=True if args.force else None,
        graceful_timeout_ms=args.graceful_timeout,
        timeout_ms=args.timeout,
        quiet=True if args.silent else None,
    )


async def _dry_run(terminator: PortTerminator, ports: List[int], args: argparse.Namespace) -> int:
    found: Dict[int, List[Any]] = {}
    failed: Dict[int, str] = {}
    for port in ports:
        try:
            found[port] = await terminator.get_processes(port)
        except PortTerminatorError as exc:  # One unreadable port must not hide the others  # policy_guard: allow-silent-handler
            _log_lookup_failure(port, exc)
            failed[port] = error_reason(exc)
            found[port] = []

    if args.json:
        _emit_json({str(port): processes for port, processes in found.items()})
    elif not args.silent:
        for port, processes in found.items():
            if port in failed:
                print(f"Port {port}: lookup failed - {failed[port]}")
            elif not processes:
                print(f"Port {port}: no process found")
            for process in processes:
                print(f"Port {port}: would terminate {process.name} (PID {process.pid}, {process.protocol})")
    return EXIT_FAILURE if failed else EXIT_SUCCESS


def _log_lookup_failure(port: int, exc: PortTerminatorError) -> None:
    if isinstance(exc, PermissionDeniedError):
        logger.error("Port %s: %s. %s", port, exc, PERMISSION_HINT)
    else:
        logger.error("Port %s: %s", port, error_reason(exc))


async def _terminate(terminator: PortTerminator, ports: List[int], args: argparse.Namespace) -> int:
    results = await terminator.terminate_with_details(ports)

    for result in results:
        if result.success and result.processes:
            await _confirm_released(terminator, result)

    if args.json:
        _emit_json(results)
    elif not args.silent:
        for result in results:
            print(_describe(result))

    return EXIT_SUCCESS if all(result.success for result in results) else EXIT_FAILURE


async def _confirm_released(terminator: PortTerminator, result: TerminationResult) -> None:
    try:
        await terminator.wait_for_port(result.port)
    except OperationTimeoutError as exc:
        result.success = False
        result.error = str(exc)
        logger.warning("Port %s is still in use after termination", result.port)
    except PortTerminatorError as exc:  # Report per port, keep confirming the rest  # policy_guard: allow-silent-handler
        result.success = False
        result.error = error_reason(exc)
        logger.error("Could not confirm port %s was released: %s", result.port, result.error)


def _describe(result: TerminationResult) -> str:
    if result.error:
        return f"Port {result.port}: failed - {result.error}"
    if not result.processes:
        return f"Port {result.port}: no process found"
    targets = ", ".join(f"{process.name} (PID {process.pid})" for process in result.processes)
    return f"Port {result.port}: terminated {targets}"


def _emit_json(payload: Any) -> None:
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


async def run(args: argparse.Namespace) -> int:
    ports = collect_ports(args.ports, args.port_range)
    if not ports:
        logger.error("No ports specified. Pass one or more ports or --range START-END.")
        return EXIT_FAILURE

    terminator = PortTerminator(build_options(args))
    if args.dry_run:
        return await _dry_run(terminator, ports, args)
    return await _terminate(terminator, ports, args)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console script entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging("info", quiet=args.silent or args.json, user_friendly=True)

    try:
        return asyncio.run(run(args))
    except PermissionDeniedError as exc:
        logger.error("%s. %s", exc, PERMISSION_HINT)
    except (PortTerminatorError, ConfigurationError, ValueError) as exc:
        logger.error("%s", exc)
    except KeyboardInterrupt:
        logger.error("Interrupted")
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
