#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from datetime import datetime, timedelta
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from factweave.app import build_context_service
from factweave.config import ConfigurationError, configure_logging
from factweave.domain.model import FieldKeyError, RunStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from factweave.app import ContextService


class UsageError(ValueError):
    """Raised for command-line input that cannot be acted upon."""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="factweave", description="Reconcile per-entity facts from diagnostic runs"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    propose = commands.add_parser("propose", help="Propose fields from an importer's result")
    propose.add_argument("entity")
    propose.add_argument("importer")
    propose.add_argument(
        "raw",
        nargs="?",
        help="Path to a JSON raw result ('-' for stdin); omit to use the latest stored run",
    )
    propose.add_argument("--source-id", help="Upstream run id recorded as evidence")
    propose.add_argument("--run-id", help="Propose from this stored run instead of the latest")
    propose.add_argument("--dry-run", action="store_true", help="Compute without saving")

    confirm = commands.add_parser("confirm", help="Confirm proposed fields")
    confirm.add_argument("entity")
    confirm.add_argument("keys", nargs="+")
    confirm.add_argument("--by", dest="actor")

    reject = commands.add_parser("reject", help="Reject proposed fields")
    reject.add_argument("entity")
    reject.add_argument("keys", nargs="+")
    reject.add_argument("--reason")

    override = commands.add_parser("override", help="Set a field value as a confirmed user edit")
    override.add_argument("entity")
    override.add_argument("key")
    override.add_argument("value", help="JSON value (bare strings are taken literally)")
    override.add_argument("--by", dest="actor")

    materialize = commands.add_parser("materialize", help="Rewrite the graph from confirmed fields")
    materialize.add_argument("entity")

    health = commands.add_parser("health", help="Report field store and importer health")
    health.add_argument("entity")
    health.add_argument("--importer", default="website_lab")

    autopropose = commands.add_parser("autopropose", help="Fill missing required fields")
    autopropose.add_argument("entity")
    autopropose.add_argument("trigger")
    autopropose.add_argument("--run-id")

    record_run = commands.add_parser("record-run", help="Store an upstream diagnostic run")
    record_run.add_argument("entity")
    record_run.add_argument("kind")
    record_run.add_argument("raw", help="Path to a JSON raw result ('-' for stdin)")
    record_run.add_argument(
        "--status",
        type=RunStatus,
        choices=list(RunStatus),
        default=RunStatus.COMPLETED,
    )
    record_run.add_argument("--no-autopropose", action="store_true")

    findings = commands.add_parser("findings", help="List findings of a lab run")
    findings.add_argument("entity")
    findings.add_argument("lab")
    findings.add_argument("--run-id")

    promote = commands.add_parser("promote", help="Promote a finding into field proposals")
    promote.add_argument("entity")
    promote.add_argument("lab")
    promote.add_argument("finding_id")
    promote.add_argument("keys", nargs="*", help="Target field keys (default: best match)")
    promote.add_argument("--run-id")

    return parser


def _read_json(location: str) -> Any:
    try:
        text = sys.stdin.read() if location == "-" else Path(location).read_text()
    except OSError as exc:
        raise UsageError(f"Cannot read {location}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise UsageError(f"{location} is not valid JSON: {exc}") from exc


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _json_default(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Cannot serialise {type(value).__name__}")


def _to_jsonable(result: object) -> object:
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        return dataclasses.asdict(result)
    if isinstance(result, (list, tuple)):
        return [_to_jsonable(item) for item in result]
    return result


def _dispatch(service: ContextService, args: argparse.Namespace) -> object:  # noqa: PLR0911
    match args.command:
        case "propose":
            if args.raw is None:
                return service.propose_from_run(args.entity, args.importer, run_id=args.run_id)
            return service.propose_raw(
                args.entity,
                args.importer,
                _read_json(args.raw),
                source_id=args.source_id,
                persist=not args.dry_run,
            )
        case "confirm":
            return service.confirm(args.entity, args.keys, confirmed_by=args.actor)
        case "reject":
            return service.reject(args.entity, args.keys, reason=args.reason)
        case "override":
            return service.override(
                args.entity, args.key, _parse_value(args.value), updated_by=args.actor
            )
        case "materialize":
            return service.materialize(args.entity)
        case "health":
            return service.health(args.entity, importer_id=args.importer)
        case "autopropose":
            return service.auto_propose(args.entity, args.trigger, run_id=args.run_id)
        case "record-run":
            run, baseline = service.record_run(
                args.entity,
                args.kind,
                _read_json(args.raw),
                status=args.status,
                auto_propose=not args.no_autopropose,
            )
            return {
                "run_id": run.id,
                "status": run.status,
                "baseline": _to_jsonable(baseline),
            }
        case "findings":
            return service.findings(args.entity, args.lab, run_id=args.run_id)
        case "promote":
            outcome = service.promote(
                args.entity, args.lab, args.finding_id, args.keys, run_id=args.run_id
            )
            if outcome is None:
                raise UsageError(f"Unknown finding: {args.finding_id}")
            return outcome
        case _:
            raise UsageError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args = _build_parser().parse_args(list(argv) if argv is not None else sys.argv[1:])

    try:
        service = build_context_service()
        result = _dispatch(service, args)
    except (UsageError, ConfigurationError, FieldKeyError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(_to_jsonable(result), indent=2, default=_json_default))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    configure_logging()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
