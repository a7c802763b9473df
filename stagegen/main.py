"""Command line entry point.

This is the one place that decides what an error means for the process:
invalid requests are rejected with exit code 2, invariant violations abort
with exit code 70. Generators below this layer only raise.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from stagegen.config.settings import SETTINGS_PATH, load_settings
from stagegen.domain.models import Customizations, PartitionTable, RepoConfig
from stagegen.logging import LoggerFactory, operation_context, setup_logging
from stagegen.stages.exceptions import (
    InvalidInputError,
    InvalidRequestError,
    InvariantViolationError,
)
from stagegen.stages.registry import BuildContext, build_stages, known_stage_types

EXIT_OK = 0
EXIT_INVALID_REQUEST = 2
EXIT_ABORTED = 70


def load_request(data: Any) -> tuple[BuildContext, list[dict[str, Any]]]:
    """Build the context and stage list from a request document.

    Raises:
        InvalidRequestError: If the document has the wrong shape
    """
    if not isinstance(data, dict):
        raise InvalidRequestError("Build request must be a JSON object")
    arch = data.get("arch")
    if not arch:
        raise InvalidRequestError("Build request requires 'arch'", field="arch")
    try:
        pt_data = data.get("partition_table")
        context = BuildContext(
            arch=arch,
            partition_table=PartitionTable.from_dict(pt_data) if pt_data else None,
            customizations=Customizations.from_dict(data.get("customizations") or {}),
            repos=tuple(RepoConfig.from_dict(repo) for repo in data.get("repos", [])),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as error:
        raise InvalidRequestError(f"Malformed build request: {error!r}") from error

    requests = data.get("stages", [])
    if not isinstance(requests, list) or not all(isinstance(r, dict) for r in requests):
        raise InvalidRequestError("'stages' must be a list of objects", field="stages")
    return context, requests


def render(request_path: Path, only: list[str] | None = None) -> list[dict[str, Any]]:
    try:
        data = json.loads(request_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise InvalidRequestError(f"Cannot read {request_path}: {error}") from error

    context, requests = load_request(data)
    if only:
        requests = [request for request in requests if request.get("type") in only]
    return [stage.to_dict() for stage in build_stages(context, requests)]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="stagegen", description="Render image build stage options"
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable verbose debug output")
    parser.add_argument("--trace", action="store_true", help="Also log full option records")
    parser.add_argument("--log-dir", type=Path, default=None, help="Write log files here")
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help=f"Settings file overriding release literals (default {SETTINGS_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser("render", help="Render stages of a build request")
    render_parser.add_argument("request", type=Path, help="Build request JSON file")
    render_parser.add_argument(
        "--stage",
        action="append",
        dest="stages",
        metavar="TYPE",
        help="Only render stages of this type (repeatable)",
    )
    render_parser.add_argument("-o", "--output", type=Path, help="Write JSON here instead of stdout")

    subparsers.add_parser("list", help="List known stage types")

    args = parser.parse_args(argv)
    setup_logging(debug=args.debug, trace=args.trace, log_dir=args.log_dir)
    log = LoggerFactory.for_system()

    if load_settings(args.settings):
        log.debug(f"Loaded settings from {args.settings or SETTINGS_PATH}")

    if args.command == "list":
        for stage_type in known_stage_types():
            print(stage_type)
        return EXIT_OK

    try:
        with operation_context("render", request=str(args.request)):
            stages = render(args.request, args.stages)
    except InvalidInputError as error:
        log.error(f"Build request rejected: {error}")
        return EXIT_INVALID_REQUEST
    except InvariantViolationError as error:
        log.critical(f"Generation aborted: {error}")
        return EXIT_ABORTED

    output = json.dumps(stages, indent=2)
    if args.output:
        args.output.write_text(output + "\n", encoding="utf-8")
        log.info(f"Wrote {len(stages)} stages to {args.output}")
    else:
        print(output)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
