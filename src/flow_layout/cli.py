"""Command-line interface: lay out a JSON scene and print the positioned scene."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from flow_layout.api import layout_scene, resolve_scene_connections
from flow_layout.types import Direction, Profile


class CliError(Exception):
    def __init__(self, message: str, exit_code: int = 2) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="flow-layout",
        description="Auto-layout a diagram scene (JSON) and print it with coordinates.",
    )
    parser.add_argument("input", nargs="?", help="Scene .json file ('-' or omitted reads stdin)")
    parser.add_argument("-o", "--output", help="Write the result here instead of stdout")
    parser.add_argument("--profile", choices=[p.value for p in Profile], help="Placement profile")
    parser.add_argument("--direction", choices=[d.value for d in Direction], help="Primary flow direction")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Lay out even when the scene does not set layout.mode to 'auto'",
    )
    parser.add_argument(
        "--resolve-connections",
        action="store_true",
        help="Also replace id-based connection endpoints with coordinates",
    )
    parser.add_argument("--indent", type=int, default=2)
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    return parser


def _read_input(path: str | None) -> str:
    if path and path != "-":
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(f"input file not found: {input_path}")
        try:
            return input_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CliError(f"input file is not valid UTF-8: {input_path} ({exc})")
        except OSError as exc:
            raise CliError(f"failed to read input file: {input_path} ({exc})")
    try:
        data = sys.stdin.read()
    except UnicodeDecodeError as exc:
        raise CliError(f"stdin is not valid UTF-8 ({exc})")
    if not data.strip():
        raise CliError("no input provided; pass a scene file or pipe JSON into stdin")
    return data


def _parse_scene(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CliError(f"invalid JSON: {exc}")
    if not isinstance(data, dict):
        raise CliError("scene must be a JSON object")
    return data


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _configure_logging(args.verbose)

    try:
        scene = _parse_scene(_read_input(args.input))
        overrides = {k: v for k, v in (("profile", args.profile), ("direction", args.direction)) if v}
        result = layout_scene(scene, force=args.force or bool(overrides), **overrides)
        if args.resolve_connections:
            result = resolve_scene_connections(result)
        text = json.dumps(result, indent=args.indent)
        if args.output:
            try:
                Path(args.output).write_text(text + "\n")
            except OSError as exc:
                raise CliError(f"failed to write output file: {args.output} ({exc})", exit_code=4)
        else:
            print(text)
    except CliError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return exc.exit_code
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
