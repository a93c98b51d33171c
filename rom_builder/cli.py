from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

OPERATION_COMMANDS = ("build", "save", "test", "run", "package", "edit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rom-builder", add_help=True)
    parser.add_argument(
        "--settings",
        default=None,
        help="Settings YAML file (default: rom_builder.yaml + rom_builder.local.yaml in the project root)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("build", help="Build the output ROM from the clean ROM")
    sub.add_parser("save", help="Export resources from the output ROM")
    sub.add_parser("test", help="Import the test level and launch the emulator")
    sub.add_parser("run", help="Save, build and test in sequence")
    sub.add_parser("package", help="Create a BPS patch of the output ROM")
    sub.add_parser("edit", help="Open the output ROM in Lunar Magic")
    sub.add_parser("shell", help="Interactive single-key command loop")
    sub.add_parser("list-stages", help="List available stages")

    return parser


def list_stages() -> None:
    from rom_builder.app.operations import OPERATION_PLANS
    from rom_builder.stages.registry import get_stage_registry

    rows = {row["stage_id"]: row for row in get_stage_registry().describe()}
    for operation, plan in OPERATION_PLANS.items():
        print(f"{operation}:")
        for stage_id in plan:
            row = rows[stage_id]
            marker = "required" if row["required"] else "optional"
            print(f"  {stage_id:<24} {marker:<9} {row['doc'] or ''}".rstrip())


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    if args.command == "list-stages":
        list_stages()
        return 0

    from rom_builder.app.main import open_session
    from rom_builder.foundation.logging_utils import close_logger

    session = open_session(settings_path=args.settings)
    try:
        if args.command == "shell":
            from rom_builder.app.console import run_shell

            return run_shell(session)

        if args.command in OPERATION_COMMANDS:
            results = session.run(args.command)
            for result in results:
                print(result.summary())
            return 0 if results and all(result.success for result in results) else 1
    finally:
        close_logger(session.logger)

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
