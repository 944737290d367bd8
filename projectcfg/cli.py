"""CLI entrypoints for projectcfg commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .conventions import available_conventions
from .errors import ProjectCfgError
from .logging import configure_logging
from .orchestrator import Orchestrator, TreeOutcome


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projectcfg",
        description="Apply build conventions to a project based on its declared language, type and framework.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser(
        "apply",
        help="Apply conventions and reconcile managed files.",
    )
    _add_verbose_option(apply_parser, suppress_default=True)
    _add_path_argument(apply_parser)
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show managed file changes without writing them.",
    )
    apply_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full run report as JSON.",
    )

    plan_parser = subparsers.add_parser(
        "plan",
        help="Print what apply would do as JSON, without writing files.",
    )
    _add_verbose_option(plan_parser, suppress_default=True)
    _add_path_argument(plan_parser)

    conventions_parser = subparsers.add_parser(
        "conventions",
        help="List registered conventions in registration order.",
    )
    _add_verbose_option(conventions_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for projectcfg commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "conventions":
        for name in available_conventions():
            print(name)
        return

    dry_run = args.command == "plan" or bool(getattr(args, "dry_run", False))
    as_json = args.command == "plan" or bool(getattr(args, "json", False))

    project_path = Path(args.path).expanduser().resolve()
    if not project_path.exists():
        parser.exit(1, f"Project path not found: {project_path}\n")

    try:
        config = load_config(project_path)
        if config.log_level is not None and not args.verbose:
            configure_logging(level=config.log_level)
        outcome = Orchestrator(versions=config.versions).run_tree(config, dry_run=dry_run)
    except (ConfigError, ProjectCfgError, ValueError) as exc:
        parser.exit(1, f"projectcfg {args.command} failed: {exc}\n")

    if as_json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        _print_summary(outcome)


def _print_summary(outcome: TreeOutcome) -> None:
    for report in outcome.reports:
        print(f"{report.project}:")
        for item in report.outcomes:
            print(f"  {item.name}: {item.state.value}")
        for result in report.files:
            if not result.changed:
                continue
            if outcome.dry_run:
                print(result.diff or f"  would update {_relativize(result.path)}")
            else:
                action = "created" if result.created else "updated"
                print(f"  {action} {_relativize(result.path)}")
    if not outcome.changed_files:
        suffix = " (dry-run)" if outcome.dry_run else ""
        print(f"Managed files already up to date{suffix}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
