"""Command-line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from .commands import clean, info_report
from .common import NAME, SUMMARY, Flag, configure_logging, global_flags
from .config import load_config

log = logging.getLogger(__name__)


def _user_config_dir() -> str:
    if sys.platform == "darwin":
        return str(Path.home() / ".config")
    if sys.platform == "win32":
        return os.environ.get("APPDATA", "")
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    return xdg if xdg else str(Path.home() / ".config")


def _default_config_path() -> str:
    return os.environ.get(
        "DISTILLERY_CONFIG", os.path.join(_user_config_dir(), f"{NAME}.yaml")
    )


def _add_flags(parser: argparse.ArgumentParser, flags: list[Flag], suppress: bool) -> None:
    group = parser.add_argument_group(flags[0].category) if flags else parser
    for flag in flags:
        names = [f"--{flag.name}", *(f"-{a}" if len(a) == 1 else f"--{a}" for a in flag.aliases)]
        dest = flag.name.replace("-", "_")
        if isinstance(flag.default, bool):
            default = argparse.SUPPRESS if suppress else flag.default
            group.add_argument(*names, dest=dest, action="store_true", default=default, help=flag.usage)
        else:
            value = next((os.environ[e] for e in flag.env_vars if e in os.environ), flag.default)
            default = argparse.SUPPRESS if suppress else value
            group.add_argument(*names, dest=dest, default=default, help=flag.usage)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the clean and info sub-commands."""
    parser = argparse.ArgumentParser(
        prog=os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else NAME,
        description="install any binary from ideally any detectable source",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s version {SUMMARY}")
    _add_flags(parser, global_flags(), suppress=False)

    sub = parser.add_subparsers(dest="command", metavar="command")

    clean_parser = sub.add_parser("clean", help="clean", description="cleanup")
    clean_parser.add_argument("--no-dry-run", action="store_true", help="Perform all actions")
    _add_flags(clean_parser, global_flags(), suppress=True)

    info_parser = sub.add_parser(
        "info",
        help="info",
        description=f"general information about {NAME} and the rendered configuration",
    )
    info_parser.add_argument(
        "-c", "--config", default=_default_config_path(),
        help="Specify the configuration file to use",
    )
    _add_flags(info_parser, global_flags(), suppress=True)

    return parser


def _run_clean(args: argparse.Namespace) -> None:
    bin_dir = os.path.join(str(Path.home()), f".{NAME}", "bin")
    clean(bin_dir, dry_run=not args.no_dry_run)


def _run_info(args: argparse.Namespace) -> None:
    cfg = load_config(args.config)
    for level, line in info_report(cfg):
        if level is None:
            print(line)
        else:
            log.log(level, line)


_ACTIONS = {"clean": _run_clean, "info": _run_info}


def main(argv: list[str] | None = None) -> int:
    """Run the command line; returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        args.log_level, args.log_caller, args.log_disable_color, args.log_full_timestamp
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        _ACTIONS[args.command](args)
    except (OSError, ValueError) as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())