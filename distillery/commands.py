"""The clean and info commands."""

from __future__ import annotations

import logging
import os
import platform
import sys
from collections.abc import Iterator

from .common import APP_VERSION, NAME
from .config import Config

log = logging.getLogger(__name__)

_GO_OS = {"win32": "windows", "cygwin": "windows", "darwin": "darwin"}
_GO_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "armv7l": "arm",
    "armv6l": "arm",
}


def _system_os() -> str:
    for prefix, name in _GO_OS.items():
        if sys.platform.startswith(prefix):
            return name
    return sys.platform.rstrip("0123456789")


def _system_arch() -> str:
    machine = platform.machine().lower()
    return _GO_ARCH.get(machine, machine)


def _from_slash(path: str) -> str:
    return path.replace("/", os.sep)


def _walk(root: str) -> Iterator[os.DirEntry]:
    """Yield non-directory entries below ``root`` in lexical order, without following links."""
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(entry.path)
        else:
            yield entry


def find_orphaned_binaries(bin_dir: str | os.PathLike) -> list[str]:
    """Return the regular files in ``bin_dir`` that no symlink there points at."""
    targets: set[str] = set()
    bins: list[str] = []
    try:
        for entry in _walk(os.fspath(bin_dir)):
            if entry.is_symlink():
                targets.add(os.readlink(entry.path))
            else:
                bins.append(entry.path)
    except OSError as exc:
        log.debug("stopped walking %s: %s", bin_dir, exc)
    return [path for path in bins if path not in targets]


def clean(bin_dir: str | os.PathLike, dry_run: bool = True) -> list[str]:
    """Report orphaned binaries and, unless ``dry_run``, remove them."""
    if dry_run:
        log.warning(
            "dry-run enabled, no changes will be made, use --no-dry-run to perform actions"
        )

    orphans = find_orphaned_binaries(bin_dir)
    log.warning("orphaned binaries:")
    for path in orphans:
        log.warning("  - %s", path)
        if not dry_run:
            os.remove(path)
    return orphans


def info_report(config: Config, path_env: str | None = None) -> list[tuple[int | None, str]]:
    """Describe the version, system and configuration as (level, line) pairs.

    A level of ``None`` marks a blank separator line.
    """
    if path_env is None:
        path_env = os.environ.get("PATH", "")

    opt = _from_slash(config.opt_dir())
    cache = _from_slash(config.cache_dir())
    info, warn = logging.INFO, logging.WARNING

    lines: list[tuple[int | None, str]] = [
        (info, "version information"),
        (info, f"  {NAME}/{APP_VERSION.summary}"),
        (None, ""),
        (info, "system information"),
        (info, f"     os: {_system_os()}"),
        (info, f"   arch: {_system_arch()}"),
        (None, ""),
        (info, "configuration"),
        (info, f"   home: {config.path}"),
        (info, f"    bin: {config.bin_path}"),
        (info, f"    opt: {opt}"),
        (info, f"  cache: {cache}"),
        (None, ""),
        (warn, f"To cleanup all of {NAME}, remove the following directories:"),
        (warn, f"  - {cache}"),
        (warn, f"  - {config.bin_path}"),
        (warn, f"  - {opt}"),
    ]

    if config.bin_path not in path_env:
        lines += [
            (None, ""),
            (warn, f"Problem: {NAME} will not work correctly"),
            (warn, f"  - {config.bin_path} is not in your PATH"),
            (None, ""),
        ]
    return lines