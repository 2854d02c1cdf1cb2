"""File hashing and comparison against checksum files."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

from .common import TRACE

log = logging.getLogger(__name__)

_CHUNK = 1 << 16


def compute_file_hash(file_path: str | os.PathLike, hash_factory: Callable[[], Any]) -> str:
    """Return the hex digest of a file using a hashlib-style factory."""
    h = hash_factory()
    with open(file_path, "rb") as fh:
        while chunk := fh.read(_CHUNK):
            h.update(chunk)
    return h.hexdigest()


def compare_hash_with_checksum_file(
    src_filename: str,
    src_file_path: str | os.PathLike,
    checksum_file_path: str | os.PathLike,
    hash_factory: Callable[[], Any],
) -> bool:
    """Tell whether the file's hash appears in the checksum file for that file name."""
    computed = compute_file_hash(src_file_path, hash_factory)

    with open(checksum_file_path, encoding="utf-8", errors="replace") as fh:
        for line in fh:
            parts = line.split()
            if not parts:
                continue
            file_hash = parts[0]
            hash_filename = parts[1] if len(parts) > 1 else src_filename

            log.log(TRACE, "fileHash: %s", file_hash)
            log.log(TRACE, "filename: %s", hash_filename)
            # a leading "*" marks binary mode in sha*sum output
            hash_filename = hash_filename.removeprefix("*")

            if (
                hash_filename == src_filename
                or os.path.basename(hash_filename) == src_filename
            ) and file_hash == computed:
                return True
    return False