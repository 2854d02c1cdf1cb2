"""Release assets: classification by name and extraction of downloaded files."""

from __future__ import annotations

import bz2
import gzip
import io
import logging
import lzma
import os
import shutil
import stat
import tarfile
import tempfile
import zipfile
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import BinaryIO, Callable

from .common import NAME, TRACE

log = logging.getLogger(__name__)

_HEADER_SIZE = 8192
_MAX_UINT32 = 0xFFFFFFFF


class AssetType(IntEnum):
    """What kind of file a release asset is."""

    UNKNOWN = 0
    ARCHIVE = 1
    BINARY = 2
    INSTALLER = 3
    CHECKSUM = 4
    SIGNATURE = 5
    KEY = 6
    SBOM = 7
    DATA = 8

    def __str__(self) -> str:
        return self.name.lower()


class ChecksumType(StrEnum):
    """How a checksum asset lists its hashes."""

    NONE = "none"
    FILE = "single"
    MULTI = "multi"


_EXTENSION_TYPES: dict[str, AssetType] = {
    **dict.fromkeys(("deb", "rpm", "msi", "apk", "pkg"), AssetType.INSTALLER),
    **dict.fromkeys(("gz", "zip", "xz", "tar", "bz2", "tgz", "zst"), AssetType.ARCHIVE),
    "exe": AssetType.BINARY,
    **dict.fromkeys(("sig", "asc"), AssetType.SIGNATURE),
    **dict.fromkeys(("pem", "pub", "cert", "crt"), AssetType.KEY),
    **dict.fromkeys(("sbom.json", "bom.json", "sbom", "bom"), AssetType.SBOM),
    "json": AssetType.DATA,
}


def _ext(path: str) -> str:
    """Return the extension of the last path element, dot included."""
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    cut = max(path.rfind(sep) for sep in separators)
    dot = path.rfind(".")
    return path[dot:] if dot > cut else ""


def classify(name: str) -> AssetType:
    """Determine the asset type from its file name."""
    a_type = AssetType.UNKNOWN

    ext = _ext(name).removeprefix(".")
    if ext:
        a_type = _EXTENSION_TYPES.get(ext, AssetType.UNKNOWN)
        if a_type is AssetType.DATA and (".sbom" in name or ".bom" in name):
            a_type = AssetType.SBOM

    if a_type is AssetType.UNKNOWN:
        log.log(TRACE, "classifying asset based on name: %s", name)
        name = name.lower()
        if name.endswith((".sha256", ".md5", ".sha1")):
            a_type = AssetType.CHECKSUM
        if "checksums" in name:
            a_type = AssetType.CHECKSUM
        if "sums" in name:
            a_type = AssetType.CHECKSUM

    if a_type is AssetType.UNKNOWN:
        if "-pivkey-" in name or ("pkcs" in name and "key" in name):
            a_type = AssetType.KEY

    log.log(TRACE, "classified: %s - %s (type: %d)", name, a_type, int(a_type))
    return a_type


def sanitize_archive_path(base: str, target: str) -> str:
    """Join an archive member name onto ``base``, refusing paths that escape it."""
    parts = [p for p in (base, target) if p]
    joined = os.path.normpath(os.sep.join(parts)) if parts else ""
    if joined.startswith(os.path.normpath(base)):
        return joined
    raise ValueError(f"content filepath is tainted: {target}")


@dataclass
class File:
    """A file produced by extracting an asset."""

    name: str
    alias: str = ""
    installable: bool = False


class _PrefixedReader(io.RawIOBase):
    """Replays already-consumed bytes before continuing with the stream."""

    def __init__(self, prefix: bytes, stream: BinaryIO) -> None:
        self._prefix = prefix
        self._stream = stream

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        view = memoryview(buffer)
        if self._prefix:
            n = min(len(view), len(self._prefix))
            view[:n] = self._prefix[:n]
            self._prefix = self._prefix[n:]
            return n
        data = self._stream.read(len(view))
        view[: len(data)] = data
        return len(data)


def _detect(head: bytes) -> str | None:
    if len(head) > 261 and head[257:262] == b"ustar":
        return "tar"
    if len(head) > 3 and head[:2] == b"PK" and head[2] in (3, 5, 7) and head[3] in (4, 6, 8):
        return "zip"
    if head[:3] == b"BZh":
        return "bz2"
    if head[:3] == b"\x1f\x8b\x08":
        return "gz"
    if head[:6] == b"\xfd7zXZ\x00":
        return "xz"
    return None


_UNIX_CREATORS = (3, 19)
_DOS_CREATORS = (0, 11, 14)


def _zip_is_dir(info: zipfile.ZipInfo) -> bool:
    if info.filename.endswith("/"):
        return True
    if info.create_system in _UNIX_CREATORS:
        return stat.S_ISDIR(info.external_attr >> 16)
    if info.create_system in _DOS_CREATORS:
        return bool(info.external_attr & 0x10)
    return False


def _zip_mode(info: zipfile.ZipInfo) -> int:
    if info.create_system in _UNIX_CREATORS:
        return (info.external_attr >> 16) & 0o7777
    if info.create_system in _DOS_CREATORS:
        mode = 0o777 if info.external_attr & 0x10 else 0o666
        if info.external_attr & 0x01:
            mode &= ~0o222
        return mode
    return 0o666


def _to_uint32(value: int) -> int:
    if value < 0 or value > _MAX_UINT32:
        raise ValueError("value out of range for uint32")
    return value


def _raise(error: OSError) -> None:
    raise error


class Asset:
    """A single downloadable file attached to a release."""

    def __init__(
        self, name: str, display_name: str, os_name: str, arch: str, version: str
    ) -> None:
        self.name = name
        self.display_name = display_name
        self.os = os_name
        self.arch = arch
        self.version = version
        self.matched_asset: Asset | None = None
        self.extension = ""
        self.download_path = ""
        self.hash = ""
        self.temp_dir = ""
        self.files: list[File] = []

        self.type = classify(name)
        self.parent_type = AssetType.UNKNOWN
        if self.type in (AssetType.KEY, AssetType.SIGNATURE, AssetType.CHECKSUM):
            parent_name = name.replace(_ext(name), "").removesuffix("-keyless")
            self.parent_type = classify(parent_name)

    def __repr__(self) -> str:
        return f"Asset(name={self.name!r}, type={self.type})"

    def checksum_type(self) -> ChecksumType:
        """Tell whether this checksum asset covers one file or many."""
        name = self.name.lower()
        if name.endswith((".sha512", ".sha256", ".md5", ".sha1")):
            return ChecksumType.FILE
        if "checksum" in name or "sums" in name:
            return ChecksumType.MULTI
        return ChecksumType.NONE

    def extract(self) -> None:
        """Unpack the downloaded file into a fresh temporary directory."""
        with open(self.download_path, "rb") as fh:
            self.temp_dir = tempfile.mkdtemp(prefix=NAME)
            log.debug("opened and extracting file: %s", self.download_path)

            stream: BinaryIO | None = fh
            while stream is not None:
                head = stream.read(_HEADER_SIZE)
                if not head:
                    raise ValueError("empty buffer")
                combined = io.BufferedReader(_PrefixedReader(head, stream))
                kind = _detect(head)
                log.debug("extracting file type: %s", kind or "unknown")
                processors: dict[str | None, Callable[[BinaryIO], BinaryIO | None]] = {
                    "tar": self._process_tar,
                    "zip": self._process_zip,
                    "bz2": self._process_bz2,
                    "gz": self._process_gz,
                    "xz": self._process_xz,
                }
                stream = processors.get(kind, self._process_direct)(combined)

    def cleanup(self) -> None:
        """Remove the temporary extraction directory."""
        if log.isEnabledFor(TRACE) and self.temp_dir:
            log.log(TRACE, "walking tempdir")
            for root, dirs, files in os.walk(self.temp_dir, onerror=_raise):
                log.log(TRACE, "file: %s", root)
                for entry in (*dirs, *files):
                    log.log(TRACE, "file: %s", os.path.join(root, entry))

        log.log(TRACE, "cleaning up temp dir: %s (asset: %s)", self.temp_dir, self.name)
        if not self.temp_dir:
            return
        try:
            shutil.rmtree(self.temp_dir)
        except FileNotFoundError:
            pass

    def _process_direct(self, stream: BinaryIO) -> None:
        log.log(TRACE, "processing direct file")
        base = os.path.basename(self.download_path)
        with open(os.path.join(self.temp_dir, base), "wb") as out:
            shutil.copyfileobj(stream, out)
        self.files.append(File(name=base, alias=self.name))
        return None

    def _process_zip(self, stream: BinaryIO) -> None:
        self.files = []
        with zipfile.ZipFile(io.BytesIO(stream.read())) as archive:
            for info in archive.infolist():
                target = sanitize_archive_path(self.temp_dir, info.filename)
                log.log(TRACE, "zip > target %s", target)

                if _zip_is_dir(info):
                    if not os.path.exists(target):
                        os.makedirs(target, mode=0o755, exist_ok=True)
                        log.log(TRACE, "zip > create directory %s", target)
                    continue

                fd = os.open(target, os.O_CREAT | os.O_RDWR, _zip_mode(info))
                with os.fdopen(fd, "wb") as out, archive.open(info) as src:
                    shutil.copyfileobj(src, out)
                self.files.append(File(name=info.filename))
                log.log(TRACE, "zip > create file %s", target)

        if not self.files:
            raise ValueError("no files found in zip archive")
        return None

    def _process_tar(self, stream: BinaryIO) -> None:
        log.log(TRACE, "processing tar file")
        self.files = []
        with tarfile.open(fileobj=stream, mode="r|") as archive:
            for member in archive:
                target = sanitize_archive_path(self.temp_dir, member.name)
                log.log(TRACE, "tar > target %s", target)

                if member.isdir():
                    if not os.path.exists(target):
                        os.makedirs(target, mode=0o755, exist_ok=True)
                        log.log(TRACE, "tar > create directory %s", target)
                elif member.isreg():
                    base_dir = os.path.dirname(target)
                    if not os.path.exists(base_dir):
                        os.makedirs(base_dir, mode=0o755, exist_ok=True)
                        log.log(TRACE, "tar > create directory %s", base_dir)

                    mode = _to_uint32(member.mode)
                    fd = os.open(target, os.O_CREAT | os.O_RDWR, mode & 0o7777)
                    src = archive.extractfile(member)
                    with os.fdopen(fd, "wb") as out:
                        if src is not None:
                            shutil.copyfileobj(src, out)
                    self.files.append(File(name=member.name))
                    log.log(TRACE, "tar > create file %s", target)

        if not self.files:
            raise ValueError("no files in tar archive")
        return None

    def _process_gz(self, stream: BinaryIO) -> BinaryIO:
        return gzip.GzipFile(fileobj=stream, mode="rb")

    def _process_xz(self, stream: BinaryIO) -> BinaryIO:
        return lzma.LZMAFile(stream, mode="rb", format=lzma.FORMAT_XZ)

    def _process_bz2(self, stream: BinaryIO) -> BinaryIO:
        return bz2.BZ2File(stream, mode="rb")