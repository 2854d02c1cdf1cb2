"""Client for the Homebrew formulae API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import requests

from ..common import APP_VERSION, NAME

log = logging.getLogger(__name__)

API_URL = "https://formulae.brew.sh/api/formula"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _obj(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what}: expected an object, got {type(value).__name__}")
    return value


def _str(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {type(value).__name__}")
    return value


def _int(data: dict, key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key}: expected an integer, got {type(value).__name__}")
    return value


def _bool(data: dict, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected a boolean, got {type(value).__name__}")
    return value


def _list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{key}: expected a list, got {type(value).__name__}")
    return value


@dataclass
class Versions:
    stable: str = ""
    head: str = ""
    bottle: bool = False

    @classmethod
    def from_dict(cls, value: Any) -> Versions:
        data = _obj(value, "versions")
        return cls(
            stable=_str(data, "stable"),
            head=_str(data, "head"),
            bottle=_bool(data, "bottle"),
        )


@dataclass
class UrlStable:
    url: str = ""
    tag: Any = None
    revision: Any = None
    using: Any = None
    checksum: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> UrlStable:
        data = _obj(value, "urls.stable")
        return cls(
            url=_str(data, "url"),
            tag=data.get("tag"),
            revision=data.get("revision"),
            using=data.get("using"),
            checksum=_str(data, "checksum"),
        )


@dataclass
class UrlHead:
    url: str = ""
    branch: str = ""
    using: Any = None

    @classmethod
    def from_dict(cls, value: Any) -> UrlHead:
        data = _obj(value, "urls.head")
        return cls(url=_str(data, "url"), branch=_str(data, "branch"), using=data.get("using"))


@dataclass
class Urls:
    stable: UrlStable = field(default_factory=UrlStable)
    head: UrlHead = field(default_factory=UrlHead)

    @classmethod
    def from_dict(cls, value: Any) -> Urls:
        data = _obj(value, "urls")
        return cls(
            stable=UrlStable.from_dict(data.get("stable")),
            head=UrlHead.from_dict(data.get("head")),
        )


@dataclass
class BottleFile:
    """One prebuilt bottle for a platform."""

    cellar: str = ""
    url: str = ""
    sha256: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> BottleFile:
        data = _obj(value, "bottle file")
        return cls(cellar=_str(data, "cellar"), url=_str(data, "url"), sha256=_str(data, "sha256"))


@dataclass
class Bottle:
    """The stable bottles of a formula, keyed by platform."""

    rebuild: int = 0
    root_url: str = ""
    files: dict[str, BottleFile] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, value: Any) -> Bottle:
        stable = _obj(_obj(value, "bottle").get("stable"), "bottle.stable")
        files = _obj(stable.get("files"), "bottle.stable.files")
        return cls(
            rebuild=_int(stable, "rebuild"),
            root_url=_str(stable, "root_url"),
            files={str(k): BottleFile.from_dict(v) for k, v in files.items()},
        )


@dataclass
class Formula:
    name: str = ""
    full_name: str = ""
    tap: str = ""
    oldnames: list[Any] = field(default_factory=list)
    aliases: list[str] = field(default_factory=list)
    versioned_formulae: list[str] = field(default_factory=list)
    desc: str = ""
    license: str = ""
    homepage: str = ""
    versions: Versions = field(default_factory=Versions)
    urls: Urls = field(default_factory=Urls)
    revision: int = 0
    version_scheme: int = 0
    bottle: Bottle = field(default_factory=Bottle)
    keg_only: bool = False
    build_dependencies: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    uses_from_macos: list[Any] = field(default_factory=list)
    caveats: Any = None
    pinned: bool = False
    outdated: bool = False
    deprecated: bool = False
    disabled: bool = False
    post_install_defined: bool = False
    tap_git_head: str = ""
    ruby_source_path: str = ""
    ruby_source_sha256: str = ""
    variations: dict[str, Any] = field(default_factory=dict)
    analytics: dict[str, Any] = field(default_factory=dict)
    generated_date: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Formula:
        data = _obj(value, "formula")
        return cls(
            name=_str(data, "name"),
            full_name=_str(data, "full_name"),
            tap=_str(data, "tap"),
            oldnames=_list(data, "oldnames"),
            aliases=[str(a) for a in _list(data, "aliases")],
            versioned_formulae=[str(v) for v in _list(data, "versioned_formulae")],
            desc=_str(data, "desc"),
            license=_str(data, "license"),
            homepage=_str(data, "homepage"),
            versions=Versions.from_dict(data.get("versions")),
            urls=Urls.from_dict(data.get("urls")),
            revision=_int(data, "revision"),
            version_scheme=_int(data, "version_scheme"),
            bottle=Bottle.from_dict(data.get("bottle")),
            keg_only=_bool(data, "keg_only"),
            build_dependencies=[str(d) for d in _list(data, "build_dependencies")],
            dependencies=[str(d) for d in _list(data, "dependencies")],
            uses_from_macos=_list(data, "uses_from_macos"),
            caveats=data.get("caveats"),
            pinned=_bool(data, "pinned"),
            outdated=_bool(data, "outdated"),
            deprecated=_bool(data, "deprecated"),
            disabled=_bool(data, "disabled"),
            post_install_defined=_bool(data, "post_install_defined"),
            tap_git_head=_str(data, "tap_git_head"),
            ruby_source_path=_str(data, "ruby_source_path"),
            ruby_source_sha256=_str(_obj(data.get("ruby_source_checksum"), "ruby_source_checksum"), "sha256"),
            variations=_obj(data.get("variations"), "variations"),
            analytics=_obj(data.get("analytics"), "analytics"),
            generated_date=_str(data, "generated_date"),
        )


class HomebrewClient:
    """Reads formula metadata from the Homebrew API."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self.session = session if session is not None else requests.Session()

    def get_formula(self, formula: str) -> Formula | None:
        """Return the metadata of ``formula``."""
        url = f"{API_URL}/{formula}.json"
        if _BAD_ESCAPE.search(url):
            raise ValueError(f"invalid URL escape in {url!r}")
        log.debug("fetching formula: %s", url)
        response = self.session.get(url, headers={"User-Agent": f"{NAME}/{APP_VERSION.summary}"})
        try:
            doc = response.json()
        except ValueError as exc:
            raise ValueError(f"invalid JSON in response from {url}") from exc
        return None if doc is None else Formula.from_dict(doc)