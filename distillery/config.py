"""Configuration file loading and the paths derived from it."""

from __future__ import annotations

import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from .common import LATEST, NAME


@dataclass
class Alias:
    """A short name that stands for a source and version."""

    name: str = ""
    version: str = LATEST
    flags: dict[str, bool] = field(default_factory=dict)


@dataclass
class Provider:
    """A custom provider based on one of the built-in ones."""

    provider: str = ""
    base_url: str = ""


def _string(value: Any, key: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {type(value).__name__}")
    return value


def _alias_from_mapping(value: dict) -> Alias:
    flags = value.get("flags") or {}
    if not isinstance(flags, dict) or not all(isinstance(v, bool) for v in flags.values()):
        raise ValueError("alias flags must map names to booleans")
    return Alias(
        name=_string(value.get("name"), "name"),
        version=_string(value.get("version"), "version"),
        flags={str(k): v for k, v in flags.items()},
    )


def parse_alias(value: Any) -> Alias:
    """Build an alias from a "name[@version]" string or a mapping."""
    if isinstance(value, str):
        parts = value.split("@")
        return Alias(name=parts[0], version=parts[1] if len(parts) > 1 else LATEST)
    if isinstance(value, dict):
        return _alias_from_mapping(value)
    raise ValueError(f"invalid alias: {value!r}")


def _alias_from_toml(value: Any) -> Alias:
    if isinstance(value, str):
        return Alias(name=value, version=LATEST)
    if isinstance(value, dict):
        return _alias_from_mapping(value)
    raise ValueError(f"invalid alias: {value!r}")


def _slash(path: str) -> str:
    return path.replace(os.sep, "/")


def _user_cache_dir() -> str:
    if sys.platform == "win32":
        local = os.environ.get("LocalAppData", "")
        if not local:
            raise OSError("%LocalAppData% is not defined")
        return local
    if sys.platform == "darwin":
        return str(Path.home() / "Library" / "Caches")
    xdg = os.environ.get("XDG_CACHE_HOME", "")
    if not xdg:
        return str(Path.home() / ".cache")
    if not os.path.isabs(xdg):
        raise OSError("path in $XDG_CACHE_HOME is relative")
    return xdg


@dataclass
class Config:
    """Settings for where binaries, caches and metadata live."""

    path: str = ""
    bin_path: str = ""
    cache_path: str = ""
    default_source: str = ""
    aliases: dict[str, Alias] | None = None
    language: str = ""
    providers: dict[str, Provider] = field(default_factory=dict)

    def cache_dir(self) -> str:
        return _slash(os.path.join(self.cache_path, NAME))

    def metadata_dir(self) -> str:
        return _slash(os.path.join(self.cache_path, NAME, "metadata"))

    def downloads_dir(self) -> str:
        return _slash(os.path.join(self.cache_path, NAME, "downloads"))

    def opt_dir(self) -> str:
        return _slash(os.path.join(_slash(self.path), "opt"))

    def get_alias(self, name: str) -> Alias | None:
        if self.aliases is None:
            return None
        return self.aliases.get(name)

    def mkdir_all(self) -> None:
        """Create every directory the configuration points at."""
        for directory in (
            self.bin_path,
            self.opt_dir(),
            self.cache_dir(),
            self.metadata_dir(),
            self.downloads_dir(),
        ):
            os.makedirs(directory, mode=0o755, exist_ok=True)

    def load(self, path: str | os.PathLike) -> None:
        """Read a YAML or TOML file into this configuration; a missing file is ignored."""
        path = os.fspath(path)
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError:
            return

        if path.endswith(".yaml"):
            self._apply(yaml.safe_load(data), parse_alias)
        elif path.endswith(".toml"):
            self._apply(tomllib.loads(data.decode("utf-8")), _alias_from_toml)
        else:
            raise ValueError("unknown configuration file suffix")

    def _apply(self, doc: Any, alias_parser: Callable[[Any], Alias]) -> None:
        if doc is None:
            return
        if not isinstance(doc, dict):
            raise ValueError("configuration must be a mapping")

        for key in ("path", "bin_path", "cache_path", "default_source", "language"):
            if key in doc:
                setattr(self, key, _string(doc[key], key))

        if "aliases" in doc:
            raw = doc["aliases"]
            if raw is None:
                self.aliases = None
            elif isinstance(raw, dict):
                self.aliases = {str(k): alias_parser(v) for k, v in raw.items()}
            else:
                raise ValueError("aliases must be a mapping")

        if "providers" in doc:
            raw = doc["providers"] or {}
            if not isinstance(raw, dict):
                raise ValueError("providers must be a mapping")
            providers = {}
            for pname, entry in raw.items():
                if not isinstance(entry, dict):
                    raise ValueError(f"provider {pname} must be a mapping")
                providers[str(pname)] = Provider(
                    provider=_string(entry.get("provider"), "provider"),
                    base_url=_string(entry.get("base_url"), "base_url"),
                )
            self.providers = providers


def load_config(path: str | os.PathLike) -> Config:
    """Load the configuration at ``path`` and fill in defaults."""
    cfg = Config()
    cfg.load(path)

    if not cfg.language:
        cfg.language = "en"
    if not cfg.default_source:
        cfg.default_source = "github"
    if not cfg.path:
        cfg.path = os.path.join(str(Path.home()), f".{NAME}")
    if not cfg.cache_path:
        cfg.cache_path = _user_cache_dir()
    if not cfg.bin_path:
        cfg.bin_path = os.path.join(cfg.path, "bin")
    return cfg