"""Client for the HashiCorp releases API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import requests

from ..common import APP_VERSION, NAME, TRACE

log = logging.getLogger(__name__)

API_URL = "https://api.releases.hashicorp.com/v1"

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


def _time(data: dict, key: str) -> datetime | None:
    value = _str(data, key)
    return datetime.fromisoformat(value) if value else None


@dataclass
class Build:
    arch: str = ""
    os: str = ""
    unsupported: bool = False
    url: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Build:
        data = _obj(value, "build")
        return cls(
            arch=_str(data, "arch"),
            os=_str(data, "os"),
            unsupported=_bool(data, "unsupported"),
            url=_str(data, "url"),
        )


@dataclass
class Status:
    message: str = ""
    state: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Status:
        data = _obj(value, "status")
        return cls(message=_str(data, "message"), state=_str(data, "state"))


@dataclass
class Release:
    builds: list[Build] = field(default_factory=list)
    docker_name_tag: str = ""
    is_prerelease: bool = False
    license_class: str = ""
    name: str = ""
    status: Status = field(default_factory=Status)
    timestamp_created: datetime | None = None
    timestamp_updated: datetime | None = None
    url_blogpost: str = ""
    url_changelog: str = ""
    url_docker_registry_dockerhub: str = ""
    url_docker_registry_ecr: str = ""
    url_license: str = ""
    url_project_website: str = ""
    url_release_notes: str = ""
    url_shasums: str = ""
    url_shasums_signatures: list[str] = field(default_factory=list)
    url_source_repository: str = ""
    version: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Release:
        data = _obj(value, "release")
        return cls(
            builds=[Build.from_dict(b) for b in _list(data, "builds")],
            docker_name_tag=_str(data, "docker_name_tag"),
            is_prerelease=_bool(data, "is_prerelease"),
            license_class=_str(data, "license_class"),
            name=_str(data, "name"),
            status=Status.from_dict(data.get("status")),
            timestamp_created=_time(data, "timestamp_created"),
            timestamp_updated=_time(data, "timestamp_updated"),
            url_blogpost=_str(data, "url_blogpost"),
            url_changelog=_str(data, "url_changelog"),
            url_docker_registry_dockerhub=_str(data, "url_docker_registry_dockerhub"),
            url_docker_registry_ecr=_str(data, "url_docker_registry_ecr"),
            url_license=_str(data, "url_license"),
            url_project_website=_str(data, "url_project_website"),
            url_release_notes=_str(data, "url_release_notes"),
            url_shasums=_str(data, "url_shasums"),
            url_shasums_signatures=[str(s) for s in _list(data, "url_shasums_signatures")],
            url_source_repository=_str(data, "url_source_repository"),
            version=_str(data, "version"),
        )


@dataclass
class ListReleasesOptions:
    """Filters for listing releases; a license class of "all" disables that filter."""

    pre_releases: bool = False
    license_class: str = "oss"


class HashicorpClient:
    """Reads products and releases from the HashiCorp releases service."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self.session = session if session is not None else requests.Session()

    def _get(self, url: str) -> Any:
        if _BAD_ESCAPE.search(url):
            raise ValueError(f"invalid URL escape in {url!r}")
        log.log(TRACE, "GET %s", url)
        response = self.session.get(
            url, headers={"User-Agent": f"{NAME}/{APP_VERSION.summary}"}
        )
        try:
            return response.json()
        except ValueError as exc:
            raise ValueError(f"invalid JSON in response from {url}") from exc

    def list_products(self) -> list[str]:
        """Return the names of all published products."""
        doc = self._get(f"{API_URL}/products")
        if doc is None:
            return []
        if not isinstance(doc, list) or not all(isinstance(p, str) for p in doc):
            raise ValueError("expected a list of product names")
        return doc

    def list_releases(
        self, product: str, options: ListReleasesOptions | None = None
    ) -> list[Release]:
        """Return the releases of ``product``, without pre-releases unless asked."""
        if options is None:
            options = ListReleasesOptions()
        query = "" if options.license_class == "all" else f"license_class={options.license_class}"
        doc = self._get(f"{API_URL}/releases/{product}?{query}")
        if doc is None:
            return []
        if not isinstance(doc, list):
            raise ValueError("expected a list of releases")
        releases = [Release.from_dict(item) for item in doc]
        if not options.pre_releases:
            releases = [r for r in releases if not r.is_prerelease]
        return releases

    def get_version(self, product: str, version: str) -> Release | None:
        """Return one release of ``product``."""
        doc = self._get(f"{API_URL}/releases/{product}/{version}?license_class=oss")
        return None if doc is None else Release.from_dict(doc)