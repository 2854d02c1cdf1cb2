"""Client for the GitLab releases API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from urllib.parse import quote_plus

import requests

from ..common import APP_VERSION, NAME, TRACE

log = logging.getLogger(__name__)

API_URL = "https://gitlab.com/api/v4"

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


def _time(data: dict, key: str) -> datetime | None:
    value = _str(data, key)
    return datetime.fromisoformat(value) if value else None


@dataclass
class Author:
    id: int = 0
    username: str = ""
    name: str = ""
    state: str = ""
    locked: bool = False
    avatar_url: str = ""
    web_url: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Author:
        data = _obj(value, "author")
        return cls(
            id=_int(data, "id"),
            username=_str(data, "username"),
            name=_str(data, "name"),
            state=_str(data, "state"),
            locked=_bool(data, "locked"),
            avatar_url=_str(data, "avatar_url"),
            web_url=_str(data, "web_url"),
        )


@dataclass
class Commit:
    id: str = ""
    short_id: str = ""
    created_at: datetime | None = None
    parent_ids: list[str] = field(default_factory=list)
    title: str = ""
    message: str = ""
    author_name: str = ""
    author_email: str = ""
    authored_date: datetime | None = None
    committer_name: str = ""
    committer_email: str = ""
    committed_date: datetime | None = None
    web_url: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Commit:
        data = _obj(value, "commit")
        return cls(
            id=_str(data, "id"),
            short_id=_str(data, "short_id"),
            created_at=_time(data, "created_at"),
            parent_ids=[str(p) for p in _list(data, "parent_ids")],
            title=_str(data, "title"),
            message=_str(data, "message"),
            author_name=_str(data, "author_name"),
            author_email=_str(data, "author_email"),
            authored_date=_time(data, "authored_date"),
            committer_name=_str(data, "committer_name"),
            committer_email=_str(data, "committer_email"),
            committed_date=_time(data, "committed_date"),
            web_url=_str(data, "web_url"),
        )


@dataclass
class Source:
    format: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Source:
        data = _obj(value, "source")
        return cls(format=_str(data, "format"), url=_str(data, "url"))


@dataclass
class Link:
    id: int = 0
    name: str = ""
    url: str = ""
    direct_asset_url: str = ""
    link_type: str = ""

    @classmethod
    def from_dict(cls, value: Any) -> Link:
        data = _obj(value, "link")
        return cls(
            id=_int(data, "id"),
            name=_str(data, "name"),
            url=_str(data, "url"),
            direct_asset_url=_str(data, "direct_asset_url"),
            link_type=_str(data, "link_type"),
        )


@dataclass
class Assets:
    count: int = 0
    sources: list[Source] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)

    @classmethod
    def from_dict(cls, value: Any) -> Assets:
        data = _obj(value, "assets")
        return cls(
            count=_int(data, "count"),
            sources=[Source.from_dict(s) for s in _list(data, "sources")],
            links=[Link.from_dict(link) for link in _list(data, "links")],
        )


@dataclass
class Evidence:
    sha: str = ""
    filepath: str = ""
    collected_at: datetime | None = None

    @classmethod
    def from_dict(cls, value: Any) -> Evidence:
        data = _obj(value, "evidence")
        return cls(
            sha=_str(data, "sha"),
            filepath=_str(data, "filepath"),
            collected_at=_time(data, "collected_at"),
        )


@dataclass
class Release:
    name: str = ""
    tag_name: str = ""
    description: str = ""
    created_at: datetime | None = None
    released_at: datetime | None = None
    upcoming_release: bool = False
    author: Author = field(default_factory=Author)
    commit: Commit = field(default_factory=Commit)
    commit_path: str = ""
    tag_path: str = ""
    assets: Assets | None = None
    evidences: list[Evidence] = field(default_factory=list)

    @classmethod
    def from_dict(cls, value: Any) -> Release:
        data = _obj(value, "release")
        assets = data.get("assets")
        return cls(
            name=_str(data, "name"),
            tag_name=_str(data, "tag_name"),
            description=_str(data, "description"),
            created_at=_time(data, "created_at"),
            released_at=_time(data, "released_at"),
            upcoming_release=_bool(data, "upcoming_release"),
            author=Author.from_dict(data.get("author")),
            commit=Commit.from_dict(data.get("commit")),
            commit_path=_str(data, "commit_path"),
            tag_path=_str(data, "tag_path"),
            assets=None if assets is None else Assets.from_dict(assets),
            evidences=[Evidence.from_dict(e) for e in _list(data, "evidences")],
        )


class GitLabClient:
    """Reads project releases from a GitLab instance."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self.session = session if session is not None else requests.Session()
        self.base_url = API_URL
        self.token = ""

    def _get(self, url: str) -> Any:
        if _BAD_ESCAPE.search(url):
            raise ValueError(f"invalid URL escape in {url!r}")
        log.log(TRACE, "GET %s", url)
        headers = {"User-Agent": f"{NAME}/{APP_VERSION.summary}"}
        if self.token:
            headers["PRIVATE-TOKEN"] = self.token
        response = self.session.get(url, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ValueError(f"invalid JSON in response from {url}") from exc

    def _releases(self, doc: Any) -> list[Release]:
        if doc is None:
            return []
        if not isinstance(doc, list):
            raise ValueError("expected a list of releases")
        return [Release.from_dict(item) for item in doc]

    def list_releases(self, slug: str) -> list[Release]:
        """Return the releases of the project ``slug``."""
        url = f"{self.base_url}/projects/{quote_plus(slug, safe='')}/releases"
        return self._releases(self._get(url))

    def get_latest_release(self, slug: str) -> Release:
        """Return the most recent release of the project ``slug``."""
        url = f"{self.base_url}/projects/{quote_plus(slug, safe='')}/releases?per_page=1"
        releases = self._releases(self._get(url))
        if not releases:
            raise LookupError(f"no releases found for {slug}")
        return releases[0]

    def get_release(self, slug: str, version: str) -> Release | None:
        """Return the release of ``slug`` tagged ``version``."""
        url = (
            f"{self.base_url}/projects/{quote_plus(slug, safe='')}"
            f"/releases/{quote_plus(version, safe='')}"
        )
        doc = self._get(url)
        return None if doc is None else Release.from_dict(doc)