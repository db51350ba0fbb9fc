"""
Canonical entities and enums shared by the dispatch engine.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class Source(str, Enum):
    """Supported music backends."""

    NETEASE = "netease"
    QQ = "qq"
    KUWO = "kuwo"


class Function(str, Enum):
    """Upstream operations a method config can describe."""

    SEARCH = "search"
    TOPLISTS = "toplists"
    TOPLIST = "toplist"
    PLAYLIST = "playlist"


SUPPORTED_SOURCES = frozenset(source.value for source in Source)
SUPPORTED_FUNCTIONS = frozenset(function.value for function in Function)


class MethodConfig(BaseModel):
    """Declarative description of one upstream HTTP call."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str
    method: Optional[str] = "GET"
    headers: Optional[Dict[str, Any]] = None
    params: Optional[Dict[str, Any]] = None
    body: Optional[Any] = None


@dataclass(frozen=True)
class Song:
    """A track row, uniform across backends."""

    id: str = ""
    name: str = ""
    artist: str = ""
    album: str = ""
    source: Optional[str] = None

    def with_source(self, source: str) -> "Song":
        return replace(self, source=source)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"id": self.id, "name": self.name, "artist": self.artist, "album": self.album}
        if self.source is not None:
            payload["source"] = self.source
        return payload


@dataclass(frozen=True)
class ToplistEntry:
    """A chart offered by a backend."""

    id: str = ""
    name: str = ""
    pic: str = ""
    update_frequency: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "pic": self.pic,
            "updateFrequency": self.update_frequency,
        }


@dataclass(frozen=True)
class PlaylistInfo:
    name: str = ""
    pic: str = ""
    desc: str = ""
    author: str = ""
    play_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pic": self.pic,
            "desc": self.desc,
            "author": self.author,
            "playCount": self.play_count,
        }


@dataclass(frozen=True)
class Playlist:
    """Playlist header plus its songs."""

    info: PlaylistInfo = field(default_factory=PlaylistInfo)
    songs: List[Song] = field(default_factory=list)

    def with_source(self, source: str) -> "Playlist":
        return replace(self, songs=tag_songs(self.songs, source))

    def to_dict(self) -> Dict[str, Any]:
        return {"info": self.info.to_dict(), "list": [song.to_dict() for song in self.songs]}


@dataclass(frozen=True)
class RequestDescriptor:
    """Concrete HTTP request produced from a resolved method config."""

    url: str
    method: Optional[str] = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


@dataclass(frozen=True)
class CallVars:
    """The bounded set of caller values a template may reference."""

    keyword: Optional[str] = None
    id: Optional[str] = None
    ids: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None
    page_size: Optional[int] = None

    def as_template_vars(self) -> Dict[str, Any]:
        """Return the non-empty vars keyed by their template names."""
        values = asdict(self)
        values["pageSize"] = values.pop("page_size")
        return {key: value for key, value in values.items() if value is not None}


def tag_songs(rows: Any, source: str) -> List[Song]:
    """Attach the producing backend to every song row."""
    if not isinstance(rows, list):
        return []
    return [row.with_source(source) for row in rows if isinstance(row, Song)]


def to_jsonable(value: Any) -> Any:
    """Convert canonical entities (or raw passthrough payloads) to JSON data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    return value
