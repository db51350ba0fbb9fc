"""
Normalization of raw backend payloads into canonical entities.

Each backend answers every function with its own JSON shape. ``TRANSFORMERS``
maps a ``(Source, Function)`` pair to the handler that knows where the rows
live in that shape and which fields to read.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from shared.logging import get_logger

from .models import Function, Playlist, PlaylistInfo, Song, Source, ToplistEntry

logger = get_logger("gateway.transformers")

ARTIST_SEPARATOR = ", "


# ---------- Field helpers ----------

def dig(payload: Any, *path: str) -> Any:
    """Follow ``path`` through nested dicts, returning None at the first miss."""
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def text(*candidates: Any) -> str:
    """First truthy candidate as a string, else empty string."""
    for candidate in candidates:
        if candidate:
            return str(candidate)
    return ""


def count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def names_from(objects: Any) -> str:
    """Join the ``name`` of each artist object."""
    names = [text(dig(item, "name")) for item in as_list(objects)]
    return ARTIST_SEPARATOR.join(name for name in names if name)


def qq_artists(item: Any) -> str:
    if not isinstance(item, dict):
        return ""
    for key in ("singerList", "singer"):
        if isinstance(item.get(key), list):
            return names_from(item[key])
    for key in ("singerName", "singer_name", "singername"):
        if isinstance(item.get(key), str):
            return item[key]
    return ""


def kuwo_artists(value: Any) -> str:
    return text(value).replace("&", ARTIST_SEPARATOR)


def _items(rows: Iterable[Any]) -> Iterable[Dict[str, Any]]:
    return (row for row in rows if isinstance(row, dict))


# ---------- netease ----------

def _netease_song(item: Dict[str, Any]) -> Song:
    return Song(
        id=text(item.get("id")),
        name=text(item.get("name")),
        artist=names_from(item.get("artists")),
        album=text(dig(item, "album", "name")),
    )


def netease_search(payload: Any) -> List[Song]:
    return [_netease_song(item) for item in _items(as_list(dig(payload, "result", "songs")))]


def netease_toplists(payload: Any) -> List[ToplistEntry]:
    return [
        ToplistEntry(
            id=text(item.get("id")),
            name=text(item.get("name")),
            pic=text(item.get("coverImgUrl")),
            update_frequency=text(item.get("updateFrequency")),
        )
        for item in _items(as_list(dig(payload, "list")))
    ]


def netease_toplist(payload: Any) -> List[Song]:
    return [_netease_song(item) for item in _items(as_list(dig(payload, "result", "tracks")))]


def netease_playlist(payload: Any) -> Optional[Playlist]:
    playlist = dig(payload, "result")
    if not playlist or not isinstance(playlist, dict):
        return None
    return Playlist(
        info=PlaylistInfo(
            name=text(playlist.get("name")),
            pic=text(playlist.get("coverImgUrl")),
            desc=text(playlist.get("description")),
            author=text(dig(playlist, "creator", "nickname")),
            play_count=count(playlist.get("playCount")),
        ),
        songs=[_netease_song(item) for item in _items(as_list(playlist.get("tracks")))],
    )


# ---------- qq ----------

def qq_search(payload: Any) -> List[Song]:
    return [
        Song(
            id=text(item.get("mid")),
            name=text(item.get("name")),
            artist=qq_artists(item),
            album=text(dig(item, "album", "name")),
        )
        for item in _items(as_list(dig(payload, "req", "data", "body", "song", "list")))
    ]


def qq_toplists(payload: Any) -> List[ToplistEntry]:
    entries: List[ToplistEntry] = []
    for group in _items(as_list(dig(payload, "toplist", "data", "group"))):
        for item in _items(as_list(group.get("toplist"))):
            entries.append(
                ToplistEntry(
                    id=text(item.get("topId")),
                    name=text(item.get("title")),
                    pic=text(item.get("headPicUrl"), item.get("frontPicUrl")),
                    update_frequency="Daily" if item.get("updateType") == 1 else "Weekly",
                )
            )
    return entries


def qq_toplist(payload: Any) -> List[Song]:
    return [
        Song(
            id=text(item.get("mid")),
            name=text(item.get("title")),
            artist=qq_artists(item),
            album=text(item.get("albumName"), dig(item, "album", "name")),
        )
        for item in _items(as_list(dig(payload, "toplist", "data", "songInfoList")))
    ]


def qq_playlist(payload: Any) -> Optional[Playlist]:
    cdlist = as_list(dig(payload, "cdlist"))
    disc = cdlist[0] if cdlist else None
    if not disc or not isinstance(disc, dict):
        return None
    return Playlist(
        info=PlaylistInfo(
            name=text(disc.get("dissname")),
            pic=text(disc.get("logo")),
            desc=text(disc.get("desc")).replace("<br>", "\n"),
            author=text(disc.get("nickname")),
            play_count=count(disc.get("visitnum")),
        ),
        songs=[
            Song(
                id=text(item.get("mid")),
                name=text(item.get("title")),
                artist=qq_artists(item),
                album=text(dig(item, "album", "name")),
            )
            for item in _items(as_list(disc.get("songlist")))
        ],
    )


# ---------- kuwo ----------

def _kuwo_song(item: Dict[str, Any]) -> Song:
    return Song(
        id=text(item.get("id"), item.get("rid")),
        name=text(item.get("name")),
        artist=kuwo_artists(item.get("artist")),
        album=text(item.get("album")),
    )


def kuwo_search(payload: Any) -> List[Song]:
    return [
        Song(
            id=text(item.get("MUSICRID")).replace("MUSIC_", "", 1),
            name=text(item.get("SONGNAME"), item.get("NAME")),
            artist=kuwo_artists(item.get("ARTIST")),
            album=text(item.get("ALBUM")),
        )
        for item in _items(as_list(dig(payload, "abslist")))
    ]


def kuwo_toplists(payload: Any) -> List[ToplistEntry]:
    # Only entries with source "1" are charts; the rest are category links.
    return [
        ToplistEntry(
            id=text(item.get("sourceid")),
            name=text(item.get("name")),
            pic=text(item.get("pic")),
            update_frequency=text(item.get("info"), "Regular update"),
        )
        for item in _items(as_list(dig(payload, "child")))
        if item.get("source") == "1"
    ]


def kuwo_toplist(payload: Any) -> List[Song]:
    return [_kuwo_song(item) for item in _items(as_list(dig(payload, "musiclist")))]


def kuwo_playlist(payload: Any) -> Optional[Playlist]:
    if dig(payload, "result") != "ok":
        return None
    return Playlist(
        info=PlaylistInfo(
            name=text(payload.get("title")),
            pic=text(payload.get("pic")),
            desc=text(payload.get("info")),
            author=text(payload.get("uname")),
            play_count=count(payload.get("playnum")),
        ),
        songs=[
            Song(
                id=text(item.get("id")),
                name=text(item.get("name")),
                artist=kuwo_artists(item.get("artist")),
                album=text(item.get("album")),
            )
            for item in _items(as_list(payload.get("musiclist")))
        ],
    )


TRANSFORMERS: Dict[Tuple[Source, Function], Callable[[Any], Any]] = {
    (Source.NETEASE, Function.SEARCH): netease_search,
    (Source.NETEASE, Function.TOPLISTS): netease_toplists,
    (Source.NETEASE, Function.TOPLIST): netease_toplist,
    (Source.NETEASE, Function.PLAYLIST): netease_playlist,
    (Source.QQ, Function.SEARCH): qq_search,
    (Source.QQ, Function.TOPLISTS): qq_toplists,
    (Source.QQ, Function.TOPLIST): qq_toplist,
    (Source.QQ, Function.PLAYLIST): qq_playlist,
    (Source.KUWO, Function.SEARCH): kuwo_search,
    (Source.KUWO, Function.TOPLISTS): kuwo_toplists,
    (Source.KUWO, Function.TOPLIST): kuwo_toplist,
    (Source.KUWO, Function.PLAYLIST): kuwo_playlist,
}


def transform(source: str, function: str, payload: Any) -> Any:
    """Normalize ``payload`` for the given backend and function.

    Unknown pairs pass the payload through unchanged.
    """
    try:
        key = (Source(source), Function(function))
    except ValueError:
        key = None

    handler = TRANSFORMERS.get(key) if key else None
    if handler is None:
        logger.warning("No transformer registered, passing payload through", source=source, function=function)
        return payload
    return handler(payload)
