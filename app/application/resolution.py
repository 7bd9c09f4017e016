from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Set

from app.domain.entities import CandidateSong, ResolvedSong
from app.domain.errors import AlbumFetchError, SearchError
from app.domain.normalization import sanitize
from app.domain.ports import PlaylistService

logger = logging.getLogger(__name__)

_RELEASE_DATE_FORMATS = {
    'day': '%Y-%m-%d',
    'month': '%Y-%m',
    'year': '%Y',
}


def resolve_tracks(candidates: Iterable[CandidateSong],
                   seen_ids: Set[str],
                   service: PlaylistService) -> List[ResolvedSong]:
    """Match candidates to catalog tracks, one search per candidate.

    Candidates without a match, or whose match is already in ``seen_ids``, are
    dropped. Matched ids are added to ``seen_ids``. Order is preserved.
    """
    resolved: List[ResolvedSong] = []

    for candidate in candidates:
        name = sanitize(candidate.name)
        artist = sanitize(candidate.artist)

        try:
            song = service.search_track(name, artist)
        except SearchError as e:
            logger.warning(f"Search failed for '{candidate.name}' by '{candidate.artist}': {e}")
            continue

        if song is None:
            logger.info(f"No catalog match for '{candidate.name}' by '{candidate.artist}'")
            continue

        if song.id in seen_ids:
            logger.debug(f"Track {song.id} already present, skipping '{candidate.name}'")
            continue

        seen_ids.add(song.id)
        resolved.append(song)

    return resolved


def parse_release_date(value: Optional[str], precision: Optional[str] = None) -> Optional[date]:
    """Parse an album release date; year/month precision maps to the first day.

    Returns None for a missing or unparseable date.
    """
    if not value:
        return None

    formats = [_RELEASE_DATE_FORMATS[precision]] if precision in _RELEASE_DATE_FORMATS else []
    formats += [f for f in _RELEASE_DATE_FORMATS.values() if f not in formats]

    for fmt in formats:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    logger.warning(f"Unparseable release date {value!r}, treating as unknown")
    return None


def filter_by_release(songs: Iterable[ResolvedSong],
                      service: PlaylistService,
                      cutoff: Optional[date]) -> List[str]:
    """Return the URIs of songs released strictly after ``cutoff``.

    Without a cutoff every URI passes. Songs without album information, or whose
    album has no release date, pass as well. An album fetch failure drops the song.
    """
    if cutoff is None:
        return [song.uri for song in songs]

    uris = []
    for song in songs:
        if not song.album_id:
            uris.append(song.uri)
            continue

        try:
            album = service.get_album(song.album_id)
        except AlbumFetchError as e:
            logger.warning(f"Dropping {song.uri}: {e}")
            continue

        released = parse_release_date(album.get('release_date'), album.get('release_date_precision'))
        if released is None or released > cutoff:
            uris.append(song.uri)
        else:
            logger.info(f"Dropping {song.uri}: released {released.isoformat()}, cutoff {cutoff.isoformat()}")

    return uris
