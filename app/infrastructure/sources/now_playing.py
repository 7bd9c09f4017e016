import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

import requests

from app.domain.entities import CandidateSong
from app.domain.errors import SourceError
from app.domain.ports import SongSource

logger = logging.getLogger(__name__)

WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class NowPlayingSource(SongSource):
    """Queries a JSON "now playing" feed for the trailing 24 hours.

    The feed is called with ``since``/``until`` ISO-8601 UTC timestamps and answers
    with an array of ``{"song": ..., "artist": ...}`` objects.
    """

    name = 'now-playing'

    def __init__(self, url: Optional[str], timeout: float = 15.0,
                 clock: Callable[[], datetime] = _utcnow):
        self.url = url
        self.timeout = timeout
        self._clock = clock

    def fetch_songs(self) -> List[CandidateSong]:
        if not self.url:
            raise SourceError(self.name, "no feed URL configured")

        until = self._clock()
        params = {
            'since': _isoformat(until - WINDOW),
            'until': _isoformat(until)
        }

        try:
            response = requests.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceError(self.name, f"request failed: {e}") from e

        if response.status_code != 200:
            raise SourceError(self.name, f"{self.url} returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise SourceError(self.name, f"invalid JSON: {e}") from e

        return parse_now_playing(body)


def parse_now_playing(body: Any) -> List[CandidateSong]:
    """Convert the feed's ``[{song, artist}, ...]`` array into candidates."""
    if not isinstance(body, list):
        raise SourceError(NowPlayingSource.name, f"expected a JSON array, got {type(body).__name__}")

    songs = []
    for entry in body:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get('song') or '').strip()
        artist = str(entry.get('artist') or '').strip()
        if not name or not artist:
            logger.debug(f"Skipping now-playing entry without song/artist: {entry!r}")
            continue
        songs.append(CandidateSong(name=name, artist=artist))
    return songs
