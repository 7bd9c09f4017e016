import logging
from typing import List

import requests
from bs4 import BeautifulSoup

from app.domain.entities import CandidateSong
from app.domain.errors import SourceError
from app.domain.normalization import split_artist_title
from app.domain.ports import SongSource

logger = logging.getLogger(__name__)

BROADCAST_ENTRY_SELECTOR = '.broadcast span'


class BroadcastHistorySource(SongSource):
    """Scrapes a station's HTML broadcast history page.

    Each entry is an ``"Artist - Title"`` string inside ``.broadcast span``.
    """

    name = 'broadcast-history'

    def __init__(self, url: str, timeout: float = 15.0):
        self.url = url
        self.timeout = timeout

    def fetch_songs(self) -> List[CandidateSong]:
        try:
            response = requests.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceError(self.name, f"request failed: {e}") from e

        if response.status_code != 200:
            raise SourceError(self.name, f"{self.url} returned {response.status_code}")

        return parse_broadcast_history(response.text)


def parse_broadcast_history(html: str) -> List[CandidateSong]:
    """Extract songs from a broadcast history page, in page order."""
    soup = BeautifulSoup(html, 'html.parser')
    songs = []
    for span in soup.select(BROADCAST_ENTRY_SELECTOR):
        text = span.get_text()
        song = split_artist_title(text)
        if song is None:
            logger.debug(f"Skipping broadcast entry without artist/title: {text!r}")
            continue
        songs.append(song)
    return songs
