from typing import List, Optional, Dict, Any
import logging

import spotipy

from app.crosscutting.config import UpdaterConfig
from app.domain.entities import ResolvedSong
from app.domain.ports import PlaylistService
from app.domain.errors import AlbumFetchError, BatchWriteError, FetchError, SearchError

logger = logging.getLogger(__name__)

PLAYLIST_ITEM_FIELDS = 'total,items(added_at,track(id,name,uri))'


class SpotifyPlaylistService(PlaylistService):
    """Spotify Web API adapter bound to one playlist and one access token."""

    def __init__(self,
                 access_token: str,
                 config: UpdaterConfig,
                 client: Optional[spotipy.Spotify] = None):
        """Initialize Spotify service.

        Args:
            access_token: Bearer token for this run
            config: Updater configuration (playlist, market, API base URL)
            client: Pre-built client, used by tests
        """
        self.config = config
        self.playlist_id = config.playlist_id
        self._market = config.market

        if client is None:
            # One attempt per request: spotipy's own retry adapter is switched off
            client = spotipy.Spotify(
                auth=access_token,
                requests_timeout=config.request_timeout,
                retries=0,
                status_retries=0,
                backoff_factor=0
            )
            client.prefix = config.api_url
        self._client = client

    def get_playlist_page(self, offset: int, limit: int) -> Dict[str, Any]:
        """Read one page of playlist items.

        Returns:
            Raw page with ``items`` and ``total``
        """
        try:
            page = self._client.playlist_items(
                self.playlist_id,
                fields=PLAYLIST_ITEM_FIELDS,
                limit=limit,
                offset=offset,
                additional_types=('track',)
            )
        except Exception as e:
            logger.error(f"Failed to read playlist {self.playlist_id} at offset {offset}: {e}")
            raise FetchError(f"Failed to read playlist page at offset {offset}: {e}") from e

        if not page or 'items' not in page or 'total' not in page:
            raise FetchError(f"Malformed playlist page at offset {offset}")
        return page

    def remove_tracks(self, uris: List[str]) -> None:
        try:
            self._client.playlist_remove_all_occurrences_of_items(self.playlist_id, uris)
        except Exception as e:
            raise BatchWriteError('remove', len(uris), str(e)) from e

    def add_tracks(self, uris: List[str]) -> None:
        try:
            result = self._client.playlist_add_items(self.playlist_id, uris)
        except Exception as e:
            raise BatchWriteError('add', len(uris), str(e)) from e

        if not result or 'snapshot_id' not in result:
            raise BatchWriteError('add', len(uris), 'no snapshot_id in response')

    def search_track(self, name: str, artist: str) -> Optional[ResolvedSong]:
        """Find the single best catalog match for a sanitized name/artist pair.

        Returns:
            ResolvedSong, or None when the catalog has no match
        """
        query = f"artist:{artist} track:{name}"
        logger.debug(f"Searching: {query} (market={self._market}, limit=1)")

        try:
            results = self._client.search(query, limit=1, type='track', market=self._market)
        except Exception as e:
            raise SearchError(f"Search failed for '{query}': {e}") from e

        tracks = (results or {}).get('tracks') or {}
        items = tracks.get('items') or []
        if tracks.get('total', len(items)) == 0 or not items:
            return None

        item = items[0]
        track_id = item.get('id')
        if not track_id:
            return None

        album = item.get('album') or {}
        return ResolvedSong(
            uri=item.get('uri') or f"spotify:track:{track_id}",
            id=track_id,
            album_id=album.get('id')
        )

    def get_album(self, album_id: str) -> Dict[str, Any]:
        try:
            album = self._client.album(album_id)
        except Exception as e:
            raise AlbumFetchError(f"Failed to fetch album {album_id}: {e}") from e

        if not album:
            raise AlbumFetchError(f"Empty album response for {album_id}")
        return album
