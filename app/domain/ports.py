from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from .entities import CandidateSong, ResolvedSong


class PlaylistService(Protocol):
    """Port for the streaming provider, bound to one playlist and one access token.

    Implementations translate provider failures into the domain errors documented on each
    method and never retry.
    """

    def get_playlist_page(self, offset: int, limit: int) -> Dict[str, Any]:
        """Return one page of playlist items with the provider's ``total``. Raises FetchError."""

    def remove_tracks(self, uris: List[str]) -> None:
        """Remove one batch of URIs from the playlist. Raises BatchWriteError."""

    def add_tracks(self, uris: List[str]) -> None:
        """Append one batch of URIs to the playlist. Raises BatchWriteError."""

    def search_track(self, name: str, artist: str) -> Optional[ResolvedSong]:
        """Return the best catalog match or None. Raises SearchError."""

    def get_album(self, album_id: str) -> Dict[str, Any]:
        """Return album metadata. Raises AlbumFetchError."""


class SongSource(Protocol):
    """Port for a radio "now playing" feed."""

    name: str

    def fetch_songs(self) -> List[CandidateSong]:
        """Return the songs recently played, in feed order. Raises SourceError."""
