from unittest.mock import Mock, patch

import pytest
from spotipy.exceptions import SpotifyException

from app.domain.entities import ResolvedSong
from app.domain.errors import AlbumFetchError, BatchWriteError, FetchError, SearchError
from app.infrastructure.providers.spotify import PLAYLIST_ITEM_FIELDS, SpotifyPlaylistService


def _spotify_error(status=500, msg="server error"):
    return SpotifyException(status, -1, msg)


class TestSpotifyPlaylistService:
    """Contract tests for the Spotify playlist adapter."""

    @pytest.fixture(autouse=True)
    def _service(self, config):
        self.mock_spotify = Mock()
        self.service = SpotifyPlaylistService('test_access_token', config, client=self.mock_spotify)

    def test_default_client_has_retries_disabled(self, config):
        with patch('app.infrastructure.providers.spotify.spotipy.Spotify') as mock_cls:
            service = SpotifyPlaylistService('token_abc', config)

        mock_cls.assert_called_once_with(
            auth='token_abc',
            requests_timeout=config.request_timeout,
            retries=0,
            status_retries=0,
            backoff_factor=0
        )
        assert service._client.prefix == config.api_url

    def test_get_playlist_page(self):
        page = {'items': [], 'total': 0}
        self.mock_spotify.playlist_items.return_value = page

        assert self.service.get_playlist_page(200, 100) == page
        self.mock_spotify.playlist_items.assert_called_once_with(
            'playlist_1', fields=PLAYLIST_ITEM_FIELDS, limit=100, offset=200,
            additional_types=('track',)
        )

    def test_get_playlist_page_failure_raises_fetch_error(self):
        self.mock_spotify.playlist_items.side_effect = _spotify_error(404, "Not found")

        with pytest.raises(FetchError):
            self.service.get_playlist_page(0, 100)

    def test_get_playlist_page_malformed_response(self):
        self.mock_spotify.playlist_items.return_value = {'items': []}

        with pytest.raises(FetchError):
            self.service.get_playlist_page(0, 100)

    def test_remove_tracks(self):
        uris = ['spotify:track:1', 'spotify:track:2']
        self.service.remove_tracks(uris)
        self.mock_spotify.playlist_remove_all_occurrences_of_items.assert_called_once_with('playlist_1', uris)

    def test_remove_tracks_failure(self):
        self.mock_spotify.playlist_remove_all_occurrences_of_items.side_effect = _spotify_error()

        with pytest.raises(BatchWriteError) as exc_info:
            self.service.remove_tracks(['spotify:track:1'])

        assert exc_info.value.operation == 'remove'
        assert exc_info.value.batch_size == 1

    def test_add_tracks(self):
        self.mock_spotify.playlist_add_items.return_value = {'snapshot_id': 'snap'}
        uris = ['spotify:track:1']

        self.service.add_tracks(uris)

        self.mock_spotify.playlist_add_items.assert_called_once_with('playlist_1', uris)

    def test_add_tracks_without_snapshot_is_a_failure(self):
        self.mock_spotify.playlist_add_items.return_value = {}

        with pytest.raises(BatchWriteError):
            self.service.add_tracks(['spotify:track:1'])

    def test_add_tracks_api_error(self):
        self.mock_spotify.playlist_add_items.side_effect = _spotify_error(403, "Forbidden")

        with pytest.raises(BatchWriteError) as exc_info:
            self.service.add_tracks(['spotify:track:1', 'spotify:track:2'])

        assert exc_info.value.operation == 'add'
        assert exc_info.value.batch_size == 2

    def test_search_track_returns_first_match(self):
        self.mock_spotify.search.return_value = {
            'tracks': {
                'total': 3,
                'items': [{
                    'id': 'abc',
                    'uri': 'spotify:track:abc',
                    'name': 'Song',
                    'album': {'id': 'album_1'}
                }]
            }
        }

        song = self.service.search_track('song', 'artist')

        assert song == ResolvedSong(uri='spotify:track:abc', id='abc', album_id='album_1')
        self.mock_spotify.search.assert_called_once_with(
            'artist:artist track:song', limit=1, type='track', market='US'
        )

    def test_search_track_builds_uri_when_missing(self):
        self.mock_spotify.search.return_value = {
            'tracks': {'total': 1, 'items': [{'id': 'abc'}]}
        }

        song = self.service.search_track('song', 'artist')

        assert song.uri == 'spotify:track:abc'
        assert song.album_id is None

    def test_search_track_no_results(self):
        self.mock_spotify.search.return_value = {'tracks': {'total': 0, 'items': []}}
        assert self.service.search_track('song', 'artist') is None

    def test_search_track_error(self):
        self.mock_spotify.search.side_effect = _spotify_error(429, "Too many requests")

        with pytest.raises(SearchError):
            self.service.search_track('song', 'artist')

    def test_get_album(self):
        self.mock_spotify.album.return_value = {'id': 'album_1', 'release_date': '2020-02-02'}
        assert self.service.get_album('album_1')['release_date'] == '2020-02-02'

    def test_get_album_error(self):
        self.mock_spotify.album.side_effect = _spotify_error(404, "Not found")

        with pytest.raises(AlbumFetchError):
            self.service.get_album('album_1')
