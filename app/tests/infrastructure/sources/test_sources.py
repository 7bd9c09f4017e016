from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from app.domain.entities import CandidateSong
from app.domain.errors import SourceError
from app.infrastructure.sources.broadcast_history import (
    BroadcastHistorySource, parse_broadcast_history
)
from app.infrastructure.sources.now_playing import NowPlayingSource, parse_now_playing
from app.infrastructure.sources.registry import (
    NoopSource, SourceKind, build_source, build_sources
)


BROADCAST_HTML = """
<html><body>
  <div class="broadcast"><span>"Arcade Fire - Everything Now"</span></div>
  <div class="broadcast"><span>  The Strokes - The Adults Are Talking  </span></div>
  <div class="broadcast"><span>STATION ID</span></div>
  <div class="other"><span>Ignored - Not A Broadcast</span></div>
  <div class="broadcast"><span>Jay-Z - Song - Extended</span></div>
</body></html>
"""


def _response(status=200, text='', json_body=None):
    response = Mock()
    response.status_code = status
    response.text = text
    if json_body is not None:
        response.json.return_value = json_body
    return response


class TestBroadcastHistory:
    def test_parse_broadcast_history(self):
        songs = parse_broadcast_history(BROADCAST_HTML)

        assert songs == [
            CandidateSong(name='Everything Now', artist='Arcade Fire'),
            CandidateSong(name='The Adults Are Talking', artist='The Strokes'),
            CandidateSong(name='Song - Extended', artist='Jay-Z'),
        ]

    def test_parse_empty_page(self):
        assert parse_broadcast_history('<html></html>') == []

    @patch('app.infrastructure.sources.broadcast_history.requests.get')
    def test_fetch_songs(self, mock_get):
        mock_get.return_value = _response(text=BROADCAST_HTML)
        source = BroadcastHistorySource('http://radio.example/history', timeout=5)

        songs = source.fetch_songs()

        assert len(songs) == 3
        mock_get.assert_called_once_with('http://radio.example/history', timeout=5)

    @patch('app.infrastructure.sources.broadcast_history.requests.get')
    def test_fetch_songs_bad_status(self, mock_get):
        mock_get.return_value = _response(status=503)

        with pytest.raises(SourceError) as exc_info:
            BroadcastHistorySource('http://radio.example/history').fetch_songs()

        assert exc_info.value.source == 'broadcast-history'

    @patch('app.infrastructure.sources.broadcast_history.requests.get')
    def test_fetch_songs_network_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("unreachable")

        with pytest.raises(SourceError):
            BroadcastHistorySource('http://radio.example/history').fetch_songs()


class TestNowPlaying:
    def setup_method(self):
        self.now = datetime(2024, 3, 2, 12, 0, 0, tzinfo=timezone.utc)
        self.source = NowPlayingSource('http://api.example/now', timeout=5, clock=lambda: self.now)

    @patch('app.infrastructure.sources.now_playing.requests.get')
    def test_fetch_songs_queries_trailing_day(self, mock_get):
        mock_get.return_value = _response(json_body=[
            {'song': 'Song B', 'artist': 'Artist B'},
            {'song': 'Song C', 'artist': 'Artist C', 'played_at': '2024-03-02T11:00:00Z'},
        ])

        songs = self.source.fetch_songs()

        assert songs == [
            CandidateSong(name='Song B', artist='Artist B'),
            CandidateSong(name='Song C', artist='Artist C'),
        ]
        mock_get.assert_called_once_with(
            'http://api.example/now',
            params={'since': '2024-03-01T12:00:00Z', 'until': '2024-03-02T12:00:00Z'},
            timeout=5
        )

    def test_parse_skips_incomplete_entries(self):
        songs = parse_now_playing([
            {'song': 'Song', 'artist': ''},
            {'artist': 'Only Artist'},
            'garbage',
            {'song': ' Kept ', 'artist': ' Artist '},
        ])
        assert songs == [CandidateSong(name='Kept', artist='Artist')]

    def test_parse_rejects_non_array(self):
        with pytest.raises(SourceError):
            parse_now_playing({'songs': []})

    def test_missing_url(self):
        with pytest.raises(SourceError):
            NowPlayingSource(None).fetch_songs()

    @patch('app.infrastructure.sources.now_playing.requests.get')
    def test_invalid_json(self, mock_get):
        response = _response()
        response.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = response

        with pytest.raises(SourceError):
            self.source.fetch_songs()

    @patch('app.infrastructure.sources.now_playing.requests.get')
    def test_bad_status(self, mock_get):
        mock_get.return_value = _response(status=500)

        with pytest.raises(SourceError):
            self.source.fetch_songs()


class TestRegistry:
    def test_source_kind_from_id(self):
        assert SourceKind.from_id('broadcast-history') is SourceKind.BROADCAST_HISTORY
        assert SourceKind.from_id(' Now-Playing ') is SourceKind.NOW_PLAYING
        assert SourceKind.from_id('kexp') is SourceKind.UNKNOWN
        assert SourceKind.from_id('') is SourceKind.UNKNOWN

    def test_build_sources_preserves_order(self, config):
        config.sources = ['now-playing', 'mystery', 'broadcast-history']
        config.now_playing_url = 'http://api.example/now'

        sources = build_sources(config)

        assert isinstance(sources[0], NowPlayingSource)
        assert sources[0].url == 'http://api.example/now'
        assert isinstance(sources[1], NoopSource)
        assert sources[1].name == 'mystery'
        assert isinstance(sources[2], BroadcastHistorySource)
        assert sources[2].url == config.broadcast_history_url

    def test_noop_source_contributes_nothing(self, config):
        source = build_source('unknown-station', config)
        assert source.fetch_songs() == []
