from __future__ import annotations

import logging
from enum import Enum
from typing import List

from app.crosscutting.config import UpdaterConfig
from app.domain.entities import CandidateSong
from app.domain.ports import SongSource
from app.infrastructure.sources.broadcast_history import BroadcastHistorySource
from app.infrastructure.sources.now_playing import NowPlayingSource

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    """Radio feeds the updater knows how to read."""

    BROADCAST_HISTORY = 'broadcast-history'
    NOW_PLAYING = 'now-playing'
    UNKNOWN = 'unknown'

    @classmethod
    def from_id(cls, source_id: str) -> "SourceKind":
        try:
            return cls((source_id or '').strip().lower())
        except ValueError:
            return cls.UNKNOWN


class NoopSource(SongSource):
    """Stand-in for an unrecognized source identifier. Contributes no songs."""

    def __init__(self, source_id: str):
        self.name = source_id

    def fetch_songs(self) -> List[CandidateSong]:
        return []


def build_source(source_id: str, config: UpdaterConfig) -> SongSource:
    kind = SourceKind.from_id(source_id)
    if kind is SourceKind.BROADCAST_HISTORY:
        return BroadcastHistorySource(config.broadcast_history_url, timeout=config.request_timeout)
    if kind is SourceKind.NOW_PLAYING:
        return NowPlayingSource(config.now_playing_url, timeout=config.request_timeout)

    logger.warning(f"Unknown source '{source_id}' will contribute no songs")
    return NoopSource(source_id)


def build_sources(config: UpdaterConfig) -> List[SongSource]:
    """Build the configured sources, preserving configured order."""
    return [build_source(source_id, config) for source_id in config.sources]
