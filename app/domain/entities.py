from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class TrackRef:
    """Track currently kept in the target playlist."""

    id: str
    name: str


@dataclass(frozen=True)
class CandidateSong:
    """Unresolved song reported by a radio source or supplied by the caller."""

    name: str
    artist: str

    @classmethod
    def from_dict(cls, data: dict) -> "CandidateSong":
        return cls(name=str(data.get('name', '')), artist=str(data.get('artist', '')))


@dataclass(frozen=True)
class ResolvedSong:
    """Catalog track matched to a candidate."""

    uri: str
    id: str
    # Only needed by the release filter
    album_id: Optional[str] = None


@dataclass(frozen=True)
class PlaylistSnapshot:
    """Playlist contents split by the retention threshold."""

    kept: List[TrackRef] = field(default_factory=list)
    expired: List[str] = field(default_factory=list)
    total: int = 0
    pages: int = 0
