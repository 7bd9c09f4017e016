from __future__ import annotations

import logging
from typing import Iterable, List, Set

from app.crosscutting.logging import log_with_fields
from app.domain.entities import CandidateSong
from app.domain.errors import SourceError
from app.domain.normalization import name_key
from app.domain.ports import SongSource

logger = logging.getLogger(__name__)


def collect_candidates(sources: Iterable[SongSource], seen_names: Set[str]) -> List[CandidateSong]:
    """Gather new songs from every source, in configured order.

    A song is kept only if its lowercased name is not yet in ``seen_names``; kept names
    are added to the set, so the first source reporting a name wins. A failing source
    is logged and contributes nothing.
    """
    candidates: List[CandidateSong] = []

    for source in sources:
        try:
            songs = source.fetch_songs()
        except SourceError as e:
            logger.error(f"Source {source.name} failed, skipping it: {e}")
            continue

        contributed = 0
        for song in songs:
            key = name_key(song.name)
            if key in seen_names:
                continue
            seen_names.add(key)
            candidates.append(song)
            contributed += 1

        log_with_fields(logger, 'INFO', f"Source {source.name} contributed {contributed} songs", {
            'source': source.name,
            'reported': len(songs),
            'contributed': contributed
        })

    return candidates
