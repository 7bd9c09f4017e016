import logging
from typing import Any, Callable, Iterable, List, Optional

from app.application.pipeline import PlaylistUpdater, UpdateResult
from app.crosscutting.config import ConfigError, UpdaterConfig, load_config
from app.crosscutting.logging import log_error
from app.domain.entities import CandidateSong
from app.domain.normalization import split_artist_title

logger = logging.getLogger(__name__)


def parse_songs(raw: Optional[Iterable[Any]]) -> Optional[List[CandidateSong]]:
    """Turn caller-supplied songs into candidates.

    Accepts ``{"name": ..., "artist": ...}`` objects or ``"Artist - Title"`` strings.
    Returns None when no list was supplied, which means "query the sources".
    """
    if raw is None:
        return None

    songs = []
    for entry in raw:
        if isinstance(entry, CandidateSong):
            song = entry
        elif isinstance(entry, dict):
            song = CandidateSong.from_dict(entry)
        elif isinstance(entry, str):
            song = split_artist_title(entry)
        else:
            song = None

        if song is None or not song.name:
            logger.warning(f"Ignoring malformed song entry: {entry!r}")
            continue
        songs.append(song)
    return songs


def run_update(new_songs: Optional[Iterable[Any]] = None,
               config: Optional[UpdaterConfig] = None,
               config_files: Optional[List[str]] = None,
               updater_factory: Callable[[UpdaterConfig], PlaylistUpdater] = PlaylistUpdater,
               run_id: Optional[str] = None) -> Optional[UpdateResult]:
    """Run one update and absorb every failure into the logs.

    Returns:
        The run summary, or None when the run could not start at all
    """
    try:
        if config is None:
            config = load_config(config_files)
        updater = updater_factory(config)
        return updater.update_playlist(parse_songs(new_songs), run_id=run_id)
    except ConfigError as e:
        log_error(logger, "Invalid configuration, playlist not updated", e)
    except Exception as e:
        log_error(logger, "Unexpected failure during playlist update", e)
    return None


def handler(event: Optional[dict] = None, context: Any = None) -> None:
    """Entry point for an external trigger.

    ``event`` may carry ``newSongs``; the trigger is always told the run succeeded.
    """
    event = event or {}
    try:
        run_update(event.get('newSongs'))
    finally:
        succeed = getattr(context, 'succeed', None)
        if callable(succeed):
            succeed()
