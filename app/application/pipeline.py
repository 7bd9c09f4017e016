import time
import uuid
from typing import Callable, List, Dict, Optional, Any, Iterable, Set
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
import logging

from app.application.aggregation import collect_candidates
from app.application.resolution import filter_by_release, resolve_tracks
from app.crosscutting.config import MAX_BATCH_SIZE, UpdaterConfig
from app.crosscutting.logging import (
    CorrelationContext, log_error, log_run_complete, log_run_start, log_stage_complete
)
from app.domain.entities import CandidateSong, PlaylistSnapshot, TrackRef
from app.domain.errors import AuthError, BatchWriteError, FetchError
from app.domain.normalization import name_key
from app.domain.ports import PlaylistService, SongSource


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_added_at(value: Optional[str]) -> Optional[datetime]:
    """Parse the provider's ``added_at`` timestamp (ISO-8601, usually with a ``Z`` suffix)."""
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"Unparseable added_at {value!r}")
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass
class UpdateResult:
    """Result of one playlist update run."""

    run_id: str
    playlist_id: str
    kept_tracks: int = 0
    expired_tracks: int = 0
    removed_tracks: int = 0
    candidates: int = 0
    resolved_tracks: int = 0
    filtered_tracks: int = 0
    added_tracks: int = 0
    aborted: bool = False
    abort_reason: Optional[str] = None
    used_sources: bool = True
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PlaylistReader:
    """Pages through the playlist and splits it by the retention threshold."""

    def __init__(self,
                 retention_ms: Optional[int] = None,
                 page_size: int = MAX_BATCH_SIZE,
                 clock: Callable[[], datetime] = _utcnow):
        """Initialize playlist reader.

        Args:
            retention_ms: Age in milliseconds beyond which a track expires; None or
                a negative value disables expiry
            page_size: Items requested per page
            clock: Returns the current UTC time
        """
        self.retention_ms = retention_ms
        self.page_size = page_size
        self._clock = clock

    @property
    def retention_enabled(self) -> bool:
        return self.retention_ms is not None and self.retention_ms >= 0

    def is_expired(self, added_at: Optional[datetime], now: datetime) -> bool:
        if not self.retention_enabled or added_at is None:
            return False
        age_ms = (now - added_at).total_seconds() * 1000
        return age_ms > self.retention_ms

    def read(self, service: PlaylistService) -> PlaylistSnapshot:
        """Read the whole playlist.

        Raises:
            FetchError: if any page cannot be read
        """
        now = self._clock()
        kept: List[TrackRef] = []
        expired: List[str] = []
        offset = 0
        pages = 0
        processed = 0
        total: Optional[int] = None

        while total is None or processed < total:
            page = service.get_playlist_page(offset, self.page_size)
            pages += 1
            total = int(page.get('total') or 0)
            items = page.get('items') or []

            if not items:
                if processed < total:
                    logger.warning(f"Playlist page at offset {offset} is empty, "
                                   f"stopping at {processed}/{total} items")
                break

            for item in items:
                processed += 1
                track = (item or {}).get('track')
                if not track:
                    continue

                if self.is_expired(parse_added_at(item.get('added_at')), now):
                    if track.get('uri'):
                        expired.append(track['uri'])
                elif track.get('id'):
                    kept.append(TrackRef(id=track['id'], name=track.get('name') or ''))

            offset += self.page_size

        logger.info(f"Read {processed} playlist items in {pages} pages: "
                    f"{len(kept)} kept, {len(expired)} expired")
        return PlaylistSnapshot(kept=kept, expired=expired, total=total or 0, pages=pages)


class BatchProcessor:
    """Applies playlist writes in bounded batches, one attempt per batch."""

    def __init__(self, batch_size: int = MAX_BATCH_SIZE):
        if not 0 < batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.batch_size = batch_size

    def split_into_batches(self, track_uris: List[str]) -> List[List[str]]:
        """Split track URIs into batches.

        Args:
            track_uris: List of track URIs to split

        Returns:
            List of batches, each containing up to batch_size URIs
        """
        batches = []
        for i in range(0, len(track_uris), self.batch_size):
            batch = track_uris[i:i + self.batch_size]
            batches.append(batch)
        return batches

    def apply(self, operation: str, track_uris: List[str],
              write: Callable[[List[str]], None]) -> int:
        """Run ``write`` for every batch and return how many URIs were confirmed.

        A rejected batch is logged and not counted; later batches still run.
        """
        applied = 0
        for batch_index, batch in enumerate(self.split_into_batches(track_uris)):
            try:
                write(batch)
            except BatchWriteError as e:
                logger.error(f"Batch {batch_index} ({operation}) failed: {e}")
                continue
            applied += len(batch)
            logger.info(f"Batch {batch_index}: {len(batch)} tracks {operation}")
        return applied


class PlaylistUpdater:
    """Runs the update pipeline for one playlist.

    authenticate -> read -> prune -> collect (or caller songs) -> resolve -> filter -> add
    """

    def __init__(self,
                 config: UpdaterConfig,
                 authenticator=None,
                 service_factory: Optional[Callable[[str], PlaylistService]] = None,
                 sources: Optional[List[SongSource]] = None,
                 clock: Callable[[], datetime] = _utcnow):
        """Initialize playlist updater.

        Args:
            config: Updater configuration
            authenticator: Object with ``get_access_token()``; Spotify by default
            service_factory: Builds a PlaylistService from an access token
            sources: Radio sources in configured order; built from config by default
            clock: Returns the current UTC time
        """
        self.config = config

        if authenticator is None:
            from app.infrastructure.auth import SpotifyAuthenticator
            authenticator = SpotifyAuthenticator(config)
        self.authenticator = authenticator

        if service_factory is None:
            from app.infrastructure.providers.spotify import SpotifyPlaylistService
            service_factory = lambda token: SpotifyPlaylistService(token, config)
        self.service_factory = service_factory

        if sources is None:
            from app.infrastructure.sources.registry import build_sources
            sources = build_sources(config)
        self.sources = sources

        self.reader = PlaylistReader(retention_ms=config.retention_ms, clock=clock)
        self.batch_processor = BatchProcessor()

    def remove_tracks(self, service: PlaylistService, expired: List[str]) -> int:
        return self.batch_processor.apply('removed', expired, service.remove_tracks)

    def add_tracks(self, service: PlaylistService, uris: List[str]) -> int:
        return self.batch_processor.apply('added', uris, service.add_tracks)

    def collect_candidates(self, seen_names: Set[str]) -> List[CandidateSong]:
        return collect_candidates(self.sources, seen_names)

    def update_playlist(self,
                        new_songs: Optional[Iterable[CandidateSong]] = None,
                        run_id: Optional[str] = None) -> UpdateResult:
        """Run one update.

        Args:
            new_songs: Explicit songs to add; when given, sources are not queried
            run_id: Correlation id for logs

        Returns:
            UpdateResult; ``aborted`` is set when authentication or reading failed
        """
        start = time.monotonic()
        run_id = run_id or uuid.uuid4().hex[:12]
        result = UpdateResult(run_id=run_id, playlist_id=self.config.playlist_id,
                              used_sources=new_songs is None)

        with CorrelationContext(run_id=run_id, playlist_id=self.config.playlist_id):
            log_run_start(logger, run_id, self.config.playlist_id,
                          sources=self.config.sources if new_songs is None else [],
                          explicit_songs=new_songs is not None)
            try:
                self._run(result, new_songs)
            except (AuthError, FetchError) as e:
                result.aborted = True
                result.abort_reason = f"{type(e).__name__}: {e}"
                log_error(logger, "Playlist update aborted", e)

            result.duration_ms = int((time.monotonic() - start) * 1000)
            log_run_complete(logger, run_id, result.added_tracks, result.removed_tracks,
                             aborted=result.aborted, duration_ms=result.duration_ms)

        return result

    def _run(self, result: UpdateResult, new_songs: Optional[Iterable[CandidateSong]]) -> None:
        with CorrelationContext(stage='authenticate'):
            token = self.authenticator.get_access_token()
        service = self.service_factory(token)

        with CorrelationContext(stage='read'):
            snapshot = self.reader.read(service)
            result.kept_tracks = len(snapshot.kept)
            result.expired_tracks = len(snapshot.expired)
            log_stage_complete(logger, 'read', pages=snapshot.pages, total=snapshot.total,
                               kept=result.kept_tracks, expired=result.expired_tracks)

        with CorrelationContext(stage='prune'):
            result.removed_tracks = self.remove_tracks(service, snapshot.expired)
            log_stage_complete(logger, 'prune', removed=result.removed_tracks,
                               expired=result.expired_tracks)

        seen_ids = {track.id for track in snapshot.kept}
        seen_names = {name_key(track.name) for track in snapshot.kept}

        with CorrelationContext(stage='collect'):
            if new_songs is not None:
                candidates = list(new_songs)
                logger.info(f"Using {len(candidates)} caller-supplied songs, sources skipped")
            else:
                candidates = self.collect_candidates(seen_names)
            result.candidates = len(candidates)
            log_stage_complete(logger, 'collect', candidates=result.candidates)

        with CorrelationContext(stage='resolve'):
            resolved = resolve_tracks(candidates, seen_ids, service)
            result.resolved_tracks = len(resolved)
            log_stage_complete(logger, 'resolve', resolved=result.resolved_tracks,
                               candidates=result.candidates)

        with CorrelationContext(stage='filter'):
            uris = filter_by_release(resolved, service, self.config.release_cutoff)
            result.filtered_tracks = len(uris)
            log_stage_complete(logger, 'filter', kept=len(uris),
                               cutoff=self.config.release_cutoff)

        with CorrelationContext(stage='add'):
            result.added_tracks = self.add_tracks(service, uris)
            log_stage_complete(logger, 'add', added=result.added_tracks, requested=len(uris))
