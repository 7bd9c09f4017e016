class UpdaterError(Exception):
    """Base class for playlist update failures."""


class AuthError(UpdaterError):
    """Refresh token could not be exchanged for an access token. Aborts the run."""


class FetchError(UpdaterError):
    """A playlist page could not be read. Aborts the run."""


class SourceError(UpdaterError):
    """A radio source could not be fetched or parsed. That source contributes no songs."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class SearchError(UpdaterError):
    """Catalog search failed for one candidate. The candidate is dropped."""


class AlbumFetchError(UpdaterError):
    """Album metadata could not be fetched. The song is dropped from the add list."""


class BatchWriteError(UpdaterError):
    """One add/remove batch was rejected. Its items are not counted as applied."""

    def __init__(self, operation: str, batch_size: int, message: str) -> None:
        super().__init__(f"{operation} of {batch_size} tracks failed: {message}")
        self.operation = operation
        self.batch_size = batch_size
