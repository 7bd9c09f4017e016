import os
import sys
import pytest


def _ensure_project_root_on_sys_path() -> None:
    here = os.path.dirname(__file__)
    project_root = os.path.abspath(os.path.join(here, "..", ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_sys_path()

from app.crosscutting.config import UpdaterConfig  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_updater_env():
    """Ensure Spotify/radiosync variables from a developer .env do not leak into tests."""
    keys = [k for k in os.environ if k.startswith('SPOTIFY_') or k.startswith('RADIOSYNC_')]
    backup = {k: os.environ.get(k) for k in keys}
    for k in keys:
        os.environ.pop(k, None)
    try:
        yield
    finally:
        for k, v in backup.items():
            os.environ[k] = v


@pytest.fixture
def config():
    return UpdaterConfig(
        refresh_token='test_refresh_token',
        client_id='test_client_id',
        client_secret='test_client_secret',
        playlist_id='playlist_1',
        user_id='user_1',
        market='US',
        sources=['broadcast-history'],
    )
