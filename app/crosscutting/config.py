import os
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Any, Iterable, List, Mapping, Optional
from pathlib import Path


MAX_BATCH_SIZE = 100

DEFAULT_AUTH_URL = 'https://accounts.spotify.com/api/token'
DEFAULT_API_URL = 'https://api.spotify.com/v1/'
DEFAULT_BROADCAST_HISTORY_URL = 'http://www.thepeak.fm/BroadcastHistory.aspx'


class ConfigError(Exception):
    """Configuration error."""
    pass


# JSON key -> (environment variable, UpdaterConfig attribute)
_KEYS = {
    'spotifyAuthApiUrl': ('SPOTIFY_AUTH_URL', 'auth_url'),
    'spotifyApiUrl': ('SPOTIFY_API_URL', 'api_url'),
    'refreshToken': ('SPOTIFY_REFRESH_TOKEN', 'refresh_token'),
    'clientId': ('SPOTIFY_CLIENT_ID', 'client_id'),
    'clientSecret': ('SPOTIFY_CLIENT_SECRET', 'client_secret'),
    'userId': ('SPOTIFY_USER_ID', 'user_id'),
    'playlistId': ('SPOTIFY_PLAYLIST_ID', 'playlist_id'),
    'market': ('RADIOSYNC_MARKET', 'market'),
    'sources': ('RADIOSYNC_SOURCES', 'sources'),
    'retentionMs': ('RADIOSYNC_RETENTION_MS', 'retention_ms'),
    'releaseCutoff': ('RADIOSYNC_RELEASE_CUTOFF', 'release_cutoff'),
    'broadcastHistoryUrl': ('RADIOSYNC_BROADCAST_HISTORY_URL', 'broadcast_history_url'),
    'nowPlayingUrl': ('RADIOSYNC_NOW_PLAYING_URL', 'now_playing_url'),
    'requestTimeout': ('RADIOSYNC_REQUEST_TIMEOUT', 'request_timeout'),
}

_REQUIRED = ('refresh_token', 'client_id', 'client_secret', 'playlist_id')
_SECRETS = ('refresh_token', 'client_secret')


@dataclass
class UpdaterConfig:
    """Everything one playlist update needs, passed explicitly to every component."""

    refresh_token: str
    client_id: str
    client_secret: str
    playlist_id: str
    user_id: Optional[str] = None
    auth_url: str = DEFAULT_AUTH_URL
    api_url: str = DEFAULT_API_URL
    market: str = 'US'
    sources: List[str] = field(default_factory=lambda: ['broadcast-history'])
    retention_ms: Optional[int] = None
    release_cutoff: Optional[date] = None
    broadcast_history_url: str = DEFAULT_BROADCAST_HISTORY_URL
    now_playing_url: Optional[str] = None
    request_timeout: float = 15.0

    def summary(self) -> Dict[str, Any]:
        """Get configuration summary (without sensitive data)."""
        data = {}
        for _, attr in _KEYS.values():
            value = getattr(self, attr)
            if attr in _SECRETS and value:
                value = _mask(value)
            elif isinstance(value, date):
                value = value.isoformat()
            data[attr] = value
        return data


def _mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + '*' * (len(value) - 8) + value[-4:]
    return '*' * len(value)


def _parse_sources(value: Any) -> List[str]:
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise ConfigError(f"sources must be a list or comma-separated string, got {value!r}")
    return [item.strip() for item in items if item.strip()]


def _parse_int(name: str, value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}")


def _parse_date(name: str, value: Any) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        raise ConfigError(f"{name} must be a YYYY-MM-DD date, got {value!r}")


def load_config_file(path: str) -> Dict[str, Any]:
    """Load one JSON config file keyed by camelCase names."""
    config_path = Path(path)
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        raise ConfigError(f"Failed to load config from {config_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    unknown = sorted(set(data) - set(_KEYS))
    if unknown:
        raise ConfigError(f"Unknown keys in {config_path}: {', '.join(unknown)}")
    return data


def load_config(config_files: Optional[Iterable[str]] = None,
                env: Optional[Mapping[str, str]] = None) -> UpdaterConfig:
    """Build the configuration from defaults, JSON files (in order) and the environment.

    Later sources override earlier ones. Environment variables win over files.
    """
    env = os.environ if env is None else env

    raw: Dict[str, Any] = {}
    for path in config_files or []:
        for key, value in load_config_file(path).items():
            raw[_KEYS[key][1]] = value

    for env_name, attr in _KEYS.values():
        value = env.get(env_name)
        if value is not None and str(value).strip():
            raw[attr] = value.strip()

    missing = [attr for attr in _REQUIRED if not raw.get(attr)]
    if missing:
        names = ', '.join(_env_name(attr) for attr in missing)
        raise ConfigError(f"Missing required configuration: {names}")

    if 'sources' in raw:
        raw['sources'] = _parse_sources(raw['sources'])
    if 'retention_ms' in raw:
        raw['retention_ms'] = _parse_int('retention_ms', raw['retention_ms'])
    if 'release_cutoff' in raw:
        raw['release_cutoff'] = _parse_date('release_cutoff', raw['release_cutoff'])
    if 'request_timeout' in raw:
        raw['request_timeout'] = _parse_float('request_timeout', raw['request_timeout'])
    if 'api_url' in raw and not str(raw['api_url']).endswith('/'):
        raw['api_url'] = f"{raw['api_url']}/"

    return UpdaterConfig(**raw)


def _env_name(attr: str) -> str:
    for env_name, key_attr in _KEYS.values():
        if key_attr == attr:
            return env_name
    return attr
