import logging

import requests

from app.crosscutting.config import UpdaterConfig
from app.domain.errors import AuthError

logger = logging.getLogger(__name__)


class SpotifyAuthenticator:
    """Exchanges the stored refresh token for a short-lived access token."""

    def __init__(self, config: UpdaterConfig):
        self.config = config

    def get_access_token(self) -> str:
        """Request a bearer token with a single form-encoded POST.

        Raises:
            AuthError: on transport failure, non-200 status or a malformed body
        """
        data = {
            'grant_type': 'refresh_token',
            'refresh_token': self.config.refresh_token,
            'client_id': self.config.client_id,
            'client_secret': self.config.client_secret
        }
        headers = {
            'Content-Type': 'application/x-www-form-urlencoded'
        }

        try:
            response = requests.post(
                self.config.auth_url,
                data=data,
                headers=headers,
                timeout=self.config.request_timeout
            )
        except requests.RequestException as e:
            raise AuthError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            raise AuthError(f"Token request returned {response.status_code}: {response.text}")

        try:
            token = response.json()['access_token']
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(f"Token response has no access_token: {e}") from e

        logger.info("Obtained Spotify access token")
        return token
