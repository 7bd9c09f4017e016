#!/usr/bin/env python3
"""
Obtain a Spotify refresh token for radiosync through the OAuth flow
"""

import os
import sys

from dotenv import load_dotenv
from spotipy.oauth2 import SpotifyOAuth

load_dotenv()

SCOPES = "playlist-read-private playlist-modify-private playlist-modify-public"


def get_refresh_token():
    """Run the browser OAuth flow and return the token info"""

    client_id = os.getenv('SPOTIFY_CLIENT_ID')
    client_secret = os.getenv('SPOTIFY_CLIENT_SECRET')
    redirect_uri = os.getenv('SPOTIFY_REDIRECT_URI', 'http://localhost:8080/callback')

    if not all([client_id, client_secret]):
        print("SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set (e.g. in .env)")
        return None

    print("A browser window will open for authorization")

    try:
        oauth = SpotifyOAuth(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scope=SCOPES,
            open_browser=True
        )
        return oauth.get_access_token(as_dict=True)

    except Exception as e:
        print(f"Authorization failed: {e}")
        return None


def main():
    token_info = get_refresh_token()

    if not token_info or 'refresh_token' not in token_info:
        print("No refresh token received")
        return 1

    print("Add this to your .env:")
    print(f"SPOTIFY_REFRESH_TOKEN={token_info['refresh_token']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
