#!/usr/bin/env python3
"""
radiosync HTTP Server Runner
"""

import os

from dotenv import load_dotenv

from app.crosscutting.logging import setup_logging
from app.interfaces.http import HTTPServer


def main():
    """Run the HTTP server."""
    load_dotenv()
    setup_logging(os.getenv('RADIOSYNC_LOG_LEVEL', 'INFO'))
    server = HTTPServer(
        host=os.getenv('RADIOSYNC_HTTP_HOST', 'localhost'),
        port=int(os.getenv('RADIOSYNC_HTTP_PORT', '3000'))
    )
    server.run()


if __name__ == '__main__':
    main()
