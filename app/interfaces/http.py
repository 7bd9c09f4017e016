import os
import logging
from typing import Callable, Optional
from datetime import datetime
from flask import Flask, request, jsonify

from app.application.pipeline import UpdateResult
from app.interfaces.handler import run_update


class HTTPServer:
    """HTTP trigger for playlist updates with a health check."""

    def __init__(self, host: str = 'localhost', port: int = 3000, debug: bool = False,
                 runner: Callable[..., Optional[UpdateResult]] = run_update):
        """Initialize HTTP server.

        Args:
            host: Interface to bind
            port: Port to bind
            debug: Flask debug mode
            runner: Function running one update, given the optional song list
        """
        self.host = host
        self.port = port
        self.debug = debug
        self.runner = runner
        self.app = Flask(__name__)
        self.logger = logging.getLogger(__name__)

        self.version = "0.1.0"
        self.commit = os.getenv('GIT_COMMIT', 'unknown')

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup Flask routes."""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint."""
            return jsonify({
                'status': 'healthy',
                'version': self.version,
                'commit': self.commit,
                'timestamp': datetime.now().isoformat()
            }), 200

        @self.app.route('/update', methods=['POST'])
        def update():
            """Run one playlist update.

            The trigger always gets 200; failures are reported in the body and logs.
            """
            body = request.get_json(silent=True) or {}
            new_songs = body.get('newSongs') if isinstance(body, dict) else None
            if new_songs is not None and not isinstance(new_songs, list):
                self.logger.warning("Ignoring newSongs that is not a list")
                new_songs = None

            result = self.runner(new_songs)

            if result is None:
                return jsonify({
                    'status': 'failed',
                    'timestamp': datetime.now().isoformat()
                }), 200

            return jsonify({
                'status': 'aborted' if result.aborted else 'ok',
                'result': result.to_dict(),
                'timestamp': datetime.now().isoformat()
            }), 200

        @self.app.route('/', methods=['GET'])
        def root():
            """Root endpoint with basic info."""
            return jsonify({
                'service': 'radiosync HTTP Interface',
                'version': self.version,
                'endpoints': {
                    'health': '/health',
                    'update': '/update'
                }
            }), 200

    def run(self) -> None:
        """Run the HTTP server."""
        self.logger.info(f"Starting radiosync HTTP server on {self.host}:{self.port}")
        self.app.run(
            host=self.host,
            port=self.port,
            debug=self.debug
        )


def create_app() -> Flask:
    """Create Flask app for testing."""
    server = HTTPServer()
    return server.app


if __name__ == '__main__':
    server = HTTPServer()
    server.run()
