import logging
import os
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from tunebridge.application.factory import build_strategy
from tunebridge.application.strategy import ResolutionStrategy
from tunebridge.crosscutting.config import Settings, get_settings
from tunebridge.crosscutting.logging import CorrelationContext, new_request_id
from tunebridge.domain.errors import ProviderFault
from tunebridge.interfaces.serializers import (
    fault_status, fault_to_dict, matches_to_list, track_to_dict,
)


class InvalidRequest(Exception):
    """Missing or malformed query parameters."""


class HTTPServer:
    """HTTP interface for TuneBridge resolution."""

    def __init__(self, host: str = 'localhost', port: int = 3000, debug: bool = False,
                 strategy: Optional[ResolutionStrategy] = None,
                 settings: Optional[Settings] = None):
        """Initialize HTTP server."""
        self.host = host
        self.port = port
        self.debug = debug
        self.app = Flask(__name__)
        self.logger = logging.getLogger(__name__)

        # Version info
        self.version = "0.1.0"
        self.commit = os.getenv('GIT_COMMIT', 'unknown')

        self.settings = settings or get_settings()
        self.strategy = strategy or build_strategy(self.settings)
        self.logger.debug(f"Configuration: {self.settings.summary()}")

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup Flask routes."""

        @self.app.errorhandler(ProviderFault)
        def handle_fault(fault: ProviderFault):
            status = fault_status(fault)
            self.logger.info(f"{request.path} failed with {status}: {fault}")
            return jsonify(fault_to_dict(fault)), status

        @self.app.errorhandler(InvalidRequest)
        def handle_bad_input(error: InvalidRequest):
            return jsonify({'code': 400, 'msg': str(error), 'provider': None}), 400

        @self.app.before_request
        def bind_request_id():
            request.environ['tunebridge.request_id'] = request.headers.get('X-Request-Id') or new_request_id()

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint."""
            return jsonify({
                'status': 'healthy',
                'version': self.version,
                'commit': self.commit,
                'providers': self.strategy.registry.providers,
                'timestamp': datetime.now().isoformat()
            }), 200

        @self.app.route('/', methods=['GET'])
        def root():
            """Root endpoint with basic info."""
            return jsonify({
                'service': 'TuneBridge HTTP Interface',
                'version': self.version,
                'endpoints': {
                    'health': '/health',
                    'search': '/search?song=&artist=',
                    'track': '/track?song=&artist=',
                    'detail': '/detail?key=',
                    'lyrics': '/lyrics?key=',
                },
                'interfaces': [i.label for i in self.strategy.interfaces],
            }), 200

        @self.app.route('/search', methods=['GET'])
        def search():
            song, artist = _song_and_artist()
            with self._context():
                matches = self.strategy.resolve_search(song, artist)
            return jsonify({'code': 200, 'data': matches_to_list(matches)}), 200

        @self.app.route('/track', methods=['GET'])
        def track():
            song, artist = _song_and_artist()
            with self._context():
                result = self.strategy.resolve_track(song, artist)
            return jsonify({'code': 200, 'data': track_to_dict(result)}), 200

        @self.app.route('/detail', methods=['GET'])
        def detail():
            key = _required_key()
            with self._context():
                result = self.strategy.resolve_detail(key)
            return jsonify({'code': 200, 'data': track_to_dict(result)}), 200

        @self.app.route('/lyrics', methods=['GET'])
        def lyrics():
            key = _required_key()
            with self._context():
                text = self.strategy.resolve_lyrics(key)
            return jsonify({'code': 200, 'data': {'lyrics': text}}), 200

    def _context(self) -> CorrelationContext:
        return CorrelationContext(request_id=request.environ.get('tunebridge.request_id'))

    def run(self) -> None:
        """Run the HTTP server."""
        self.logger.info(f"Starting TuneBridge HTTP server on {self.host}:{self.port}")
        self.app.run(
            host=self.host,
            port=self.port,
            debug=self.debug
        )


def _song_and_artist():
    song = request.args.get('song', '').strip()
    artist = request.args.get('artist', '').strip()
    if not song and not artist:
        raise InvalidRequest("song or artist is required")
    return song, artist


def _required_key() -> str:
    key = request.args.get('key', '').strip()
    if not key:
        raise InvalidRequest("key is required")
    return key


def create_app(strategy: Optional[ResolutionStrategy] = None,
               settings: Optional[Settings] = None) -> Flask:
    """Create Flask app."""
    server = HTTPServer(strategy=strategy, settings=settings)
    return server.app


if __name__ == '__main__':
    server = HTTPServer()
    server.run()
