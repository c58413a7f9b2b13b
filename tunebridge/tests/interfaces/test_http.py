import pytest
from unittest.mock import Mock

from tunebridge.crosscutting.config import Settings
from tunebridge.domain.entities import Interface, Platform, PlayableTrack, Provider, SearchMatch
from tunebridge.domain.errors import (
    LyricsNotSupported, NoUsableResult, TransportFault, UnknownProviderFault, ValidationFault,
)
from tunebridge.interfaces.http import HTTPServer, create_app


MATCH = SearchMatch(
    key="sby/wydg/?msg=%E6%B5%B7&n=1",
    title="海阔天空",
    artist="Beyond",
    platform=Platform.WY,
    provider=Provider.SBY,
    cover="https://img.example/1.jpg",
)

TRACK = PlayableTrack(
    key=MATCH.key,
    title=MATCH.title,
    artist=MATCH.artist,
    platform=MATCH.platform,
    provider=MATCH.provider,
    audio_url="https://cdn.example/1.mp3",
    lyrics="[00:00.00]海阔天空",
)


class TestHTTPServer:
    """Tests for HTTP server functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.strategy = Mock()
        self.strategy.registry.providers = ['sby', 'xf']
        self.strategy.interfaces = [Interface(Platform.WY, Provider.SBY)]
        self.server = HTTPServer(host='localhost', port=3001, strategy=self.strategy, settings=Settings())
        self.client = self.server.app.test_client()

    def test_health_check(self):
        response = self.client.get('/health')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['providers'] == ['sby', 'xf']
        assert 'timestamp' in data

    def test_root_endpoint(self):
        response = self.client.get('/')

        assert response.status_code == 200
        data = response.get_json()
        assert data['service'] == 'TuneBridge HTTP Interface'
        assert data['interfaces'] == ['wy:sby']

    def test_search(self):
        self.strategy.resolve_search.return_value = [MATCH]

        response = self.client.get('/search', query_string={'song': '海阔天空', 'artist': 'Beyond'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['code'] == 200
        assert data['data'][0]['key'] == MATCH.key
        assert data['data'][0]['platformName'] == 'NetEase Cloud Music'
        self.strategy.resolve_search.assert_called_once_with('海阔天空', 'Beyond')

    def test_track(self):
        self.strategy.resolve_track.return_value = TRACK

        response = self.client.get('/track', query_string={'song': '海阔天空'})

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['audioUrl'] == TRACK.audio_url
        assert data['lyrics'] == TRACK.lyrics
        self.strategy.resolve_track.assert_called_once_with('海阔天空', '')

    def test_detail(self):
        self.strategy.resolve_detail.return_value = TRACK

        response = self.client.get('/detail', query_string={'key': MATCH.key})

        assert response.status_code == 200
        assert response.get_json()['data']['key'] == MATCH.key
        self.strategy.resolve_detail.assert_called_once_with(MATCH.key)

    def test_lyrics(self):
        self.strategy.resolve_lyrics.return_value = TRACK.lyrics

        response = self.client.get('/lyrics', query_string={'key': MATCH.key})

        assert response.status_code == 200
        assert response.get_json()['data'] == {'lyrics': TRACK.lyrics}

    @pytest.mark.parametrize("path", ['/search', '/track', '/detail', '/lyrics'])
    def test_missing_input_is_bad_request(self, path):
        response = self.client.get(path)

        assert response.status_code == 400
        assert response.get_json()['code'] == 400

    @pytest.mark.parametrize("fault,status", [
        (NoUsableResult(), 404),
        (UnknownProviderFault('zz'), 400),
        (ValidationFault("Malformed continuation key", code=400, provider='xf'), 400),
        (TransportFault("timeout", code=504, provider='xf'), 502),
    ])
    def test_faults_map_to_status(self, fault, status):
        self.strategy.resolve_detail.side_effect = fault

        response = self.client.get('/detail', query_string={'key': 'xf/wangyi/music?id=1'})

        assert response.status_code == status
        data = response.get_json()
        assert data['code'] == fault.code
        assert data['msg'] == fault.message
        assert data['provider'] == fault.provider

    def test_internal_value_error_is_not_bad_request(self):
        self.strategy.resolve_detail.side_effect = ValueError("invalid literal for int()")

        response = self.client.get('/detail', query_string={'key': 'xf/wangyi/music?id=1'})

        assert response.status_code == 500

    def test_lyrics_not_supported(self):
        self.strategy.resolve_lyrics.side_effect = LyricsNotSupported('xf')

        response = self.client.get('/lyrics', query_string={'key': 'xf/wangyi/music?id=1'})

        assert response.status_code == 501
        assert response.get_json()['msg'] == "Lyrics not supported"

    def test_create_app(self):
        app = create_app(strategy=self.strategy, settings=Settings())

        assert app.test_client().get('/health').status_code == 200
