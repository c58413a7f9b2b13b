import pytest
from unittest.mock import Mock

from tunebridge.domain.entities import Platform, Provider
from tunebridge.domain.errors import TransportFault, UnplayableFault, ValidationFault
from tunebridge.infrastructure.providers.xf import XfSource


SEARCH_PAYLOAD = {
    'code': 200,
    'msg': 'ok',
    'data': {
        'songs': [
            {'id': 347230, 'name': '海阔天空', 'artistsname': 'Beyond', 'album': '乐与怒', 'duration': 326000},
            {'id': 1, 'name': '海阔天空 (Live)', 'artistsname': 'Beyond', 'album': 'Live', 'duration': 0},
        ]
    }
}

DETAIL_PAYLOAD = {
    'code': 200,
    'msg': 'ok',
    'data': {
        'id': '347230',
        'name': '海阔天空',
        'artistsname': 'Beyond',
        'album': '乐与怒',
        'picurl': 'https://img.example/cover.jpg',
        'url': 'https://cdn.example/347230.mp3',
        'duration': 326000,
    }
}


class TestXfSource:
    """Tests for the xf adapter."""

    def setup_method(self):
        """Set up test fixtures."""
        self.transport = Mock()
        self.source = XfSource('https://xf.example/', self.transport)

    def test_serves_netease_only(self):
        assert self.source.platforms == frozenset({Platform.WY})
        assert self.source.search('海阔天空', Platform.QQ) == []
        self.transport.get_json.assert_not_called()

    def test_search(self):
        self.transport.get_json.return_value = SEARCH_PAYLOAD

        matches = self.source.search('海阔天空 Beyond', Platform.WY, page_size=10)

        self.transport.get_json.assert_called_once_with(
            'https://xf.example/wangyi/search', Provider.XF, {'search': '海阔天空 Beyond', 'limit': 10})
        assert len(matches) == 2
        assert matches[0].key == 'xf/wangyi/music?id=347230'
        assert matches[0].title == '海阔天空'
        assert matches[0].artist == 'Beyond'
        assert matches[0].platform is Platform.WY
        assert matches[0].provider is Provider.XF
        assert matches[0].extra == {'duration': 326000, 'album': '乐与怒'}

    def test_search_with_null_songs(self):
        self.transport.get_json.return_value = {'code': 200, 'data': {'songs': None}}
        assert self.source.search('x', Platform.WY) == []

    def test_search_with_unexpected_shape(self):
        self.transport.get_json.return_value = {'code': 200, 'data': {'songs': 'nope'}}
        with pytest.raises(ValidationFault):
            self.source.search('x', Platform.WY)

    def test_search_with_failure_code(self):
        self.transport.get_json.return_value = {'code': 0, 'msg': 'quota exceeded'}
        with pytest.raises(TransportFault) as exc_info:
            self.source.search('x', Platform.WY)
        assert exc_info.value.code == 0
        assert exc_info.value.message == 'quota exceeded'
        assert exc_info.value.provider == 'xf'

    def test_fetch_detail(self):
        self.transport.get_json.return_value = DETAIL_PAYLOAD

        track = self.source.fetch_detail('xf/wangyi/music?id=347230')

        self.transport.get_json.assert_called_once_with(
            'https://xf.example/wangyi/music?id=347230', Provider.XF, {'type': 'json'})
        assert track.key == 'xf/wangyi/music?id=347230'
        assert track.audio_url == 'https://cdn.example/347230.mp3'
        assert track.cover == 'https://img.example/cover.jpg'
        assert track.cloud_id == '347230'
        assert track.details.duration_ms == 326000
        assert track.details.album == '乐与怒'

    def test_fetch_detail_without_audio(self):
        payload = {'code': 200, 'data': dict(DETAIL_PAYLOAD['data'], url='')}
        self.transport.get_json.return_value = payload
        with pytest.raises(UnplayableFault):
            self.source.fetch_detail('xf/wangyi/music?id=347230')

    def test_fetch_detail_rejects_foreign_key_without_network(self):
        with pytest.raises(ValidationFault):
            self.source.fetch_detail('sby/wydg/?msg=x&n=1')
        self.transport.get_json.assert_not_called()

    def test_fetch_lyrics(self):
        self.transport.get_json.return_value = {'code': 200, 'data': {'lyric': '[00:01.00]今天我'}}

        lyrics = self.source.fetch_lyrics('xf/wangyi/music?id=347230')

        self.transport.get_json.assert_called_once_with(
            'https://xf.example/wangyi/lyrics', Provider.XF, {'id': '347230'})
        assert lyrics == '[00:01.00]今天我'

    def test_fetch_lyrics_empty(self):
        self.transport.get_json.return_value = {'code': 200, 'data': {'lyric': ''}}
        with pytest.raises(ValidationFault):
            self.source.fetch_lyrics('xf/wangyi/music?id=347230')
