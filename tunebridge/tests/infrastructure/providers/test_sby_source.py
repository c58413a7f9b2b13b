import pytest
from unittest.mock import Mock

from tunebridge.domain.entities import Platform, Provider
from tunebridge.domain.errors import ValidationFault
from tunebridge.domain.keys import parse_key
from tunebridge.infrastructure.providers.sby import SbySource, format_lrc


WY_SEARCH = {
    'code': 200,
    'msg': 'ok',
    'data': [
        {'id': 347230, 'name': '海阔天空', 'singer': 'Beyond', 'img': 'https://img.example/1.jpg'},
        {'id': 5, 'name': '海阔天空 (Live)', 'singer': 'Beyond', 'img': ''},
    ]
}

QQ_SEARCH = {
    'code': 200,
    'data': [
        {'id': 97773, 'song': '晴天', 'singer': '周杰伦', 'cover': 'https://img.example/q.jpg'},
    ]
}

WY_DETAIL = {
    'code': 200,
    'msg': 'ok',
    'name': '海阔天空',
    'author': 'Beyond',
    'img': 'https://img.example/1.jpg',
    'mp3': 'https://cdn.example/wy.mp3',
    'id': 347230,
    'market': '5:26',
    'lyric': [{'time': '00:01.00', 'name': '今天我'}, {'time': '00:05.00', 'name': '寒夜里看雪飘过'}],
}

QQ_DETAIL = {
    'code': 200,
    'data': {
        'id': 97773,
        'song': '晴天',
        'singer': '周杰伦',
        'album': '叶惠美',
        'quality': 'HQ',
        'interval': '4分29秒',
        'size': '10.3MB',
        'kbps': '320kbps',
        'cover': 'https://img.example/q.jpg',
        'link': 'https://y.qq.example/song/97773',
        'url': 'https://cdn.example/qq.m4a',
    }
}


class TestSbySource:
    """Tests for the sby adapter."""

    def setup_method(self):
        """Set up test fixtures."""
        self.transport = Mock()
        self.source = SbySource('https://sby.example', self.transport)

    def test_wy_search_uses_msg_parameter(self):
        self.transport.get_json.return_value = WY_SEARCH

        matches = self.source.search('海阔天空', Platform.WY)

        self.transport.get_json.assert_called_once_with(
            'https://sby.example/wydg/', Provider.SBY, {'msg': '海阔天空', 'type': 'json'})
        assert [m.title for m in matches] == ['海阔天空', '海阔天空 (Live)']
        assert matches[0].cover == 'https://img.example/1.jpg'
        key = parse_key(matches[0].key)
        assert key.provider_segment == 'sby'
        assert key.endpoint == 'wydg/'
        assert key.query == {'msg': '海阔天空', 'n': '347230'}

    def test_qq_search_uses_word_parameter(self):
        self.transport.get_json.return_value = QQ_SEARCH

        matches = self.source.search('晴天', Platform.QQ)

        self.transport.get_json.assert_called_once_with(
            'https://sby.example/qqdg/', Provider.SBY, {'word': '晴天', 'type': 'json'})
        assert matches[0].title == '晴天'
        assert matches[0].artist == '周杰伦'
        assert matches[0].platform is Platform.QQ
        assert parse_key(matches[0].key).query == {'word': '晴天', 'n': '97773'}

    def test_search_pages_locally(self):
        self.transport.get_json.return_value = WY_SEARCH
        matches = self.source.search('海阔天空', Platform.WY, page=2, page_size=1)
        assert [m.title for m in matches] == ['海阔天空 (Live)']

    def test_unserved_platform(self):
        assert self.source.search('x', Platform.KG) == []

    def test_wy_detail(self):
        self.transport.get_json.return_value = WY_DETAIL
        key = 'sby/wydg/?msg=%E6%B5%B7&n=347230'

        track = self.source.fetch_detail(key)

        url, provider, params = self.transport.get_json.call_args.args
        assert url == 'https://sby.example/wydg/?msg=%E6%B5%B7&n=347230'
        assert params == {'type': 'json'}
        assert track.platform is Platform.WY
        assert track.audio_url == 'https://cdn.example/wy.mp3'
        assert track.lyrics == '[00:01.00]今天我\n[00:05.00]寒夜里看雪飘过'
        assert track.cloud_id == '347230'
        assert track.details.duration_ms == 326000

    def test_qq_detail(self):
        self.transport.get_json.return_value = QQ_DETAIL

        track = self.source.fetch_detail('sby/qqdg/?word=x&n=97773')

        assert track.platform is Platform.QQ
        assert track.audio_url == 'https://cdn.example/qq.m4a'
        assert track.details.quality == 'HQ'
        assert track.details.duration_ms == 269000
        assert track.details.bitrate == 320
        assert track.details.size == '10.3MB'
        assert track.details.album == '叶惠美'
        assert track.details.platform_url == 'https://y.qq.example/song/97773'

    def test_detail_with_unknown_endpoint(self):
        with pytest.raises(ValidationFault):
            self.source.fetch_detail('sby/kgdg/?msg=x&n=1')
        self.transport.get_json.assert_not_called()

    def test_lyrics_come_from_detail(self):
        self.transport.get_json.return_value = WY_DETAIL
        assert self.source.fetch_lyrics('sby/wydg/?msg=x&n=1').startswith('[00:01.00]今天我')

    def test_lyrics_missing(self):
        self.transport.get_json.return_value = QQ_DETAIL
        with pytest.raises(ValidationFault):
            self.source.fetch_lyrics('sby/qqdg/?word=x&n=97773')


def test_format_lrc():
    assert format_lrc([{'time': '00:01', 'name': 'a'}, 'junk', {'time': '00:02', 'name': 'b'}]) == '[00:01]a\n[00:02]b'
    assert format_lrc(None) == ''
