from typing import Any, Dict, List, Mapping, Tuple

from tunebridge.domain.entities import Platform, Provider
from tunebridge.domain.keys import ContinuationKey
from tunebridge.infrastructure.providers.base import BaseSource, first_present, items_of


def format_lrc(lines: Any) -> str:
    """Render ``[{time, name}]`` lyric lines as LRC text."""
    if not isinstance(lines, list):
        return ''
    rendered = []
    for line in lines:
        if not isinstance(line, Mapping):
            continue
        rendered.append(f"[{line.get('time', '')}]{line.get('name', '')}")
    return '\n'.join(rendered)


class SbySource(BaseSource):
    """NetEase and QQ catalogs through the sby gateway.

    Search and detail share one endpoint per platform; the detail is selected
    with ``n=<id>``. Lyrics are embedded in the NetEase detail payload.
    """

    provider = Provider.SBY
    ENDPOINTS = {
        Platform.WY: 'wydg/',
        Platform.QQ: 'qqdg/',
    }
    # Free-text parameter name per platform
    QUERY_PARAMS = {
        Platform.WY: 'msg',
        Platform.QQ: 'word',
    }
    DETAIL_PARAMS = {'type': 'json'}

    def _search_request(self, query: str, platform: Platform, page: int,
                        page_size: int) -> Tuple[str, Dict[str, Any]]:
        return self.ENDPOINTS[platform], {self.QUERY_PARAMS[platform]: query, 'type': 'json'}

    def _map_search(self, payload: Any, query: str, platform: Platform, page: int,
                    page_size: int) -> List[Dict[str, Any]]:
        items = items_of(payload, 'data')
        # Gateway returns the whole list; page locally
        start = (max(page, 1) - 1) * page_size
        param = self.QUERY_PARAMS[platform]
        mapped = []
        for item in items[start:start + page_size]:
            mapped.append({
                'key': self.make_key(platform, {param: query, 'n': item.get('id')}),
                'title': item.get('name') if platform == Platform.WY else item.get('song'),
                'artist': item.get('singer'),
                'cover': item.get('img') if platform == Platform.WY else item.get('cover'),
            })
        return mapped

    def _map_detail(self, payload: Any, key: ContinuationKey, platform: Platform) -> Dict[str, Any]:
        if platform == Platform.WY:
            return {
                'title': payload.get('name'),
                'artist': payload.get('author'),
                'cover': payload.get('img'),
                'audio_url': payload.get('mp3'),
                'lyrics': format_lrc(payload.get('lyric')),
                'cloud_id': payload.get('id'),
                'details': {'duration_ms': payload.get('market')},
            }
        data = payload['data']
        return {
            'title': data.get('song'),
            'artist': data.get('singer'),
            'cover': data.get('cover'),
            'audio_url': first_present(data, 'url'),
            'cloud_id': data.get('id'),
            'details': {
                'quality': data.get('quality'),
                'duration_ms': data.get('interval'),
                'bitrate': data.get('kbps'),
                'size': data.get('size'),
                'album': data.get('album'),
                'platform_url': data.get('link'),
            },
        }

    def fetch_lyrics(self, key: str) -> str:
        return self._lyrics_from_detail(key)
