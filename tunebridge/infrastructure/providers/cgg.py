from typing import Any, Dict, List, Tuple

from tunebridge.domain.entities import Platform, Provider
from tunebridge.domain.keys import ContinuationKey
from tunebridge.infrastructure.providers.base import BaseSource, first_present, items_of


class CggSource(BaseSource):
    """Douyin, Qishui and Ximalaya through the cgg gateway.

    Each platform answers detail requests with its own payload shape. Qishui
    and Ximalaya put the record at the top level.
    """

    provider = Provider.CGG
    ENDPOINTS = {
        Platform.DY: 'douyin/music/',
        Platform.QS: 'qishui/',
        Platform.XMLY: 'music/dg_ximalayamusic.php',
    }
    DETAIL_PARAMS = {'type': 'json'}

    def _search_request(self, query: str, platform: Platform, page: int,
                        page_size: int) -> Tuple[str, Dict[str, Any]]:
        params: Dict[str, Any] = {'msg': query}
        if platform == Platform.DY:
            params.update(page=page, limit=page_size)
        params['type'] = 'json'
        return self.ENDPOINTS[platform], params

    def _map_search(self, payload: Any, query: str, platform: Platform, page: int,
                    page_size: int) -> List[Dict[str, Any]]:
        mapped = []
        for position, item in enumerate(items_of(payload, 'data'), start=1):
            extra = {}
            if platform == Platform.XMLY:
                extra = {'type': item.get('type'), 'trackId': item.get('trackId')}
            mapped.append({
                'key': self.make_key(platform, {'msg': query, 'n': first_present(item, 'n', default=position)}),
                'title': item.get('title'),
                'artist': first_present(item, 'singer', 'Nickname'),
                'cover': item.get('cover'),
                'extra': extra,
            })
        return mapped

    def _map_detail(self, payload: Any, key: ContinuationKey, platform: Platform) -> Dict[str, Any]:
        if platform == Platform.DY:
            data = payload['data']
            return {
                'title': data.get('title'),
                'artist': data.get('singer'),
                'cover': data.get('cover'),
                'audio_url': data.get('url'),
                'lyrics': data.get('lrc'),
            }
        if platform == Platform.QS:
            return {
                'title': payload.get('title'),
                'artist': payload.get('singer'),
                'cover': payload.get('cover'),
                'audio_url': payload.get('music'),
                'lyrics': payload.get('lrc'),
                'details': {'platform_url': payload.get('link')},
            }
        return {
            'title': payload.get('title'),
            'artist': first_present(payload, 'nickname', 'Nickname'),
            'cover': payload.get('cover'),
            'audio_url': payload.get('url'),
            'details': {'platform_url': payload.get('link')},
        }

    def fetch_lyrics(self, key: str) -> str:
        return self._lyrics_from_detail(key)
