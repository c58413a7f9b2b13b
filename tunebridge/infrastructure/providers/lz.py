from typing import Any, Dict, List, Tuple

from tunebridge.domain.entities import Platform, Provider
from tunebridge.domain.keys import ContinuationKey
from tunebridge.infrastructure.providers.base import BaseSource, first_present, items_of


class LzSource(BaseSource):
    """Seven catalogs through the lz gateway, one PHP endpoint each.

    Detail payloads are flat and use different field names per endpoint, so
    every field is read from a primary name with fallbacks.
    """

    provider = Provider.LZ
    ENDPOINTS = {
        Platform.KG_SQ: 'dg_kugouSQ.php',
        Platform.KG: 'dg_kgmusic.php',
        Platform.KW: 'dg_kuwomusic.php',
        Platform.WY: 'dg_wyymusic.php',
        Platform.MG: 'dg_mgmusic.php',
        Platform.BD: 'dg_bdmusic.php',
        Platform.FIVE_SING: 'dg_5signmusic.php',
    }
    QUERY_PARAMS = {
        Platform.KG_SQ: 'msg',
        Platform.KW: 'msg',
        Platform.FIVE_SING: 'msg',
        Platform.KG: 'gm',
        Platform.WY: 'gm',
        Platform.MG: 'gm',
        Platform.BD: 'gm',
    }
    DETAIL_PARAMS = {'type': 'json'}

    def _search_request(self, query: str, platform: Platform, page: int,
                        page_size: int) -> Tuple[str, Dict[str, Any]]:
        return self.ENDPOINTS[platform], {
            self.QUERY_PARAMS[platform]: query,
            'num': page_size,
            'type': 'json',
        }

    def _map_search(self, payload: Any, query: str, platform: Platform, page: int,
                    page_size: int) -> List[Dict[str, Any]]:
        param = self.QUERY_PARAMS[platform]
        mapped = []
        for position, item in enumerate(items_of(payload, 'data'), start=1):
            params = {param: query, 'n': first_present(item, 'n', default=position)}
            if platform == Platform.KG_SQ:
                params['quality'] = 'flac'
            mapped.append({
                'key': self.make_key(platform, params),
                'title': item.get('title'),
                'artist': item.get('singer'),
            })
        return mapped

    def _map_detail(self, payload: Any, key: ContinuationKey, platform: Platform) -> Dict[str, Any]:
        # Some endpoints nest the record under ``data``
        record = payload.get('data') if isinstance(payload.get('data'), dict) else payload
        return {
            'title': first_present(record, 'title', 'song_name'),
            'artist': first_present(record, 'singer', 'song_singer'),
            'cover': first_present(record, 'cover', 'song_cover'),
            'audio_url': first_present(record, 'music_url', 'flac_url', 'url'),
            'lyrics': first_present(record, 'lyrics', 'lrc'),
            'details': {
                'quality': 'flac' if key.get('quality') == 'flac' else None,
                'platform_url': first_present(record, 'link', default=None),
            },
        }

    def fetch_lyrics(self, key: str) -> str:
        return self._lyrics_from_detail(key)
