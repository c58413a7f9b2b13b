from typing import Any, Dict, List, Tuple

from tunebridge.domain.entities import Platform, Provider
from tunebridge.domain.errors import ValidationFault
from tunebridge.domain.keys import ContinuationKey
from tunebridge.infrastructure.providers.base import BaseSource, items_of


class XzgSource(BaseSource):
    """Kugou, Kuwo and NetEase catalogs through the xzg gateway.

    Search is paged upstream. A key replays the query with the 1-based
    absolute position ``n``; the item id rides along when present because the
    lyrics endpoint needs it.
    """

    provider = Provider.XZG
    ENDPOINTS = {
        Platform.KG: 'Kugou_GN_new/',
        Platform.KW: 'Kuwo_BD_new/',
        Platform.WY: 'NetEase_CloudMusic_new/',
    }
    LYRICS_ENDPOINT = 'lyrc/'

    def _search_request(self, query: str, platform: Platform, page: int,
                        page_size: int) -> Tuple[str, Dict[str, Any]]:
        return self.ENDPOINTS[platform], {'name': query, 'page': page, 'pagesize': page_size}

    def _map_search(self, payload: Any, query: str, platform: Platform, page: int,
                    page_size: int) -> List[Dict[str, Any]]:
        offset = (max(page, 1) - 1) * page_size
        mapped = []
        for position, item in enumerate(items_of(payload, 'data'), start=offset + 1):
            mapped.append({
                'key': self.make_key(platform, {'name': query, 'n': position, 'id': item.get('id')}),
                'title': item.get('songname'),
                'artist': item.get('name'),
                'cover': item.get('cover'),
                'extra': {'album': item.get('album'), 'pay': item.get('pay')},
            })
        return mapped

    def _map_detail(self, payload: Any, key: ContinuationKey, platform: Platform) -> Dict[str, Any]:
        data = payload['data']
        if isinstance(data, list):
            raise ValueError('detail response carries a result list')
        return {
            'title': data.get('songname'),
            'artist': data.get('name'),
            'cover': data.get('cover'),
            'audio_url': data.get('src'),
            'cloud_id': key.get('id'),
            'details': {
                'quality': data.get('quality'),
                'duration_ms': data.get('interval'),
                'bitrate': data.get('kbps'),
                'size': data.get('size'),
                'album': data.get('album'),
                'platform_url': data.get('songurl'),
            },
        }

    def fetch_lyrics(self, key: str) -> str:
        parsed = self.parse_key(key)
        song_id = parsed.get('id')
        if not song_id:
            raise ValidationFault(f"Key has no song id: {key}", code=400, provider=self.name)
        payload = self._get(self.url(self.LYRICS_ENDPOINT), {'id': song_id})
        try:
            lyrics = payload['data']['encode']['context']
        except (KeyError, TypeError) as e:
            raise ValidationFault(f"Unexpected lyrics response shape: {e}", code=422, provider=self.name)
        if not lyrics:
            raise ValidationFault(f"No lyrics for {key}", code=404, provider=self.name)
        return str(lyrics)
