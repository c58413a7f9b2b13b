from typing import Any, Dict, List, Tuple

from tunebridge.domain.entities import Platform, Provider
from tunebridge.domain.errors import ValidationFault
from tunebridge.domain.keys import ContinuationKey
from tunebridge.infrastructure.providers.base import BaseSource, items_of


class XfSource(BaseSource):
    """NetEase catalog through the xf gateway. Has a dedicated lyrics endpoint."""

    provider = Provider.XF
    ENDPOINTS = {Platform.WY: 'wangyi/music'}
    SEARCH_ENDPOINT = 'wangyi/search'
    LYRICS_ENDPOINT = 'wangyi/lyrics'
    DETAIL_PARAMS = {'type': 'json'}

    def _search_request(self, query: str, platform: Platform, page: int,
                        page_size: int) -> Tuple[str, Dict[str, Any]]:
        return self.SEARCH_ENDPOINT, {'search': query, 'limit': page_size}

    def _map_search(self, payload: Any, query: str, platform: Platform, page: int,
                    page_size: int) -> List[Dict[str, Any]]:
        return [
            {
                'key': self.make_key(platform, {'id': song.get('id')}),
                'title': song.get('name'),
                'artist': song.get('artistsname'),
                'extra': {'duration': song.get('duration'), 'album': song.get('album')},
            }
            for song in items_of(payload, 'data', 'songs')
        ]

    def _map_detail(self, payload: Any, key: ContinuationKey, platform: Platform) -> Dict[str, Any]:
        data = payload['data']
        return {
            'title': data.get('name'),
            'artist': data.get('artistsname'),
            'cover': data.get('picurl'),
            'audio_url': data.get('url'),
            'cloud_id': data.get('id'),
            'details': {
                'duration_ms': data.get('duration'),
                'album': data.get('album'),
            },
        }

    def fetch_lyrics(self, key: str) -> str:
        parsed = self.parse_key(key)
        song_id = parsed.get('id')
        if not song_id:
            raise ValidationFault(f"Key has no song id: {key}", code=400, provider=self.name)
        payload = self._get(self.url(self.LYRICS_ENDPOINT), {'id': song_id})
        try:
            lyrics = payload['data']['lyric']
        except (KeyError, TypeError) as e:
            raise ValidationFault(f"Unexpected lyrics response shape: {e}", code=422, provider=self.name)
        if not lyrics:
            raise ValidationFault(f"No lyrics for {key}", code=404, provider=self.name)
        return str(lyrics)
