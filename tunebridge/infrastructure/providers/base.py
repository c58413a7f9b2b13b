from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from tunebridge.crosscutting.config import is_success_code
from tunebridge.domain.entities import Platform, PlayableTrack, Provider, SearchMatch
from tunebridge.domain.errors import LyricsNotSupported, ProviderFault, TransportFault, ValidationFault
from tunebridge.domain.keys import ContinuationKey, build_key, parse_key
from tunebridge.infrastructure.schemas import validate_detail, validate_search_items
from tunebridge.infrastructure.transport import HttpTransport

logger = logging.getLogger(__name__)

# Errors raised while reading an unexpected response shape
_SHAPE_ERRORS = (KeyError, TypeError, ValueError, AttributeError, IndexError)


def first_present(payload: Mapping[str, Any], *names: str, default: Any = '') -> Any:
    """Return the first non-empty value among primary and fallback field names."""
    for name in names:
        value = payload.get(name)
        if value not in (None, ''):
            return value
    return default


class BaseSource:
    """Shared plumbing for provider adapters.

    Subclasses declare ``provider`` and ``ENDPOINTS`` (platform -> endpoint
    path) and implement the request builders and response mappers. This
    class owns the success-code check, the schema boundary and the
    conversion of shape errors into ``ValidationFault``.
    """

    provider: Provider
    ENDPOINTS: Dict[Platform, str] = {}
    # Extra parameters appended to detail requests (not stored in keys)
    DETAIL_PARAMS: Dict[str, str] = {}

    def __init__(self, base_url: str, transport: HttpTransport):
        self.base_url = base_url.rstrip('/')
        self.transport = transport

    @property
    def name(self) -> str:
        return self.provider.value

    @property
    def platforms(self) -> FrozenSet[Platform]:
        return frozenset(self.ENDPOINTS)

    def serves(self, platform: Platform) -> bool:
        return Platform(platform) in self.ENDPOINTS

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    # -- contract -----------------------------------------------------------

    def search(self, query: str, platform: Platform, page: int = 1, page_size: int = 20) -> List[SearchMatch]:
        """Search a single platform. Unserved platforms yield an empty list."""
        if not query or not self.serves(platform):
            return []
        platform = Platform(platform)
        endpoint, params = self._search_request(query, platform, page, page_size)
        payload = self._get(self.url(endpoint), params)
        try:
            raw_items = self._map_search(payload, query, platform, page, page_size)
        except _SHAPE_ERRORS as e:
            raise ValidationFault(f"Unexpected search response shape: {e}", code=422, provider=self.name)
        return validate_search_items(raw_items, platform, self.provider)

    def fetch_detail(self, key: str) -> PlayableTrack:
        parsed = self.parse_key(key)
        platform = self.platform_for(parsed)
        payload = self._get(self.url(parsed.path), self.DETAIL_PARAMS or None)
        try:
            raw = self._map_detail(payload, parsed, platform)
        except _SHAPE_ERRORS as e:
            raise ValidationFault(f"Unexpected detail response shape: {e}", code=422, provider=self.name)
        raw['key'] = key
        return validate_detail(raw, platform, self.provider)

    def fetch_lyrics(self, key: str) -> str:
        raise LyricsNotSupported(self.name)

    # -- keys ---------------------------------------------------------------

    def make_key(self, platform: Platform, params: Mapping[str, Any]) -> str:
        return build_key(self.name, self.ENDPOINTS[Platform(platform)], params)

    def parse_key(self, key: str) -> ContinuationKey:
        parsed = parse_key(key)
        if parsed.provider_segment != self.name:
            raise ValidationFault(
                f"Key belongs to provider {parsed.provider_segment!r}", code=400, provider=self.name)
        return parsed

    def platform_for(self, parsed: ContinuationKey) -> Platform:
        endpoint = parsed.endpoint.strip('/')
        for platform, path in self.ENDPOINTS.items():
            if path.strip('/') == endpoint:
                return platform
        raise ValidationFault(f"Unknown endpoint in key: {parsed.endpoint!r}", code=400, provider=self.name)

    # -- helpers ------------------------------------------------------------

    def _get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        payload = self.transport.get_json(url, self.provider, params)
        self._check_code(payload)
        return payload

    def _check_code(self, payload: Any) -> None:
        if not isinstance(payload, Mapping):
            return
        code = payload.get('code')
        if not is_success_code(self.provider, code):
            message = first_present(payload, 'msg', 'message', default=f"Unsuccessful response code {code}")
            try:
                numeric = int(code)
            except (TypeError, ValueError):
                numeric = 500
            raise TransportFault(str(message), code=numeric, provider=self.name)

    def _search_request(self, query: str, platform: Platform, page: int,
                        page_size: int) -> Tuple[str, Dict[str, Any]]:
        raise NotImplementedError

    def _map_search(self, payload: Any, query: str, platform: Platform, page: int,
                    page_size: int) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _map_detail(self, payload: Any, key: ContinuationKey, platform: Platform) -> Dict[str, Any]:
        raise NotImplementedError

    def _lyrics_from_detail(self, key: str) -> str:
        """Serve lyrics from a detail payload for providers that embed them."""
        parsed = self.parse_key(key)
        platform = self.platform_for(parsed)
        payload = self._get(self.url(parsed.path), self.DETAIL_PARAMS or None)
        try:
            lyrics = self._map_detail(payload, parsed, platform).get('lyrics')
        except _SHAPE_ERRORS as e:
            raise ValidationFault(f"Unexpected detail response shape: {e}", code=422, provider=self.name)
        if not lyrics:
            raise ValidationFault(f"No lyrics for {key}", code=404, provider=self.name)
        return str(lyrics)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} platforms={sorted(p.value for p in self.platforms)}>"


def items_of(payload: Any, *path: str) -> List[Mapping[str, Any]]:
    """Walk ``path`` into ``payload`` and return the list found there.

    A missing or null list means no results; any other non-list is a shape
    error.
    """
    node = payload
    for name in path:
        if node is None:
            return []
        node = node[name]
    if node is None:
        return []
    if not isinstance(node, list):
        raise TypeError(f"expected a list at {'.'.join(path) or 'root'}, got {type(node).__name__}")
    return [item for item in node if isinstance(item, Mapping)]


__all__ = ['BaseSource', 'first_present', 'items_of', 'ProviderFault']
