import logging
from typing import Dict, List, Optional, Type

from tunebridge.crosscutting.config import Settings
from tunebridge.domain.entities import Platform, PlayableTrack, Provider, SearchMatch
from tunebridge.domain.errors import UnknownProviderFault
from tunebridge.domain.keys import provider_segment_of
from tunebridge.domain.ports import MusicSource
from tunebridge.infrastructure.providers.base import BaseSource
from tunebridge.infrastructure.providers.cgg import CggSource
from tunebridge.infrastructure.providers.lz import LzSource
from tunebridge.infrastructure.providers.sby import SbySource
from tunebridge.infrastructure.providers.xf import XfSource
from tunebridge.infrastructure.providers.xzg import XzgSource
from tunebridge.infrastructure.transport import HttpTransport

logger = logging.getLogger(__name__)

SOURCE_CLASSES: Dict[Provider, Type[BaseSource]] = {
    Provider.XF: XfSource,
    Provider.SBY: SbySource,
    Provider.XZG: XzgSource,
    Provider.LZ: LzSource,
    Provider.CGG: CggSource,
}


class SourceRegistry:
    """Maps provider identifiers to adapters and routes calls to them.

    Provider names are matched case-insensitively. Routing never falls back
    to another provider: an unknown name is an ``UnknownProviderFault``.
    """

    def __init__(self):
        self._sources: Dict[str, MusicSource] = {}

    def register(self, source: MusicSource) -> None:
        name = _normalize(source.provider)
        if name in self._sources:
            logger.warning(f"Replacing registered source for provider {name}")
        self._sources[name] = source
        logger.debug(f"Registered source {name}")

    def get(self, provider) -> MusicSource:
        name = _normalize(provider)
        source = self._sources.get(name)
        if source is None:
            raise UnknownProviderFault(name or None)
        return source

    def has(self, provider) -> bool:
        return _normalize(provider) in self._sources

    @property
    def providers(self) -> List[str]:
        return list(self._sources)

    def provider_for_key(self, key: str) -> MusicSource:
        """Return the adapter owning ``key`` by its leading provider segment."""
        return self.get(provider_segment_of(key))

    def search(self, query: str, platform: Platform, provider,
               page: int = 1, page_size: int = 20) -> List[SearchMatch]:
        return self.get(provider).search(query, Platform(platform), page=page, page_size=page_size)

    def fetch_detail(self, key: str, platform: Optional[Platform] = None,
                     provider=None) -> PlayableTrack:
        """Fetch a detail via ``provider`` or, when omitted, the key's owner.

        ``platform`` is informational; the key already names the endpoint.
        """
        source = self.get(provider) if provider is not None else self.provider_for_key(key)
        return source.fetch_detail(key)

    def fetch_lyrics(self, key: str, platform: Optional[Platform] = None, provider=None) -> str:
        source = self.get(provider) if provider is not None else self.provider_for_key(key)
        return source.fetch_lyrics(key)

    def close(self) -> None:
        transports = {id(t): t for t in (getattr(s, 'transport', None) for s in self._sources.values()) if t}
        for transport in transports.values():
            transport.close()


def _normalize(provider) -> str:
    if isinstance(provider, Provider):
        return provider.value
    return str(provider or '').strip().lower()


def build_default_registry(settings: Settings,
                           transport: Optional[HttpTransport] = None) -> SourceRegistry:
    """Register an adapter for every provider that has a base URL configured.

    Args:
        settings: Deployment settings
        transport: Shared transport; one is created from ``settings`` if omitted

    Returns:
        Populated registry
    """
    transport = transport or HttpTransport(timeout=settings.timeout)
    registry = SourceRegistry()
    for provider in settings.configured_providers:
        registry.register(SOURCE_CLASSES[provider](settings.base_url_for(provider), transport))
    if not registry.providers:
        logger.warning("No provider base URLs configured; every resolution will fail")
    else:
        logger.info(f"Registered providers: {', '.join(registry.providers)}")
    return registry
