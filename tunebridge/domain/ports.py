from __future__ import annotations

from typing import FrozenSet, List, Protocol

from .entities import Platform, PlayableTrack, Provider, SearchMatch


class MusicSource(Protocol):
    """Port every provider adapter implements.

    Implementations map provider-specific request and response shapes into
    domain entities and raise ``ProviderFault`` subclasses, never raw
    transport errors.
    """

    provider: Provider

    @property
    def platforms(self) -> FrozenSet[Platform]:
        """Platforms this provider can serve."""

    def search(self, query: str, platform: Platform, page: int = 1, page_size: int = 20) -> List[SearchMatch]:
        """Search one platform. Returns [] when the platform is not served."""

    def fetch_detail(self, key: str) -> PlayableTrack:
        """Resolve a continuation key. Raises UnplayableFault without audio."""

    def fetch_lyrics(self, key: str) -> str:
        """Return lyrics text. Raises LyricsNotSupported when unavailable."""
