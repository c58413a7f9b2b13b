import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from tunebridge.application.relevance import DEFAULT_THRESHOLDS, RelevanceThresholds, is_relevant
from tunebridge.crosscutting.config import enabled_interfaces
from tunebridge.crosscutting.logging import (
    CorrelationContext, current_request_id, log_probe_result, log_resolution_complete,
)
from tunebridge.domain.entities import Interface, PlayableTrack, Provider, SearchMatch
from tunebridge.domain.errors import (
    NoEnabledSources, NoUsableResult, ProviderFault,
)
from tunebridge.domain.normalization import build_query
from tunebridge.infrastructure.registry import SourceRegistry


logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Outcome of one search resolution."""

    matches: List[SearchMatch]
    track: PlayableTrack
    relevant: bool
    interface: Interface
    attempts: int = 0


class ResolutionStrategy:
    """Resolves a free-text query into a playable track.

    Candidates from the enablement table are probed one at a time in
    declaration order. The first relevant top result with a playable detail
    wins. Otherwise the first playable irrelevant result seen is returned, and
    with neither the run ends in ``NoUsableResult``.

    The fallback slot is local to each call, so one instance can serve
    concurrent callers.
    """

    def __init__(self,
                 registry: SourceRegistry,
                 interfaces: Optional[Sequence[Interface]] = None,
                 thresholds: RelevanceThresholds = DEFAULT_THRESHOLDS,
                 page_size: int = 20):
        """Initialize the strategy.

        Args:
            registry: Dispatcher holding one adapter per provider
            interfaces: Ordered (platform, provider) pairs to probe; defaults to the enablement table
            thresholds: Relevance cutoffs
            page_size: Results requested per search
        """
        self.registry = registry
        self.interfaces = list(interfaces) if interfaces is not None else enabled_interfaces()
        self.thresholds = thresholds
        self.page_size = page_size

    def _candidates(self) -> List[Interface]:
        candidates = []
        for interface in self.interfaces:
            if self.registry.has(interface.provider):
                candidates.append(interface)
            else:
                logger.debug(f"Skipping {interface.label}: provider not registered")
        return candidates

    def _providers(self) -> List[Provider]:
        """Distinct providers of the enabled pairs, in table order."""
        providers: List[Provider] = []
        for interface in self._candidates():
            if interface.provider not in providers:
                providers.append(interface.provider)
        return providers

    def resolve(self, song: Optional[str] = None, artist: Optional[str] = None) -> Resolution:
        """Run the probe loop for ``song``/``artist``.

        Args:
            song: Song title
            artist: Artist name

        Returns:
            Resolution for the winning candidate, or the first fallback

        Raises:
            ValueError: If both song and artist are empty
            NoEnabledSources: If no enabled pair has a registered adapter
            NoUsableResult: If no candidate yields a playable detail
        """
        query = build_query(song, artist)
        if not query:
            raise ValueError("song or artist is required")

        candidates = self._candidates()
        if not candidates:
            raise NoEnabledSources()

        start_time = time.time()
        fallback: Optional[Resolution] = None
        attempts = 0

        with CorrelationContext(request_id=current_request_id(), stage='resolve'):
            logger.info(f"Resolving '{query}' across {len(candidates)} interfaces")

            for interface in candidates:
                attempts += 1
                resolution = self._probe(query, interface, attempts, fallback is None)
                if resolution is None:
                    continue
                if resolution.relevant:
                    log_resolution_complete(logger, 'relevant', attempts, _elapsed_ms(start_time),
                                            interface=interface.label, query=query)
                    return resolution
                if fallback is None:
                    fallback = resolution

            if fallback is not None:
                fallback.attempts = attempts
                log_resolution_complete(logger, 'fallback', attempts, _elapsed_ms(start_time),
                                        interface=fallback.interface.label, query=query)
                return fallback

            log_resolution_complete(logger, 'exhausted', attempts, _elapsed_ms(start_time), query=query)
            raise NoUsableResult()

    def _probe(self, query: str, interface: Interface, attempt: int,
               want_fallback: bool) -> Optional[Resolution]:
        """Probe one candidate. Provider faults are logged and absorbed."""
        label = interface.label
        try:
            matches = self.registry.search(query, interface.platform, interface.provider,
                                           page=1, page_size=self.page_size)
            if not matches:
                log_probe_result(logger, label, 'empty')
                return None

            top = matches[0]
            relevant = is_relevant(query, top.title, top.artist, self.thresholds)
            if not relevant and not want_fallback:
                # A fallback is already held; later ones are never used
                log_probe_result(logger, label, 'irrelevant', title=top.title, artist=top.artist)
                return None

            track = self.registry.fetch_detail(top.key, interface.platform, interface.provider)
            outcome = 'relevant' if relevant else 'fallback'
            log_probe_result(logger, label, outcome, title=top.title, artist=top.artist, attempt=attempt)
            return Resolution(matches=matches, track=track, relevant=relevant,
                              interface=interface, attempts=attempt)
        except ProviderFault as e:
            log_probe_result(logger, label, 'fault', error_type=type(e).__name__,
                             code=e.code, error=e.message)
            return None

    def resolve_search(self, song: Optional[str] = None, artist: Optional[str] = None) -> List[SearchMatch]:
        """Return the page of matches from the winning or fallback candidate."""
        return self.resolve(song, artist).matches

    def resolve_track(self, song: Optional[str] = None, artist: Optional[str] = None) -> PlayableTrack:
        """Return the playable track of the winning or fallback candidate."""
        return self.resolve(song, artist).track

    def resolve_detail(self, key: str) -> PlayableTrack:
        """Re-resolve a continuation key to a playable track.

        Each distinct enabled provider is tried in table order. Only the
        provider that built the key can interpret it; the others reject it
        before any network call.

        Args:
            key: Continuation key from a previous search

        Returns:
            First playable track

        Raises:
            UnknownProviderFault: If the key names an unregistered provider
            NoUsableResult: If no provider yields a playable track
        """
        owner = self.registry.provider_for_key(key)
        with CorrelationContext(request_id=current_request_id(), provider=owner.provider.value, stage='detail'):
            for provider in self._providers():
                try:
                    track = self.registry.fetch_detail(key, provider=provider)
                except ProviderFault as e:
                    logger.info(f"Detail via {provider.value} failed: {e}")
                    continue
                if track.is_playable:
                    logger.info(f"Detail resolved via {provider.value}")
                    return track
            raise NoUsableResult("No playable audio found for key")

    def resolve_lyrics(self, key: str) -> str:
        """Fetch lyrics from the provider that owns ``key``.

        Raises:
            UnknownProviderFault: If the key names an unregistered provider
            LyricsNotSupported: If the owner has no lyrics capability
        """
        source = self.registry.provider_for_key(key)
        with CorrelationContext(request_id=current_request_id(), provider=source.provider.value, stage='lyrics'):
            return self.registry.fetch_lyrics(key, provider=source.provider)


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)
