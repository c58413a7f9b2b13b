from tunebridge.application.relevance import RelevanceThresholds
from tunebridge.application.strategy import ResolutionStrategy
from tunebridge.crosscutting.config import Settings
from tunebridge.infrastructure.registry import build_default_registry


def build_strategy(settings: Settings) -> ResolutionStrategy:
    """Wire registry and strategy from settings."""
    return ResolutionStrategy(
        registry=build_default_registry(settings),
        interfaces=settings.interfaces(),
        thresholds=RelevanceThresholds.from_settings(settings),
        page_size=settings.page_size,
    )
