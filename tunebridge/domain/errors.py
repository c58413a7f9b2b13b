from typing import Optional


class ProviderFault(Exception):
    """Failure scoped to one provider.

    ``code`` keeps the provider's own meaning: the same number may signal
    success for one provider and failure for another.
    """

    def __init__(self, message: str, code: int = 500, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"[{self.provider}:{self.code}] {self.message}"
        return f"[{self.code}] {self.message}"


class TransportFault(ProviderFault):
    """Network failure, timeout, non-success status or malformed body."""


class ValidationFault(ProviderFault):
    """Response is missing a load-bearing field or has an unexpected shape."""


class UnplayableFault(ProviderFault):
    """Response was successful but carries no audio URL."""


class UnknownProviderFault(ProviderFault):
    """No adapter is registered for the requested provider."""

    def __init__(self, provider: Optional[str]) -> None:
        super().__init__(f"Unknown provider: {provider}", code=404, provider=provider)


class LyricsNotSupported(ProviderFault):
    """Provider has no lyrics capability."""

    def __init__(self, provider: Optional[str]) -> None:
        super().__init__("Lyrics not supported", code=501, provider=provider)


class NoUsableResult(ProviderFault):
    """Every candidate was exhausted without a usable result."""

    def __init__(self, message: str = "No usable result found") -> None:
        super().__init__(message, code=404, provider=None)


class NoEnabledSources(NoUsableResult):
    """The enablement table has no pair the registry can serve."""

    def __init__(self) -> None:
        super().__init__("No enabled sources")
