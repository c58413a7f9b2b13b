"""Continuation keys.

A key looks like ``<provider>/<endpoint>?<query-parameters>``, for example
``sby/wydg/?msg=%E6%B5%B7&n=1``. It carries everything a provider needs to
replay a detail or lyrics fetch. Callers treat it as opaque; only adapters
build and parse it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from .errors import ValidationFault


@dataclass(frozen=True)
class ContinuationKey:
    provider_segment: str
    endpoint: str
    params: Tuple[Tuple[str, str], ...] = ()

    @property
    def query(self) -> Dict[str, str]:
        return dict(self.params)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.query.get(name, default)

    @property
    def path(self) -> str:
        """Endpoint plus query string, relative to the provider's base URL."""
        if not self.params:
            return self.endpoint
        return f"{self.endpoint}?{urlencode(self.params)}"

    def __str__(self) -> str:
        return f"{self.provider_segment}/{self.path}"


def build_key(provider_segment: str, endpoint: str, params: Mapping[str, object]) -> str:
    pairs = tuple((str(k), str(v)) for k, v in params.items() if v is not None and v != "")
    return str(ContinuationKey(provider_segment.lower(), endpoint, pairs))


def provider_segment_of(key: str) -> str:
    """Return the lower-cased provider segment of a key without validating the rest."""
    if not key or "/" not in key:
        raise ValidationFault(f"Malformed continuation key: {key!r}", code=400)
    return key.split("/", 1)[0].strip().lower()


def parse_key(key: str) -> ContinuationKey:
    segment = provider_segment_of(key)
    remainder = key.split("/", 1)[1]
    endpoint, _, query = remainder.partition("?")
    if not endpoint:
        raise ValidationFault(f"Malformed continuation key: {key!r}", code=400, provider=segment)
    params = tuple(parse_qsl(query, keep_blank_values=True))
    return ContinuationKey(segment, endpoint, params)
