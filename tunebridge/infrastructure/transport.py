from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import requests

from tunebridge.crosscutting.config import DEFAULT_TIMEOUT_SECONDS
from tunebridge.domain.entities import Provider
from tunebridge.domain.errors import TransportFault

logger = logging.getLogger(__name__)


class HttpTransport:
    """Shared HTTP client for every provider adapter.

    Enforces one timeout policy and turns every low-level failure into a
    ``TransportFault`` scoped to the calling provider. Faults are never
    retried here; the caller decides whether to move on.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None,
                 user_agent: str = 'tunebridge/0.1'):
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            'Accept': 'application/json',
            'User-Agent': user_agent,
        })

    def get_json(self, url: str, provider: Provider,
                 params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET ``url`` and return the decoded JSON body."""
        source = Provider(provider).value
        logger.debug(f"GET {url} params={dict(params or {})} ({source})")
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportFault(f"Request timed out after {self.timeout}s: {e}", code=504, provider=source)
        except requests.ConnectionError as e:
            raise TransportFault(f"Connection failed: {e}", code=503, provider=source)
        except requests.RequestException as e:
            raise TransportFault(f"Request failed: {e}", code=500, provider=source)

        if not 200 <= response.status_code < 300:
            raise TransportFault(
                _error_message(response) or f"HTTP {response.status_code}",
                code=response.status_code,
                provider=source,
            )

        try:
            return response.json()
        except ValueError:
            # Some gateways prefix JSON with a BOM or whitespace
            text = (response.text or '').lstrip('\ufeff').strip()
            try:
                return json.loads(text)
            except ValueError as e:
                raise TransportFault(f"Malformed response body: {e}", code=502, provider=source)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> 'HttpTransport':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _error_message(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        msg = body.get('msg') or body.get('message')
        return str(msg) if msg else None
    return None
