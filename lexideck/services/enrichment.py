"""HTTP clients for best-effort card enrichment.

Both clients return :class:`~lexideck.core.result.Result` values: transport
errors, error statuses and malformed bodies all become
``Err(ErrorKind.ENRICHMENT_FAILED)`` so callers never handle exceptions from
the network.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from lexideck.config import Settings
from lexideck.core.result import Err, ErrorKind, Ok, Result
from lexideck.services.ports import DictionaryEntries, ExampleEntries

MAX_EXAMPLE_WORDS = 50


class EnrichmentServiceError(RuntimeError):
    """Raised when the enrichment service returns an error response."""

    def __init__(self, message: str, *, retryable: bool) -> None:
        super().__init__(message)
        self.retryable = retryable


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, EnrichmentServiceError):
        return exc.retryable
    return isinstance(exc, httpx.TransportError)


class _EnrichmentClient:
    """Shared POST-with-retries plumbing."""

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        max_attempts: int = 2,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=str(base_url), timeout=timeout)
        self.max_attempts = max_attempts

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                response = await self._client.post(path, json=payload)
                if response.status_code >= 400:
                    raise EnrichmentServiceError(
                        f"{path} returned {response.status_code}",
                        retryable=response.status_code >= 500,
                    )
                data = response.json()
                if not isinstance(data, dict):
                    raise EnrichmentServiceError(f"{path} returned a non-object body", retryable=False)
                return data
        raise AssertionError("unreachable")  # pragma: no cover

    async def _request_mapping(self, path: str, payload: Dict[str, Any], field: str) -> Result[dict]:
        try:
            data = await self._post(path, payload)
        except (httpx.HTTPError, EnrichmentServiceError, ValueError) as exc:
            logger.warning("Enrichment request failed", path=path, error=str(exc))
            return Err(ErrorKind.ENRICHMENT_FAILED, str(exc))
        mapping = data.get(field)
        if not isinstance(mapping, dict):
            logger.warning("Enrichment response malformed", path=path, field=field)
            return Err(ErrorKind.ENRICHMENT_FAILED, f"missing '{field}' mapping")
        return Ok(mapping)


class HttpDictionaryLookup(_EnrichmentClient):
    """Batch dictionary lookup for cards missing dictionary data."""

    path = "/api/enrich-deck"

    async def lookup(self, words: list[str]) -> Result[DictionaryEntries]:
        payload = {"words": [{"word": word} for word in words]}
        return await self._request_mapping(self.path, payload, "entries")


class HttpExampleGenerator(_EnrichmentClient):
    """Example sentence generation for cards that have dictionary data but no example."""

    path = "/api/generate-examples"

    async def generate(self, words: list[str]) -> Result[ExampleEntries]:
        if len(words) > MAX_EXAMPLE_WORDS:
            raise ValueError(f"At most {MAX_EXAMPLE_WORDS} words per request, got {len(words)}")
        return await self._request_mapping(self.path, {"words": list(words)}, "examples")


def build_enrichment_clients(
    settings: Settings,
) -> tuple[Optional[HttpDictionaryLookup], Optional[HttpExampleGenerator]]:
    """Return configured clients, or ``(None, None)`` when enrichment is disabled."""

    if settings.ENRICHMENT_BASE_URL is None:
        return None, None
    base_url = str(settings.ENRICHMENT_BASE_URL)
    options = {
        "timeout": settings.ENRICHMENT_TIMEOUT_SECONDS,
        "max_attempts": settings.ENRICHMENT_MAX_RETRIES,
    }
    return HttpDictionaryLookup(base_url, **options), HttpExampleGenerator(base_url, **options)


__all__ = [
    "EnrichmentServiceError",
    "HttpDictionaryLookup",
    "HttpExampleGenerator",
    "MAX_EXAMPLE_WORDS",
    "build_enrichment_clients",
]
