"""Search engine access: the protocol the service needs and an Elasticsearch client.

The client talks to the Elasticsearch REST API with httpx. It does not retry
and does not translate errors: transport errors, HTTP status errors and
malformed responses propagate to the caller, which owns error policy.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import quote

import httpx
from loguru import logger

if TYPE_CHECKING:
    from plugin_catalog.query import StructuredQuery, TermsAggregation

_PING_TIMEOUT = 5.0


@dataclass(frozen=True)
class Bucket:
    """One aggregation entry: a distinct value and how many documents have it."""

    key: str
    count: int


@dataclass(frozen=True)
class EngineResult:
    hits: list[dict[str, Any]]
    total_hits: int
    buckets: dict[str, list[Bucket]] = field(default_factory=dict)


class SearchEngine(Protocol):
    """What the catalog service needs from a search engine."""

    async def execute_query(self, index: str, query: StructuredQuery) -> EngineResult:
        """Run a search. Offset, size and aggregations travel in ``query``."""
        ...

    async def get_document(self, index: str, key: str) -> dict[str, Any] | None:
        """Fetch one document by key, or None if it does not exist."""
        ...


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def _parse_total(hits: Mapping[str, Any]) -> int:
    """Total hit count from either the 7.x object form or the legacy int."""
    total = hits.get("total", 0)
    if isinstance(total, Mapping):
        total = total.get("value", 0)
    if not isinstance(total, int):
        raise ValueError(f"Unexpected hits.total: {total!r}")
    return total


def _find_buckets(result: Mapping[str, Any], name: str) -> list[Any]:
    """Bucket list of an aggregation, unwrapping nested aggregations by name."""
    if "buckets" in result:
        return result["buckets"]
    inner = result.get(name)
    if isinstance(inner, Mapping):
        return _find_buckets(inner, name)
    raise ValueError(f"Aggregation '{name}' has no buckets")


def _parse_bucket(raw: Mapping[str, Any]) -> Bucket:
    key = raw.get("key_as_string", raw["key"])
    return Bucket(key=str(key), count=int(raw.get("doc_count", 0)))


def _is_missing_document(response: httpx.Response) -> bool:
    """A 404 for an absent document, as opposed to a missing index."""
    try:
        data = response.json()
    except ValueError:
        return False
    return isinstance(data, dict) and data.get("found") is False


def parse_search_response(
    data: Mapping[str, Any],
    aggregations: Sequence[TermsAggregation] = (),
) -> EngineResult:
    """Turn a raw ``_search`` response into an ``EngineResult``.

    Raises:
        ValueError: If the response lacks the expected structure.
    """
    try:
        hits = data["hits"]
        result_aggs = data.get("aggregations", {})
        buckets = {
            agg.name: [
                _parse_bucket(b) for b in _find_buckets(result_aggs[agg.name], agg.name)
            ]
            for agg in aggregations
        }
        return EngineResult(
            hits=list(hits.get("hits", [])),
            total_hits=_parse_total(hits),
            buckets=buckets,
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed search response: {e!r}") from e


# ---------------------------------------------------------------------------
# Elasticsearch client
# ---------------------------------------------------------------------------


class ElasticsearchEngine:
    """``SearchEngine`` backed by the Elasticsearch REST API."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        auth: tuple[str, str] | None = None,
    ):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._auth = auth

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.timeout,
            auth=self._auth,
        )

    async def execute_query(self, index: str, query: StructuredQuery) -> EngineResult:
        body = query.to_body()
        logger.debug(f"Elasticsearch search on '{index}': {body}")

        async with self._client() as client:
            response = await client.post(
                f"{self.url}/{quote(index, safe='')}/_search", json=body
            )
            response.raise_for_status()
            data = response.json()

        return parse_search_response(data, query.aggregations)

    async def get_document(self, index: str, key: str) -> dict[str, Any] | None:
        logger.debug(f"Elasticsearch get '{index}/{key}'")

        async with self._client() as client:
            response = await client.get(
                f"{self.url}/{quote(index, safe='')}/_doc/{quote(key, safe='')}"
            )
            if response.status_code == 404 and _is_missing_document(response):
                return None
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise ValueError(f"Malformed get response for '{key}'")
        if not data.get("found", False):
            return None
        return data

    async def ping(self) -> bool:
        """Quick reachability check against the cluster root endpoint."""
        try:
            async with self._client(timeout=_PING_TIMEOUT) as client:
                response = await client.get(f"{self.url}/")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"Elasticsearch ping failed: {e}")
            return False
