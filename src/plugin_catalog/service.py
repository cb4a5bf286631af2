"""Catalog search service: compose, execute, shape.

Every engine interaction goes through ``_engine_errors`` so callers see a
single failure kind, ``QueryExecutionError``, whatever went wrong on the way
to or back from the engine. Nothing is retried here.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace

from loguru import logger

from plugin_catalog.engine import Bucket, EngineResult, SearchEngine
from plugin_catalog.errors import QueryExecutionError
from plugin_catalog.metadata import FacetMetadata
from plugin_catalog.models import (
    Categories,
    Labels,
    Maintainers,
    Plugin,
    Plugins,
    SearchRequest,
    Versions,
)
from plugin_catalog.pagination import paginate
from plugin_catalog.query import TermsAggregation, compose, compose_aggregation
from plugin_catalog.transform import (
    transform_buckets,
    transform_get,
    transform_hits,
    transform_labels,
)

DEFAULT_INDEX = "plugins"
DEFAULT_BUCKET_SIZE = 10000
DEFAULT_MAX_RESULT_WINDOW = 10000


@contextmanager
def _engine_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except Exception as e:
        logger.error(f"Problem executing {operation} query: {e!r}")
        raise QueryExecutionError(f"Problem executing {operation} query", e) from e


def _buckets(result: EngineResult, name: str) -> list[Bucket]:
    buckets = result.buckets[name]
    logger.debug(
        f"Facet '{name}': {len(buckets)} buckets over "
        f"{sum(b.count for b in buckets)} documents"
    )
    return buckets


class CatalogSearchService:
    """Search, lookup and facet listings over the plugin index."""

    def __init__(
        self,
        engine: SearchEngine,
        metadata: FacetMetadata,
        index: str = DEFAULT_INDEX,
        bucket_size: int = DEFAULT_BUCKET_SIZE,
        max_result_window: int = DEFAULT_MAX_RESULT_WINDOW,
    ):
        self.engine = engine
        self.metadata = metadata
        self.index = index
        self.bucket_size = bucket_size
        self.max_result_window = max_result_window

    async def search(self, req: SearchRequest) -> Plugins:
        """One page of plugins matching ``req``.

        Raises:
            QueryExecutionError: If the engine call or result shaping fails,
                or an in-range page lies past the engine's result window.
        """
        query = compose(req)
        if query.offset + query.size > self.max_result_window:
            # The engine refuses windows this deep; count only
            logger.debug(
                f"Page {req.page} exceeds the {self.max_result_window} result "
                "window, fetching totals only"
            )
            query = replace(query, offset=0, size=0, sort=())
        with _engine_errors("search"):
            result = await self.engine.execute_query(self.index, query)
            plugins = transform_hits(result.hits)

        if result.total_hits == 0:
            return Plugins(plugins=[], page=req.page, pages=0, total=0, limit=req.limit)

        window = paginate(result.total_hits, req.page, req.limit)
        if query.size == 0 and not window.is_beyond_last:
            raise QueryExecutionError(
                f"Page {req.page} is beyond the {self.max_result_window} "
                "result window; narrow the query or request an earlier page"
            )
        logger.debug(
            f"Search page {window.page}/{window.pages}: "
            f"{len(plugins)} of {window.total} plugins"
        )
        return Plugins(
            plugins=[] if window.is_beyond_last else plugins,
            page=window.page,
            pages=window.pages,
            total=window.total,
            limit=window.limit,
        )

    async def get_plugin(self, name: str) -> Plugin | None:
        """The plugin named ``name``, or None if there is no such document."""
        with _engine_errors("get plugin"):
            doc = await self.engine.get_document(self.index, name)
            return transform_get(doc) if doc is not None else None

    def get_categories(self) -> Categories:
        return Categories(categories=list(self.metadata.categories))

    async def get_maintainers(self) -> Maintainers:
        """Every distinct maintainer id, sorted ascending."""
        agg = TermsAggregation(
            "maintainers", "maintainers.id", self.bucket_size, nested_path="maintainers"
        )
        with _engine_errors("maintainers"):
            result = await self.engine.execute_query(
                self.index, compose_aggregation(agg)
            )
            keys = transform_buckets(_buckets(result, agg.name))
        return Maintainers(maintainers=sorted(set(keys)))

    async def get_labels(self) -> Labels:
        """Every distinct label in engine bucket order, titled where known."""
        agg = TermsAggregation("labels", "labels", self.bucket_size)
        with _engine_errors("labels"):
            result = await self.engine.execute_query(
                self.index, compose_aggregation(agg)
            )
            labels = transform_labels(
                _buckets(result, agg.name), self.metadata.label_titles
            )
        return Labels(labels=labels)

    async def get_versions(self) -> Versions:
        """Every distinct required core version in engine bucket order."""
        agg = TermsAggregation("versions", "requiredCore", self.bucket_size)
        with _engine_errors("versions"):
            result = await self.engine.execute_query(
                self.index, compose_aggregation(agg)
            )
            versions = transform_buckets(_buckets(result, agg.name))
        return Versions(versions=versions)
