"""Query composition: SearchRequest -> Elasticsearch request body.

A search is a ``bool`` query with two parts:

- ``must``: the free-text disjunction (or ``match_all`` without a query).
  It is the only scoring clause.
- ``filter``: non-scoring restrictions from the category/label/maintainer/
  core-version facets, plus the extra restriction some sort orders imply.

Sort orders are looked up in a closed ``SortBy -> SortSpec`` table so every
order maps to exactly one sort key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from plugin_catalog.models import SearchRequest, SortBy
from plugin_catalog.pagination import page_offset

# Document fields
_NAME = "name"
_TITLE = "title"
_EXCERPT = "excerpt"
_CATEGORIES = "categories"
_LABELS = "labels"
_REQUIRED_CORE = "requiredCore"
_MAINTAINERS_PATH = "maintainers"
_MAINTAINER_ID = "maintainers.id"
_MAINTAINER_NAME = "maintainers.name"
_STATS_PATH = "stats"

_MATCH_ALL: dict[str, Any] = {"match_all": {}}
_HAS_NO_REVERSE_DEPENDENCIES: dict[str, Any] = {
    "term": {"hasNoReverseDependencies": True}
}


@dataclass(frozen=True)
class SortSpec:
    """A single sort key and the filter it implies, if any."""

    field: str
    order: str
    nested_path: str | None = None
    implied_filter: dict[str, Any] | None = None

    def to_dsl(self) -> dict[str, Any]:
        options: dict[str, Any] = {"order": self.order}
        if self.nested_path:
            options["nested"] = {"path": self.nested_path}
        return {self.field: options}


SORTS: dict[SortBy, SortSpec] = {
    SortBy.FIRST_RELEASE: SortSpec("firstRelease", "desc"),
    SortBy.INSTALLED: SortSpec(
        "stats.currentInstalls", "desc", nested_path=_STATS_PATH
    ),
    SortBy.NAME: SortSpec("name.raw", "asc"),
    SortBy.TITLE: SortSpec("title.raw", "asc"),
    SortBy.TREND: SortSpec(
        "stats.trend",
        "desc",
        nested_path=_STATS_PATH,
        implied_filter=_HAS_NO_REVERSE_DEPENDENCIES,
    ),
    SortBy.UPDATED: SortSpec("releaseTimestamp", "desc"),
}


@dataclass(frozen=True)
class TermsAggregation:
    """A terms aggregation, optionally scoped to a nested path."""

    name: str
    field: str
    size: int
    nested_path: str | None = None

    def to_dsl(self) -> dict[str, Any]:
        terms = {"terms": {"field": self.field, "size": self.size}}
        if self.nested_path:
            return {"nested": {"path": self.nested_path}, "aggs": {self.name: terms}}
        return terms


@dataclass(frozen=True)
class StructuredQuery:
    """Query, sort, window and aggregations for one ``_search`` call."""

    query: dict[str, Any]
    offset: int = 0
    size: int = 0
    sort: tuple[SortSpec, ...] = ()
    aggregations: tuple[TermsAggregation, ...] = ()
    # Exact hit count beyond the engine's default 10000 cap
    track_total_hits: bool = False

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "query": self.query,
            "from": self.offset,
            "size": self.size,
        }
        if self.sort:
            body["sort"] = [spec.to_dsl() for spec in self.sort]
        if self.aggregations:
            body["aggs"] = {agg.name: agg.to_dsl() for agg in self.aggregations}
        if self.track_total_hits:
            body["track_total_hits"] = True
        return body


# ---------------------------------------------------------------------------
# Clause builders
# ---------------------------------------------------------------------------


def _match(field_name: str, text: str) -> dict[str, Any]:
    return {"match": {field_name: text}}


def _terms(field_name: str, values) -> dict[str, Any]:
    return {"terms": {field_name: sorted(values)}}


def _nested(path: str, query: dict[str, Any]) -> dict[str, Any]:
    return {"nested": {"path": path, "query": query}}


def _any_of(*clauses: dict[str, Any]) -> dict[str, Any]:
    return {"bool": {"should": list(clauses)}}


def split_terms(query: str) -> list[str]:
    """Comma-split, lower-cased query terms for exact facet matching."""
    return [term.strip() for term in query.lower().split(",") if term.strip()]


def text_clause(query: str) -> dict[str, Any]:
    """Relevance disjunction for a free-text query. No branch is required."""
    should = [
        _match(_TITLE, query),
        _match(_NAME, query),
        _nested(_MAINTAINERS_PATH, _match(_MAINTAINER_ID, query)),
        _nested(_MAINTAINERS_PATH, _match(_MAINTAINER_NAME, query)),
        _match(_EXCERPT, query),
    ]
    terms = split_terms(query)
    if terms:
        should += [
            _terms(_CATEGORIES, terms),
            _terms(_LABELS, terms),
            _terms(_REQUIRED_CORE, terms),
        ]
    return {"bool": {"should": should}}


def filter_clauses(req: SearchRequest) -> list[dict[str, Any]]:
    """Mandatory, non-scoring restrictions from the request's facets."""
    clauses: list[dict[str, Any]] = []

    # Categories and labels narrow together, never independently.
    if req.categories and req.labels:
        clauses.append(
            _any_of(_terms(_CATEGORIES, req.categories), _terms(_LABELS, req.labels))
        )
    elif req.categories:
        clauses.append(_terms(_CATEGORIES, req.categories))
    elif req.labels:
        clauses.append(_terms(_LABELS, req.labels))

    if req.maintainers:
        clauses.append(
            _any_of(
                _nested(_MAINTAINERS_PATH, _terms(_MAINTAINER_ID, req.maintainers)),
                _nested(_MAINTAINERS_PATH, _terms(_MAINTAINER_NAME, req.maintainers)),
            )
        )

    if req.core_version is not None:
        clauses.append({"term": {_REQUIRED_CORE: req.core_version}})

    return clauses


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def compose(req: SearchRequest) -> StructuredQuery:
    """Build the structured query for a catalog search."""
    must = text_clause(req.query) if req.query is not None else _MATCH_ALL
    filters = filter_clauses(req)

    sort: tuple[SortSpec, ...] = ()
    if req.sort_by is not None:
        spec = SORTS[req.sort_by]
        sort = (spec,)
        if spec.implied_filter is not None:
            filters.append(spec.implied_filter)

    bool_query: dict[str, Any] = {"must": [must]}
    if filters:
        bool_query["filter"] = filters

    return StructuredQuery(
        query={"bool": bool_query},
        offset=page_offset(req.page, req.limit),
        size=req.limit,
        sort=sort,
        track_total_hits=True,
    )


def compose_aggregation(*aggregations: TermsAggregation) -> StructuredQuery:
    """Zero-hit query over the whole collection that only runs aggregations."""
    return StructuredQuery(
        query=_MATCH_ALL,
        offset=0,
        size=0,
        aggregations=tuple(aggregations),
    )
