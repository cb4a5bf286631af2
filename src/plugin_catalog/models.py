"""Domain models for the plugin catalog.

All models serialize with camelCase aliases, which is also the shape the
plugin documents have inside the search index. ``by_alias`` dumps of a
``Plugin`` can therefore be fed back through ``Plugin.model_validate``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Search request
# ---------------------------------------------------------------------------


class SortBy(str, Enum):
    """Sort orders a search can request."""

    FIRST_RELEASE = "firstRelease"
    INSTALLED = "installed"
    NAME = "name"
    TITLE = "title"
    TREND = "trend"
    UPDATED = "updated"

    @classmethod
    def parse(cls, value: str) -> SortBy:
        """Accept the enum name (any case, ``-``/``_`` separated) or its value.

        Raises:
            ValueError: If the string names no sort order.
        """
        normalized = value.strip().replace("-", "_").upper()
        for member in cls:
            if normalized in (member.name, member.value.upper()):
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown sort '{value}'. Valid values: {valid}")


class SearchRequest(_CatalogModel):
    """A structured catalog search."""

    query: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)
    categories: frozenset[str] = frozenset()
    labels: frozenset[str] = frozenset()
    maintainers: frozenset[str] = frozenset()
    core_version: str | None = None
    sort_by: SortBy | None = None

    @field_validator("query", "core_version")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("categories", "labels", "maintainers", mode="before")
    @classmethod
    def _drop_blank_values(cls, value):
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        return frozenset(v.strip() for v in value if v and v.strip())

    def has_filters(self) -> bool:
        return bool(
            self.categories
            or self.labels
            or self.maintainers
            or self.core_version is not None
        )


# ---------------------------------------------------------------------------
# Plugin documents
# ---------------------------------------------------------------------------


class Maintainer(_CatalogModel):
    id: str
    name: str | None = None
    email: str | None = None


class Stats(_CatalogModel):
    current_installs: int = 0
    trend: float = 0


class Dependency(_CatalogModel):
    name: str
    title: str | None = None
    optional: bool = False
    version: str | None = None


class Scm(_CatalogModel):
    issues: str | None = None
    link: str | None = None
    in_latest_release: str | None = None
    since_latest_release: str | None = None
    pull_requests: str | None = None


class Wiki(_CatalogModel):
    url: str | None = None


class Plugin(_CatalogModel):
    """A catalog document, keyed by ``name``."""

    name: str
    title: str | None = None
    excerpt: str | None = None
    version: str | None = None
    url: str | None = None
    categories: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    maintainers: list[Maintainer] = Field(default_factory=list)
    dependencies: list[Dependency] = Field(default_factory=list)
    required_core: str | None = None
    stats: Stats = Field(default_factory=Stats)
    first_release: datetime | None = None
    release_timestamp: datetime | None = None
    previous_timestamp: datetime | None = None
    previous_version: str | None = None
    build_date: str | None = None
    sha1: str | None = None
    gav: str | None = None
    scm: Scm | None = None
    wiki: Wiki | None = None
    has_no_reverse_dependencies: bool = False


class Plugins(_CatalogModel):
    """One page of search results."""

    plugins: list[Plugin]
    page: int
    pages: int
    total: int
    limit: int


# ---------------------------------------------------------------------------
# Facets and static metadata
# ---------------------------------------------------------------------------


class Category(_CatalogModel):
    id: str
    title: str
    description: str = ""
    labels: list[str] = Field(default_factory=list)


class Categories(_CatalogModel):
    categories: list[Category]


class Label(_CatalogModel):
    id: str
    title: str | None = None


class Labels(_CatalogModel):
    labels: list[Label]


class Maintainers(_CatalogModel):
    maintainers: list[str]


class Versions(_CatalogModel):
    versions: list[str]
