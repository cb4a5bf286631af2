"""Shape raw engine output into catalog models."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from plugin_catalog.engine import Bucket
from plugin_catalog.models import Label, Plugin


def _source(doc: Mapping[str, Any]) -> Mapping[str, Any]:
    source = doc.get("_source")
    if not isinstance(source, Mapping):
        raise ValueError(f"Document {doc.get('_id')!r} has no _source")
    return source


def transform_hits(hits: Iterable[Mapping[str, Any]]) -> list[Plugin]:
    """Map search hits to plugins, keeping the engine's order."""
    return [Plugin.model_validate(_source(hit)) for hit in hits]


def transform_get(doc: Mapping[str, Any]) -> Plugin:
    """Map a fetched document to a plugin."""
    return Plugin.model_validate(_source(doc))


def transform_buckets(buckets: Sequence[Bucket]) -> list[str]:
    """Bucket keys, in bucket order."""
    return [bucket.key for bucket in buckets]


def transform_labels(
    buckets: Sequence[Bucket], titles: Mapping[str, str]
) -> list[Label]:
    """Bucket keys as labels, titled from ``titles`` where an entry exists."""
    return [Label(id=bucket.key, title=titles.get(bucket.key)) for bucket in buckets]
