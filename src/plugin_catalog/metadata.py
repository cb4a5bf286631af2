"""Static facet metadata: category descriptions and label titles.

Both resources are JSON files bundled with the package (overridable via
CATEGORIES_PATH / LABELS_PATH). They are read once at startup into a frozen
``FacetMetadata`` value which is handed to the search service.

Loading is deliberately asymmetric: a bad category record is skipped, but
the label-title map must load in full or startup fails.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib.resources import files
from pathlib import Path
from types import MappingProxyType

from loguru import logger
from pydantic import ValidationError

from plugin_catalog.errors import MetadataLoadError
from plugin_catalog.models import Category

_CATEGORIES_FILE = "categories.json"
_LABELS_FILE = "labels.json"


@dataclass(frozen=True)
class FacetMetadata:
    """Read-only category list and label id -> title map."""

    categories: tuple[Category, ...] = ()
    label_titles: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )


def _read_resource(path: Path | None, default_name: str) -> str:
    if path is not None:
        return path.read_text(encoding="utf-8")
    return files("plugin_catalog").joinpath("data", default_name).read_text(
        encoding="utf-8"
    )


def load_categories(path: Path | None = None) -> tuple[Category, ...]:
    """Load category records, skipping any that do not validate.

    An unreadable or unparsable file yields no categories rather than an
    error: categories only feed the listing endpoint.
    """
    try:
        data = json.loads(_read_resource(path, _CATEGORIES_FILE))
        records = data["categories"]
        if not isinstance(records, list):
            raise TypeError("'categories' is not an array")
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Problem loading categories: {e}")
        return ()

    categories: list[Category] = []
    for record in records:
        try:
            categories.append(Category.model_validate(record))
        except ValidationError as e:
            logger.debug(f"Skipping malformed category record {record!r}: {e}")

    logger.info(f"Loaded {len(categories)} categories")
    return tuple(categories)


def load_label_titles(path: Path | None = None) -> Mapping[str, str]:
    """Load the label id -> title map.

    Raises:
        MetadataLoadError: If the file is missing, not JSON, or any record
            lacks a string ``id`` or ``title``, or an id repeats.
    """
    try:
        data = json.loads(_read_resource(path, _LABELS_FILE))
        titles: dict[str, str] = {}
        for record in data["labels"]:
            label_id, title = record["id"], record["title"]
            if not isinstance(label_id, str) or not isinstance(title, str):
                raise TypeError(f"label record {record!r} is not id/title strings")
            if label_id in titles:
                raise ValueError(f"duplicate label id '{label_id}'")
            titles[label_id] = title
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise MetadataLoadError(f"Problem loading label titles: {e}") from e

    logger.info(f"Loaded {len(titles)} label titles")
    return MappingProxyType(titles)


def load_metadata(
    categories_path: Path | None = None,
    labels_path: Path | None = None,
) -> FacetMetadata:
    """Build the process-wide facet metadata value."""
    return FacetMetadata(
        categories=load_categories(categories_path),
        label_titles=load_label_titles(labels_path),
    )
