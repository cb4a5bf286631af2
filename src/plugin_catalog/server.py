"""Plugin Catalog MCP Server - Main server definition."""

import asyncio
import json
import sys
from contextlib import asynccontextmanager
from importlib.resources import files

from loguru import logger
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import BaseModel

from plugin_catalog.config import settings
from plugin_catalog.engine import ElasticsearchEngine
from plugin_catalog.errors import QueryExecutionError
from plugin_catalog.metadata import load_metadata
from plugin_catalog.models import SearchRequest, SortBy
from plugin_catalog.service import CatalogSearchService

# Configure logging
logger.remove()
logger.add(sys.stderr, level=settings.log_level)

_TOOL_NAMES = ("plugins", "facets", "config", "help")

# Module-level state (set during lifespan)
_engine: ElasticsearchEngine | None = None
_service: CatalogSearchService | None = None


@asynccontextmanager
async def _lifespan(_server: FastMCP):
    """Server lifespan: load static metadata, connect the search service.

    A MetadataLoadError from the label titles aborts startup.
    """
    global _engine, _service

    logger.info("Starting Plugin Catalog MCP Server...")

    metadata = load_metadata(
        categories_path=settings.get_categories_path(),
        labels_path=settings.get_labels_path(),
    )

    _engine = ElasticsearchEngine(
        settings.elasticsearch_url,
        timeout=settings.elasticsearch_timeout,
        auth=settings.get_engine_auth(),
    )
    if not await _engine.ping():
        logger.warning(
            f"Elasticsearch at {settings.elasticsearch_url} is not responding; "
            "queries will fail until it is reachable"
        )

    _service = CatalogSearchService(
        _engine,
        metadata,
        index=settings.elasticsearch_index,
        bucket_size=settings.facet_bucket_size,
        max_result_window=settings.max_result_window,
    )

    yield

    logger.info("Shutting down Plugin Catalog MCP Server...")
    _service = None
    _engine = None


# Initialize MCP server
mcp = FastMCP(
    name="plugin-catalog",
    instructions=(
        "Plugin catalog MCP Server. "
        "Use `plugins` to search the catalog or fetch one plugin by name. "
        "Use `facets` to list categories, maintainers, labels and core versions "
        "available for filtering."
    ),
    lifespan=_lifespan,
)


def _dump(model: BaseModel) -> str:
    return model.model_dump_json(by_alias=True, indent=2)


async def _with_timeout(coro, action: str) -> str:
    """Wrap coroutine with a hard timeout (TOOL_TIMEOUT, 0 = none)."""
    timeout = settings.tool_timeout
    if timeout <= 0:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except TimeoutError:
        logger.error(f"Tool '{action}' timed out after {timeout}s")
        return (
            f"Error: '{action}' timed out after {timeout}s. "
            "Increase TOOL_TIMEOUT or narrow the query."
        )


def _get_service() -> CatalogSearchService:
    if _service is None:
        raise QueryExecutionError("Catalog service is not initialized")
    return _service


async def _run(operation) -> str:
    """Await a service call and render its model, or an error string."""
    try:
        result = await operation()
    except QueryExecutionError as e:
        return f"Error: {e}"
    if result is None:
        return "Error: Plugin not found"
    return _dump(result)


# ---------------------------------------------------------------------------
# plugins tool: search, get
# ---------------------------------------------------------------------------


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=False,
        idempotentHint=True,
    ),
)
async def plugins(
    action: str,
    query: str | None = None,
    name: str | None = None,
    categories: str | None = None,
    labels: str | None = None,
    maintainers: str | None = None,
    core: str | None = None,
    sort: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> str:
    """Search the plugin catalog or fetch a single plugin.
    - search: Free-text + faceted search (categories/labels/maintainers are comma-separated; sort: firstRelease|installed|name|title|trend|updated)
    - get: Fetch one plugin by exact name (requires name)
    Use `help` tool for full documentation.
    """
    match action:
        case "search":
            try:
                request = SearchRequest(
                    query=query,
                    page=page,
                    limit=settings.clamp_limit(limit),
                    categories=categories,
                    labels=labels,
                    maintainers=maintainers,
                    core_version=core,
                    sort_by=SortBy.parse(sort) if sort else None,
                )
            except ValueError as e:
                return f"Error: Invalid search request: {e}"
            return await _with_timeout(
                _run(lambda: _get_service().search(request)), "plugins.search"
            )

        case "get":
            if not name:
                return "Error: name is required for get action"
            return await _with_timeout(
                _run(lambda: _get_service().get_plugin(name)), "plugins.get"
            )

        case _:
            return f"Error: Unknown action '{action}'. Valid actions: search, get"


# ---------------------------------------------------------------------------
# facets tool: categories, maintainers, labels, versions
# ---------------------------------------------------------------------------


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=False,
        idempotentHint=True,
    ),
)
async def facets(action: str) -> str:
    """List the values available for filtering plugin searches.
    - categories: Static categories with descriptions
    - maintainers: All maintainer ids, sorted
    - labels: All labels with titles, most used first
    - versions: All required core versions, most used first
    """
    match action:
        case "categories":
            try:
                return _dump(_get_service().get_categories())
            except QueryExecutionError as e:
                return f"Error: {e}"
        case "maintainers":
            return await _with_timeout(
                _run(lambda: _get_service().get_maintainers()), "facets.maintainers"
            )
        case "labels":
            return await _with_timeout(
                _run(lambda: _get_service().get_labels()), "facets.labels"
            )
        case "versions":
            return await _with_timeout(
                _run(lambda: _get_service().get_versions()), "facets.versions"
            )
        case _:
            return (
                f"Error: Unknown action '{action}'. "
                "Valid actions: categories, maintainers, labels, versions"
            )


@mcp.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        openWorldHint=False,
        idempotentHint=True,
    ),
)
async def help(tool_name: str = "plugins") -> str:
    """Get full documentation for a tool.
    Valid tool names: plugins, facets, config, help.
    """
    if tool_name not in _TOOL_NAMES:
        return f"Error: No documentation found for tool '{tool_name}'"
    try:
        doc_file = files("plugin_catalog").joinpath("docs", f"{tool_name}.md")
        return doc_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        return f"Error: No documentation found for tool '{tool_name}'"


@mcp.tool(
    description=(
        "Server config and status. Actions: status|set. "
        "Use help tool with tool_name='config' for full docs."
    ),
    annotations=ToolAnnotations(
        title="Config",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def config(
    action: str,
    key: str | None = None,
    value: str | None = None,
) -> str:
    """Server configuration and status.

    Actions:
    - status: Show current config and engine reachability
    - set: Update runtime setting (key + value required)
    """
    match action:
        case "status":
            status = {
                "elasticsearch": {
                    "url": settings.elasticsearch_url,
                    "index": settings.elasticsearch_index,
                    "reachable": await _engine.ping() if _engine else False,
                },
                "metadata": {
                    "categories": (
                        len(_service.metadata.categories) if _service else 0
                    ),
                    "label_titles": (
                        len(_service.metadata.label_titles) if _service else 0
                    ),
                },
                "settings": {
                    "log_level": settings.log_level,
                    "tool_timeout": settings.tool_timeout,
                    "default_limit": settings.default_limit,
                    "max_limit": settings.max_limit,
                    "facet_bucket_size": settings.facet_bucket_size,
                    "max_result_window": settings.max_result_window,
                },
            }
            return json.dumps(status, indent=2)

        case "set":
            if not key or value is None:
                return json.dumps({"error": "key and value are required for set"})
            valid_keys = {"log_level", "tool_timeout", "default_limit"}
            if key not in valid_keys:
                return json.dumps(
                    {
                        "error": f"Invalid key: {key}",
                        "valid_keys": sorted(valid_keys),
                    }
                )
            try:
                if key == "log_level":
                    level = value.upper()
                    # Raises ValueError for unknown names; handlers stay intact
                    logger.level(level)
                    logger.remove()
                    logger.add(sys.stderr, level=level)
                    settings.log_level = level
                elif key == "tool_timeout":
                    settings.tool_timeout = int(value)
                elif key == "default_limit":
                    limit = int(value)
                    if limit < 1:
                        raise ValueError("must be at least 1")
                    settings.default_limit = limit
            except ValueError as e:
                return json.dumps({"error": f"Invalid value for {key}: {e}"})
            return json.dumps(
                {
                    "status": "updated",
                    "key": key,
                    "value": getattr(settings, key),
                }
            )

        case _:
            return json.dumps(
                {
                    "error": f"Unknown action: {action}",
                    "valid_actions": ["status", "set"],
                }
            )


def main() -> None:
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
