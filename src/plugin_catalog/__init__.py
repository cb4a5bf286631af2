"""Plugin Catalog MCP Server - search, facets and lookup over a plugin index."""

from importlib.metadata import version

from plugin_catalog.__main__ import _cli as main
from plugin_catalog.server import mcp

__version__ = version("plugin-catalog-mcp")
__all__ = ["mcp", "main", "__version__"]
