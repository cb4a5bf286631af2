"""Plugin Catalog MCP Server entry point."""

import asyncio
import sys


def _check() -> int:
    """Verify the static metadata and the Elasticsearch connection.

    Run this before adding the server to your MCP config:
        plugin-catalog-mcp check

    Returns the process exit code: 0 when both checks pass.
    """
    from plugin_catalog.config import settings
    from plugin_catalog.engine import ElasticsearchEngine
    from plugin_catalog.errors import MetadataLoadError
    from plugin_catalog.metadata import load_metadata

    print("Plugin catalog check:")

    print("  Step 1/2: Loading category and label metadata...")
    try:
        metadata = load_metadata(
            categories_path=settings.get_categories_path(),
            labels_path=settings.get_labels_path(),
        )
    except MetadataLoadError as e:
        print(f"  FAILED: {e}")
        return 1
    print(
        f"  {len(metadata.categories)} categories, "
        f"{len(metadata.label_titles)} label titles"
    )

    print(f"  Step 2/2: Pinging Elasticsearch at {settings.elasticsearch_url}...")
    engine = ElasticsearchEngine(
        settings.elasticsearch_url,
        timeout=settings.elasticsearch_timeout,
        auth=settings.get_engine_auth(),
    )
    if not asyncio.run(engine.ping()):
        print("  FAILED: Elasticsearch is not reachable")
        return 1
    print("  Elasticsearch is reachable")

    print("Check complete!")
    return 0


def _cli() -> None:
    """CLI dispatcher: server (default) or check subcommand."""
    if len(sys.argv) >= 2 and sys.argv[1] == "check":
        sys.exit(_check())
    else:
        from plugin_catalog.server import main

        main()


if __name__ == "__main__":
    _cli()
