"""Configuration settings for the Plugin Catalog MCP Server."""

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Plugin Catalog MCP Server configuration.

    Environment variables:
    - ELASTICSEARCH_URL: Elasticsearch base URL (default: http://localhost:9200)
    - ELASTICSEARCH_INDEX: Index holding the plugin documents (default: plugins)
    - ELASTICSEARCH_TIMEOUT: Per-request transport timeout in seconds
    - ELASTICSEARCH_USERNAME / ELASTICSEARCH_PASSWORD: Optional basic auth
    - FACET_BUCKET_SIZE: Bucket count requested by facet listings
        Elasticsearch 5+ rejects size=0, so this stands in for "all buckets".
    - CATEGORIES_PATH: Override the bundled categories.json
    - LABELS_PATH: Override the bundled labels.json
    - DEFAULT_LIMIT: Page size used when a tool call omits one (default: 50)
    - MAX_LIMIT: Upper bound on the page size accepted by tools
    - MAX_RESULT_WINDOW: The index.max_result_window of the index (default: 10000)
    - TOOL_TIMEOUT: Hard timeout per tool call in seconds (0 = no timeout)
    - LOG_LEVEL: loguru level (default: INFO)
    """

    # Elasticsearch
    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_index: str = "plugins"
    elasticsearch_timeout: float = 30.0
    elasticsearch_username: str | None = None
    elasticsearch_password: SecretStr | None = None

    # Facets
    facet_bucket_size: int = 10000

    # Deepest from+size Elasticsearch will serve (index.max_result_window)
    max_result_window: int = 10000

    # Static metadata
    categories_path: str = ""  # Default: bundled plugin_catalog/data/categories.json
    labels_path: str = ""  # Default: bundled plugin_catalog/data/labels.json

    # Paging
    default_limit: int = Field(default=50, ge=1)
    max_limit: int = Field(default=1000, ge=1)

    # Tool execution timeout (seconds, 0 = no timeout)
    tool_timeout: int = 60

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "", "case_sensitive": False}

    # --- Path helpers ---

    def get_categories_path(self) -> Path | None:
        """Get configured categories file, or None for the bundled one."""
        if self.categories_path:
            return Path(self.categories_path).expanduser()
        return None

    def get_labels_path(self) -> Path | None:
        """Get configured labels file, or None for the bundled one."""
        if self.labels_path:
            return Path(self.labels_path).expanduser()
        return None

    # --- Engine ---

    def get_engine_auth(self) -> tuple[str, str] | None:
        """Basic auth pair for Elasticsearch, if a username is configured."""
        if not self.elasticsearch_username:
            return None
        password = (
            self.elasticsearch_password.get_secret_value()
            if self.elasticsearch_password
            else ""
        )
        return (self.elasticsearch_username, password)

    def clamp_limit(self, limit: int | None) -> int:
        """Resolve a requested page size against DEFAULT_LIMIT and MAX_LIMIT."""
        if limit is None or limit <= 0:
            return min(self.default_limit, self.max_limit)
        return min(limit, self.max_limit)


settings = Settings()
