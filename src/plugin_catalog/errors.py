"""Exceptions raised by the catalog core."""


class CatalogError(Exception):
    """Base class for plugin catalog errors."""


class QueryExecutionError(CatalogError):
    """An engine call failed or returned data that could not be shaped.

    The underlying exception is kept on ``cause`` and chained via ``from``.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class MetadataLoadError(CatalogError):
    """The label-title resource is missing or malformed. Fatal at startup."""
