"""
Error taxonomy shared by ingestion and querying.

Everything deriving from `CatalogError` aborts the current ingestion run.
Per-record validation problems are not exceptions; see
`ingestion.validation.FieldViolation`.
"""

from __future__ import annotations


class CatalogError(RuntimeError):
    pass


class ConfigurationError(CatalogError):
    """A required setting is missing. Raised before any I/O."""


class NetworkError(CatalogError):
    """Transport failure or non-success status from the catalog API."""


class ParseError(CatalogError):
    """The catalog API answered with a payload we cannot decode."""


class PersistenceError(CatalogError):
    """The batch write failed; nothing from the batch was committed."""


class InvalidArgument(ValueError):
    pass
