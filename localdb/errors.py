from __future__ import annotations


class LocalDbError(Exception):
    """Base class for every error raised by the local document store."""


class NotFound(LocalDbError, LookupError):
    """An update or delete targeted a document that does not exist."""

    def __init__(self, collection: str, where: object):
        super().__init__(f"No {collection} document matches {where!r}")
        self.collection = collection
        self.where = where


class KeyGenerationExhausted(LocalDbError):
    """A generate-and-check natural key loop ran out of attempts."""

    def __init__(self, attempts: int):
        super().__init__(f"Failed to generate a unique key after {attempts} attempts")
        self.attempts = attempts


class StorageUnavailable(LocalDbError):
    """The backing file could not be read, parsed or written."""


class UnsupportedFilterError(LocalDbError, ValueError):
    """A where clause used an operator the query engine does not know."""


class QueryOptionsError(LocalDbError, ValueError):
    """Malformed call options (sort direction, pagination, include, ...)."""


class ConfigurationError(LocalDbError):
    pass
