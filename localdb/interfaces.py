from __future__ import annotations

from typing import Any, Protocol


class CollectionOperations(Protocol):
    """
    The per-collection call contract shared by the local facade and a remote
    document-database client: every operation takes option keywords among
    where / data / select / include / orderBy / skip / take.
    """

    def create(self, options: dict[str, Any] | None = None, /, **kwargs: Any) -> dict[str, Any]:
        ...

    def find_unique(self, options: dict[str, Any] | None = None, /, **kwargs: Any) -> dict[str, Any] | None:
        ...

    def find_many(self, options: dict[str, Any] | None = None, /, **kwargs: Any) -> list[dict[str, Any]]:
        ...

    def count(self, options: dict[str, Any] | None = None, /, **kwargs: Any) -> int:
        ...

    def update(self, options: dict[str, Any] | None = None, /, **kwargs: Any) -> dict[str, Any]:
        ...

    def delete(self, options: dict[str, Any] | None = None, /, **kwargs: Any) -> dict[str, Any]:
        ...


class DatabaseClient(Protocol):
    """
    A backend: collection accessors (`client.user`, `client.vocabulary`, ...)
    return CollectionOperations. Only disconnect() is required as a method.
    """

    def disconnect(self) -> None:
        ...
