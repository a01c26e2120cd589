from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Mapping

from .facade import CollectionClient, LocalClient
from .schema import COLLECTIONS

Document = dict[str, Any]


class AsyncCollectionClient:
    """
    Async wrapper around a CollectionClient.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O.
    """

    def __init__(self, client: CollectionClient) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return self._client.name

    async def create(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        return await asyncio.to_thread(self._client.create, options, **kwargs)

    async def create_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> dict[str, int]:
        return await asyncio.to_thread(self._client.create_many, options, **kwargs)

    async def find_unique(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document | None:
        return await asyncio.to_thread(self._client.find_unique, options, **kwargs)

    async def find_first(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document | None:
        return await asyncio.to_thread(self._client.find_first, options, **kwargs)

    async def find_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> list[Document]:
        return await asyncio.to_thread(self._client.find_many, options, **kwargs)

    async def count(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> int:
        return await asyncio.to_thread(self._client.count, options, **kwargs)

    async def update(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        return await asyncio.to_thread(self._client.update, options, **kwargs)

    async def update_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> dict[str, int]:
        return await asyncio.to_thread(self._client.update_many, options, **kwargs)

    async def upsert(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        return await asyncio.to_thread(self._client.upsert, options, **kwargs)

    async def delete(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Document:
        return await asyncio.to_thread(self._client.delete, options, **kwargs)

    async def delete_many(self, options: Mapping[str, Any] | None = None, /, **kwargs: Any) -> dict[str, int]:
        return await asyncio.to_thread(self._client.delete_many, options, **kwargs)


class AsyncLocalClient:
    """
    Async face of LocalClient, for request handlers running on an event loop.

    The underlying collections still load and store whole files; only the
    waiting moves off the loop.
    """

    def __init__(self, db_dir: Path | None = None, *, client: LocalClient | None = None) -> None:
        if client is None:
            if db_dir is None:
                raise ValueError("AsyncLocalClient needs db_dir or client")
            client = LocalClient(db_dir)
        self._client = client
        self._collections: dict[str, AsyncCollectionClient] = {}

    @property
    def sync(self) -> LocalClient:
        return self._client

    def collection(self, name: str) -> AsyncCollectionClient:
        coll = self._collections.get(name)
        if coll is None:
            coll = AsyncCollectionClient(self._client.collection(name))
            self._collections[name] = coll
        return coll

    def __getattr__(self, name: str) -> AsyncCollectionClient:
        if name in COLLECTIONS:
            return self.collection(name)
        raise AttributeError(f"{type(self).__name__} has no collection {name!r}")

    async def disconnect(self) -> None:
        self._client.disconnect()
