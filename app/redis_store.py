"""Redis-backed document store.

Each document is one Redis hash, so the content and the permanent flag share
a single key and a single lifetime. Create-if-absent maps onto ``HSETNX`` on
the content field. Permanent documents replace the whole hash inside one
MULTI/EXEC pipeline.

Key Layout
==========
::
    {prefix}{key}  (hash)
        content    → document bytes
        permanent  → b"1" for preloaded documents, absent otherwise

Key Behaviours
===============
- ``HSETNX`` returning 0 means the key is taken: DocumentConflictError.
- Any ``RedisError`` (connection, timeout, protocol) becomes BackendFailureError.
- Keys may disappear through eviction configured on the Redis side; the flag
  goes with the content, and the document surfaces as a normal not-found.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.errors import BackendFailureError, DocumentConflictError, DocumentNotFoundError
from app.redis import close_redis
from app.store import Document

__all__ = ["RedisDocumentStore"]

CONTENT_FIELD = "content"
PERMANENT_FIELD = "permanent"


class RedisDocumentStore:
    def __init__(self, client: redis.Redis, prefix: str = "") -> None:
        self.client = client
        self.prefix = prefix

    def _name(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def set(self, key: str, content: bytes, permanent: bool = False) -> None:
        name = self._name(key)
        try:
            if permanent:
                async with self.client.pipeline(transaction=True) as pipe:
                    pipe.delete(name)
                    pipe.hset(name, mapping={CONTENT_FIELD: content, PERMANENT_FIELD: b"1"})
                    await pipe.execute()
                return
            created = await self.client.hsetnx(name, CONTENT_FIELD, content)
        except RedisError as exc:
            raise BackendFailureError(f"redis write failed for {key!r}: {exc}") from exc
        if not created:
            raise DocumentConflictError(key)

    async def get(self, key: str) -> Document:
        try:
            content, flag = await self.client.hmget(self._name(key), [CONTENT_FIELD, PERMANENT_FIELD])
        except RedisError as exc:
            raise BackendFailureError(f"redis read failed for {key!r}: {exc}") from exc
        if content is None:
            raise DocumentNotFoundError(key)
        if isinstance(content, str):
            content = content.encode("utf-8")
        return Document(key=key, content=content, permanent=flag is not None)

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await close_redis(self.client)
