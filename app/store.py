"""Document store interface, in-memory backend and backend registry.

Every backend implements the same asynchronous contract. The central
requirement is an atomic create-if-absent write: under concurrent ``set``
calls for one key, at most one non-permanent write succeeds and every other
call observes ``DocumentConflictError``.

Contract
========
::
    set(key, content, permanent=False)
        ├─ key free             → stored
        ├─ key taken, !permanent → DocumentConflictError (existing kept)
        └─ permanent            → overwrite unconditionally (preload only)

    get(key)
        ├─ present → Document(key, content, permanent)
        └─ absent  → DocumentNotFoundError

    Any backend I/O error → BackendFailureError

Backends
========
- ``memory``      MemoryDocumentStore (this module)
- ``filesystem``  FileDocumentStore (app/file_store.py)
- ``redis``       RedisDocumentStore (app/redis_store.py)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from app.enums import StorageType
from app.errors import DocumentConflictError, DocumentNotFoundError

if TYPE_CHECKING:
    from app.config import Settings

__all__ = ["Document", "DocumentStore", "MemoryDocumentStore", "build_store"]


@dataclass(frozen=True)
class Document:
    key: str
    content: bytes
    permanent: bool = False


class DocumentStore(Protocol):
    async def set(self, key: str, content: bytes, permanent: bool = False) -> None: ...

    async def get(self, key: str) -> Document: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class MemoryDocumentStore:
    """Process-local store. Contents are lost on restart.

    ``set`` performs its membership check and insert without awaiting in
    between, so no other request can interleave on the event loop.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    def __len__(self) -> int:
        return len(self._documents)

    async def set(self, key: str, content: bytes, permanent: bool = False) -> None:
        if not permanent and key in self._documents:
            raise DocumentConflictError(key)
        self._documents[key] = Document(key=key, content=bytes(content), permanent=permanent)

    async def get(self, key: str) -> Document:
        try:
            return self._documents[key]
        except KeyError:
            raise DocumentNotFoundError(key) from None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def build_store(settings: "Settings") -> DocumentStore:
    """Construct the backend selected by ``STORAGE_TYPE``."""
    storage_type = StorageType(settings.STORAGE_TYPE)
    if storage_type is StorageType.MEMORY:
        return MemoryDocumentStore()
    if storage_type is StorageType.FILESYSTEM:
        from app.file_store import FileDocumentStore

        return FileDocumentStore(settings.STORAGE_PATH)
    if storage_type is StorageType.REDIS:
        from app.redis import create_redis
        from app.redis_store import RedisDocumentStore

        return RedisDocumentStore(create_redis(settings.REDIS_URL), prefix=settings.REDIS_KEY_PREFIX)
    raise ValueError(f"Unsupported storage type: {settings.STORAGE_TYPE!r}")
