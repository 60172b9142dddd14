"""Filesystem document store: one file per key under a storage root.

File names are the MD5 hex digest of the key so that preload names with
arbitrary characters stay inside the root. A permanent document additionally
has an empty ``<digest>.permanent`` marker next to it.

Write Paths
===========
::
    set(key, content)                  set(key, content, permanent=True)
        │                                  │
        ▼                                  ▼
    open(path, "xb")                   write <digest>.<rand>.tmp
        │                                  │
    FileExistsError? ── yes ─► Conflict    ▼
        │ no                           os.replace(tmp, path)
        ▼                                  │
    write content                          ▼
                                       touch <digest>.permanent

Exclusive-create mode makes the existence check and the create a single
system call. Blocking I/O runs in a worker thread via ``asyncio.to_thread``.
"""

import asyncio
import hashlib
import os
import uuid
from pathlib import Path

from app.errors import BackendFailureError, DocumentConflictError, DocumentNotFoundError
from app.store import Document

__all__ = ["FileDocumentStore"]

PERMANENT_SUFFIX = ".permanent"


class FileDocumentStore:
    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.root / hashlib.md5(key.encode("utf-8")).hexdigest()

    async def set(self, key: str, content: bytes, permanent: bool = False) -> None:
        try:
            if permanent:
                await asyncio.to_thread(self._replace, key, content)
            else:
                await asyncio.to_thread(self._create, key, content)
        except FileExistsError:
            raise DocumentConflictError(key) from None
        except OSError as exc:
            raise BackendFailureError(f"failed to write document {key!r}: {exc}") from exc

    async def get(self, key: str) -> Document:
        try:
            return await asyncio.to_thread(self._read, key)
        except FileNotFoundError:
            raise DocumentNotFoundError(key) from None
        except OSError as exc:
            raise BackendFailureError(f"failed to read document {key!r}: {exc}") from exc

    async def ping(self) -> bool:
        return await asyncio.to_thread(os.access, self.root, os.W_OK)

    async def close(self) -> None:
        return None

    def _create(self, key: str, content: bytes) -> None:
        path = self.path_for(key)
        with open(path, "xb") as fh:
            try:
                fh.write(content)
            except OSError:
                # Release the key rather than leave a truncated document behind.
                fh.close()
                path.unlink(missing_ok=True)
                raise

    def _replace(self, key: str, content: bytes) -> None:
        path = self.path_for(key)
        tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp.write_bytes(content)
            os.replace(tmp, path)
        finally:
            tmp.unlink(missing_ok=True)
        path.with_name(path.name + PERMANENT_SUFFIX).touch()

    def _read(self, key: str) -> Document:
        path = self.path_for(key)
        content = path.read_bytes()
        permanent = path.with_name(path.name + PERMANENT_SUFFIX).exists()
        return Document(key=key, content=content, permanent=permanent)
