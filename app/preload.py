"""Startup preload of static documents.

Documents listed in ``DOCUMENTS`` (name → file path) are read once, in order,
and written as permanent before the service accepts traffic. Permanent writes
overwrite whatever the key held, so preload names should stay outside the
key generator's keyspace (e.g. include a character it never emits, or use a
different length).
"""

import logging
from pathlib import Path

from app.store import DocumentStore

__all__ = ["preload_documents"]


async def preload_documents(
    store: DocumentStore,
    documents: dict[str, str],
    logger: logging.Logger | logging.LoggerAdapter,
) -> list[str]:
    """Load each static document as permanent; return the names stored.

    A missing or unreadable file raises ``OSError`` and aborts startup. An
    empty file is skipped with a warning.
    """
    loaded: list[str] = []
    for name, path in documents.items():
        logger.info(f"Loading static document {name!r} from {path}")
        data = Path(path).read_bytes()
        if not data:
            logger.warning(f"Failed to load static document {name!r}: {path} is empty")
            continue
        await store.set(name, data, permanent=True)
        logger.debug(f"Loaded static document {name!r} ({len(data)} bytes)")
        loaded.append(name)
    return loaded
