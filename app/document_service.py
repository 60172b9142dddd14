"""Document Service Layer - Core Business Logic

This module sits between the HTTP routes and the document store. It validates
submitted content, allocates a unique key through a bounded retry loop, and
resolves read requests including content-type negotiation from an optional
file extension.

Architecture Overview
=====================
::
    ┌──────────────────────────────────────────────────────┐
    │                   DocumentService                     │
    │  ┌────────────────┐ ┌────────────────┐ ┌───────────┐ │
    │  │ Write path     │ │ Read path      │ │ Metrics   │ │
    │  │ • validate     │ │ • parse id     │ │ • counts  │ │
    │  │ • key retry    │ │ • media type   │ │ • latency │ │
    │  │ • key growth   │ │ • lookup       │ │ • clashes │ │
    │  └────────────────┘ └────────────────┘ └───────────┘ │
    └──────────────────────────────────────────────────────┘
              │                    │
              ▼                    ▼
       ┌─────────────┐     ┌─────────────┐
       │ KeyGenerator│     │DocumentStore│
       └─────────────┘     └─────────────┘

Document Creation Flow
----------------------
::
    ┌─────────────┐
    │ POST        │
    │ /documents  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ 0 < len <=  │── no ──► InvalidLengthError (400)
    │ MAX_LENGTH? │
    └──────┬──────┘
           ▼
    ┌─────────────┐◄───────────────────────┐
    │ generate key│                        │
    │ (len grows  │                        │
    │ every N     │                        │
    │ conflicts)  │                        │
    └──────┬──────┘                        │
           ▼                               │
    ┌─────────────┐  Conflict, attempts    │
    │ store.set   │──── left ──────────────┘
    │ (NX)        │── Conflict, none left ─► KeyGenerationExhaustedError (500)
    └──────┬──────┘── BackendFailure ──────► propagate, no retry (500)
           ▼
    ┌─────────────┐
    │ return key  │
    └─────────────┘

Document Lookup Flow
--------------------
::
    GET /raw/abc12.json
         │
         ▼
    parse_document_id → key "abc12", media type "application/json"
         │
         ▼
    store.get("abc12") ── miss ──► DocumentNotFoundError (404)
         │
         ▼
    (Document, media type)
"""

import logging
import time
from dataclasses import dataclass

from prometheus_client import Counter, Histogram

from app.config import Settings
from app.enums import RequestStatus
from app.errors import (
    READ_FAILURE_MESSAGE,
    WRITE_FAILURE_MESSAGE,
    BackendFailureError,
    DocumentConflictError,
    DocumentError,
    DocumentNotFoundError,
    InvalidLengthError,
    KeyGenerationExhaustedError,
)
from app.keygen import KeyGenerator
from app.store import Document, DocumentStore

__all__ = [
    "DEFAULT_MEDIA_TYPE",
    "MEDIA_TYPES",
    "KeyRetryPolicy",
    "DocumentService",
    "parse_document_id",
]


# ============================================================================
# CONTENT NEGOTIATION
# ============================================================================

DEFAULT_MEDIA_TYPE = "text/plain"

# Markup is served as plain text so stored documents are never rendered.
MEDIA_TYPES: dict[str, str] = {
    "txt": "text/plain",
    "text": "text/plain",
    "log": "text/plain",
    "html": "text/plain",
    "htm": "text/plain",
    "json": "application/json",
    "md": "text/markdown",
    "markdown": "text/markdown",
    "csv": "text/csv",
    "xml": "application/xml",
    "yaml": "application/yaml",
    "yml": "application/yaml",
}


def parse_document_id(raw_id: str) -> tuple[str, str]:
    """Split a path segment like ``abc12.json`` into ``("abc12", "application/json")``.

    The key ends at the first dot; the media type is chosen by the last
    extension, falling back to plain text.
    """
    key, dot, rest = raw_id.partition(".")
    if not dot:
        return key, DEFAULT_MEDIA_TYPE
    extension = rest.rsplit(".", 1)[-1].lower()
    return key, MEDIA_TYPES.get(extension, DEFAULT_MEDIA_TYPE)


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

DOCUMENT_CREATION_REQUESTS_TOTAL = Counter(
    "paste_document_creation_requests_total",
    "Total document creation requests",
    ["status"],
)
DOCUMENT_LOOKUP_REQUESTS_TOTAL = Counter(
    "paste_document_lookup_requests_total",
    "Total document lookup requests",
    ["status"],
)
DOCUMENT_CREATION_DURATION = Histogram(
    "paste_document_creation_duration_seconds",
    "Time taken to store new documents",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)
DOCUMENT_LOOKUP_DURATION = Histogram(
    "paste_document_lookup_duration_seconds",
    "Time taken to look up documents",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25],
)
KEY_COLLISIONS_TOTAL = Counter(
    "paste_key_collisions_total",
    "Generated keys that were already taken",
)
KEY_GROWTH_TOTAL = Counter(
    "paste_key_growth_total",
    "Times the key length was increased after repeated collisions",
)


# ============================================================================
# KEY RETRY POLICY
# ============================================================================


@dataclass(frozen=True)
class KeyRetryPolicy:
    """Bounds of the key allocation loop.

    Attributes:
        max_attempts: absolute number of store attempts per request.
        growth_threshold: conflicts after which the key grows by one character.
    """

    max_attempts: int = 16
    growth_threshold: int = 4

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts!r}")
        if self.growth_threshold <= 0:
            raise ValueError(f"growth_threshold must be positive, got {self.growth_threshold!r}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "KeyRetryPolicy":
        return cls(max_attempts=settings.KEY_MAX_ATTEMPTS, growth_threshold=settings.KEY_GROWTH_THRESHOLD)

    def key_length(self, base_length: int, conflicts: int) -> int:
        return base_length + conflicts // self.growth_threshold


# ============================================================================
# CORE SERVICE CLASS
# ============================================================================


class DocumentService:
    """Validates, stores and retrieves documents through a DocumentStore.

    Example:
        >>> service = DocumentService(store, RandomKeyGenerator(), settings, logger)
        >>> key = await service.create_document(b"hello world")
        >>> document, media_type = await service.get_document(f"{key}.json")
    """

    def __init__(
        self,
        store: DocumentStore,
        key_generator: KeyGenerator,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter,
        policy: KeyRetryPolicy | None = None,
    ):
        self._store = store
        self._key_generator = key_generator
        self._settings = settings
        self._logger = logger
        self._policy = policy or KeyRetryPolicy.from_settings(settings)

    # ========================================================================
    # WRITE PATH
    # ========================================================================

    def validate_declared_length(self, content_length: str | None) -> None:
        """Reject an upload whose Content-Length already exceeds MAX_LENGTH.

        Missing or malformed headers are left to ``validate_content`` once
        the body has been read.
        """
        try:
            length = int(content_length) if content_length is not None else None
        except ValueError:
            length = None
        if length is not None and length > self._settings.MAX_LENGTH:
            DOCUMENT_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.VALIDATION_ERROR).inc()
            self._logger.info(f"Rejected document: declared length {length} over {self._settings.MAX_LENGTH}")
            raise InvalidLengthError(length, self._settings.MAX_LENGTH)

    def validate_content(self, content: bytes) -> None:
        length = len(content)
        if length == 0 or length > self._settings.MAX_LENGTH:
            raise InvalidLengthError(length, self._settings.MAX_LENGTH)

    async def create_document(self, content: bytes) -> str:
        """Store ``content`` under a freshly allocated key and return the key.

        Raises:
            InvalidLengthError: content is empty or over MAX_LENGTH.
            KeyGenerationExhaustedError: every attempt hit an existing key.
            BackendFailureError: the store failed; not retried.
        """
        start_time = time.perf_counter()
        try:
            self.validate_content(content)
            key = await self._allocate_key(content)
        except InvalidLengthError as exc:
            DOCUMENT_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.VALIDATION_ERROR).inc()
            self._logger.info(f"Rejected document: {exc}")
            raise
        except BackendFailureError as exc:
            DOCUMENT_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            exc.message = WRITE_FAILURE_MESSAGE
            raise
        except DocumentError:
            DOCUMENT_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            raise
        finally:
            DOCUMENT_CREATION_DURATION.observe(time.perf_counter() - start_time)

        DOCUMENT_CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Added document {key} ({len(content)} bytes)")
        return key

    async def _allocate_key(self, content: bytes) -> str:
        base_length = self._settings.KEY_LENGTH
        key_length = base_length
        conflicts = 0
        for attempt in range(1, self._policy.max_attempts + 1):
            key = self._key_generator.generate(key_length)
            try:
                await self._store.set(key, content, permanent=False)
            except DocumentConflictError:
                conflicts += 1
                KEY_COLLISIONS_TOTAL.inc()
                self._logger.debug(f"Key collision on {key} (attempt {attempt})")
                next_length = self._policy.key_length(base_length, conflicts)
                if next_length != key_length:
                    KEY_GROWTH_TOTAL.inc()
                    self._logger.info(f"Growing key length to {next_length} after {conflicts} collisions")
                    key_length = next_length
                continue
            return key

        self._logger.warning(f"Key generation exhausted after {self._policy.max_attempts} attempts")
        raise KeyGenerationExhaustedError(self._policy.max_attempts, key_length)

    # ========================================================================
    # READ PATH
    # ========================================================================

    async def get_document(self, raw_id: str) -> tuple[Document, str]:
        """Resolve a path segment to the stored document and its media type.

        Raises:
            DocumentNotFoundError: no live document for the key.
            BackendFailureError: the store failed.
        """
        start_time = time.perf_counter()
        key, media_type = parse_document_id(raw_id)
        try:
            if not key:
                raise DocumentNotFoundError(key)
            document = await self._store.get(key)
        except DocumentNotFoundError:
            DOCUMENT_LOOKUP_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
            self._logger.warning(f"Document not found: {key!r}")
            raise
        except BackendFailureError as exc:
            DOCUMENT_LOOKUP_REQUESTS_TOTAL.labels(status=RequestStatus.ERROR).inc()
            exc.message = READ_FAILURE_MESSAGE
            raise
        finally:
            DOCUMENT_LOOKUP_DURATION.observe(time.perf_counter() - start_time)

        DOCUMENT_LOOKUP_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.debug(f"Retrieved document {key} as {media_type}")
        return document, media_type
