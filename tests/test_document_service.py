"""Unit tests for the document service write/read paths."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from app.config import Settings
from app.document_service import (
    DEFAULT_MEDIA_TYPE,
    DocumentService,
    KeyRetryPolicy,
    parse_document_id,
)
from app.errors import (
    BackendFailureError,
    DocumentConflictError,
    DocumentNotFoundError,
    InvalidLengthError,
    KeyGenerationExhaustedError,
)
from app.keygen import RandomKeyGenerator
from app.store import Document, MemoryDocumentStore

# ============================================================================
# TEST DOUBLES
# ============================================================================


class SequenceKeyGenerator:
    """Hands out predetermined keys and records the lengths requested."""

    def __init__(self, keys: list[str]) -> None:
        self._keys = iter(keys)
        self.lengths: list[int] = []

    def generate(self, length: int) -> str:
        self.lengths.append(length)
        return next(self._keys)


class ConstantKeyGenerator:
    def __init__(self) -> None:
        self.lengths: list[int] = []

    def generate(self, length: int) -> str:
        self.lengths.append(length)
        return "x" * length


@pytest.fixture
def service(settings: Settings, memory_store: MemoryDocumentStore, logger: logging.Logger) -> DocumentService:
    return DocumentService(memory_store, RandomKeyGenerator(), settings, logger)


# ============================================================================
# VALIDATION
# ============================================================================


@pytest.mark.asyncio
async def test_create_rejects_empty_content(service: DocumentService) -> None:
    with pytest.raises(InvalidLengthError) as exc_info:
        await service.create_document(b"")
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_create_rejects_oversized_content(service: DocumentService, settings: Settings) -> None:
    with pytest.raises(InvalidLengthError):
        await service.create_document(b"a" * (settings.MAX_LENGTH + 1))


@pytest.mark.asyncio
async def test_create_accepts_content_at_max_length(
    service: DocumentService, settings: Settings, memory_store: MemoryDocumentStore
) -> None:
    key = await service.create_document(b"a" * settings.MAX_LENGTH)
    assert (await memory_store.get(key)).content == b"a" * settings.MAX_LENGTH


# ============================================================================
# KEY ALLOCATION
# ============================================================================


@pytest.mark.asyncio
async def test_create_returns_key_of_configured_length(service: DocumentService, settings: Settings) -> None:
    key = await service.create_document(b"hello world")
    assert len(key) == settings.KEY_LENGTH


@pytest.mark.asyncio
async def test_create_retries_after_conflict(
    settings: Settings, memory_store: MemoryDocumentStore, logger: logging.Logger
) -> None:
    await memory_store.set("taken", b"existing")
    generator = SequenceKeyGenerator(["taken", "fresh"])
    service = DocumentService(memory_store, generator, settings, logger)

    key = await service.create_document(b"new")

    assert key == "fresh"
    assert (await memory_store.get("taken")).content == b"existing"
    assert (await memory_store.get("fresh")).content == b"new"


@pytest.mark.asyncio
async def test_key_length_grows_after_threshold_conflicts(
    settings: Settings, memory_store: MemoryDocumentStore, logger: logging.Logger
) -> None:
    for key in ("aaaaa", "bbbbb", "ccccc", "ddddd"):
        await memory_store.set(key, b"existing")
    generator = SequenceKeyGenerator(["aaaaa", "bbbbb", "ccccc", "ddddd", "eeeeeee"])
    service = DocumentService(memory_store, generator, settings, logger, KeyRetryPolicy(8, 2))

    key = await service.create_document(b"new")

    assert key == "eeeeeee"
    assert generator.lengths == [5, 5, 6, 6, 7]


@pytest.mark.asyncio
async def test_create_gives_up_after_max_attempts(settings: Settings, logger: logging.Logger) -> None:
    store = AsyncMock()
    store.set.side_effect = DocumentConflictError("x")
    generator = ConstantKeyGenerator()
    service = DocumentService(store, generator, settings, logger, KeyRetryPolicy(max_attempts=5, growth_threshold=2))

    with pytest.raises(KeyGenerationExhaustedError) as exc_info:
        await service.create_document(b"hello")

    assert store.set.await_count == 5
    assert exc_info.value.attempts == 5
    assert exc_info.value.status_code == 500
    assert generator.lengths == [5, 5, 6, 6, 7]


@pytest.mark.asyncio
async def test_backend_failure_is_not_retried(settings: Settings, logger: logging.Logger) -> None:
    store = AsyncMock()
    store.set.side_effect = BackendFailureError("disk full")
    service = DocumentService(store, RandomKeyGenerator(), settings, logger)

    with pytest.raises(BackendFailureError):
        await service.create_document(b"hello")

    assert store.set.await_count == 1


@pytest.mark.asyncio
async def test_user_documents_are_never_written_as_permanent(settings: Settings, logger: logging.Logger) -> None:
    store = AsyncMock()
    service = DocumentService(store, RandomKeyGenerator(), settings, logger)
    key = await service.create_document(b"hello")
    store.set.assert_awaited_once_with(key, b"hello", permanent=False)


@pytest.mark.asyncio
async def test_concurrent_creates_return_distinct_keys(
    settings: Settings, memory_store: MemoryDocumentStore, logger: logging.Logger
) -> None:
    service = DocumentService(memory_store, RandomKeyGenerator("ab"), settings, logger)
    # 2^5 = 32 keys at length 5; growth covers any late collisions.
    keys = await asyncio.gather(*(service.create_document(f"doc {i}".encode()) for i in range(16)))
    assert len(set(keys)) == 16
    assert len(memory_store) == 16


def test_retry_policy_rejects_non_positive_bounds() -> None:
    with pytest.raises(ValueError):
        KeyRetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        KeyRetryPolicy(growth_threshold=0)


def test_retry_policy_key_length() -> None:
    policy = KeyRetryPolicy(max_attempts=10, growth_threshold=3)
    assert [policy.key_length(4, n) for n in range(7)] == [4, 4, 4, 5, 5, 5, 6]


def test_retry_policy_from_settings(settings: Settings) -> None:
    policy = KeyRetryPolicy.from_settings(settings)
    assert policy == KeyRetryPolicy(max_attempts=settings.KEY_MAX_ATTEMPTS, growth_threshold=settings.KEY_GROWTH_THRESHOLD)


# ============================================================================
# READ PATH
# ============================================================================


@pytest.mark.parametrize(
    "raw_id, expected",
    [
        ("abc12", ("abc12", "text/plain")),
        ("abc12.txt", ("abc12", "text/plain")),
        ("abc12.json", ("abc12", "application/json")),
        ("abc12.JSON", ("abc12", "application/json")),
        ("abc12.md", ("abc12", "text/markdown")),
        ("abc12.html", ("abc12", "text/plain")),
        ("abc12.py", ("abc12", DEFAULT_MEDIA_TYPE)),
        ("abc12.tar.csv", ("abc12", "text/csv")),
        (".json", ("", "application/json")),
    ],
)
def test_parse_document_id(raw_id: str, expected: tuple[str, str]) -> None:
    assert parse_document_id(raw_id) == expected


@pytest.mark.asyncio
async def test_get_document_strips_extension(service: DocumentService, memory_store: MemoryDocumentStore) -> None:
    await memory_store.set("abc12", b"{}")
    document, media_type = await service.get_document("abc12.json")
    assert document == Document(key="abc12", content=b"{}", permanent=False)
    assert media_type == "application/json"


@pytest.mark.asyncio
async def test_get_document_missing(service: DocumentService) -> None:
    with pytest.raises(DocumentNotFoundError) as exc_info:
        await service.get_document("zzzzz")
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Document not found"


@pytest.mark.asyncio
async def test_get_document_empty_key_is_not_found(service: DocumentService) -> None:
    with pytest.raises(DocumentNotFoundError):
        await service.get_document(".txt")


@pytest.mark.parametrize("header", [None, "", "abc", "400", "12"])
def test_declared_length_within_limit_is_accepted(service: DocumentService, header: str | None) -> None:
    service.validate_declared_length(header)


def test_declared_length_over_limit_is_rejected(service: DocumentService, settings: Settings) -> None:
    with pytest.raises(InvalidLengthError) as exc_info:
        service.validate_declared_length(str(settings.MAX_LENGTH + 1))
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_backend_failure_message_names_the_path(settings: Settings, logger: logging.Logger) -> None:
    store = AsyncMock()
    store.set.side_effect = BackendFailureError("disk full")
    store.get.side_effect = BackendFailureError("disk full")
    service = DocumentService(store, RandomKeyGenerator(), settings, logger)

    with pytest.raises(BackendFailureError) as write_error:
        await service.create_document(b"hello")
    with pytest.raises(BackendFailureError) as read_error:
        await service.get_document("abcde")

    assert write_error.value.message == "Error adding document"
    assert read_error.value.message == "Error retrieving document"


@pytest.mark.asyncio
async def test_exhaustion_is_not_logged_as_error_by_the_service(
    settings: Settings, logger: logging.Logger, caplog: pytest.LogCaptureFixture
) -> None:
    store = AsyncMock()
    store.set.side_effect = DocumentConflictError("x")
    service = DocumentService(store, ConstantKeyGenerator(), settings, logger, KeyRetryPolicy(max_attempts=2))

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        with pytest.raises(KeyGenerationExhaustedError):
            await service.create_document(b"hello")

    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert any("exhausted" in r.getMessage() and r.levelno == logging.WARNING for r in caplog.records)
