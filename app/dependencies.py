"""Application context and dependency injection.

The ``AppContext`` holds the shared resources (settings, logger, key
generator, document store). It is built once in the application lifespan and
kept on ``app.state.context``; request handlers reach it through FastAPI
dependencies rather than module-level globals.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request

from app.config import Settings
from app.document_service import DocumentService
from app.keygen import KeyGenerator, build_key_generator
from app.store import DocumentStore, build_store

__all__ = [
    "AppContext",
    "RequestContext",
    "build_app_context",
    "setup_logger",
    "get_app_context",
    "get_request_context",
    "get_document_service",
]

LOGGER_NAME = "paste_service"


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Configure the service logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger


# ============================================================================
# APPLICATION CONTEXT
# ============================================================================


@dataclass
class AppContext:
    """Shared resources for the lifetime of one application instance."""

    settings: Settings
    store: DocumentStore
    key_generator: KeyGenerator
    logger: logging.Logger

    async def close(self) -> None:
        await self.store.close()


def build_app_context(settings: Settings) -> AppContext:
    """Construct logger, key generator and store from resolved settings.

    Raises ``ValueError`` for an unusable generator or backend configuration.
    """
    logger = setup_logger(settings.LOG_LEVEL)
    key_generator = build_key_generator(settings)
    store = build_store(settings)
    logger.info(
        f"Using {settings.STORAGE_TYPE} storage with {settings.KEY_GENERATOR_TYPE} keys "
        f"(length {settings.KEY_LENGTH}, max document {settings.MAX_LENGTH} bytes)"
    )
    return AppContext(settings=settings, store=store, key_generator=key_generator, logger=logger)


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request view of the application context with tracking fields.

    Attributes:
        app_context: Shared application resources
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    app_context: AppContext
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=time.time)

    @property
    def settings(self) -> Settings:
        return self.app_context.settings

    @property
    def store(self) -> DocumentStore:
        return self.app_context.store

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Shared logger with request context attached to every record."""
        return logging.LoggerAdapter(
            self.app_context.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context


def get_request_context(
    request: Request,
    app_context: AppContext = Depends(get_app_context),
) -> RequestContext:
    return RequestContext(
        app_context=app_context,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        user_agent=request.headers.get("user-agent"),
        client_ip=request.client.host if request.client else None,
    )


def get_document_service(ctx: RequestContext = Depends(get_request_context)) -> DocumentService:
    return DocumentService(
        store=ctx.store,
        key_generator=ctx.app_context.key_generator,
        settings=ctx.settings,
        logger=ctx.logger,
    )
