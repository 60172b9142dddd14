"""FastAPI application entry point for the paste document service.

This module configures and initializes the FastAPI application with middleware,
lifecycle management, error rendering and route registration.

Application Lifecycle Diagram
=============================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ settings →  │
    │ AppContext  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Preload     │
    │ permanent   │
    │ documents   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ store.close │
    └─────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn app.main:app --host 0.0.0.0 --port 7777

**Step 2 — Pick backends through the environment**::
    STORAGE_TYPE=redis REDIS_URL=redis://localhost:6379/0 uvicorn app.main:app

**Step 3 — Scrape metrics**::
    curl http://localhost:7777/metrics

Key Behaviours
===============
- Invalid configuration (unknown storage or generator tag) fails startup.
- Static documents are stored before the first request is accepted.
- DocumentError subclasses are rendered as {"message": ...} with their status code.
- 5xx failures are logged with the traceback; clients only see a generic message.
"""

__all__ = ["app"]

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from app.config import get_settings
from app.dependencies import LOGGER_NAME, build_app_context
from app.errors import DocumentError
from app.preload import preload_documents
from app.routes import router

settings = get_settings()
logger = logging.getLogger(LOGGER_NAME)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    context = build_app_context(settings)
    app.state.context = context
    await preload_documents(context.store, settings.DOCUMENTS, context.logger)
    context.logger.info(f"{settings.APP_NAME} ready")
    yield
    # Shutdown
    await context.close()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Store text documents under short generated keys",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)


@app.exception_handler(DocumentError)
async def document_error_handler(request: Request, exc: DocumentError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


app.include_router(router)
