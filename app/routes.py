"""FastAPI route definitions for the paste document REST API.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    POST /documents
        ├─ raw request body = document
        └─ DocumentCreated (200) or 400 / 500

    GET, HEAD /documents/:id[.ext]
        └─ DocumentResponse (200) or 404

    GET, HEAD /raw/:id[.ext]
        └─ raw bytes, Content-Type from extension (200) or 404

Request Flow Diagram
====================
::
    ┌─────────────┐
    │  HTTP       │
    │  Request    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Inject      │
    │ AppContext  │
    │ + service   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Call Service│
    │ Layer       │
    └──────┬──────┘
    DocumentError? ──► exception handler (app/main.py) ─► {"message": ...}
           ▼
    ┌─────────────┐
    │ HTTP        │
    │ Response    │
    └─────────────┘

How to Use
===========
**Step 1 — Add a document**::
    curl -X POST http://localhost:8000/documents --data-binary @notes.txt
    {"key": "aB3xK9qT0z"}

**Step 2 — Read it back**::
    curl http://localhost:8000/documents/aB3xK9qT0z
    curl http://localhost:8000/raw/aB3xK9qT0z.json

Key Behaviours
===============
- All endpoints use async/await for non-blocking I/O.
- HEAD responses keep the status and headers of GET, including Content-Length, with an empty body.
- Errors are raised as DocumentError subclasses and rendered centrally.
"""

from fastapi import APIRouter, Depends, Request, Response

from app.dependencies import RequestContext, get_document_service, get_request_context
from app.document_service import DocumentService
from app.enums import HealthStatus
from app.schemas import DocumentCreated, DocumentResponse, ErrorResponse, HealthResponse

__all__ = ["router"]

router = APIRouter()


def _respond(request: Request, body: bytes, media_type: str) -> Response:
    headers = {"content-length": str(len(body))}
    if request.method == "HEAD":
        body = b""
    return Response(content=body, media_type=media_type, headers=headers)


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    storage_status = HealthStatus.from_bool(await ctx.store.ping())
    if storage_status is HealthStatus.UNHEALTHY:
        ctx.logger.error("Storage health check failed")
    return HealthResponse(status=storage_status, storage=storage_status)


@router.post(
    "/documents",
    response_model=DocumentCreated,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["documents"],
)
async def create_document(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: DocumentService = Depends(get_document_service),
) -> DocumentCreated:
    service.validate_declared_length(request.headers.get("content-length"))
    content = await request.body()
    key = await service.create_document(content)
    ctx.logger.debug(f"POST /documents -> {key} in {ctx.get_duration():.1f}ms")
    return DocumentCreated(key=key)


@router.api_route(
    "/documents/{document_id}",
    methods=["GET", "HEAD"],
    response_model=None,
    responses={200: {"model": DocumentResponse}, 404: {"model": ErrorResponse}},
    tags=["documents"],
)
async def get_document(
    document_id: str,
    request: Request,
    service: DocumentService = Depends(get_document_service),
) -> Response:
    document, _ = await service.get_document(document_id)
    payload = DocumentResponse.from_document(document)
    return _respond(request, payload.model_dump_json().encode("utf-8"), "application/json")


@router.api_route(
    "/raw/{document_id}",
    methods=["GET", "HEAD"],
    response_model=None,
    responses={404: {"model": ErrorResponse}},
    tags=["documents"],
)
async def get_raw_document(
    document_id: str,
    request: Request,
    service: DocumentService = Depends(get_document_service),
) -> Response:
    document, media_type = await service.get_document(document_id)
    return _respond(request, document.content, media_type)
