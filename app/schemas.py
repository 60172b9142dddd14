"""Pydantic schemas for response serialization in the paste document service.

Schema Hierarchy
=================
::
    DocumentCreated (Output)
    └─ key: str

    DocumentResponse (Output)
    ├─ key: str
    └─ data: str (UTF-8 decoded content)

    ErrorResponse (Output)
    └─ message: str

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ storage: HealthStatus

Key Behaviours
===============
- Requests carry the raw document as the body; there is no input schema.
- Error bodies never include backend details.
"""

from pydantic import BaseModel

from app.enums import HealthStatus
from app.store import Document

__all__ = ["DocumentCreated", "DocumentResponse", "ErrorResponse", "HealthResponse"]


class DocumentCreated(BaseModel):
    key: str


class DocumentResponse(BaseModel):
    key: str
    data: str

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(key=document.key, data=document.content.decode("utf-8", errors="replace"))


class ErrorResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: HealthStatus
    storage: HealthStatus
