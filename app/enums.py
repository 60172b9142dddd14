"""Shared enums for the paste document service.

This module defines all status and selection enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos;
the backend and key generator tags are validated when settings load.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "KeyGeneratorType", "StorageType"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    @classmethod
    def from_bool(cls, ok: bool) -> "HealthStatus":
        return cls.HEALTHY if ok else cls.UNHEALTHY


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    ERROR = "error"
    NOT_FOUND = "not_found"


class KeyGeneratorType(StrEnum):
    """Key generation strategies selectable at startup."""

    RANDOM = "random"
    PHONETIC = "phonetic"


class StorageType(StrEnum):
    """Document store backends selectable at startup."""

    FILESYSTEM = "filesystem"
    REDIS = "redis"
    MEMORY = "memory"
