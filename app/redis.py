"""Redis client construction for the external key-value document store.

Flow Diagram — Redis Client Lifecycle
=====================================
::
    ┌─────────────┐
    │ lifespan()  │
    │ startup     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ build_store │
    │ (redis)     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_     │
    │ redis(url)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Shared by   │
    │ all requests│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ close_redis │
    │ (shutdown)  │
    └─────────────┘

How to Use
===========
**Step 1 — Create a client**::
    client = create_redis("redis://localhost:6379/0")

**Step 2 — Cleanup on shutdown**::
    await close_redis(client)

Key Behaviours
===============
- The client is created once per application context, not per request.
- Responses are left as bytes; document content is arbitrary binary data.
- Connections are opened lazily by redis-py on first command.

Functions:
    create_redis():  Build an asyncio Redis client from a URL.
    close_redis():  Cleanup function for shutdown.
"""

import redis.asyncio as redis

__all__ = ["create_redis", "close_redis"]


def create_redis(url: str) -> redis.Redis:
    return redis.from_url(url, decode_responses=False)


async def close_redis(client: redis.Redis | None) -> None:
    if client is not None:
        await client.aclose()
