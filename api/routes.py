"""
Versioned API surface: everything under /api/v1.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from users import router as users_router

API_V1_PREFIX = "/api/v1"

api_router = APIRouter(prefix=API_V1_PREFIX)
api_router.include_router(users_router.router, tags=["users"])


@api_router.get("/ping", tags=["health"])
async def ping() -> dict:
    # Reachability only; never touches the database.
    return {"message": "pong", "time": datetime.now(timezone.utc)}
