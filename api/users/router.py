"""
User CRUD endpoints, mounted under /api/v1/users.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends, status

from core.dependencies import get_pool

from . import schemas, service

router = APIRouter(prefix="/users")


@router.get("")
async def list_users(pool: asyncpg.Pool = Depends(get_pool)) -> dict:
    users = await service.list_users(pool)
    return {"users": users, "count": len(users)}


@router.get("/{user_id}")
async def get_user(user_id: str, pool: asyncpg.Pool = Depends(get_pool)) -> dict:
    user = await service.get_user(pool, user_id)
    return {"user": user}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: schemas.UserWrite,
    pool: asyncpg.Pool = Depends(get_pool),
) -> dict:
    user = await service.create_user(pool, request)
    return {"message": "User created successfully", "user": user}


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    request: schemas.UserWrite,
    pool: asyncpg.Pool = Depends(get_pool),
) -> dict:
    user = await service.update_user(pool, user_id, request)
    return {"message": "User updated successfully", "user": user}


@router.delete("/{user_id}")
async def delete_user(user_id: str, pool: asyncpg.Pool = Depends(get_pool)) -> dict:
    await service.delete_user(pool, user_id)
    return {"message": "User deleted successfully"}
