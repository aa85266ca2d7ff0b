"""
User business logic: id parsing, backend error mapping, row -> schema.

Every operation issues exactly one statement and never retries. Backend
failures are logged with their cause and surfaced as a generic 500.
"""

from __future__ import annotations

import logging
import re

import asyncpg
from fastapi import HTTPException, status

from core import config, db

from . import repository, schemas

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")

# users.id is SERIAL (int4).
_ID_MIN = -(2**31)
_ID_MAX = 2**31 - 1


def parse_user_id(raw: str) -> int:
    """
    ASCII signed decimal only; anything else is a 400.
    """
    if not _ID_PATTERN.fullmatch(raw or ""):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid user ID",
        )
    return int(raw)


def _lookup_id(raw: str) -> int:
    # An id the column cannot hold names no row.
    user_id = parse_user_id(raw)
    if not _ID_MIN <= user_id <= _ID_MAX:
        raise _not_found()
    return user_id


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        name=str(user_row["name"]),
        email=str(user_row["email"]),
        created_at=user_row["created_at"],
        updated_at=user_row["updated_at"],
    )


def _backend_failure(event: str, detail: str, **context: object) -> HTTPException:
    fields = " ".join(f"{k}={v}" for k, v in context.items())
    logger.exception("%s %s", event, fields)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


async def list_users(pool: asyncpg.Pool) -> list[schemas.UserResponse]:
    try:
        rows = await repository.list_users(pool, timeout=config.query_timeout_s())
    except db.DB_ERRORS as exc:
        raise _backend_failure("list_users_failed", "Failed to fetch users") from exc
    return [_to_user_response(row) for row in rows]


async def get_user(pool: asyncpg.Pool, raw_user_id: str) -> schemas.UserResponse:
    user_id = _lookup_id(raw_user_id)
    try:
        row = await repository.get_user(pool, user_id, timeout=config.query_timeout_s())
    except db.DB_ERRORS as exc:
        raise _backend_failure("get_user_failed", "Failed to fetch user", user_id=user_id) from exc
    if row is None:
        raise _not_found()
    return _to_user_response(row)


async def create_user(pool: asyncpg.Pool, payload: schemas.UserWrite) -> schemas.UserResponse:
    try:
        row = await repository.create_user(
            pool,
            name=payload.name,
            email=payload.email,
            timeout=config.query_timeout_s(),
        )
    except (*db.DB_ERRORS, RuntimeError) as exc:
        raise _backend_failure("create_user_failed", "Failed to create user") from exc
    logger.info("user_created user_id=%s", row["id"])
    return _to_user_response(row)


async def update_user(
    pool: asyncpg.Pool,
    raw_user_id: str,
    payload: schemas.UserWrite,
) -> schemas.UserResponse:
    user_id = _lookup_id(raw_user_id)
    try:
        row = await repository.update_user(
            pool,
            user_id,
            name=payload.name,
            email=payload.email,
            timeout=config.query_timeout_s(),
        )
    except db.DB_ERRORS as exc:
        raise _backend_failure("update_user_failed", "Failed to update user", user_id=user_id) from exc
    if row is None:
        raise _not_found()
    logger.info("user_updated user_id=%s", user_id)
    return _to_user_response(row)


async def delete_user(pool: asyncpg.Pool, raw_user_id: str) -> None:
    user_id = _lookup_id(raw_user_id)
    try:
        deleted = await repository.delete_user(pool, user_id, timeout=config.query_timeout_s())
    except db.DB_ERRORS as exc:
        raise _backend_failure("delete_user_failed", "Failed to delete user", user_id=user_id) from exc
    if deleted == 0:
        raise _not_found()
    logger.info("user_deleted user_id=%s", user_id)
