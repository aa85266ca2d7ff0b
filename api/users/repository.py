"""
User persistence (raw SQL).

One statement per function; the pool is always passed in by the caller.
"""

from __future__ import annotations

import asyncpg

from core import db

_COLUMNS = "id, name, email, created_at, updated_at"


async def list_users(pool: asyncpg.Pool, *, timeout: float) -> list[dict]:
    # Unbounded on purpose: there is no pagination contract yet.
    return await db.fetch_all(
        pool,
        f"""
        SELECT {_COLUMNS}
        FROM users
        ORDER BY created_at DESC
        """,
        timeout=timeout,
    )


async def get_user(pool: asyncpg.Pool, user_id: int, *, timeout: float) -> dict | None:
    return await db.fetch_one(
        pool,
        f"""
        SELECT {_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
        timeout=timeout,
    )


async def create_user(pool: asyncpg.Pool, *, name: str, email: str, timeout: float) -> dict:
    row = await db.fetch_one(
        pool,
        f"""
        INSERT INTO users (name, email, created_at, updated_at)
        VALUES ($1, $2, now(), now())
        RETURNING {_COLUMNS}
        """,
        name,
        email,
        timeout=timeout,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def update_user(
    pool: asyncpg.Pool,
    user_id: int,
    *,
    name: str,
    email: str,
    timeout: float,
) -> dict | None:
    """
    Full replace of name/email. Returns None when no row has `user_id`.
    """
    return await db.fetch_one(
        pool,
        f"""
        UPDATE users
        SET name = $1,
            email = $2,
            updated_at = now()
        WHERE id = $3
        RETURNING {_COLUMNS}
        """,
        name,
        email,
        user_id,
        timeout=timeout,
    )


async def delete_user(pool: asyncpg.Pool, user_id: int, *, timeout: float) -> int:
    status = await db.execute(
        pool,
        """
        DELETE FROM users
        WHERE id = $1
        """,
        user_id,
        timeout=timeout,
    )
    return db.affected_rows(status)
