"""
Async database access helpers (raw SQL) using asyncpg.

This module builds and tears down the connection pool; `main.py` calls
`init_pool()` from the app lifespan and stores the pool on `app.state`.
Handlers receive it explicitly (see `core/dependencies.py`), there is no
module-level pool.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urlsplit

import asyncpg

from .config import PoolConfig

logger = logging.getLogger(__name__)

# Exceptions that mean "the backend failed", as opposed to a bug in our code.
DB_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class DatabaseStartupError(RuntimeError):
    pass


def describe_target(dsn: str) -> str:
    """
    host:port/dbname for logs, never the credentials.
    """
    parts = urlsplit(dsn)
    host = parts.hostname or "localhost"
    port = parts.port or 5432
    return f"{host}:{port}{parts.path or '/'}"


async def init_pool(config: PoolConfig) -> asyncpg.Pool:
    """
    Create the pool and prove it can reach the database.

    Construction and the first probe share one `connect_timeout_s` budget.
    Any failure closes whatever was built and raises DatabaseStartupError.
    """
    target = describe_target(config.dsn)
    pool: asyncpg.Pool | None = None

    async def _build() -> asyncpg.Pool:
        nonlocal pool
        pool = await asyncpg.create_pool(
            dsn=config.dsn,
            min_size=config.min_size,
            max_size=config.max_size,
            max_inactive_connection_lifetime=config.max_idle_s,
            command_timeout=config.query_timeout_s,
            timeout=config.connect_timeout_s,
        )
        await pool.fetchval("SELECT 1")
        return pool

    try:
        ready = await asyncio.wait_for(_build(), timeout=config.connect_timeout_s)
    except (*DB_ERRORS, ValueError) as exc:
        if pool is not None:
            pool.terminate()
        raise DatabaseStartupError(f"failed to connect to database at {target}: {exc!r}") from exc

    logger.info(
        "db_pool_ready target=%s min_size=%s max_size=%s",
        target,
        config.min_size,
        config.max_size,
    )
    return ready


async def close_pool(pool: asyncpg.Pool) -> None:
    await pool.close()
    logger.info("db_pool_closed")


async def ping(pool: asyncpg.Pool, *, timeout: float) -> None:
    """
    Cheap liveness probe. Raises one of DB_ERRORS on failure.
    """
    await pool.fetchval("SELECT 1", timeout=timeout)


async def recycle_connections(pool: asyncpg.Pool, *, max_lifetime_s: float) -> None:
    """
    Background loop bounding connection lifetime.

    asyncpg has no per-connection lifetime setting; expiring the whole pool
    every period makes each connection reconnect on its next acquire.
    Runs until cancelled.
    """
    if max_lifetime_s <= 0:
        return None
    while True:
        await asyncio.sleep(max_lifetime_s)
        await pool.expire_connections()
        logger.debug("db_pool_connections_expired")


async def fetch_one(pool: asyncpg.Pool, sql: str, *args: Any, timeout: float) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool.fetchrow(sql, *args, timeout=timeout)
    return dict(row) if row is not None else None


async def fetch_all(pool: asyncpg.Pool, sql: str, *args: Any, timeout: float) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool.fetch(sql, *args, timeout=timeout)
    return [dict(r) for r in rows]


async def execute(pool: asyncpg.Pool, sql: str, *args: Any, timeout: float) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL) and return its command tag.
    """
    return await pool.execute(sql, *args, timeout=timeout)


def affected_rows(status: str) -> int:
    """
    Row count from an asyncpg command tag: "DELETE 3" -> 3, "INSERT 0 1" -> 1.
    """
    last = (status or "").rsplit(" ", 1)[-1]
    try:
        return int(last)
    except ValueError:
        return 0
