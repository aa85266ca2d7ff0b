from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import asyncpg
import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from core import config, db
from core.dependencies import get_pool
from core.errors import register_exception_handlers
from routes import API_V1_PREFIX, api_router

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail fast: an unreachable database aborts startup.
    pool_config = config.pool_config()
    try:
        pool = await db.init_pool(pool_config)
    except db.DatabaseStartupError:
        logger.exception("startup_failed reason=database_unreachable")
        raise

    app.state.pool = pool
    recycler = asyncio.create_task(
        db.recycle_connections(pool, max_lifetime_s=pool_config.max_lifetime_s)
    )
    try:
        yield
    finally:
        recycler.cancel()
        try:
            await recycler
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("db_pool_recycler_failed")
        finally:
            app.state.pool = None
            await db.close_pool(pool)


def create_app() -> FastAPI:
    app = FastAPI(title="user-service", lifespan=lifespan)
    register_exception_handlers(app)

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request method=%s path=%s status=%s latency_ms=%.1f",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    app.include_router(api_router)
    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    @app.get("/health", tags=["health"])
    async def health(pool: asyncpg.Pool = Depends(get_pool)) -> JSONResponse:
        try:
            await db.ping(pool, timeout=config.ping_timeout_s())
        except db.DB_ERRORS as exc:
            logger.warning("health_probe_failed error=%r", exc)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "status": "unhealthy",
                    "message": "Database connection failed",
                    "error": str(exc) or type(exc).__name__,
                },
            )
        return JSONResponse(
            content={
                "status": "healthy",
                "message": "Service is running",
                "time": datetime.now(timezone.utc).isoformat(),
            }
        )

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index(request: Request) -> HTMLResponse:
        return templates.TemplateResponse(
            request,
            "index.html",
            {"title": "User Service", "api_prefix": API_V1_PREFIX},
        )

    return app


app = create_app()


def run() -> None:
    """Entry point for the `user-service` console script."""

    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    port = config.port()
    logger.info("server_starting port=%s", port)
    uvicorn.run(app, host=config.host(), port=port, log_level=config.log_level().lower())


if __name__ == "__main__":
    run()
