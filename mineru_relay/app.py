from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from .config import settings
from .errors import register_error_handlers
from .health import router as health_router
from .logging_utils import setup_logging
from .middleware import TraceLogMiddleware
from .routers.mineru import legacy_router as mineru_legacy_router, router as mineru_router
from .routers.proxy import router as proxy_router

setup_logging(
    service_name=settings.SERVICE_NAME,
    level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR,
    retention_days=settings.LOG_RETENTION_DAYS,
)
logger = logging.getLogger("mineru_relay")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info({"event": "startup", "mineru_base_url": settings.MINERU_BASE_URL, "pandoc_url": settings.PANDOC_SERVICE_URL})
    yield
    logger.info({"event": "shutdown"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="MinerU PDF Relay",
        version="0.1.0",
        lifespan=lifespan,
    )

    # 后加的中间件在最外层：CORS 包住 trace/log，错误响应也带 CORS 头
    app.add_middleware(TraceLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Trace-Id"],
        expose_headers=["Content-Disposition", "X-Trace-Id"],
    )
    register_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(mineru_router, prefix=settings.API_PREFIX, tags=["mineru"])
    app.include_router(mineru_legacy_router, tags=["mineru-legacy"])
    app.include_router(proxy_router, tags=["proxy"])

    if settings.ENABLE_METRICS:
        Instrumentator().instrument(app).expose(app)

    return app


app = create_app()
