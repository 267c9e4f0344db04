"""Search service main application."""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import structlog

from neon_devkit.common.config import SearchConfig
from neon_devkit.common.logging import configure_logging
from neon_devkit.vector_store.factory import create_document_store_from_config
from .api.routes import router as api_router
from .hybrid.ranker import HybridRanker
from .runtime.metrics import get_metrics_collector

logger = structlog.get_logger("search_service")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store and ranker on startup; close the store on shutdown."""
    config = SearchConfig()
    configure_logging("search-service", config.log_level, config.log_format)

    logger.info("Starting search service", vector_dimension=config.vector_dimension)

    app.state.store = create_document_store_from_config(config)
    app.state.ranker = HybridRanker(
        app.state.store,
        vector_dimension=config.vector_dimension,
        timeout=config.search_timeout_seconds
    )
    app.state.metrics_collector = get_metrics_collector("search-service")

    logger.info("Search service started successfully")

    yield

    logger.info("Shutting down search service")
    await app.state.store.close()
    logger.info("Search service shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create the FastAPI application.

    Tests pass ``use_lifespan=False`` and set ``app.state.ranker`` (and
    optionally ``app.state.store``/``app.state.metrics_collector``) themselves.
    """
    app = FastAPI(
        title="Search Service",
        description="Hybrid semantic and keyword search over Neon",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None
    )
    app.include_router(api_router, prefix="/api/v1")

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Record request metrics and add a processing time header."""
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        response.headers["X-Process-Time"] = str(duration)

        metrics_collector = getattr(request.app.state, "metrics_collector", None)
        if metrics_collector is not None:
            metrics_collector.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
                duration=duration
            )
        return response

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        store = getattr(request.app.state, "store", None)
        healthy = store is not None and await store.health_check()

        if healthy:
            return {"status": "healthy", "service": "search-service"}
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": "search-service"}
        )

    @app.get("/metrics")
    async def metrics(request: Request):
        """Prometheus metrics endpoint."""
        metrics_collector = getattr(request.app.state, "metrics_collector", None)
        if metrics_collector is None:
            return Response(content="# No metrics available\n", media_type="text/plain")
        return Response(content=metrics_collector.get_metrics(), media_type="text/plain")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "search-service",
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "health": "/health",
                "metrics": "/metrics",
                "hybrid": "/api/v1/search/hybrid",
                "semantic": "/api/v1/search/semantic",
                "keyword": "/api/v1/search/keyword"
            }
        }

    return app


app = create_app()


def main():
    """Run the service with uvicorn."""
    config = SearchConfig()
    uvicorn.run(
        "search_service.main:app",
        host="0.0.0.0",
        port=config.search_port,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    main()
