from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .api.middleware import RequestMetricsMiddleware
from .api.routes import health
from .config import settings
from .core.logging import configure_logging, get_logger
from .observability.registry import MetricsRegistry, default_registry
from .request import RequestMeter

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """application lifecycle manager"""
    logger.info("starting service", service=settings.service_name)
    yield
    logger.info("service stopped")


def create_app(
    registry: MetricsRegistry | None = None, metrics_prefix: str | None = None
) -> FastAPI:
    """build the fastapi app with request metrics wired in"""
    if registry is None:
        registry = default_registry
    meter = RequestMeter(
        metrics_prefix or settings.metrics_prefix,
        registry=registry,
        description="http",
    )

    app = FastAPI(
        title="reqmetrics",
        description="request instrumentation with prometheus metrics",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.metrics_registry = registry
    app.state.request_meter = meter

    app.add_middleware(RequestMetricsMiddleware, meter=meter)
    app.include_router(health.router)

    logger.info("app created", metrics_prefix=meter.name)
    return app


app = create_app()
