import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from booking_calendar.api.router import api_router
from booking_calendar.core.config import settings
from booking_calendar.core.errors import BookingCalendarError
from booking_calendar.core.limiter import limiter
from booking_calendar.core.log_config import configure_logging
from booking_calendar.db import init_db
from booking_calendar.services.change_events import RedisChangeSink, WebSocketChangeSink
from booking_calendar.services.redis_pubsub import redis_pubsub
from booking_calendar.services.websocket_manager import manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    if settings.CHANGE_SINK == "redis":
        await redis_pubsub.connect()
        app.state.change_sink = RedisChangeSink.from_url(
            settings.REDIS_URL, settings.CHANGES_CHANNEL
        )
    else:
        app.state.change_sink = WebSocketChangeSink(manager, asyncio.get_running_loop())
    logger.info(f"Change events delivered via {settings.CHANGE_SINK}")

    yield

    if settings.CHANGE_SINK == "redis":
        await redis_pubsub.disconnect()


def create_application() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
        )
        return response

    @app.exception_handler(BookingCalendarError)
    async def booking_calendar_error_handler(request: Request, exc: BookingCalendarError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_application()
