"""
Application factory. BOOKING_DB must be set before the app is built.

Serve with:
    uvicorn --factory booking_service.main:create_app
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import BOOKING_DB, RABBIT_URL
from .db import get_engine, get_session
from .errors import BookingError
from .log import logger
from .publisher import Publisher
from .routes import router
from .service import BookingService


async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.message, "code": exc.code, "retryable": exc.retryable},
    )


def create_app(database_url: str | None = BOOKING_DB, publisher: Publisher | None = None) -> FastAPI:
    app = FastAPI(title="Booking Service")
    app.include_router(router)
    app.add_exception_handler(BookingError, booking_error_handler)

    db_engine = get_engine(database_url)
    app.state.db_engine = db_engine
    app.state.session_factory = get_session(db_engine)
    app.state.publisher = publisher or Publisher(RABBIT_URL)
    app.state.bookings = BookingService(app.state.session_factory, app.state.publisher)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "booking-service", "events_enabled": app.state.publisher.enabled}

    @app.on_event("startup")
    async def startup():
        try:
            await app.state.publisher.start()
        except Exception as e:
            logger.warning(f"RabbitMQ connect failed at startup; continuing: {e}")

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.publisher.close()
        await db_engine.dispose()

    return app
