from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from campus_events.api.v1.deps import limiter
from campus_events.api.v1.routes import (
    agenda as agenda_router,
    event_students as event_students_router,
    events as events_router,
    health as health_router,
)
from campus_events.cache.redis_client import cache
from campus_events.core.config import settings
from campus_events.core.errors import ServiceError
from campus_events.core.logging import logger
from campus_events.db.session import engine, Base
from campus_events.events.publisher import close_connection
from campus_events.utils.responses import error_response

app = FastAPI(title="Campus Events")

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(events_router.router)
app.include_router(event_students_router.router)
app.include_router(agenda_router.router)
app.include_router(health_router.router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.error})")
    return error_response(exc.message, exc.error, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    return error_response("Invalid request", f"{location}: {first.get('msg', 'invalid value')}", status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response("Internal server error", str(exc), status_code=500)


@app.on_event("startup")
async def on_startup():
    # Tables are created here for local runs; deployments migrate with alembic
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Campus Events started ({settings.ENVIRONMENT}, assignment dispatch: {settings.ASSIGNMENT_DISPATCH})")


@app.on_event("shutdown")
async def on_shutdown():
    await cache.close()
    await close_connection()
