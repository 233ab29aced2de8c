from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import auth, days, enrollments, health, schedules, timeslots, units
from app.core.config import get_settings
from app.core.exceptions import AppError, InternalError
from app.core.logging import configure_logging
from app.core.middleware import RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from app.core.responses import app_error_response, error_response
from app.db.bootstrap import ensure_reference_data

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    ensure_reference_data(seed=settings.seed_reference_data)
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return app_error_response(exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code,
        str(exc.detail),
        "HTTPException",
        headers=getattr(exc, "headers", None),
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in item.get("loc", ())), "message": item.get("msg")}
        for item in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"
    return error_response(400, message, "ValidationError", {"errors": errors})


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return app_error_response(InternalError())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return app_error_response(InternalError())


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(days.router, prefix=f"{settings.api_prefix}/days", tags=["days"])
app.include_router(units.router, prefix=f"{settings.api_prefix}/units", tags=["units"])
app.include_router(timeslots.router, prefix=f"{settings.api_prefix}/timeslots", tags=["timeslots"])
app.include_router(schedules.router, prefix=f"{settings.api_prefix}/schedules", tags=["schedules"])
app.include_router(enrollments.router, prefix=f"{settings.api_prefix}/enrollments", tags=["enrollments"])
