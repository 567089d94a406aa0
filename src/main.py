import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from src.config import settings
from src.db import SupabaseRecordStore
from src.domain.errors import AppError, ValidationError, error_envelope
from src.models.common import field_errors
from src.observability import (
    bind_request_id,
    configure_logging,
    incr_metric,
    log_event,
    unbind_request_id,
)
from src.routers import (
    organizations,
    volunteers,
    auth_routes,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    store = SupabaseRecordStore.from_settings(settings)
    await store.initialize()
    app.state.store = store
    try:
        yield
    finally:
        await store.shutdown()


app = FastAPI(title="Volunteer Hub", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    request_id = (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or str(uuid4())
    )
    request.state.request_id = request_id
    token = bind_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        unbind_request_id(token)
    response.headers["X-Request-ID"] = request_id
    return response


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    incr_metric("http.errors", code=exc.code)
    log_event(
        "request_failed",
        level=logging.WARNING if exc.status_code < 500 else logging.ERROR,
        request_id=_request_id(request),
        path=request.url.path,
        code=exc.code,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc))


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    error = ValidationError("Request validation failed", details=field_errors(list(exc.errors())))
    return await handle_app_error(request, error)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    incr_metric("http.errors", code="INTERNAL_ERROR")
    log_event(
        "request_crashed",
        level=logging.ERROR,
        request_id=_request_id(request),
        path=request.url.path,
        error=repr(exc),
    )
    return JSONResponse(status_code=500, content=error_envelope(AppError()))


app.include_router(organizations.router)
app.include_router(volunteers.router)
app.include_router(auth_routes.router)


@app.get("/")
async def root():
    return {"status": "ok", "service": "volunteer-hub"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
