from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from staffcover.api.routes import (
    activity,
    assignments,
    attendance,
    blocks,
    health,
    notifications,
    substitutions,
    teachers,
    timetable,
    workload,
)
from staffcover.core.config import get_settings
from staffcover.core.exceptions import AppError
from staffcover.core.logging import configure_logging
from staffcover.core.middleware import (
    RequestSizeLimitMiddleware,
    RequestTimingMiddleware,
    SecurityHeadersMiddleware,
)
from staffcover.db.bootstrap import ensure_schema
from staffcover.db.session import SessionLocal
from staffcover.services.engine import build_engine

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    ensure_schema()
    # Tests install their own engine before startup.
    if getattr(app.state, "engine", None) is None:
        app.state.engine = build_engine(SessionLocal, settings)
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestTimingMiddleware)
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
app.include_router(teachers.router, prefix=settings.api_prefix, tags=["teachers"])
app.include_router(timetable.router, prefix=settings.api_prefix, tags=["timetable"])
app.include_router(blocks.router, prefix=settings.api_prefix, tags=["combined-blocks"])
app.include_router(assignments.router, prefix=settings.api_prefix, tags=["assignments"])
app.include_router(attendance.router, prefix=settings.api_prefix, tags=["attendance"])
app.include_router(workload.router, prefix=settings.api_prefix, tags=["workload"])
app.include_router(substitutions.router, prefix=settings.api_prefix, tags=["substitutions"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
