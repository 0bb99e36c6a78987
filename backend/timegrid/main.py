import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timegrid.api.deps import make_repository_scope
from timegrid.api.routes import classes, entities, export, health, solver, upload
from timegrid.core.config import get_settings
from timegrid.core.exceptions import AppError
from timegrid.core.middleware import RequestTimingMiddleware, UploadSizeLimitMiddleware
from timegrid.db.bootstrap import ensure_database_schema
from timegrid.db.repository import InMemoryScheduleRepository
from timegrid.services.solve_jobs import SolveJobManager

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.getLogger("timegrid").setLevel(settings.log_level.upper())
    if settings.storage_backend == "database":
        ensure_database_schema()
    logger.info(
        "STARTUP | storage=%s | solver_mode=%s | solver_url=%s",
        settings.storage_backend,
        settings.solver_mode,
        settings.solver_api_url,
    )
    yield
    await app.state.job_manager.shutdown()


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.state.repository = InMemoryScheduleRepository()
app.state.repository_scope = make_repository_scope(settings, app.state.repository)
app.state.job_manager = SolveJobManager(settings, app.state.repository_scope)

app.add_middleware(UploadSizeLimitMiddleware, max_bytes=settings.max_upload_size_bytes)
app.add_middleware(RequestTimingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(upload.router, prefix=settings.api_prefix, tags=["upload"])
app.include_router(solver.router, prefix=settings.api_prefix, tags=["solver"])
app.include_router(entities.router, prefix=settings.api_prefix, tags=["entities"])
app.include_router(classes.router, prefix=settings.api_prefix, tags=["classes"])
app.include_router(export.router, prefix=settings.api_prefix, tags=["export"])
