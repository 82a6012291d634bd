import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from app.config import Settings, settings
from app.db.database import Database
from app.errors import register_exception_handlers
from app.logging_config import configure_logging
from app.routers.health import router as health_router
from app.routers.participants import router as participants_router

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "GET /api/participants - List participants (page, limit, sortBy, sortOrder)",
    "GET /api/participants/{id} - Get a participant by id",
    "POST /api/participants - Create a participant",
    "PUT /api/participants/{id} - Update a participant",
    "DELETE /api/participants/{id} - Delete a participant",
    "GET /api/health - API and database status",
]


def create_app(app_settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    app_settings = app_settings or settings
    configure_logging(app_settings.log_level)
    database = database or Database.from_settings(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await run_in_threadpool(
                database.wait_until_ready,
                app_settings.db_startup_retries,
                app_settings.db_startup_backoff_seconds,
                app_settings.db_startup_backoff_factor,
            )
            if app_settings.create_schema_on_startup:
                database.create_schema()
                logger.info("Table participants created/verified")
        except SQLAlchemyError:
            database.dispose()
            raise

        logger.info("%s ready", app_settings.project_name)
        try:
            yield
        finally:
            logger.info("Shutting down %s", app_settings.project_name)
            database.dispose()

    app = FastAPI(
        title=app_settings.project_name,
        version="1.0.0",
        description="REST CRUD API for course participants and their semester scores.",
        docs_url="/swagger",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response

    register_exception_handlers(app)

    @app.get("/", include_in_schema=False)
    def root():
        return {"message": f"{app_settings.project_name} is running", "endpoints": ENDPOINTS}

    app.include_router(health_router)
    app.include_router(participants_router)
    return app


app = create_app()


def run() -> None:
    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
