"""FastAPI main application."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import chats, reports
from app.config import Settings, settings as default_settings
from app.core.templating import TemplateRenderer
from app.database import Database
from app.logging_config import configure_logging

logger = logging.getLogger(__name__)

ENDPOINTS = {
    "generate": "POST /generate-word-from-excel",
    "reports": "GET /reports",
    "download": "GET /reports/download/:id",
    "delete": "DELETE /reports/:id",
    "stats": "GET /reports/stats",
    "inspect": "POST /inspect-template",
    "chats": "POST /chats/paginate",
    "health": "GET /health",
}


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application around an explicit settings object and database handle."""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    if database is None:
        database = Database(
            settings.database_url,
            connect_retries=settings.db_connect_retries,
            connect_backoff_max=settings.db_connect_backoff_max,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect the database on startup, release it on shutdown."""
        logger.info("Starting application...")
        # Raises after the retry budget is spent, which aborts startup
        database.connect()
        database.create_all()
        os.makedirs(settings.upload_dir, exist_ok=True)
        logger.info(f"Upload directory: {os.path.abspath(settings.upload_dir)}")
        logger.info(f"Template: {os.path.abspath(settings.template_path)}")

        yield

        logger.info("Shutting down application...")
        database.dispose()

    app = FastAPI(
        title="Excel to Word Report Service",
        description="Generates Word reports from tabular data and keeps their history",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.renderer = TemplateRenderer()

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(reports.router, tags=["reports"])
    app.include_router(chats.router, prefix="/chats", tags=["chats"])

    # Read-only view of stored reports; the directory is created at startup
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    @app.get("/health")
    def health(request: Request):
        """Health check endpoint."""
        available = request.app.state.database.is_available()
        return {
            "status": "ok",
            "message": "Excel to Word Generator Server is running",
            "database": "connected" if available else "unavailable",
            "endpoints": ENDPOINTS,
        }

    return app


app = create_app()
