import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import create_db_and_tables
from .logging_setup import configure_logging
from .routers.admin import router as admin_router
from .routers.bom import router as bom_router
from .routers.history import router as history_router
from .routers.materials import router as materials_router
from .routers.movements import router as movements_router

logger = logging.getLogger(__name__)


def get_cors_origins():
    """Get CORS origins from environment or use defaults for development"""
    origins_env = os.getenv("CORS_ORIGINS", "")
    if origins_env:
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    # Default development origins
    return [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:8080",
        "http://localhost:8080",
    ]


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Project Store",
        description="Project material ledger with access-scoped history, BOM and directory search",
        version="1.0.0"
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(history_router)
    app.include_router(bom_router)
    app.include_router(materials_router)
    app.include_router(movements_router)
    app.include_router(admin_router)

    @app.on_event("startup")
    def on_startup():
        logger.info("Creating database tables at startup")
        create_db_and_tables()
        logger.info("Database ready")

    return app


app = create_app()
