"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.handlers import register_exception_handlers
from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.database import Database
from app.core.storage import LocalAttachmentStore
from app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application for the given settings (environment settings when omitted).

    The database handle is opened in the lifespan startup hook and closed on
    shutdown; tests drive it by entering TestClient as a context manager.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = Database(settings.DATABASE_URL, echo=settings.DEBUG)
        db.open()
        if settings.DB_AUTO_CREATE:
            db.create_all()
            logger.info("Database tables ensured (DB_AUTO_CREATE)")
        app.state.db = db
        Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
        logger.info("BowlersNetwork API started (env=%s)", settings.APP_ENV)
        try:
            yield
        finally:
            db.close()
            logger.info("BowlersNetwork API stopped")

    app = FastAPI(
        title="BowlersNetwork Feature Tracker API",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = LocalAttachmentStore(
        root=Path(settings.UPLOAD_DIR), url_prefix=settings.UPLOAD_URL_PREFIX
    )

    origins = settings.CORS_ORIGINS
    if settings.APP_ENV == "prod" and "*" in origins:
        logger.warning("CORS_ORIGINS contains '*' in prod; cross-origin requests are disabled")
        origins = [o for o in origins if o != "*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(
        v1_router,
        prefix=settings.API_PREFIX,
        responses={status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 500)},
    )
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "BowlersNetwork Backend API"}

    return app


app = create_app()
