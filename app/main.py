import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.auth.auth_routes import router as auth_router
from app.config import Settings, get_settings
from app.database import Database
from app.document.document_routes import router as document_router
from app.document.storage import LocalStorage
from app.errors import DuplicateContent, PolyShareError
from app.metadata.metadata_routes import router as metadata_router

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


async def polyshare_error_handler(request: Request, exc: PolyShareError):
    content = {"detail": exc.message}
    if isinstance(exc, DuplicateContent) and exc.duplicate_id is not None:
        content["duplicate_id"] = exc.duplicate_id
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid data", "errors": jsonable_encoder(errors)},
    )


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    database = database or Database(settings.database_url, echo=settings.sql_echo)
    storage = LocalStorage(settings.upload_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.create_all()
        logger.info("PolyShare API started")
        yield
        database.dispose()

    app = FastAPI(title="PolyShare API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PolyShareError, polyshare_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
    app.include_router(document_router, prefix="/api/documents", tags=["Documents"])
    app.include_router(metadata_router, prefix="/api/metadata", tags=["Metadata"])
    app.mount("/uploads", StaticFiles(directory=storage.root), name="uploads")

    @app.get("/")
    def root():
        return {
            "message": "PolyShare API is running!",
            "version": app.version,
            "status": "OK",
            "endpoints": {
                "auth": "/api/auth",
                "documents": "/api/documents",
                "metadata": "/api/metadata",
            },
        }

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
        }

    return app


app = create_app()
