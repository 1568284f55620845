from contextlib import asynccontextmanager
import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from booking_service.config import get_settings
from booking_service.db import SessionLocal, init_database
from booking_service.routers import bookings, rooms
from booking_service.utils.audit import add_audit_middleware, configure_logging
from booking_service.utils.blob_store import BlobStore
from booking_service.utils.errors import register_error_handlers
from booking_service.utils.reconcile import sweep_orphaned_uploads

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    "lifespan for initing database and the upload directory"
    settings = get_settings()
    init_database()
    if settings.sweep_orphaned_uploads:
        db = SessionLocal()
        try:
            sweep_orphaned_uploads(db, BlobStore(settings.upload_dir), settings.sweep_grace_seconds)
        finally:
            db.close()
    logger.info(f"Serving uploads from {settings.upload_dir}, allowing origin {settings.cors_origin}")
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        lifespan=lifespan,
        title="Room booker",
        description="Booking and room management backend based on FastAPI.",
        version="0.1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    add_audit_middleware(app, settings.audit_log_file)
    register_error_handlers(app)

    app.include_router(bookings.router)
    app.include_router(rooms.router)

    # StaticFiles refuses to mount a directory that does not exist yet
    BlobStore(settings.upload_dir).ensure_directory()
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")
    return app


app = create_app()


def run():
    """Start the HTTP server on the configured host and port."""
    settings = get_settings()
    uvicorn.run("booking_service.main:app", host=settings.host, port=settings.port)
