import logging

import app.models  # noqa: F401
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.db import Base, engine
from app.routers import activities as activities_router
from app.routers import attendance as attendance_router
from app.routers import auth as auth_router
from app.routers import dues as dues_router
from app.routers import members as members_router
from app.routers import portal as portal_router
from app.routers import reports as reports_router
from app.routers import whoami as whoami_router
from app.services.notifications import send_overdue_digest

app = FastAPI(title="Study Library API", version="0.1.0")

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone=settings.LIBRARY_TIMEZONE)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router.router)
app.include_router(whoami_router.router)
app.include_router(members_router.router)
app.include_router(attendance_router.router)
app.include_router(dues_router.router)
app.include_router(activities_router.router)
app.include_router(reports_router.router)
app.include_router(portal_router.router)


@app.exception_handler(SQLAlchemyError)
async def store_unavailable(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("store_error", exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Store unavailable"})


@app.on_event("startup")
def ensure_sqlite_schema() -> None:
    """Local SQLite databases get their tables created in place; other engines use Alembic."""

    if engine.dialect.name != "sqlite":
        return
    Base.metadata.create_all(bind=engine)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.on_event("startup")
def start_scheduled_jobs() -> None:
    if not settings.ENABLE_SCHEDULER:
        return
    if not scheduler.running:
        scheduler.start()
    scheduler.add_job(
        send_overdue_digest,
        trigger="cron",
        hour=settings.OVERDUE_DIGEST_HOUR,
        minute=0,
        id="dues_overdue_digest",
        replace_existing=True,
    )


@app.on_event("shutdown")
def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
