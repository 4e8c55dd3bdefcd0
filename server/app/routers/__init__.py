"""API routers for the study library application."""

from app.routers import (
    activities,
    attendance,
    auth,
    dues,
    members,
    portal,
    reports,
    whoami,
)  # noqa: F401
