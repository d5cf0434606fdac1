"""FastAPI application."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .domain_errors import DomainError
from .problem_details import domain_error_handler
from .routers import assignments, auth, departments, directory, notifications, requests, users

API_PREFIX = "/api/v1"
VERSION = "1.0.0"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def _check_production_config() -> None:
    """Refuse to start a production process with development defaults."""
    if not settings.is_production:
        return
    if settings.JWT_SECRET_KEY == "change-me-in-production":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if not settings.cors_origins or "*" in settings.cors_origins:
        raise RuntimeError("ALLOWED_ORIGINS must list explicit frontend origins in production.")


_check_production_config()

app = FastAPI(
    title="RTI Request Tracker",
    version=VERSION,
    description="Backend API for tracking Right to Information requests",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"] if settings.is_production else ["*"],
)

app.add_exception_handler(DomainError, domain_error_handler)

for module in (auth, directory, departments, users, requests, assignments, notifications):
    app.include_router(module.router, prefix=API_PREFIX)


@app.get(f"{API_PREFIX}/system/health")
def health_check():
    return {"status": "ok", "version": VERSION}


@app.get("/")
def root():
    return {"message": "RTI Request Tracker API", "version": VERSION, "docs": "/docs"}

