"""FastAPI application."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .domain_errors import DomainError
from .problem_details import domain_error_handler
from .routers import inventory, machines, maintenance, notifications, scheduler

# Create app
app = FastAPI(
    title="Maintenance Tracker",
    version="1.0.0",
    description="Backend API for maintenance scheduling, inventory and notifications"
)

if settings.ENV.lower() == "production" and any(origin.strip() == "*" for origin in settings.cors_origins):
    raise RuntimeError("ALLOWED_ORIGINS must be explicit in production (no wildcard when using credentials).")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"] if settings.ENV.lower() == "production" else ["*"],
)

app.add_exception_handler(DomainError, domain_error_handler)

# Include routers
app.include_router(maintenance.router, prefix="/api/v1")
app.include_router(inventory.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(machines.router, prefix="/api/v1")
app.include_router(scheduler.router, prefix="/api/v1")


@app.get("/api/v1/system/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "1.0.0",
    }


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "message": "Maintenance Tracker API",
        "version": "1.0.0",
        "docs": "/docs"
    }
