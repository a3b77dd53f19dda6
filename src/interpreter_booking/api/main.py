"""
FastAPI application for the interpreter booking engine.

Provides REST API endpoints for the booking lifecycle.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from interpreter_booking import __version__
from interpreter_booking.api.dependencies import close_service
from interpreter_booking.api.routes import bookings, health
from interpreter_booking.storage import close_connection

# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup/shutdown lifecycle."""
    # Startup: the database connects lazily on the first request
    yield
    # Shutdown
    await close_service()
    await close_connection()


# =============================================================================
# Application Setup
# =============================================================================


app = FastAPI(
    title="Interpreter Booking API",
    description="""
# Interpreter Booking API

Booking lifecycle for an interpreter agency: customers book interpreters,
translators accept, cancel and complete sessions, administrators manage
bookings.

## Caller Identity

Every lifecycle call carries the caller in two headers:

- `X-User-Id`: numeric user id
- `X-User-Role`: `customer`, `translator`, `admin` or `superadmin`

## Results

Lifecycle endpoints answer HTTP 200 with a result object:

```
{"status": "fail", "message": "Can't create booking in past", "field_name": "due_date"}
```

Unknown bookings answer 404, database outages answer 503.

## Quick Start

1. **Create a booking** (customer):
   ```
   POST /bookings
   {"from_language_id": 3, "due_date": "06/15/2026", "due_time": "10:00",
    "customer_phone_type": true, "duration": 45, "job_for": ["male"]}
   ```

2. **Accept it** (translator):
   ```
   POST /bookings/{job_id}/accept
   ```
""",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# =============================================================================
# Middleware
# =============================================================================


# CORS - allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Routes
# =============================================================================


app.include_router(health.router)
app.include_router(bookings.router)


# =============================================================================
# Root Endpoint
# =============================================================================


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root - basic information."""
    return {
        "name": "Interpreter Booking API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
