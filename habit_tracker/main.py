from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from habit_tracker.db.base import get_db
from habit_tracker.core.config import settings
from habit_tracker.core.logging import setup_logging
from habit_tracker.schemas.common import COMMON_ERROR_RESPONSES
from habit_tracker.routers import habits as habits_router
from habit_tracker.routers import today as today_router
from habit_tracker.routers import analytics as analytics_router
from habit_tracker.routers import users as users_router
from habit_tracker.core.errors import (
    HabitTrackerException,
    habit_tracker_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Habit Tracker API",
    description=(
        "Habits with daily / weekly / monthly schedules, one log per habit per day, "
        "and streak / completion-rate statistics recomputed on every change.\n\n"
        "The caller is identified by the `X-User-Id` header.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(HabitTrackerException, habit_tracker_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(habits_router.router, responses=COMMON_ERROR_RESPONSES)
app.include_router(today_router.router, responses=COMMON_ERROR_RESPONSES)
app.include_router(analytics_router.router, responses=COMMON_ERROR_RESPONSES)
app.include_router(users_router.router, responses=COMMON_ERROR_RESPONSES)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception:
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
