from fastapi import FastAPI
from contextlib import asynccontextmanager
from datetime import timedelta
import logging

from coursehub.database import AsyncSessionLocal, init_db
from coursehub.config import get_settings
from coursehub.logging_config import configure_logging
from coursehub.services.scheduler import SubscriptionLifecycleScheduler

# Import routers
from coursehub.routes import auth, enrollments, lessons, notifications, subscriptions, tests

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Initialize database and the subscription lifecycle task
    configure_logging()
    await init_db()
    logger.info("Database initialized")

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = SubscriptionLifecycleScheduler(
            AsyncSessionLocal,
            interval=timedelta(hours=settings.SUBSCRIPTION_CHECK_INTERVAL_HOURS)
        )
        scheduler.start()
    app.state.scheduler = scheduler
    logger.info("%s started", settings.APP_NAME)
    yield
    # Shutdown
    if scheduler is not None:
        await scheduler.stop()
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# Include routers
app.include_router(auth.router)  # Register, login, logout
app.include_router(tests.router)  # Test taking and attempts
app.include_router(lessons.router)  # Lesson access
app.include_router(enrollments.router)  # Enrollment and payment approval
app.include_router(subscriptions.router)  # Subscription administration
app.include_router(notifications.router)


# Health check for API
@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("coursehub.main:app", host="0.0.0.0", port=8000, reload=True)
