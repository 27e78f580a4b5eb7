"""
PT Studio - session scheduling and trainer fee settlement

Main FastAPI application with:
- Role-based authentication (admin/manager/trainer)
- Branch-scoped members, trainers, programs and sessions
- Trainer settlement reports
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ptstudio.api import api_router
from ptstudio.config import settings
from ptstudio.db import Store, get_db_context
from ptstudio.models import User, UserRole
from ptstudio.scheduler.jobs import scheduler, setup_scheduler
from ptstudio.services.errors import StudioError
from ptstudio.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def ensure_admin_account(store: Store) -> None:
    """Create the bootstrap admin account if no admin exists."""
    if await store.users.list(User.role == UserRole.ADMIN):
        return

    logger.info("Creating admin account...")
    admin = await store.users.create(
        email=settings.admin_email.lower(),
        password_hash=hash_password(settings.admin_password),
        name="Admin",
        role=UserRole.ADMIN,
        assigned_branch_ids=[],
        is_active=True,
    )
    if admin is None:
        logger.error("Admin account could not be created")
    else:
        logger.info(f"Admin account created: {settings.admin_email}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the admin account if none exists
    - Starts the ledger reconciliation scheduler

    Shutdown:
    - Stops the scheduler
    """
    logger.info("Starting PT Studio...")

    async with get_db_context() as db:
        await ensure_admin_account(Store(db))

    setup_scheduler()
    scheduler.start()
    logger.info("PT Studio started successfully!")

    yield

    logger.info("Shutting down PT Studio...")
    scheduler.shutdown(wait=False)


app = FastAPI(
    title="PT Studio",
    description="Session scheduling and trainer fee settlement",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)


@app.exception_handler(StudioError)
async def studio_error_handler(request: Request, exc: StudioError):
    """Expected service failures become {"detail": message} with their status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ptstudio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
