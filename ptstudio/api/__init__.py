"""API router aggregation."""

from fastapi import APIRouter

from ptstudio.api.auth import router as auth_router
from ptstudio.api.branches import router as branches_router
from ptstudio.api.health import router as health_router
from ptstudio.api.members import router as members_router
from ptstudio.api.presets import router as presets_router
from ptstudio.api.programs import router as programs_router
from ptstudio.api.sessions import router as sessions_router
from ptstudio.api.settlement import router as settlement_router
from ptstudio.api.trainers import router as trainers_router
from ptstudio.api.users import router as users_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(branches_router)
api_router.include_router(members_router)
api_router.include_router(trainers_router)
api_router.include_router(programs_router)
api_router.include_router(sessions_router)
api_router.include_router(settlement_router)
api_router.include_router(presets_router)
api_router.include_router(users_router)

__all__ = ["api_router"]
