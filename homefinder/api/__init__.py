from fastapi import APIRouter

from .agent_routes import router as agent_router
from .preference_routes import router as preference_router
from .routes import router as property_router

router = APIRouter()
router.include_router(property_router)
router.include_router(agent_router)
router.include_router(preference_router)

__all__ = ["router"]
