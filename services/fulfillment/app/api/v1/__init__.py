from fastapi import APIRouter

from .assignment_routes import router as assignment_router
from .booking_routes import router as booking_router
from .delivery_routes import router as delivery_router
from .schedule_routes import router as schedule_router

router = APIRouter()
router.include_router(schedule_router)
router.include_router(delivery_router)
router.include_router(booking_router)
router.include_router(assignment_router)

__all__ = [
    "router",
    "assignment_router",
    "booking_router",
    "delivery_router",
    "schedule_router",
]
