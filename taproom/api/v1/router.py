from fastapi import APIRouter

from taproom.api.v1.events import router as events_router
from taproom.api.v1.instances import router as instances_router
from taproom.api.v1.venues import router as venues_router

router = APIRouter()
router.include_router(events_router)
router.include_router(instances_router)
router.include_router(venues_router)
