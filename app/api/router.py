from fastapi import APIRouter

from app.domains.scheduling.api.routes import router as scheduling_router

api_router = APIRouter()

# API routes (all have the /api/v1 prefix from the app factory)
api_router.include_router(scheduling_router)
