from fastapi import APIRouter

from src.allocator.api.v1 import audit, folders, projects

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(projects.router)
api_router.include_router(folders.router)
api_router.include_router(audit.router)
