from fastapi import APIRouter

from formation_portal.api.v1.endpoints import admin, auth, formations, inscriptions

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(formations.router, prefix="/formations", tags=["Formations"])
api_router.include_router(formations.categories_router, prefix="/categories", tags=["Formations"])
api_router.include_router(inscriptions.router, prefix="/inscriptions", tags=["Inscriptions"])
api_router.include_router(admin.router, prefix="/admin", tags=["Administration"])
