from fastapi import APIRouter

from vms.api.routes import admin, auth, department, health, security, visitor

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(visitor.router, prefix="/visitors", tags=["visitors"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(department.router, prefix="/department", tags=["department"])
api_router.include_router(security.router, prefix="/security", tags=["security"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
