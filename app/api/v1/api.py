from fastapi import APIRouter
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.fields import router as fields_router
from app.api.v1.routes.bookings import router as bookings_router
from app.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(fields_router)
api_router.include_router(bookings_router)
api_router.include_router(admin_router)
