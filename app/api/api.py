from fastapi import APIRouter
from app.api.routes.auth import router as auth_router
from app.api.routes.cruises import router as cruises_router
from app.api.routes.bookings import router as bookings_router
from app.api.routes.payments import router as payments_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(cruises_router)
api_router.include_router(bookings_router)
api_router.include_router(payments_router)
