"""
API Routes Package
"""
from fastapi import APIRouter

from .bookings import router as bookings_router
from .articles import router as articles_router
from .ogpl import router as ogpl_router
from .analytics import router as analytics_router
from .customers import router as customers_router
from .branches import router as branches_router

api_router = APIRouter()

api_router.include_router(bookings_router, prefix="/bookings", tags=["Bookings"])
api_router.include_router(articles_router, prefix="/articles", tags=["Articles"])
api_router.include_router(ogpl_router, prefix="/ogpl", tags=["OGPL"])
api_router.include_router(analytics_router, prefix="/analytics", tags=["Analytics"])
api_router.include_router(customers_router, prefix="/customers", tags=["Customers"])
api_router.include_router(branches_router, prefix="/branches", tags=["Branches"])
