from fastapi import APIRouter
from app.api.v1.endpoints import (
    promotions,
    discount_codes,
    admin_promotions,
    admin_discount_codes,
)

api_router = APIRouter()
api_router.include_router(promotions.router, prefix="/promotions", tags=["promotions"])
api_router.include_router(discount_codes.router, prefix="/discounts", tags=["discounts"])
api_router.include_router(admin_promotions.router, prefix="/admin/promotions", tags=["admin"])
api_router.include_router(admin_discount_codes.router, prefix="/admin/discounts", tags=["admin"])
