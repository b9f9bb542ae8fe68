"""
Quantity promotions: live preview for the storefront cart and the
authenticated apply step at checkout.
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.logging_config import get_logger
from app.core.security import get_current_user_id
from app.models.promotion import PromotionDiscountTypeEnum
from app.schemas.promotion import (
    ApplyDiscountResponse,
    CartItemIn,
    DiscountResultResponse,
    PromotionPreviewRequest,
    PromotionTier,
    PromotionTiersResponse,
)
from app.services.promotion_engine import CartItem, calculate_discount
from app.services.promotion_service import list_active_promotions, load_active_rules, log_applied_promotion

logger = get_logger("promotions")

router = APIRouter()


def _to_cart(items: List[CartItemIn]) -> List[CartItem]:
    return [CartItem(id=i.id, name=i.name, price=i.price, quantity=i.quantity) for i in items]


def _active_tiers(db: Session) -> PromotionTiersResponse:
    tiers = [
        PromotionTier(
            id=p.id,
            name=p.name,
            description=p.description or p.name,
            min_quantity=p.min_quantity,
            discount_type="percentage" if p.discount_type == PromotionDiscountTypeEnum.PERCENTAGE else "fixed",
            discount_value=p.discount_value,
        )
        for p in list_active_promotions(db)
    ]
    return PromotionTiersResponse(promotions=tiers)


@router.post("/preview", response_model=DiscountResultResponse)
def preview_discount(body: PromotionPreviewRequest, db: Session = Depends(get_db)):
    """Discount the cart would get right now. Never writes anything."""
    cart = _to_cart(body.cart)
    result = calculate_discount(cart, load_active_rules(db))
    return DiscountResultResponse.model_validate(result, from_attributes=True)


@router.get("/preview", response_model=PromotionTiersResponse)
def get_promotion_tiers(db: Session = Depends(get_db)):
    """Active promotion tiers, lowest threshold first."""
    return _active_tiers(db)


@router.post("/apply-discount", response_model=ApplyDiscountResponse)
def apply_discount(
    body: PromotionPreviewRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Same computation as preview, for a signed-in user; the applied promotion is logged for analytics."""
    cart = _to_cart(body.cart)
    result = calculate_discount(cart, load_active_rules(db))
    log_applied_promotion(user_id, cart, result)
    return ApplyDiscountResponse(success=True, discount=DiscountResultResponse.model_validate(result, from_attributes=True))


@router.get("/apply-discount", response_model=PromotionTiersResponse)
def get_available_promotions(db: Session = Depends(get_db)):
    return _active_tiers(db)
