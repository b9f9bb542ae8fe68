"""
Storage side of quantity promotions: loading the active rule snapshot the
engine runs on, the backoffice overlap check, and analytics logging.
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging_config import get_logger
from app.core.money import to_number
from app.models.promotion import Promotion, PromotionDiscountTypeEnum
from app.services.promotion_engine import (
    DEFAULT_PROMOTION_RULES,
    FIXED,
    PERCENTAGE,
    CartItem,
    DiscountResult,
    PromotionRule,
    get_total_quantity,
)

logger = get_logger("promotion_service")


def _active_window_filter(now: datetime):
    return and_(
        Promotion.active == True,
        or_(Promotion.start_date.is_(None), Promotion.start_date <= now),
        or_(Promotion.end_date.is_(None), Promotion.end_date >= now),
    )


def to_promotion_rule(promotion: Promotion) -> PromotionRule:
    """Map a stored promotion (PERCENTAGE/FIXED) onto the engine's rule (percentage/fixed)."""
    discount_type = PERCENTAGE if promotion.discount_type == PromotionDiscountTypeEnum.PERCENTAGE else FIXED
    return PromotionRule(
        id=promotion.id,
        min_quantity=promotion.min_quantity,
        discount_type=discount_type,
        discount_value=to_number(promotion.discount_value),
        description=promotion.description or promotion.name,
        active=bool(promotion.active),
        priority=promotion.priority,
    )


def load_active_rules(db: Session, now: Optional[datetime] = None) -> List[PromotionRule]:
    """
    Promotions that are active and inside their date window right now.

    Null start/end dates are open-ended. When nothing is active and
    USE_DEFAULT_PROMOTIONS is on, the built-in tiers are returned instead.
    """
    now = now or datetime.now(timezone.utc)
    promotions = (
        db.query(Promotion)
        .filter(_active_window_filter(now))
        .order_by(Promotion.priority.desc(), Promotion.min_quantity.desc())
        .all()
    )
    if not promotions and settings.USE_DEFAULT_PROMOTIONS:
        logger.debug("No active promotions in store, using default tiers")
        return list(DEFAULT_PROMOTION_RULES)
    return [to_promotion_rule(p) for p in promotions]


def list_active_promotions(db: Session, now: Optional[datetime] = None) -> List[Promotion]:
    """Active promotions, lowest threshold first, for the storefront tier table."""
    now = now or datetime.now(timezone.utc)
    return (
        db.query(Promotion)
        .filter(_active_window_filter(now))
        .order_by(Promotion.min_quantity.asc())
        .all()
    )


def find_overlapping_promotion(
    db: Session,
    min_quantity: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    exclude_id: Optional[str] = None,
) -> Optional[Promotion]:
    """
    An active promotion with the same minimum quantity whose period overlaps
    [start_date, end_date]. Missing bounds default to now.
    """
    now = datetime.now(timezone.utc)
    query = db.query(Promotion).filter(
        Promotion.min_quantity == min_quantity,
        Promotion.active == True,
        or_(Promotion.start_date.is_(None), Promotion.start_date <= (end_date or now)),
        or_(Promotion.end_date.is_(None), Promotion.end_date >= (start_date or now)),
    )
    if exclude_id is not None:
        query = query.filter(Promotion.id != exclude_id)
    return query.first()


def log_applied_promotion(user_id: str, cart: Sequence[CartItem], result: DiscountResult) -> None:
    if not result.applied_promotions:
        return
    promotion = result.applied_promotions[0]
    logger.info(
        f"Quantity-based promotion applied: {promotion.id}",
        extra={
            "user_id": user_id,
            "promotion_id": promotion.id,
            "total_quantity": get_total_quantity(cart),
            "discount_amount": result.total_discount,
            "original_total": result.original_total,
            "final_total": result.final_total,
        },
    )
