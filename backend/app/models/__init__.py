from app.models.promotion import Promotion, PromotionDiscountTypeEnum
from app.models.discount_code import DiscountCode, DiscountRedemption, DiscountTypeEnum

__all__ = [
    "Promotion",
    "PromotionDiscountTypeEnum",
    "DiscountCode",
    "DiscountRedemption",
    "DiscountTypeEnum",
]
