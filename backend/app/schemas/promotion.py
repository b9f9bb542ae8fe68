from typing import List, Literal, Optional
from pydantic import Field, field_validator
from app.schemas.common import CamelModel, Money, Pagination, UtcDatetime


class CartItemIn(CamelModel):
    id: str
    name: str
    price: float = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class PromotionPreviewRequest(CamelModel):
    cart: List[CartItemIn] = Field(..., min_length=1)


class AppliedPromotionResponse(CamelModel):
    id: str
    description: str
    discount_type: Literal["percentage", "fixed"]
    discount_value: Money
    discount_amount: Money
    applied_to_quantity: int


class DiscountResultResponse(CamelModel):
    original_total: Money
    final_total: Money
    total_discount: Money
    applied_promotions: List[AppliedPromotionResponse]


class ApplyDiscountResponse(CamelModel):
    success: bool
    discount: DiscountResultResponse


class PromotionTier(CamelModel):
    id: str
    name: str
    description: str
    min_quantity: int
    discount_type: Literal["percentage", "fixed"]
    discount_value: Money


class PromotionTiersResponse(CamelModel):
    promotions: List[PromotionTier]


class PromotionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    min_quantity: int = Field(..., ge=1)
    discount_type: Literal["PERCENTAGE", "FIXED"]
    discount_value: float = Field(..., ge=0)
    active: bool = True
    priority: int = 0
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None

    @field_validator("discount_type", mode="before")
    @classmethod
    def discount_type_upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class PromotionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    min_quantity: Optional[int] = Field(None, ge=1)
    discount_type: Optional[Literal["PERCENTAGE", "FIXED"]] = None
    discount_value: Optional[float] = Field(None, ge=0)
    active: Optional[bool] = None
    priority: Optional[int] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None

    @field_validator("discount_type", mode="before")
    @classmethod
    def discount_type_upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class PromotionResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    min_quantity: int
    discount_type: Literal["PERCENTAGE", "FIXED"]
    discount_value: Money
    active: bool
    priority: int
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class PromotionListResponse(CamelModel):
    promotions: List[PromotionResponse]
    pagination: Pagination
