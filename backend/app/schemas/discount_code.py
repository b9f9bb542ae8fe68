import math
from pydantic import Field, field_validator
from typing import List, Literal, Optional
from app.schemas.common import CamelModel, Money, Pagination, UtcDatetime
from app.services.discount_codes import normalize_code


class DiscountCodeValidateRequest(CamelModel):
    code: str
    cart_total: float

    @field_validator("code")
    @classmethod
    def code_trim_upper(cls, v: str) -> str:
        v = normalize_code(v)
        if not v:
            raise ValueError("Código requerido")
        return v

    @field_validator("cart_total")
    @classmethod
    def cart_total_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("Total del carrito debe ser mayor a 0")
        return v


class DiscountValidationResponse(CamelModel):
    valid: bool
    message: str
    type: Optional[Literal["PERCENT", "FIXED"]] = None
    amount: Optional[Money] = None
    applied_discount: Optional[Money] = None
    new_total: Optional[Money] = None
    discount_code_id: Optional[str] = None


class DiscountCodeCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)
    type: Literal["PERCENT", "FIXED"]
    amount: float = Field(..., ge=0)
    expires_at: Optional[UtcDatetime] = None
    max_redemptions: Optional[int] = Field(None, ge=1)
    active: bool = True

    @field_validator("code")
    @classmethod
    def code_trim_upper(cls, v: str) -> str:
        v = normalize_code(v)
        if not v:
            raise ValueError("Código requerido")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def type_upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class DiscountCodeUpdate(CamelModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    type: Optional[Literal["PERCENT", "FIXED"]] = None
    amount: Optional[float] = Field(None, ge=0)
    expires_at: Optional[UtcDatetime] = None
    max_redemptions: Optional[int] = Field(None, ge=1)
    active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def code_trim_upper(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = normalize_code(v)
        if not v:
            raise ValueError("Código requerido")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def type_upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class DiscountCodeResponse(CamelModel):
    id: str
    code: str
    type: Literal["PERCENT", "FIXED"]
    amount: Money
    active: bool
    expires_at: Optional[UtcDatetime] = None
    max_redemptions: Optional[int] = None
    usage_count: int
    redemption_count: int = 0
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class DiscountCodeListResponse(CamelModel):
    discounts: List[DiscountCodeResponse]
    pagination: Pagination
