from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, Enum as SQLEnum
from sqlalchemy.sql import func
import enum
import uuid
from app.core.database import Base


class PromotionDiscountTypeEnum(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"   # discount_value is 0-100
    FIXED = "FIXED"             # discount_value is an amount in CLP


class Promotion(Base):
    """Quantity-tier promotion managed from the backoffice."""
    __tablename__ = "promotions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)
    min_quantity = Column(Integer, nullable=False, index=True)
    discount_type = Column(
        SQLEnum(PromotionDiscountTypeEnum, values_callable=lambda x: [e.value for e in x], native_enum=False),
        nullable=False,
    )
    discount_value = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, default=True, nullable=False, index=True)
    priority = Column(Integer, default=0, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=True)  # None = open start
    end_date = Column(DateTime(timezone=True), nullable=True)  # None = no end
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
