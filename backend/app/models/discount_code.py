from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Numeric, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from app.core.database import Base


class DiscountTypeEnum(str, enum.Enum):
    PERCENT = "PERCENT"   # amount is 0-100
    FIXED = "FIXED"       # amount is in CLP


class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String(50), unique=True, nullable=False, index=True)  # stored uppercase-trimmed, e.g. SAFETAP10
    type = Column(
        SQLEnum(DiscountTypeEnum, values_callable=lambda x: [e.value for e in x], native_enum=False),
        nullable=False,
    )
    amount = Column(Numeric(10, 2), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)  # None = no expiry
    max_redemptions = Column(Integer, nullable=True)  # None = unlimited
    usage_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    redemptions = relationship("DiscountRedemption", back_populates="discount_code", cascade="all, delete-orphan")


class DiscountRedemption(Base):
    __tablename__ = "discount_redemptions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    discount_code_id = Column(String(36), ForeignKey("discount_codes.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    redeemed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    discount_code = relationship("DiscountCode", back_populates="redemptions")
