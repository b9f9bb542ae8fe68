"""
Backoffice management of discount codes. Requires X-Admin-API-Key.

Example body (percent):
  { "code": "SAFETAP10", "type": "PERCENT", "amount": 10, "maxRedemptions": 100 }
Example body (fixed CLP):
  { "code": "FLAT2000", "type": "FIXED", "amount": 2000, "expiresAt": "2026-12-31T23:59:59Z" }
"""
import math
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.logging_config import get_logger
from app.core.security import require_admin_api_key
from app.models.discount_code import DiscountCode, DiscountRedemption, DiscountTypeEnum
from app.schemas.common import Pagination
from app.schemas.discount_code import (
    DiscountCodeCreate,
    DiscountCodeListResponse,
    DiscountCodeResponse,
    DiscountCodeUpdate,
)

logger = get_logger("admin_discount_codes")

router = APIRouter(dependencies=[Depends(require_admin_api_key)])


def _redemption_count(db: Session, discount_code_id: str) -> int:
    return db.query(func.count(DiscountRedemption.id)).filter(
        DiscountRedemption.discount_code_id == discount_code_id
    ).scalar() or 0


def _to_response(db: Session, dc: DiscountCode) -> DiscountCodeResponse:
    return DiscountCodeResponse(
        id=dc.id,
        code=dc.code,
        type=DiscountTypeEnum(dc.type).value,
        amount=dc.amount,
        active=dc.active,
        expires_at=dc.expires_at,
        max_redemptions=dc.max_redemptions,
        usage_count=dc.usage_count,
        redemption_count=_redemption_count(db, dc.id),
        created_at=dc.created_at,
        updated_at=dc.updated_at,
    )


def _validate_amount(discount_type: str, amount: float) -> None:
    if discount_type == DiscountTypeEnum.PERCENT.value and amount > 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El porcentaje no puede ser mayor a 100")
    if amount <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El monto debe ser mayor a 0")


def _get_or_404(db: Session, discount_code_id: str) -> DiscountCode:
    dc = db.query(DiscountCode).filter(DiscountCode.id == discount_code_id).first()
    if not dc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Código de descuento no encontrado")
    return dc


@router.get("", response_model=DiscountCodeListResponse)
def list_discount_codes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
):
    limit = min(limit, 50)
    total = db.query(DiscountCode).count()
    rows = (
        db.query(DiscountCode)
        .order_by(DiscountCode.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return DiscountCodeListResponse(
        discounts=[_to_response(db, dc) for dc in rows],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.post("", response_model=DiscountCodeResponse, status_code=201)
def create_discount_code(body: DiscountCodeCreate, db: Session = Depends(get_db)):
    if not body.code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Código requerido")
    _validate_amount(body.type, body.amount)

    existing = db.query(DiscountCode).filter(DiscountCode.code == body.code).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Ya existe un código con este nombre")

    dc = DiscountCode(
        code=body.code,
        type=DiscountTypeEnum(body.type),
        amount=body.amount,
        active=body.active,
        expires_at=body.expires_at,
        max_redemptions=body.max_redemptions,
        usage_count=0,
    )
    db.add(dc)
    db.commit()
    db.refresh(dc)
    logger.info(f"Discount code created: {dc.code}", extra={"discount_code_id": dc.id})
    return _to_response(db, dc)


@router.get("/{discount_code_id}", response_model=DiscountCodeResponse)
def get_discount_code(discount_code_id: str, db: Session = Depends(get_db)):
    return _to_response(db, _get_or_404(db, discount_code_id))


@router.put("/{discount_code_id}", response_model=DiscountCodeResponse)
def update_discount_code(discount_code_id: str, body: DiscountCodeUpdate, db: Session = Depends(get_db)):
    dc = _get_or_404(db, discount_code_id)
    changes = body.model_dump(exclude_unset=True)

    discount_type = changes.get("type") or DiscountTypeEnum(dc.type).value
    amount = changes["amount"] if changes.get("amount") is not None else float(dc.amount)
    _validate_amount(discount_type, amount)

    if changes.get("code"):
        taken = db.query(DiscountCode).filter(
            DiscountCode.code == changes["code"],
            DiscountCode.id != dc.id,
        ).first()
        if taken:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Ya existe un código con este nombre")

    for key, value in changes.items():
        if key == "type" and value is not None:
            value = DiscountTypeEnum(value)
        if value is None and key not in ("expires_at", "max_redemptions"):
            continue
        setattr(dc, key, value)
    db.commit()
    db.refresh(dc)
    logger.info(f"Discount code updated: {dc.code}", extra={"fields": sorted(changes)})
    return _to_response(db, dc)


@router.delete("/{discount_code_id}", response_model=DiscountCodeResponse)
def deactivate_discount_code(discount_code_id: str, db: Session = Depends(get_db)):
    """Soft delete: the code stays for redemption history but can no longer be used."""
    dc = _get_or_404(db, discount_code_id)
    dc.active = False
    db.commit()
    db.refresh(dc)
    logger.info(f"Discount code deactivated: {dc.code}")
    return _to_response(db, dc)
