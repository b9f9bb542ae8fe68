"""
Backoffice management of quantity promotions. Requires X-Admin-API-Key.
"""
import math
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.logging_config import get_logger
from app.core.security import require_admin_api_key
from app.models.promotion import Promotion, PromotionDiscountTypeEnum
from app.schemas.common import Pagination, as_utc
from app.schemas.promotion import PromotionCreate, PromotionListResponse, PromotionResponse, PromotionUpdate
from app.services.promotion_service import find_overlapping_promotion

logger = get_logger("admin_promotions")

router = APIRouter(dependencies=[Depends(require_admin_api_key)])


def _to_response(promotion: Promotion) -> PromotionResponse:
    return PromotionResponse(
        id=promotion.id,
        name=promotion.name,
        description=promotion.description,
        min_quantity=promotion.min_quantity,
        discount_type=PromotionDiscountTypeEnum(promotion.discount_type).value,
        discount_value=promotion.discount_value,
        active=promotion.active,
        priority=promotion.priority,
        start_date=promotion.start_date,
        end_date=promotion.end_date,
        created_at=promotion.created_at,
        updated_at=promotion.updated_at,
    )


def _validate_promotion_values(discount_type: str, discount_value: float, start_date, end_date) -> None:
    if discount_type == PromotionDiscountTypeEnum.PERCENTAGE.value and discount_value > 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El porcentaje no puede ser mayor a 100")
    if discount_value <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="El valor debe ser mayor a 0")
    if start_date and end_date and as_utc(start_date) >= as_utc(end_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La fecha de inicio debe ser anterior a la fecha de fin",
        )


def _get_or_404(db: Session, promotion_id: str) -> Promotion:
    promotion = db.query(Promotion).filter(Promotion.id == promotion_id).first()
    if not promotion:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Promoción no encontrada")
    return promotion


@router.get("", response_model=PromotionListResponse)
def list_promotions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
):
    limit = min(limit, 50)
    query = db.query(Promotion)
    total = query.count()
    promotions = (
        query.order_by(Promotion.priority.desc(), Promotion.min_quantity.asc(), Promotion.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return PromotionListResponse(
        promotions=[_to_response(p) for p in promotions],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.post("", response_model=PromotionResponse, status_code=201)
def create_promotion(body: PromotionCreate, db: Session = Depends(get_db)):
    _validate_promotion_values(body.discount_type, body.discount_value, body.start_date, body.end_date)

    if body.active and find_overlapping_promotion(db, body.min_quantity, body.start_date, body.end_date):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ya existe una promoción activa para esa cantidad mínima en el período seleccionado",
        )

    promotion = Promotion(
        name=body.name,
        description=body.description,
        min_quantity=body.min_quantity,
        discount_type=PromotionDiscountTypeEnum(body.discount_type),
        discount_value=body.discount_value,
        active=body.active,
        priority=body.priority,
        start_date=body.start_date,
        end_date=body.end_date,
    )
    db.add(promotion)
    db.commit()
    db.refresh(promotion)
    logger.info(f"Promotion created: {promotion.id} ({promotion.name})")
    return _to_response(promotion)


@router.get("/{promotion_id}", response_model=PromotionResponse)
def get_promotion(promotion_id: str, db: Session = Depends(get_db)):
    return _to_response(_get_or_404(db, promotion_id))


@router.put("/{promotion_id}", response_model=PromotionResponse)
def update_promotion(promotion_id: str, body: PromotionUpdate, db: Session = Depends(get_db)):
    promotion = _get_or_404(db, promotion_id)
    changes = body.model_dump(exclude_unset=True)

    discount_type = changes.get("discount_type") or PromotionDiscountTypeEnum(promotion.discount_type).value
    discount_value = changes["discount_value"] if changes.get("discount_value") is not None else float(promotion.discount_value)
    start_date = changes["start_date"] if "start_date" in changes else promotion.start_date
    end_date = changes["end_date"] if "end_date" in changes else promotion.end_date
    _validate_promotion_values(discount_type, discount_value, start_date, end_date)

    min_quantity = changes.get("min_quantity") or promotion.min_quantity
    active = changes["active"] if changes.get("active") is not None else promotion.active
    if active and find_overlapping_promotion(db, min_quantity, start_date, end_date, exclude_id=promotion.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ya existe una promoción activa para esa cantidad mínima en el período seleccionado",
        )

    for key, value in changes.items():
        if key == "discount_type" and value is not None:
            value = PromotionDiscountTypeEnum(value)
        if value is None and key not in ("description", "start_date", "end_date"):
            continue
        setattr(promotion, key, value)
    db.commit()
    db.refresh(promotion)
    logger.info(f"Promotion updated: {promotion.id}", extra={"fields": sorted(changes)})
    return _to_response(promotion)


@router.delete("/{promotion_id}")
def delete_promotion(promotion_id: str, db: Session = Depends(get_db)):
    promotion = _get_or_404(db, promotion_id)
    db.delete(promotion)
    db.commit()
    logger.info(f"Promotion deleted: {promotion_id}")
    return {"message": "Promoción eliminada correctamente"}
