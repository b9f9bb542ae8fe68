"""
Discount code validation and redemption.

`evaluate_discount_code` is the pure rule check. `validate_and_apply` adds the
lookup and, in commit mode, the atomic usage increment + redemption record.
Business-rule failures come back as `valid=False` results; only storage
errors propagate.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from app.core.db_transaction import db_transaction
from app.core.errors import InvalidInputError
from app.core.logging_config import get_logger
from app.core.money import Number, format_currency, percent_of, to_decimal, to_number
from app.models.discount_code import DiscountCode, DiscountRedemption, DiscountTypeEnum

logger = get_logger("discount_codes")

PERCENT = DiscountTypeEnum.PERCENT.value
FIXED = DiscountTypeEnum.FIXED.value

MSG_NOT_FOUND = "Código de descuento no válido"
MSG_INACTIVE = "Código de descuento desactivado"
MSG_EXPIRED = "Código de descuento expirado"
MSG_EXHAUSTED = "Código de descuento agotado"
MSG_MISCONFIGURED = "Configuración de descuento inválida"
MSG_APPLIED = "Código aplicado exitosamente"


@dataclass(frozen=True)
class DiscountCodeRecord:
    id: str
    code: str
    type: str  # "PERCENT" | "FIXED"
    amount: Number
    active: bool = True
    expires_at: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    usage_count: int = 0

    @classmethod
    def from_model(cls, row: DiscountCode) -> "DiscountCodeRecord":
        return cls(
            id=row.id,
            code=row.code,
            type=row.type.value if isinstance(row.type, DiscountTypeEnum) else str(row.type),
            amount=to_number(row.amount),
            active=bool(row.active),
            expires_at=row.expires_at,
            max_redemptions=row.max_redemptions,
            usage_count=row.usage_count or 0,
        )


@dataclass(frozen=True)
class DiscountValidationResult:
    valid: bool
    message: str
    type: Optional[str] = None
    amount: Optional[Number] = None
    applied_discount: Optional[Number] = None
    new_total: Optional[Number] = None
    discount_code_id: Optional[str] = None


def normalize_code(code: str) -> str:
    """Canonical form used for storage and lookup: trimmed, uppercase."""
    return (code or "").strip().upper()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _invalid(message: str) -> DiscountValidationResult:
    return DiscountValidationResult(valid=False, message=message)


def _checked_cart_total(cart_total) -> Decimal:
    try:
        total = to_decimal(cart_total)
    except (TypeError, ArithmeticError, ValueError):
        raise InvalidInputError("Cart total must be a number", field="cartTotal")
    if not total.is_finite() or total < 0:
        raise InvalidInputError("Cart total cannot be negative", field="cartTotal")
    return total


def evaluate_discount_code(
    record: Optional[DiscountCodeRecord],
    cart_total,
    now: Optional[datetime] = None,
) -> DiscountValidationResult:
    """
    Check a code against the business rules and compute the discount.

    Checks run in a fixed order and the first failure wins:
    not found, inactive, expired, exhausted, misconfigured.
    A negative or non-numeric `cart_total` raises InvalidInputError.
    """
    total = _checked_cart_total(cart_total)
    if record is None:
        return _invalid(MSG_NOT_FOUND)
    if not record.active:
        return _invalid(MSG_INACTIVE)

    now = _as_utc(now or datetime.now(timezone.utc))
    if record.expires_at is not None and now > _as_utc(record.expires_at):
        return _invalid(MSG_EXPIRED)

    if record.max_redemptions is not None and record.usage_count >= record.max_redemptions:
        return _invalid(MSG_EXHAUSTED)

    amount = to_decimal(record.amount)
    if record.type == PERCENT:
        if amount > 100 or amount < 0:
            logger.error(f"Discount code {record.code} has an out-of-range percentage: {amount}")
            return _invalid(MSG_MISCONFIGURED)
        applied = percent_of(total, amount)
    elif record.type == FIXED:
        if amount < 0:
            logger.error(f"Discount code {record.code} has a negative amount: {amount}")
            return _invalid(MSG_MISCONFIGURED)
        applied = min(amount, total)
    else:
        logger.error(f"Discount code {record.code} has an unknown type: {record.type!r}")
        return _invalid(MSG_MISCONFIGURED)

    new_total = max(Decimal("0"), total - applied)
    return DiscountValidationResult(
        valid=True,
        message=MSG_APPLIED,
        type=record.type,
        amount=to_number(amount),
        applied_discount=to_number(applied),
        new_total=to_number(new_total),
        discount_code_id=record.id,
    )


def load_discount_code(db: Session, code: str) -> Optional[DiscountCodeRecord]:
    normalized = normalize_code(code)
    if not normalized:
        return None
    row = db.query(DiscountCode).filter(DiscountCode.code == normalized).first()
    return DiscountCodeRecord.from_model(row) if row else None


def record_redemption(
    db: Session,
    discount_code_id: str,
    user_id: str,
    now: Optional[datetime] = None,
) -> bool:
    """
    Take one redemption slot and write the redemption row, atomically.

    The increment is conditional on the code still being active, unexpired
    and under its cap, so two concurrent redemptions of the last slot cannot
    both succeed. Returns False (and writes nothing) when any of those
    stopped holding in the meantime.
    """
    redeemed_at = _as_utc(now or datetime.now(timezone.utc))
    with db_transaction(db):
        result = db.execute(
            update(DiscountCode)
            .where(
                DiscountCode.id == discount_code_id,
                DiscountCode.active == True,
                or_(
                    DiscountCode.expires_at.is_(None),
                    DiscountCode.expires_at >= redeemed_at,
                ),
                or_(
                    DiscountCode.max_redemptions.is_(None),
                    DiscountCode.usage_count < DiscountCode.max_redemptions,
                ),
            )
            .values(usage_count=DiscountCode.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False
        db.add(DiscountRedemption(
            discount_code_id=discount_code_id,
            user_id=user_id,
            redeemed_at=redeemed_at,
        ))
    return True


def validate_and_apply(
    db: Session,
    code: str,
    cart_total,
    commit: bool = False,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> DiscountValidationResult:
    """
    Validate `code` against `cart_total`.

    Preview mode (commit=False) never writes. Commit mode also consumes one
    redemption for `user_id`; if the code is deactivated, expires or loses its
    last slot concurrently, the result is the failure a fresh preview would show.
    """
    total = _checked_cart_total(cart_total)
    if commit and not user_id:
        raise InvalidInputError("A user is required to redeem a discount code", field="userId")

    record = load_discount_code(db, code)
    result = evaluate_discount_code(record, total, now=now)
    if not result.valid:
        logger.info(
            f"Discount code rejected: {normalize_code(code)!r} ({result.message})",
            extra={"code": normalize_code(code), "commit": commit},
        )
        return result

    if commit:
        if not record_redemption(db, record.id, user_id, now=now):
            # The code changed since it was read; report its current state
            current = evaluate_discount_code(load_discount_code(db, code), total, now=now)
            message = current.message if not current.valid else MSG_EXHAUSTED
            logger.warning(
                f"Discount code {record.code} stopped being redeemable during commit ({message})",
                extra={"discount_code_id": record.id, "user_id": user_id},
            )
            return _invalid(message)
        logger.info(
            f"Discount code redeemed: {record.code}",
            extra={
                "discount_code_id": record.id,
                "user_id": user_id,
                "applied_discount": result.applied_discount,
                "new_total": result.new_total,
            },
        )
    return result


def format_discount_for_display(result: DiscountValidationResult) -> str:
    if not result.valid or not result.type or not result.amount:
        return ""
    if result.type == PERCENT:
        return f"{result.amount}% de descuento"
    return f"{format_currency(result.amount)} de descuento"
