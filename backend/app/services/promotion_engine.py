"""
Quantity-tier promotion engine.

Pure functions over a cart and a snapshot of promotion rules:
- total quantity and subtotal of the cart
- selection of the single winning tier (tiers never stack)
- discount amount, final total and the applied-promotion breakdown

Rules are expected to be pre-filtered by the caller (active, inside their
date window). Nothing here touches storage or the clock.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from app.core.errors import InvalidInputError
from app.core.logging_config import get_logger
from app.core.money import Number, format_currency, percent_of, to_decimal, to_number

logger = get_logger("promotion_engine")

PERCENTAGE = "percentage"
FIXED = "fixed"
DISCOUNT_TYPES = (PERCENTAGE, FIXED)


@dataclass(frozen=True)
class CartItem:
    id: str
    name: str
    price: Number
    quantity: int


@dataclass(frozen=True)
class PromotionRule:
    id: str
    min_quantity: int
    discount_type: str  # "percentage" | "fixed"
    discount_value: Number
    description: str
    active: bool = True
    priority: Optional[int] = None  # None = same rank as every other rule without one


@dataclass(frozen=True)
class AppliedPromotion:
    id: str
    description: str
    discount_type: str
    discount_value: Number
    discount_amount: Number
    applied_to_quantity: int


@dataclass(frozen=True)
class DiscountResult:
    original_total: Number
    final_total: Number
    total_discount: Number
    applied_promotions: List[AppliedPromotion] = field(default_factory=list)


DEFAULT_PROMOTION_RULES: Tuple[PromotionRule, ...] = (
    PromotionRule(
        id="bulk-2-plus",
        min_quantity=2,
        discount_type=PERCENTAGE,
        discount_value=10,
        description="10% de descuento por 2 o más stickers",
    ),
    PromotionRule(
        id="bulk-5-plus",
        min_quantity=5,
        discount_type=PERCENTAGE,
        discount_value=15,
        description="15% de descuento por 5 o más stickers",
    ),
    PromotionRule(
        id="bulk-10-plus",
        min_quantity=10,
        discount_type=PERCENTAGE,
        discount_value=20,
        description="20% de descuento por 10 o más stickers",
    ),
)


def _validate_cart(cart: Sequence[CartItem]) -> None:
    if not cart:
        raise InvalidInputError("Cart cannot be empty", field="cart")
    for index, item in enumerate(cart):
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidInputError(
                f"Cart item {item.id!r} must have a positive integer quantity",
                field=f"cart[{index}].quantity",
            )
        try:
            price = to_decimal(item.price)
        except (TypeError, ArithmeticError, ValueError):
            raise InvalidInputError(f"Cart item {item.id!r} has an invalid price", field=f"cart[{index}].price")
        if not price.is_finite() or price <= 0:
            raise InvalidInputError(
                f"Cart item {item.id!r} must have a positive price",
                field=f"cart[{index}].price",
            )


def _is_usable(rule: PromotionRule) -> bool:
    """A malformed rule is skipped rather than applied."""
    if not rule.active:
        return False
    if rule.discount_type not in DISCOUNT_TYPES:
        logger.warning(f"Skipping promotion {rule.id}: unknown discount type {rule.discount_type!r}")
        return False
    value = to_decimal(rule.discount_value)
    if value < 0 or (rule.discount_type == PERCENTAGE and value > 100):
        logger.warning(f"Skipping promotion {rule.id}: discount value {value} out of range")
        return False
    return True


def get_total_quantity(cart: Sequence[CartItem]) -> int:
    return sum(item.quantity for item in cart)


def get_cart_subtotal(cart: Sequence[CartItem]) -> Decimal:
    return sum((to_decimal(item.price) * item.quantity for item in cart), Decimal("0"))


def calculate_discount_amount(subtotal, rule: PromotionRule) -> Decimal:
    """Discount granted by `rule` on `subtotal`; never more than the subtotal."""
    subtotal = to_decimal(subtotal)
    if rule.discount_type == PERCENTAGE:
        amount = percent_of(subtotal, rule.discount_value)
    else:
        amount = to_decimal(rule.discount_value)
    return min(amount, subtotal)


def find_best_promotion_rule(
    total_quantity: int,
    subtotal,
    rules: Sequence[PromotionRule],
) -> Optional[PromotionRule]:
    """
    Pick the winning tier among the rules the quantity qualifies for.

    Order: highest priority, then largest min_quantity, then largest discount
    for this subtotal, then the earliest rule in `rules`.
    """
    candidates = [
        (index, rule)
        for index, rule in enumerate(rules)
        if _is_usable(rule) and rule.min_quantity <= total_quantity
    ]
    if not candidates:
        return None

    def sort_key(entry):
        index, rule = entry
        priority = rule.priority if rule.priority is not None else 0
        return (-priority, -rule.min_quantity, -calculate_discount_amount(subtotal, rule), index)

    return min(candidates, key=sort_key)[1]


def calculate_discount(cart: Sequence[CartItem], rules: Sequence[PromotionRule]) -> DiscountResult:
    """
    Apply at most one quantity-tier promotion to `cart`.

    Raises InvalidInputError for an empty cart or a non-positive price/quantity.
    A cart that qualifies for no rule is a normal result with no discount.
    """
    _validate_cart(cart)

    total_quantity = get_total_quantity(cart)
    original_total = get_cart_subtotal(cart)

    rule = find_best_promotion_rule(total_quantity, original_total, rules or ())
    if rule is None:
        return DiscountResult(
            original_total=to_number(original_total),
            final_total=to_number(original_total),
            total_discount=0,
            applied_promotions=[],
        )

    discount_amount = calculate_discount_amount(original_total, rule)
    final_total = original_total - discount_amount

    applied = AppliedPromotion(
        id=rule.id,
        description=rule.description,
        discount_type=rule.discount_type,
        discount_value=to_number(rule.discount_value),
        discount_amount=to_number(discount_amount),
        applied_to_quantity=total_quantity,
    )
    return DiscountResult(
        original_total=to_number(original_total),
        final_total=to_number(final_total),
        total_discount=to_number(discount_amount),
        applied_promotions=[applied],
    )


def get_promotion_tiers(rules: Sequence[PromotionRule] = DEFAULT_PROMOTION_RULES) -> List[PromotionRule]:
    """Active tiers, lowest threshold first, for display."""
    return sorted((rule for rule in rules if rule.active), key=lambda rule: rule.min_quantity)


def preview_discount_for_quantity(
    base_price: Number,
    quantity: int,
    rules: Sequence[PromotionRule] = DEFAULT_PROMOTION_RULES,
) -> dict:
    """What a single-product cart of `quantity` units would pay."""
    cart = [CartItem(id="preview", name="Sticker", price=base_price, quantity=quantity)]
    result = calculate_discount(cart, rules)

    applied_rule = None
    if result.applied_promotions:
        applied_id = result.applied_promotions[0].id
        applied_rule = next((rule for rule in rules if rule.id == applied_id), None)

    return {
        "original_total": result.original_total,
        "discount_amount": result.total_discount,
        "final_total": result.final_total,
        "applied_rule": applied_rule,
    }


def format_discount_display(promotion: AppliedPromotion) -> str:
    if promotion.discount_type == PERCENTAGE:
        return f"{to_number(promotion.discount_value)}% de descuento"
    return f"{format_currency(promotion.discount_value)} de descuento"
