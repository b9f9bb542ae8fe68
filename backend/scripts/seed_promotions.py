"""
Replace all promotions with the standard SafeTap quantity tiers.
Run from backend dir: python -m scripts.seed_promotions
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from app.core.db_transaction import db_transaction
from app.models.promotion import Promotion, PromotionDiscountTypeEnum

STANDARD_TIERS = [
    ("Descuento por 2+ Stickers", "10% de descuento por 2 o más stickers", 2, 10, 1),
    ("Descuento por 5+ Stickers", "15% de descuento por 5 o más stickers", 5, 15, 2),
    ("Descuento por 10+ Stickers", "20% de descuento por 10 o más stickers", 10, 20, 3),
    ("Descuento Empresarial", "25% de descuento por 25 o más stickers", 25, 25, 4),
]


def seed_promotions(db: Session = None) -> list:
    """Delete every promotion and insert the standard tiers. Returns the created rows."""
    created = []
    with db_transaction(db) as session:
        session.query(Promotion).delete()
        for name, description, min_quantity, percent, priority in STANDARD_TIERS:
            promotion = Promotion(
                name=name,
                description=description,
                min_quantity=min_quantity,
                discount_type=PromotionDiscountTypeEnum.PERCENTAGE,
                discount_value=percent,
                active=True,
                priority=priority,
            )
            session.add(promotion)
            created.append(promotion)
    return created


if __name__ == "__main__":
    print("Seeding promotions...")
    for name, _, min_quantity, percent, _ in STANDARD_TIERS:
        print(f"  {name}: {percent}% off for {min_quantity}+ items")
    seed_promotions()
    print("Promotions seeded successfully.")
