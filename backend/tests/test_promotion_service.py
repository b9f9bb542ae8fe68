from datetime import datetime, timedelta, timezone

from app.core.config import settings
from app.models import Promotion, PromotionDiscountTypeEnum
from app.services.promotion_engine import DEFAULT_PROMOTION_RULES, CartItem, calculate_discount
from app.services.promotion_service import (
    find_overlapping_promotion,
    list_active_promotions,
    load_active_rules,
    log_applied_promotion,
    to_promotion_rule,
)
from scripts.seed_promotions import seed_promotions

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
DAY = timedelta(days=1)


def test_only_active_promotions_inside_window_are_loaded(db_session, make_promotion):
    make_promotion(min_quantity=2, name="open")
    make_promotion(min_quantity=3, name="running", start_date=NOW - DAY, end_date=NOW + DAY)
    make_promotion(min_quantity=4, name="starts-later", start_date=NOW + DAY)
    make_promotion(min_quantity=5, name="ended", end_date=NOW - DAY)
    make_promotion(min_quantity=6, name="disabled", active=False)
    make_promotion(min_quantity=7, name="open-end", start_date=NOW - DAY)

    rules = load_active_rules(db_session, now=NOW)

    assert sorted(r.min_quantity for r in rules) == [2, 3, 7]


def test_rules_ordered_by_priority_then_threshold(db_session, make_promotion):
    make_promotion(min_quantity=2, priority=1)
    make_promotion(min_quantity=10, priority=1)
    make_promotion(min_quantity=5, priority=3)

    rules = load_active_rules(db_session, now=NOW)

    assert [(r.priority, r.min_quantity) for r in rules] == [(3, 5), (1, 10), (1, 2)]


def test_stored_promotion_maps_to_lowercase_rule(db_session, make_promotion):
    promotion = make_promotion(
        min_quantity=5,
        discount_value=5000,
        discount_type=PromotionDiscountTypeEnum.FIXED,
        description=None,
        name="Cinco o más",
        priority=2,
    )

    rule = to_promotion_rule(promotion)

    assert rule.discount_type == "fixed"
    assert rule.discount_value == 5000
    assert isinstance(rule.discount_value, int)
    assert rule.description == "Cinco o más"
    assert rule.priority == 2


def test_stored_priority_drives_selection(db_session, make_promotion):
    make_promotion(min_quantity=2, discount_value=30, priority=5)
    make_promotion(min_quantity=5, discount_value=15, priority=1)

    result = calculate_discount(
        [CartItem(id="s", name="Sticker", price=1000, quantity=6)],
        load_active_rules(db_session, now=NOW),
    )

    assert result.total_discount == 1800


def test_default_tiers_only_when_enabled_and_store_is_empty(db_session, make_promotion, monkeypatch):
    assert load_active_rules(db_session, now=NOW) == []

    monkeypatch.setattr(settings, "USE_DEFAULT_PROMOTIONS", True)
    assert load_active_rules(db_session, now=NOW) == list(DEFAULT_PROMOTION_RULES)

    make_promotion(min_quantity=3)
    assert [r.min_quantity for r in load_active_rules(db_session, now=NOW)] == [3]


def test_list_active_promotions_lowest_threshold_first(db_session, make_promotion):
    make_promotion(min_quantity=10)
    make_promotion(min_quantity=2)
    make_promotion(min_quantity=5, active=False)

    assert [p.min_quantity for p in list_active_promotions(db_session, now=NOW)] == [2, 10]


def test_overlap_detection(db_session, make_promotion):
    existing = make_promotion(min_quantity=5, start_date=NOW, end_date=NOW + 10 * DAY)

    assert find_overlapping_promotion(db_session, 5, NOW + DAY, NOW + 2 * DAY).id == existing.id
    assert find_overlapping_promotion(db_session, 5, NOW + 11 * DAY, NOW + 12 * DAY) is None
    assert find_overlapping_promotion(db_session, 3, NOW + DAY, NOW + 2 * DAY) is None
    assert find_overlapping_promotion(db_session, 5, NOW + DAY, NOW + 2 * DAY, exclude_id=existing.id) is None


def test_log_applied_promotion_writes_analytics_line(caplog):
    cart = [CartItem(id="s", name="Sticker", price=6990, quantity=2)]
    result = calculate_discount(cart, list(DEFAULT_PROMOTION_RULES))

    with caplog.at_level("INFO", logger="safetap.promotion_service"):
        log_applied_promotion("user-1", cart, result)

    record = next(r for r in caplog.records if r.name == "safetap.promotion_service")
    assert record.promotion_id == "bulk-2-plus"
    assert record.user_id == "user-1"
    assert record.total_quantity == 2


def test_log_applied_promotion_skips_when_nothing_applied(caplog):
    cart = [CartItem(id="s", name="Sticker", price=6990, quantity=1)]
    result = calculate_discount(cart, [])

    with caplog.at_level("INFO", logger="safetap.promotion_service"):
        log_applied_promotion("user-1", cart, result)

    assert not [r for r in caplog.records if r.name == "safetap.promotion_service"]


def test_seed_promotions_replaces_existing(db_session, make_promotion):
    make_promotion(min_quantity=99)

    seed_promotions(db_session)

    promotions = db_session.query(Promotion).order_by(Promotion.min_quantity).all()
    assert [p.min_quantity for p in promotions] == [2, 5, 10, 25]
    assert [p.priority for p in promotions] == [1, 2, 3, 4]
