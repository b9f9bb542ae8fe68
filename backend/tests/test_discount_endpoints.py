from datetime import datetime, timedelta, timezone

from app.models import DiscountCode, DiscountRedemption, DiscountTypeEnum


def test_validate_fixed_code(client, make_discount_code):
    make_discount_code(code="MIL", type=DiscountTypeEnum.FIXED, amount=2000)

    r = client.post("/api/v1/discounts/validate", json={"code": " mil ", "cartTotal": 1000})

    assert r.status_code == 200
    data = r.json()
    assert data["valid"] is True
    assert data["type"] == "FIXED"
    assert data["amount"] == 2000
    assert data["appliedDiscount"] == 1000
    assert data["newTotal"] == 0
    assert data["message"] == "Código aplicado exitosamente"
    assert data["discountCodeId"]


def test_validate_percent_code(client, make_discount_code):
    make_discount_code(code="SAFETAP10", amount=10)

    data = client.post("/api/v1/discounts/validate", json={"code": "safetap10", "cartTotal": 27960}).json()

    assert data["type"] == "PERCENT"
    assert data["appliedDiscount"] == 2796
    assert data["newTotal"] == 25164


def test_validate_does_not_consume_usage(client, db_session, make_discount_code):
    dc = make_discount_code(max_redemptions=1)

    for _ in range(3):
        assert client.post("/api/v1/discounts/validate", json={"code": "SAFETAP10", "cartTotal": 5000}).status_code == 200

    db_session.refresh(dc)
    assert dc.usage_count == 0


def test_validate_unknown_code(client):
    r = client.post("/api/v1/discounts/validate", json={"code": "NOPE", "cartTotal": 1000})

    assert r.status_code == 400
    assert r.json() == {"valid": False, "message": "Código de descuento no válido"}


def test_validate_expired_code(client, make_discount_code):
    make_discount_code(expires_at=datetime.now(timezone.utc) - timedelta(days=1))

    r = client.post("/api/v1/discounts/validate", json={"code": "SAFETAP10", "cartTotal": 1000})

    assert r.status_code == 400
    assert "expirado" in r.json()["message"]


def test_validate_exhausted_code(client, make_discount_code):
    make_discount_code(max_redemptions=1, usage_count=1)

    r = client.post("/api/v1/discounts/validate", json={"code": "SAFETAP10", "cartTotal": 1000})

    assert r.status_code == 400
    assert "agotado" in r.json()["message"]


def test_validate_rejects_blank_code_and_negative_total(client):
    blank = client.post("/api/v1/discounts/validate", json={"code": "   ", "cartTotal": 1000})
    negative = client.post("/api/v1/discounts/validate", json={"code": "X", "cartTotal": -5})

    assert blank.status_code == 400
    assert blank.json() == {"valid": False, "message": "Código requerido"}
    assert negative.status_code == 400
    assert negative.json() == {"valid": False, "message": "Total del carrito debe ser mayor a 0"}


def test_validate_missing_fields_keeps_valid_message_shape(client):
    r = client.post("/api/v1/discounts/validate", json={"cartTotal": 1000})

    assert r.status_code == 400
    assert r.json()["valid"] is False
    assert r.json()["message"]


def test_redeem_bad_body_is_400(client, auth_headers):
    r = client.post("/api/v1/discounts/redeem", json={"code": "", "cartTotal": 1000}, headers=auth_headers)

    assert r.status_code == 400
    assert r.json() == {"valid": False, "message": "Código requerido"}


def test_redeem_requires_authentication(client, make_discount_code):
    make_discount_code()

    r = client.post("/api/v1/discounts/redeem", json={"code": "SAFETAP10", "cartTotal": 1000})

    assert r.status_code == 401


def test_redeem_consumes_one_slot_per_call(client, db_session, make_discount_code, auth_headers):
    dc = make_discount_code(max_redemptions=2)
    body = {"code": "safetap10", "cartTotal": 10000}

    first = client.post("/api/v1/discounts/redeem", json=body, headers=auth_headers)
    second = client.post("/api/v1/discounts/redeem", json=body, headers=auth_headers)
    third = client.post("/api/v1/discounts/redeem", json=body, headers=auth_headers)

    assert first.status_code == 200 and first.json()["newTotal"] == 9000
    assert second.status_code == 200
    assert third.status_code == 400
    assert "agotado" in third.json()["message"]

    db_session.expire_all()
    assert db_session.get(DiscountCode, dc.id).usage_count == 2
    redemptions = db_session.query(DiscountRedemption).all()
    assert len(redemptions) == 2
    assert {r.user_id for r in redemptions} == {"user-123"}


def test_storage_failure_is_a_500(client, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from app.services import discount_codes

    def unavailable(db, code):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(discount_codes, "load_discount_code", unavailable)

    r = client.post("/api/v1/discounts/validate", json={"code": "SAFETAP10", "cartTotal": 1000})

    assert r.status_code == 500
    assert r.json() == {"detail": "Error interno del servidor"}
