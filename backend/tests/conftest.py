import os
import tempfile

# Configure before anything under app/ is imported
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("SAFETAP_LOG_DIR", tempfile.mkdtemp(prefix="safetap-logs-"))
os.environ["ADMIN_API_KEY"] = "test-admin-key"

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import create_access_token
from app.main import app
from app.models import DiscountCode, DiscountTypeEnum, Promotion, PromotionDiscountTypeEnum

ADMIN_API_KEY = "test-admin-key"


@pytest.fixture
def engine():
    """In-memory SQLite DB shared by every session in the test."""
    _engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(_engine)
    yield _engine
    Base.metadata.drop_all(_engine)


@pytest.fixture
def db_session(engine):
    TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    s = TestSession()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client(engine):
    """FastAPI test client with get_db pointed at the in-memory DB."""
    TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        s = TestSession()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = create_access_token({"sub": "user-123"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return {"X-Admin-API-Key": ADMIN_API_KEY}


@pytest.fixture
def make_discount_code(db_session):
    def _make(code="SAFETAP10", type=DiscountTypeEnum.PERCENT, amount=10, **kwargs):
        dc = DiscountCode(code=code, type=type, amount=Decimal(str(amount)), **kwargs)
        db_session.add(dc)
        db_session.commit()
        db_session.refresh(dc)
        return dc
    return _make


@pytest.fixture
def make_promotion(db_session):
    def _make(min_quantity=2, discount_value=10, discount_type=PromotionDiscountTypeEnum.PERCENTAGE, **kwargs):
        kwargs.setdefault("name", f"Descuento por {min_quantity}+ Stickers")
        promotion = Promotion(
            min_quantity=min_quantity,
            discount_type=discount_type,
            discount_value=Decimal(str(discount_value)),
            **kwargs,
        )
        db_session.add(promotion)
        db_session.commit()
        db_session.refresh(promotion)
        return promotion
    return _make
