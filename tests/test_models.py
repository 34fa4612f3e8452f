from datetime import timedelta
from decimal import Decimal

from app.models.order import Order
from app.models.product import Product
from app.models.user import User


def test_timestamps_default_to_aware_utc():
    rows = [
        Product(name="Keyboard", price=Decimal("10.00"), stock=1),
        User(name="Ana", email="ana@example.com", password_hash="x"),
        Order(user_id=1),
    ]

    for row in rows:
        assert row.created_at.tzinfo is not None
        assert row.created_at.utcoffset() == timedelta(0)


def test_updated_at_is_aware_too():
    assert Product(name="Keyboard", price=Decimal("10.00"), stock=1).updated_at.utcoffset() == timedelta(0)
    assert User(name="Ana", email="ana@example.com", password_hash="x").updated_at.utcoffset() == timedelta(0)
