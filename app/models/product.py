from typing import Optional
from decimal import Decimal
from datetime import datetime
from sqlmodel import Field, SQLModel
from sqlalchemy import CheckConstraint, DateTime
from app.models.base import utc_now

class Product(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    name: str = Field(index=True)

    # Pricing
    price: Decimal = Field(max_digits=10, decimal_places=2)

    # Inventory
    stock: int = Field(default=0)

    # Metadata
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
