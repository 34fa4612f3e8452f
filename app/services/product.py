from typing import List, Optional
from decimal import Decimal
from sqlalchemy import update
from sqlmodel import Session, select
from app.core.errors import ValidationError
from app.core.logging import get_logger
from app.db.session import begin_write
from app.models.product import Product

logger = get_logger(__name__)

MIN_PRICE = Decimal("0.01")
MAX_PRICE = Decimal("99999999.99")

class ProductService:
    def __init__(self, session: Session):
        self.session = session

    def create_product(self, name: str, price, stock: int) -> Product:
        if not name or price is None or stock is None:
            raise ValidationError("All fields are required")
        if isinstance(price, bool) or not isinstance(price, (int, float, Decimal)):
            raise ValidationError("Invalid price")
        price = Decimal(str(price))
        # Stored as Numeric(10, 2): no sub-cent amounts, nothing that rounds to zero
        if not price.is_finite() or price < MIN_PRICE or price > MAX_PRICE \
                or price != price.quantize(MIN_PRICE):
            raise ValidationError("Invalid price")
        if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
            raise ValidationError("Invalid stock")

        begin_write(self.session)
        product = Product(name=name, price=price, stock=stock)
        self.session.add(product)
        self.session.commit()
        self.session.refresh(product)
        logger.info("Product %s created (%s, stock %s)", product.id, product.name, product.stock)
        return product

    def get_product_by_id(self, product_id: int, lock: bool = False) -> Optional[Product]:
        """Fresh read of the product row.

        ``lock`` takes a row lock (``SELECT ... FOR UPDATE``) where the backend
        has one; SQLite ignores it and relies on the write lock instead.
        """
        return self.session.get(
            Product,
            product_id,
            populate_existing=True,
            with_for_update=lock or None,
        )

    def list_products(self, page: int = 1, limit: int = 10) -> List[Product]:
        if page < 1:
            raise ValidationError("Invalid page")
        if limit < 1:
            raise ValidationError("Invalid limit")
        offset = (page - 1) * limit
        return self.session.exec(
            select(Product).order_by(Product.id).offset(offset).limit(limit)
        ).all()

    def update_product_stock(self, product_id: int, quantity: int) -> bool:
        """Take ``quantity`` units off the product's stock.

        The decrement only applies while enough stock is left, so it is safe
        against a concurrent order that read the same stock level. Returns
        False when no row was updated. Does not commit.
        """
        result = self.session.exec(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
