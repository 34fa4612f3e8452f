import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional

from sqlmodel import Session, select

from app.core.errors import (
    AppError,
    InsufficientStock,
    InternalError,
    InvalidLineItem,
    NoOrdersFound,
    OrderTimeout,
    ProductNotFound,
)
from app.core.logging import get_logger
from app.db.session import begin_write, is_lock_timeout
from app.models.order import Order, OrderItem, OrderStatus
from app.services.product import ProductService

logger = get_logger(__name__)


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class PlacedOrder:
    order_id: int
    total_price: Decimal


def parse_lines(lines: Iterable[Mapping]) -> List[OrderLine]:
    """Check the shape of every submitted line before anything is written."""
    parsed = []
    for index, line in enumerate(lines):
        product_id = line.get("product_id")
        quantity = line.get("quantity")
        if product_id is None:
            raise InvalidLineItem(index, "product id is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidLineItem(index, "quantity must be an integer")
        if quantity <= 0:
            raise InvalidLineItem(index, "quantity must be greater than zero")
        parsed.append(OrderLine(product_id=product_id, quantity=quantity))
    if not parsed:
        raise InvalidLineItem(0, "order has no products")
    return parsed


class OrderService:
    def __init__(self, session: Session, products: Optional[ProductService] = None):
        self.session = session
        self.products = products or ProductService(session)

    # Store operations. None of these commit; place_order owns the transaction.

    def create_order(self, user_id: int, status: OrderStatus = OrderStatus.PENDING) -> Order:
        order = Order(user_id=user_id, status=status)
        self.session.add(order)
        self.session.flush()
        return order

    def add_order_item(self, order_id: int, product_id: int, quantity: int, price: Decimal) -> OrderItem:
        item = OrderItem(order_id=order_id, product_id=product_id, quantity=quantity, price=price)
        self.session.add(item)
        self.session.flush()
        return item

    def get_order_id_for_user(self, user_id: int) -> Optional[int]:
        return self.session.exec(
            select(Order.id).where(Order.user_id == user_id).order_by(Order.id.desc())
        ).first()

    def get_order_items(self, order_id: int) -> List[OrderItem]:
        return self.session.exec(
            select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        ).all()

    # Use cases

    def place_order(
        self,
        user_id: int,
        lines: Iterable[Mapping],
        status: OrderStatus = OrderStatus.PENDING,
        deadline: Optional[float] = None,
    ) -> PlacedOrder:
        """Create an order for ``user_id`` and take its products off stock.

        Everything happens in one transaction: the order header, every line
        item and every stock decrement commit together or not at all.
        ``deadline`` is a ``time.monotonic()`` value; once it passes the
        transaction is abandoned with ``OrderTimeout``, as is a wait for the
        store's write lock that runs out. A read transaction left open on
        the session (e.g. the caller's user lookup) is ended first.
        """
        parsed = parse_lines(lines)
        logger.info("Placing order for user %s with %d line(s)", user_id, len(parsed))

        try:
            begin_write(self.session)
            order = self.create_order(user_id, status)
            total_price = Decimal("0.00")

            for line in parsed:
                self._check_deadline(deadline)

                product = self.products.get_product_by_id(line.product_id, lock=True)
                if not product:
                    raise ProductNotFound(line.product_id)

                if product.stock < line.quantity:
                    raise InsufficientStock(product.id, product.name)

                # The price read above is the one charged and recorded
                price = product.price
                total_price += price * line.quantity

                self.add_order_item(order.id, product.id, line.quantity, price)

                if not self.products.update_product_stock(product.id, line.quantity):
                    # someone else took the stock between our read and write
                    raise InsufficientStock(product.id, product.name)

            order_id = order.id
            self._check_deadline(deadline)
            self.session.commit()
        except AppError as e:
            self.session.rollback()
            logger.warning("Order for user %s rejected: %s", user_id, e.message)
            raise
        except Exception as e:
            self.session.rollback()
            if is_lock_timeout(e):
                logger.warning("Order for user %s gave up waiting for the store lock", user_id)
                raise OrderTimeout() from e
            logger.exception("Order for user %s failed", user_id)
            raise InternalError() from e

        logger.info("Order %s placed for user %s, total %s", order_id, user_id, total_price)
        return PlacedOrder(order_id=order_id, total_price=total_price)

    def list_order_items(self, user_id: int) -> List[OrderItem]:
        # TODO: users only ever see their latest order; listing past orders by id needs a product decision
        order_id = self.get_order_id_for_user(user_id)
        if order_id is None:
            raise NoOrdersFound(user_id)
        return self.get_order_items(order_id)

    @staticmethod
    def _check_deadline(deadline: Optional[float]):
        if deadline is not None and time.monotonic() >= deadline:
            raise OrderTimeout()
