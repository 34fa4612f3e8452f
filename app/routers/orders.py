import time
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from pydantic import BaseModel, StrictInt
from app.core.config import Settings
from app.db.session import get_session
from app.models.order import OrderStatus
from app.models.user import User
from app.routers.auth import get_current_user, get_settings
from app.services.order import OrderService

router = APIRouter()

class OrderCreateItem(BaseModel):
    # Left optional so a bad line is reported by position, not as a schema error
    id: Optional[StrictInt] = None
    quantity: Optional[StrictInt] = None

class OrderCreate(BaseModel):
    status: OrderStatus = OrderStatus.PENDING
    products: List[OrderCreateItem]

class OrderPlaced(BaseModel):
    message: str
    order_id: int
    total_price: float

class OrderItemRead(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: float

class OrderItemList(BaseModel):
    items: List[OrderItemRead]

def get_order_service(session: Session = Depends(get_session)) -> OrderService:
    return OrderService(session)

@router.post("/", response_model=OrderPlaced, status_code=status.HTTP_201_CREATED)
def create_order(
    order_in: OrderCreate,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
    settings: Settings = Depends(get_settings),
):
    items_data = [{"product_id": item.id, "quantity": item.quantity} for item in order_in.products]
    placed = service.place_order(
        user_id=current_user.id,
        lines=items_data,
        status=order_in.status,
        deadline=time.monotonic() + settings.ORDER_TIMEOUT_SECONDS,
    )
    return {
        "message": "Order created successfully!",
        "order_id": placed.order_id,
        "total_price": float(placed.total_price),
    }

@router.get("/", response_model=OrderItemList)
def list_order_items(
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    items = service.list_order_items(current_user.id)
    return {
        "items": [
            OrderItemRead(
                id=item.id,
                order_id=item.order_id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=float(item.price),
            )
            for item in items
        ]
    }
