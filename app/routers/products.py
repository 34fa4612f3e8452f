from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from pydantic import BaseModel, StrictInt
from app.core.config import Settings
from app.core.errors import ProductNotFound
from app.db.session import get_session
from app.routers.auth import get_settings
from app.services.product import ProductService

router = APIRouter()

class ProductCreate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[StrictInt] = None

class ProductRead(BaseModel):
    id: int
    name: str
    price: float
    stock: int

class ProductCreated(BaseModel):
    message: str
    id: int

class ProductList(BaseModel):
    products: List[ProductRead]

def get_product_service(session: Session = Depends(get_session)) -> ProductService:
    return ProductService(session)

def to_read(product) -> ProductRead:
    return ProductRead(id=product.id, name=product.name, price=float(product.price), stock=product.stock)

@router.post("/", response_model=ProductCreated, status_code=status.HTTP_201_CREATED)
def create_product(product_in: ProductCreate, service: ProductService = Depends(get_product_service)):
    product = service.create_product(product_in.name, product_in.price, product_in.stock)
    return {"message": "Product added successfully!", "id": product.id}

@router.get("/", response_model=ProductList)
def read_products(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    service: ProductService = Depends(get_product_service),
    settings: Settings = Depends(get_settings),
):
    # Oversized pages are clamped, not rejected
    limit = min(limit or settings.PRODUCTS_DEFAULT_LIMIT, settings.PRODUCTS_MAX_LIMIT)
    return {"products": [to_read(p) for p in service.list_products(page=page, limit=limit)]}

@router.get("/{product_id}", response_model=ProductRead)
def read_product(product_id: int, service: ProductService = Depends(get_product_service)):
    product = service.get_product_by_id(product_id)
    if not product:
        raise ProductNotFound(product_id)
    return to_read(product)
