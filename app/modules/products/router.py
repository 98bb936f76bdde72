from fastapi import APIRouter, status, Depends, Query
from uuid import UUID
from typing import Optional
from sqlalchemy.orm import Session

from app.core.config import settings
from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.products import service
from app.modules.products.schemas import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductType,
    PaginatedProductResponse,
)

product_router = APIRouter(prefix="/products", tags=["Products"])


@product_router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "COMPRAS", "ESTOQUE"]))
):
    """Create a new product."""
    return service.create_product(db, data)

@product_router.get("/", response_model=PaginatedProductResponse)
def list_products(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role()),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Search by name or SKU"),
    type: Optional[ProductType] = Query(None),
    is_active: Optional[bool] = Query(None)
):
    return service.get_all_products(
        db,
        page=page,
        limit=limit,
        search=search,
        type=type.value if type else None,
        is_active=is_active
    )

@product_router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return service.get_product_by_id(db, product_id)

@product_router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "COMPRAS", "ESTOQUE"]))
):
    return service.update_product(db, product_id, data)
