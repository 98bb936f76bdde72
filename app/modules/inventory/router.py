from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from uuid import UUID
from datetime import date
from sqlalchemy.orm import Session

from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.core.config import settings
from app.dependencies.dbDependecies import get_db
from app.modules.inventory.service import StockLedgerService
from app.modules.inventory.schemas import (
    StockBalanceList, StockMovementList, StockAdjustmentCreate, StockAdjustmentOut,
    StockAdjustmentResult, ReconcileResult, MovementType
)

stock_router = APIRouter(prefix="/stock", tags=["Stock Management"])
product_stock_router = APIRouter(prefix="/products", tags=["Stock Management"])


@stock_router.get("/balances", response_model=StockBalanceList)
def list_stock_balances(
    search: Optional[str] = Query(None, description="Search by name or SKU"),
    low_stock: bool = Query(False, description="Only products at or below the minimum stock"),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return StockLedgerService(db).list_balances(search, low_stock)

@stock_router.get("/movements", response_model=StockMovementList)
def list_stock_movements(
    product_id: Optional[UUID] = Query(None),
    type: Optional[MovementType] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return StockLedgerService(db).list_movements(
        product_id, type.value if type else None, start_date, end_date, limit, offset
    )


@product_stock_router.get("/{product_id}/adjustments", response_model=List[StockAdjustmentOut])
def list_product_adjustments(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    return StockLedgerService(db).list_adjustments(product_id)

@product_stock_router.post(
    "/{product_id}/adjustments",
    response_model=StockAdjustmentResult,
    status_code=status.HTTP_201_CREATED
)
def create_product_adjustment(
    product_id: UUID,
    data: StockAdjustmentCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "ESTOQUE", "FINANCEIRO"]))
):
    """Manual stock adjustment. Damage (AVARIA) requires a photo."""
    return StockLedgerService(db).create_adjustment(product_id, data, auth_context.user_id)

@product_stock_router.post("/{product_id}/reconcile", response_model=ReconcileResult)
def reconcile_product_stock(
    product_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "ESTOQUE"]))
):
    """Rebuild the cached balance from the movement history."""
    return StockLedgerService(db).reconcile_balance(product_id)
