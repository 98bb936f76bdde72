from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.core.config import settings
from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext, ALL_ROLES
from app.modules.purchases.service import PurchaseOrderService
from app.modules.purchases.schemas import (
    PurchaseOrderCreate, PurchaseOrderOut, PurchaseOrderList, PurchaseOrderStatus
)
from app.modules.finance.schemas import InstallmentsRequest, AccountPayableOut
from app.modules.inventory.schemas import PurchaseReceiveRequest

purchases_router = APIRouter(tags=["Purchases"])


@purchases_router.get("/", response_model=PurchaseOrderList)
def list_purchase_orders(
    status: Optional[PurchaseOrderStatus] = Query(None),
    supplier_id: Optional[UUID] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PurchaseOrderService(db).list_orders(status.value if status else None, supplier_id, limit, offset)

@purchases_router.post("/", response_model=PurchaseOrderOut, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    data: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "COMPRAS"]))
):
    """Create a purchase order, optionally with its payable installments."""
    return PurchaseOrderService(db).create_order(data, auth_context.user_id)

@purchases_router.get("/{order_id}", response_model=PurchaseOrderOut)
def get_purchase_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PurchaseOrderService(db).get_order(order_id)

@purchases_router.post("/{order_id}/receive", response_model=PurchaseOrderOut)
def receive_purchase_order(
    order_id: UUID,
    data: Optional[PurchaseReceiveRequest] = None,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "COMPRAS", "ESTOQUE"]))
):
    """Receive the goods: stock IN per item and cost price update."""
    return PurchaseOrderService(db).receive_order(order_id, data or PurchaseReceiveRequest(), auth_context.user_id)

@purchases_router.post(
    "/{order_id}/accounts-payable",
    response_model=List[AccountPayableOut],
    status_code=status.HTTP_201_CREATED
)
def create_purchase_payables(
    order_id: UUID,
    data: InstallmentsRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "COMPRAS", "FINANCEIRO"]))
):
    return PurchaseOrderService(db).add_payables(order_id, data, auth_context.user_id)

@purchases_router.post("/{order_id}/cancel", response_model=PurchaseOrderOut)
def cancel_purchase_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "COMPRAS"]))
):
    return PurchaseOrderService(db).cancel_order(order_id)
