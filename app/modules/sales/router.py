from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core.config import settings
from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext, ALL_ROLES
from app.modules.sales.service import SalesOrderService
from app.modules.sales.schemas import (
    SalesOrderCreate, SalesOrderOut, SalesOrderList, SalesOrderStatus,
    SalesReturnCreate, SalesReturnOut, SalesReturnList
)

sales_router = APIRouter(tags=["Sales"])


@sales_router.get("/", response_model=SalesOrderList)
def list_sales_orders(
    status: Optional[SalesOrderStatus] = Query(None),
    customer_id: Optional[UUID] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return SalesOrderService(db).list_orders(status.value if status else None, customer_id, limit, offset)

@sales_router.post("/", response_model=SalesOrderOut, status_code=status.HTTP_201_CREATED)
def create_sales_order(
    data: SalesOrderCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "VENDAS"]))
):
    """Create a sales order, optionally with its receivable installments."""
    return SalesOrderService(db).create_order(data, auth_context.user_id)

@sales_router.get("/{order_id}", response_model=SalesOrderOut)
def get_sales_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return SalesOrderService(db).get_order(order_id)

@sales_router.post("/{order_id}/deliver", response_model=SalesOrderOut)
def deliver_sales_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "VENDAS", "ESTOQUE"]))
):
    """Deliver the order: stock OUT per physical item."""
    return SalesOrderService(db).deliver_order(order_id, auth_context.user_id)

@sales_router.post("/{order_id}/cancel", response_model=SalesOrderOut)
def cancel_sales_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "VENDAS"]))
):
    return SalesOrderService(db).cancel_order(order_id)

@sales_router.get("/{order_id}/returns", response_model=SalesReturnList)
def list_sales_returns(
    order_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "VENDAS", "ESTOQUE", "FINANCEIRO"]))
):
    return SalesOrderService(db).list_returns(order_id)

@sales_router.post("/{order_id}/returns", response_model=SalesReturnOut, status_code=status.HTTP_201_CREATED)
def create_sales_return(
    order_id: UUID,
    data: SalesReturnCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "VENDAS", "ESTOQUE"]))
):
    """Return items of a delivered order: stock IN per physical item, refund as credit or receivable deduction."""
    return SalesOrderService(db).create_return(order_id, data, auth_context.user_id)
