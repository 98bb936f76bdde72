from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext, ALL_ROLES
from app.modules.investors.service import InvestorService
from app.modules.investors.schemas import (
    InvestorCreate, InvestorUpdate, InvestorOut, InvestorDeleteResult, InvestorPaymentHistory
)

investors_router = APIRouter(tags=["Investors"])

INVESTOR_MANAGERS = ["ADMIN", "FINANCEIRO"]


@investors_router.get("/", response_model=List[InvestorOut])
def list_investors(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InvestorService(db).list_investors(active_only)

@investors_router.post("/", response_model=InvestorOut, status_code=status.HTTP_201_CREATED)
def create_investor(
    data: InvestorCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(INVESTOR_MANAGERS))
):
    return InvestorService(db).create_investor(data)

@investors_router.get("/{investor_id}", response_model=InvestorOut)
def get_investor(
    investor_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InvestorService(db).get_investor(investor_id)

@investors_router.put("/{investor_id}", response_model=InvestorOut)
def update_investor(
    investor_id: UUID,
    data: InvestorUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(INVESTOR_MANAGERS))
):
    return InvestorService(db).update_investor(investor_id, data)

@investors_router.delete("/{investor_id}", response_model=InvestorDeleteResult)
def delete_investor(
    investor_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(INVESTOR_MANAGERS))
):
    """Removes the investor, or deactivates it when it has funded payments."""
    return InvestorService(db).delete_investor(investor_id)

@investors_router.get("/{investor_id}/payments", response_model=InvestorPaymentHistory)
def get_investor_payments(
    investor_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return InvestorService(db).payment_history(investor_id)
