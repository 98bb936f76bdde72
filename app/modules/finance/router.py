from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from datetime import date

from app.core.config import settings
from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext, ALL_ROLES
from app.modules.finance.service import (
    PaymentMethodService, CashJournalService, AccountsPayableService,
    AccountsReceivableService, FinanceSummaryService
)
from app.modules.finance.validation import FinanceValidationService
from app.modules.finance.schemas import (
    PaymentMethodCreate, PaymentMethodOut,
    AccountPayableCreate, AccountPayableOut, AccountPayableList, PayAccountRequest,
    DeliveryCostBulkRequest, DeliveryCostBulkResult, PayableStatus,
    AccountReceivableCreate, AccountReceivableUpdate, AccountReceivableOut, AccountReceivableList,
    ReceiveAccountRequest, AccountReceivableReceiptOut, AccountReceivableReversalOut, ReceivableStatus,
    CashTransactionCreate, CashTransactionOut, CashTransactionList, CashflowOut,
    CashTransactionType, CashOrigin, FinanceSummaryOut, FinanceValidationOut
)

finance_router = APIRouter(tags=["Finance"])
payment_methods_router = APIRouter(tags=["Payment Methods"])

FINANCE_ROLES = ["ADMIN", "FINANCEIRO"]
RECEIVABLE_EDITORS = ["ADMIN", "VENDAS", "FINANCEIRO"]


# ===== PAYMENT METHODS =====

@payment_methods_router.get("/", response_model=List[PaymentMethodOut])
def list_payment_methods(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return PaymentMethodService(db).list_payment_methods()

@payment_methods_router.post("/", response_model=PaymentMethodOut, status_code=status.HTTP_201_CREATED)
def create_payment_method(
    data: PaymentMethodCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    return PaymentMethodService(db).create_payment_method(data)


# ===== ACCOUNTS PAYABLE =====

@finance_router.get("/ap", response_model=AccountPayableList)
def list_accounts_payable(
    status: Optional[PayableStatus] = Query(None),
    supplier_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None, description="Due date from"),
    end_date: Optional[date] = Query(None, description="Due date to"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountsPayableService(db).list_accounts(
        status.value if status else None, supplier_id, start_date, end_date, limit, offset
    )

@finance_router.post("/ap", response_model=AccountPayableOut, status_code=status.HTTP_201_CREATED)
def create_account_payable(
    data: AccountPayableCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    return AccountsPayableService(db).create_account(data, auth_context.user_id)

@finance_router.post("/ap/delivery-cost/bulk", response_model=DeliveryCostBulkResult)
def set_delivery_cost_flag(
    data: DeliveryCostBulkRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN", "FINANCEIRO", "COMPRAS"]))
):
    """Flag (or unflag) paid expenses as delivery cost."""
    return AccountsPayableService(db).set_delivery_cost_flag(data.ids, data.is_delivery_cost)

@finance_router.get("/ap/{account_id}", response_model=AccountPayableOut)
def get_account_payable(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountsPayableService(db).get_account(account_id)

@finance_router.post("/ap/{account_id}/pay", response_model=AccountPayableOut)
def pay_account_payable(
    account_id: UUID,
    data: PayAccountRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    """
    Pay an open account with a payment method and/or investor sources.
    The sum of the sources must match the account amount.
    """
    return AccountsPayableService(db).pay_account(account_id, data, auth_context.user_id)

@finance_router.post("/ap/{account_id}/reverse", response_model=AccountPayableOut)
def reverse_account_payable(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    return AccountsPayableService(db).reverse_account(account_id)


# ===== ACCOUNTS RECEIVABLE =====

@finance_router.get("/ar", response_model=AccountReceivableList)
def list_accounts_receivable(
    status: Optional[ReceivableStatus] = Query(None),
    customer_id: Optional[UUID] = Query(None),
    sales_order_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None, description="Due date from"),
    end_date: Optional[date] = Query(None, description="Due date to"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountsReceivableService(db).list_accounts(
        status.value if status else None, customer_id, sales_order_id, start_date, end_date, limit, offset
    )

@finance_router.post("/ar", response_model=AccountReceivableOut, status_code=status.HTTP_201_CREATED)
def create_account_receivable(
    data: AccountReceivableCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(RECEIVABLE_EDITORS))
):
    return AccountsReceivableService(db).create_account(data, auth_context.user_id)

@finance_router.get("/ar/{account_id}", response_model=AccountReceivableOut)
def get_account_receivable(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return AccountsReceivableService(db).get_account(account_id)

@finance_router.put("/ar/{account_id}", response_model=AccountReceivableOut)
def update_account_receivable(
    account_id: UUID,
    data: AccountReceivableUpdate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(RECEIVABLE_EDITORS))
):
    return AccountsReceivableService(db).update_account(account_id, data)

@finance_router.delete("/ar/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account_receivable(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(RECEIVABLE_EDITORS))
):
    AccountsReceivableService(db).delete_account(account_id)

@finance_router.post("/ar/{account_id}/receive", response_model=AccountReceivableReceiptOut)
def receive_account_receivable(
    account_id: UUID,
    data: ReceiveAccountRequest,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    """Full receipt by default; ``received_amount`` below the outstanding value is a partial receipt."""
    return AccountsReceivableService(db).receive_account(account_id, data, auth_context.user_id)

@finance_router.post("/ar/{account_id}/reverse", response_model=AccountReceivableReversalOut)
def reverse_account_receivable(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    return AccountsReceivableService(db).reverse_account(account_id)

@finance_router.post("/ar/{account_id}/cancel", response_model=AccountReceivableOut)
def cancel_account_receivable(
    account_id: UUID,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    return AccountsReceivableService(db).cancel_account(account_id)


# ===== CASH JOURNAL =====

@finance_router.get("/cashflow", response_model=CashflowOut)
def get_cashflow(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CashJournalService(db).cashflow(start_date, end_date)

@finance_router.get("/cash-transactions", response_model=CashTransactionList)
def list_cash_transactions(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    type: Optional[CashTransactionType] = Query(None),
    origin: Optional[CashOrigin] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CashJournalService(db).list_transactions(
        start_date, end_date,
        type.value if type else None,
        origin.value if origin else None,
        limit, offset
    )

@finance_router.post("/cash-transactions", response_model=CashTransactionOut, status_code=status.HTTP_201_CREATED)
def create_cash_transaction(
    data: CashTransactionCreate,
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(FINANCE_ROLES))
):
    return CashJournalService(db).create_manual_entry(data, auth_context.user_id)

@finance_router.get("/summary", response_model=FinanceSummaryOut)
def get_finance_summary(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return FinanceSummaryService(db).summary()

@finance_router.get("/validate", response_model=FinanceValidationOut)
def validate_finance(
    db: Session = Depends(get_db),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["ADMIN"]))
):
    """Read-only consistency report over cash, receivables and sale movements."""
    return FinanceValidationService(db).report()
