"""
Order installments

Turns the ``installments`` list of a purchase or sales order into OPEN
payable/receivable rows. The whole batch is validated before the first row
is written; rows are only flushed, the order service commits.
"""

from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from datetime import date
from decimal import Decimal
import logging

from app.modules.finance.models import AccountsPayable, AccountsReceivable, PayableStatus, ReceivableStatus
from app.modules.finance.schemas import InstallmentsRequest, InstallmentIn
from app.modules.finance.service import PaymentMethodService
from app.modules.categories.service import CategoryService
from app.common.exceptions import BadRequestError
from app.common.money import ZERO, to_decimal, quantize_money, sum_money, exceeds, format_money

logger = logging.getLogger(__name__)


def installment_description(order_id: UUID, index: int, count: int, custom: Optional[str] = None) -> str:
    if custom:
        return custom
    base = f"Order #{str(order_id)[:8]}"
    if count > 1:
        return f"{base} - Installment {index}/{count}"
    return base


def payment_days_between(start: date, due: date) -> Optional[int]:
    """Whole days from start to due, only when positive."""
    days = (due - start).days
    return days if days > 0 else None


class InstallmentService:
    def __init__(self, db: Session):
        self.db = db

    def _validate_references(self, data: InstallmentsRequest) -> None:
        CategoryService(self.db).require_category(data.category_id)
        methods = PaymentMethodService(self.db)
        for index, installment in enumerate(data.installments, start=1):
            if installment.payment_method_id:
                methods.require_payment_method(
                    installment.payment_method_id,
                    message=f"Payment method not found for installment {index}"
                )

    @staticmethod
    def _check_total(installments: List[InstallmentIn], existing: Decimal, order_total) -> None:
        new_total = sum_money(i.amount for i in installments)
        if exceeds(existing + new_total, order_total):
            available = max(to_decimal(order_total) - existing, ZERO)
            raise BadRequestError(
                f"Sum of installments ({format_money(existing + new_total)}) exceeds "
                f"the order total ({format_money(order_total)}). "
                f"Already committed: {format_money(existing)}. Available: {format_money(available)}",
                field="installments"
            )

    def create_payables_for_order(self, order, data: InstallmentsRequest, user_id: Optional[UUID] = None) -> List[AccountsPayable]:
        """One OPEN payable per installment; counts the order's existing OPEN payables."""
        self._validate_references(data)

        existing = sum_money(
            ap.amount for ap in self.db.query(AccountsPayable).filter(
                AccountsPayable.purchase_order_id == order.id,
                AccountsPayable.status == PayableStatus.OPEN
            ).all()
        )
        self._check_total(data.installments, existing, order.total)

        count = len(data.installments)
        accounts = []
        for index, installment in enumerate(data.installments, start=1):
            account = AccountsPayable(
                supplier_id=order.supplier_id,
                purchase_order_id=order.id,
                description=installment_description(order.id, index, count, installment.description),
                category_id=data.category_id,
                due_date=installment.due_date,
                amount=quantize_money(installment.amount),
                status=PayableStatus.OPEN,
                created_by=user_id,
            )
            self.db.add(account)
            accounts.append(account)

        self.db.flush()
        logger.info(f"{count} payable installments created for purchase order {order.id}")
        return accounts

    def create_receivables_for_order(
        self,
        order,
        data: InstallmentsRequest,
        sale_date: date,
        user_id: Optional[UUID] = None
    ) -> List[AccountsReceivable]:
        """One OPEN receivable per installment, with payment_days from the sale date."""
        self._validate_references(data)

        existing = sum_money(
            ar.amount for ar in self.db.query(AccountsReceivable).filter(
                AccountsReceivable.sales_order_id == order.id,
                AccountsReceivable.status.in_([ReceivableStatus.OPEN, ReceivableStatus.RECEIVED])
            ).all()
        )
        self._check_total(data.installments, existing, order.total)

        count = len(data.installments)
        accounts = []
        for index, installment in enumerate(data.installments, start=1):
            account = AccountsReceivable(
                customer_id=order.customer_id,
                sales_order_id=order.id,
                description=installment_description(order.id, index, count, installment.description),
                category_id=data.category_id,
                due_date=installment.due_date,
                amount=quantize_money(installment.amount),
                planned_payment_method_id=installment.payment_method_id,
                payment_days=payment_days_between(sale_date, installment.due_date),
                status=ReceivableStatus.OPEN,
                created_by=user_id,
            )
            self.db.add(account)
            accounts.append(account)

        self.db.flush()
        logger.info(f"{count} receivable installments created for sales order {order.id}")
        return accounts
