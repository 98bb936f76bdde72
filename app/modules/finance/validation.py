"""
Read-only consistency report over the cash journal, receivables and the
sale side of the stock ledger.

Nothing here writes. Each check returns the offending rows so an admin can
reverse or fix them through the regular operations.
"""

from sqlalchemy.orm import Session
from typing import List, Dict, Any, Tuple
from uuid import UUID
from decimal import Decimal
import logging

from app.modules.finance.models import (
    AccountsPayable, AccountsReceivable, CashTransaction,
    PayableStatus, ReceivableStatus, CashOrigin
)
from app.modules.finance.service import CashJournalService
from app.modules.sales.models import SalesOrder, SalesOrderStatus
from app.modules.products.models import StockMovement, MovementType, MovementReference
from app.common.money import ZERO, to_decimal, amounts_match, exceeds, format_money

logger = logging.getLogger(__name__)

UNDELIVERED_STATUSES = (SalesOrderStatus.DRAFT, SalesOrderStatus.CONFIRMED, SalesOrderStatus.CANCELED)


class FinanceValidationService:
    def __init__(self, db: Session):
        self.db = db

    # ===== CASH JOURNAL =====

    def _cash_issues(
        self,
        transactions: List[CashTransaction],
        payables: Dict[UUID, AccountsPayable],
        receivables: Dict[UUID, AccountsReceivable],
        orders: Dict[UUID, SalesOrder]
    ) -> List[Dict[str, Any]]:
        issues = []

        def flag(entry: CashTransaction, kind: str, message: str):
            issues.append({
                "transaction_id": entry.id,
                "origin": entry.origin.value,
                "origin_id": entry.origin_id,
                "amount": to_decimal(entry.amount),
                "kind": kind,
                "message": message,
            })

        for entry in transactions:
            if entry.origin == CashOrigin.AP:
                account = payables.get(entry.origin_id)
                if account is None:
                    flag(entry, "AP_MISSING", "Cash entry points to an account payable that does not exist")
                elif account.status != PayableStatus.PAID:
                    flag(entry, "AP_NOT_PAID", f"Account payable '{account.description}' is {account.status.value}")
                elif not amounts_match(entry.amount, account.amount):
                    flag(
                        entry, "AP_AMOUNT_MISMATCH",
                        f"Cash entry of {format_money(entry.amount)} for account payable "
                        f"'{account.description}' of {format_money(account.amount)}"
                    )
            elif entry.origin == CashOrigin.AR:
                account = receivables.get(entry.origin_id)
                if account is None:
                    flag(entry, "AR_MISSING", "Cash entry points to an account receivable that does not exist")
                elif account.status == ReceivableStatus.CANCELED:
                    flag(entry, "AR_CANCELED", f"Account receivable '{account.description}' is canceled")
                elif account.sales_order_id:
                    order = orders.get(account.sales_order_id)
                    if order is not None and order.status == SalesOrderStatus.CANCELED:
                        flag(
                            entry, "AR_CANCELED_ORDER",
                            f"Account receivable '{account.description}' belongs to a canceled sales order"
                        )
        return issues

    def _over_received_orders(
        self,
        transactions: List[CashTransaction],
        receivables: Dict[UUID, AccountsReceivable],
        orders: Dict[UUID, SalesOrder]
    ) -> List[Dict[str, Any]]:
        received: Dict[UUID, Decimal] = {}
        for entry in transactions:
            if entry.origin != CashOrigin.AR:
                continue
            account = receivables.get(entry.origin_id)
            if account is None or not account.sales_order_id:
                continue
            received[account.sales_order_id] = received.get(account.sales_order_id, ZERO) + to_decimal(entry.amount)

        result = []
        for order_id, total_received in received.items():
            order = orders.get(order_id)
            if order is not None and exceeds(total_received, order.total):
                result.append({
                    "sales_order_id": order.id,
                    "order_total": to_decimal(order.total),
                    "received_total": total_received,
                })
        return result

    # ===== RECEIVABLES x ORDERS =====

    def _receivables_on_undelivered_orders(
        self,
        receivables: Dict[UUID, AccountsReceivable],
        orders: Dict[UUID, SalesOrder]
    ) -> List[Dict[str, Any]]:
        result = []
        for account in receivables.values():
            if account.status == ReceivableStatus.CANCELED or not account.sales_order_id:
                continue
            order = orders.get(account.sales_order_id)
            if order is not None and order.status in UNDELIVERED_STATUSES:
                result.append({
                    "account_id": account.id,
                    "sales_order_id": order.id,
                    "order_status": order.status.value,
                    "status": account.status.value,
                    "amount": to_decimal(account.amount),
                })
        return result

    def _delivered_orders_without_receivable(
        self,
        receivables: Dict[UUID, AccountsReceivable],
        orders: Dict[UUID, SalesOrder]
    ) -> List[Dict[str, Any]]:
        covered = {
            ar.sales_order_id for ar in receivables.values()
            if ar.sales_order_id and ar.status in (ReceivableStatus.OPEN, ReceivableStatus.RECEIVED)
        }
        return [
            {"sales_order_id": order.id, "total": to_decimal(order.total), "sale_date": order.sale_date}
            for order in orders.values()
            if order.status == SalesOrderStatus.DELIVERED and order.id not in covered
        ]

    # ===== STOCK LEDGER =====

    def _sale_movement_issues(
        self,
        orders: Dict[UUID, SalesOrder]
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        movements = self.db.query(StockMovement).filter(
            StockMovement.reference_type == MovementReference.SALE,
            StockMovement.type == MovementType.OUT
        ).all()

        canceled = []
        counted: Dict[Tuple[UUID, UUID], int] = {}
        for movement in movements:
            order = orders.get(movement.reference_id)
            if order is not None and order.status == SalesOrderStatus.CANCELED:
                canceled.append({
                    "movement_id": movement.id,
                    "sales_order_id": order.id,
                    "product_id": movement.product_id,
                    "quantity": to_decimal(movement.quantity),
                })
            key = (movement.reference_id, movement.product_id)
            counted[key] = counted.get(key, 0) + 1

        duplicates = []
        for (order_id, product_id), count in counted.items():
            order = orders.get(order_id)
            expected = len([i for i in order.items if i.product_id == product_id]) if order is not None else 1
            if count > expected:
                duplicates.append({
                    "sales_order_id": order_id,
                    "product_id": product_id,
                    "movements": count,
                    "expected": expected,
                })
        return canceled, duplicates

    def report(self) -> Dict[str, Any]:
        transactions = self.db.query(CashTransaction).order_by(CashTransaction.date).all()
        payables = {ap.id: ap for ap in self.db.query(AccountsPayable).all()}
        receivables = {ar.id: ar for ar in self.db.query(AccountsReceivable).all()}
        orders = {o.id: o for o in self.db.query(SalesOrder).all()}

        cash_issues = self._cash_issues(transactions, payables, receivables, orders)
        over_received = self._over_received_orders(transactions, receivables, orders)
        on_undelivered = self._receivables_on_undelivered_orders(receivables, orders)
        without_receivable = self._delivered_orders_without_receivable(receivables, orders)
        canceled_movements, duplicate_movements = self._sale_movement_issues(orders)

        issue_count = (
            len(cash_issues) + len(over_received) + len(on_undelivered)
            + len(without_receivable) + len(canceled_movements) + len(duplicate_movements)
        )
        if issue_count:
            logger.warning(f"Finance validation found {issue_count} issues")

        totals = CashJournalService.totals(transactions)
        return {
            "cash": {**totals, "transactions": len(transactions)},
            "cash_issues": cash_issues,
            "over_received_orders": over_received,
            "receivables_on_undelivered_orders": on_undelivered,
            "delivered_orders_without_receivable": without_receivable,
            "canceled_sale_movements": canceled_movements,
            "duplicate_sale_movements": duplicate_movements,
            "issue_count": issue_count,
            "is_consistent": issue_count == 0,
        }
