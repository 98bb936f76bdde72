"""
Business services for the finance module

- CashJournalService: append/remove cash journal entries
- AccountsPayableService: pay (single method or investor split), reverse,
  bulk delivery-cost flag
- AccountsReceivableService: full and partial receipt, reverse with amount
  restoration, guarded update/delete/cancel
- FinanceSummaryService: open/paid/overdue totals

Every state-changing operation validates everything first, then writes and
commits once. The row whose status gates the operation is read with
SELECT ... FOR UPDATE so a concurrent second writer fails its precondition.
"""

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional, Dict, Any
from uuid import UUID
from datetime import datetime, date, time, timedelta, timezone
from decimal import Decimal
import logging

from app.modules.finance.models import (
    AccountsPayable, AccountsReceivable, PaymentSource, CashTransaction, PaymentMethod,
    PayableStatus, ReceivableStatus, CashTransactionType, CashOrigin
)
from app.modules.finance.schemas import (
    PaymentMethodCreate, AccountPayableCreate, PayAccountRequest, SplitSources,
    AccountReceivableCreate, AccountReceivableUpdate, ReceiveAccountRequest,
    AccountReceivableOut, AccountReceivableReceiptOut, AccountReceivableReversalOut,
    CashTransactionCreate
)
from app.modules.investors.models import Investor
from app.modules.categories.service import CategoryService
from app.modules.contacts.service import ContactService
from app.common.exceptions import BadRequestError, NotFoundError, InternalError
from app.common.money import (
    ZERO, MONEY_TOLERANCE, to_decimal, quantize_money, sum_money, amounts_match, exceeds, format_money
)

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentMethodService:
    def __init__(self, db: Session):
        self.db = db

    def create_payment_method(self, data: PaymentMethodCreate) -> PaymentMethod:
        existing = self.db.query(PaymentMethod).filter(PaymentMethod.name == data.name).first()
        if existing:
            raise BadRequestError(f"Payment method '{data.name}' already exists", field="name")
        try:
            method = PaymentMethod(name=data.name)
            self.db.add(method)
            self.db.commit()
            self.db.refresh(method)
            return method
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating payment method: {e}")
            raise InternalError(f"Error creating payment method: {str(e)}")

    def list_payment_methods(self, active_only: bool = True) -> List[PaymentMethod]:
        query = self.db.query(PaymentMethod)
        if active_only:
            query = query.filter(PaymentMethod.is_active == True)
        return query.order_by(PaymentMethod.name).all()

    def require_payment_method(self, payment_method_id: UUID, message: str = "Payment method not found") -> PaymentMethod:
        method = self.db.query(PaymentMethod).filter(PaymentMethod.id == payment_method_id).first()
        if not method:
            raise NotFoundError(message, field="payment_method_id")
        return method


class CashJournalService:
    """
    Cash journal.

    ``record`` and ``remove_for_origin`` only flush: the AP/AR service that
    calls them owns the transaction and commits once.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        type: CashTransactionType,
        origin: CashOrigin,
        origin_id: Optional[UUID],
        amount: Decimal,
        date: datetime,
        description: Optional[str] = None,
        category_id: Optional[UUID] = None,
        created_by: Optional[UUID] = None
    ) -> CashTransaction:
        entry = CashTransaction(
            type=type,
            origin=origin,
            origin_id=origin_id,
            amount=quantize_money(amount),
            date=date,
            description=description,
            category_id=category_id,
            created_by=created_by,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def entries_for_origin(self, origin: CashOrigin, origin_id: UUID) -> List[CashTransaction]:
        return self.db.query(CashTransaction).filter(
            CashTransaction.origin == origin,
            CashTransaction.origin_id == origin_id
        ).all()

    def total_for_origin(self, origin: CashOrigin, origin_id: UUID) -> Decimal:
        return sum_money(entry.amount for entry in self.entries_for_origin(origin, origin_id))

    def remove_for_origin(self, origin: CashOrigin, origin_id: UUID) -> List[CashTransaction]:
        entries = self.entries_for_origin(origin, origin_id)
        for entry in entries:
            self.db.delete(entry)
        self.db.flush()
        return entries

    def create_manual_entry(self, data: CashTransactionCreate, user_id: UUID) -> CashTransaction:
        """Entry typed in by a user (origin MANUAL, no origin id)."""
        try:
            CategoryService(self.db).require_category(data.category_id)
            entry = self.record(
                CashTransactionType(data.type.value),
                CashOrigin.MANUAL,
                None,
                data.amount,
                data.date or utcnow(),
                description=data.description,
                category_id=data.category_id,
                created_by=user_id,
            )
            self.db.commit()
            self.db.refresh(entry)
            logger.info(f"Manual cash entry {entry.id}: {entry.type.value} {format_money(entry.amount)}")
            return entry
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating cash entry: {e}")
            raise InternalError(f"Error creating cash entry: {str(e)}")

    def _filtered(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        type: Optional[str] = None,
        origin: Optional[str] = None
    ):
        query = self.db.query(CashTransaction)
        if start_date:
            query = query.filter(CashTransaction.date >= datetime.combine(start_date, time.min))
        if end_date:
            query = query.filter(CashTransaction.date < datetime.combine(end_date + timedelta(days=1), time.min))
        if type:
            query = query.filter(CashTransaction.type == CashTransactionType(type))
        if origin:
            query = query.filter(CashTransaction.origin == CashOrigin(origin))
        return query

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        type: Optional[str] = None,
        origin: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self._filtered(start_date, end_date, type, origin)
        total = query.count()
        transactions = query.order_by(CashTransaction.date.desc()).offset(offset).limit(limit).all()
        return {"transactions": transactions, "total": total, "limit": limit, "offset": offset}

    @staticmethod
    def totals(transactions: List[CashTransaction]) -> Dict[str, Decimal]:
        total_in = sum_money(t.amount for t in transactions if t.type == CashTransactionType.IN)
        total_out = sum_money(t.amount for t in transactions if t.type == CashTransactionType.OUT)
        return {"total_in": total_in, "total_out": total_out, "balance": total_in - total_out}

    def cashflow(self, start_date: Optional[date], end_date: Optional[date]) -> Dict[str, Any]:
        """Transactions in the period plus IN/OUT totals; both bounds are required."""
        if not start_date or not end_date:
            raise BadRequestError("start_date and end_date are required")
        if end_date < start_date:
            raise BadRequestError("end_date must be on or after start_date")

        transactions = self._filtered(start_date, end_date).order_by(CashTransaction.date).all()
        return {"transactions": transactions, "summary": self.totals(transactions)}


class AccountsPayableService:
    """Accounts payable lifecycle: OPEN -> PAID -> OPEN (reversal)"""

    def __init__(self, db: Session):
        self.db = db
        self.journal = CashJournalService(db)

    def _lock_account(self, account_id: UUID) -> AccountsPayable:
        account = self.db.query(AccountsPayable).filter(
            AccountsPayable.id == account_id
        ).with_for_update().first()
        if not account:
            raise NotFoundError("Account payable not found")
        return account

    def create_account(self, data: AccountPayableCreate, user_id: UUID) -> AccountsPayable:
        """Manual payable, not tied to a purchase order."""
        try:
            if data.supplier_id:
                ContactService(self.db).require_provider(data.supplier_id)
            CategoryService(self.db).require_category(data.category_id)

            account = AccountsPayable(
                supplier_id=data.supplier_id,
                purchase_order_id=None,
                description=data.description,
                category_id=data.category_id,
                due_date=data.due_date,
                amount=quantize_money(data.amount),
                status=PayableStatus.OPEN,
                created_by=user_id,
            )
            self.db.add(account)
            self.db.commit()
            self.db.refresh(account)
            logger.info(f"Account payable {account.id} created ({format_money(account.amount)})")
            return account

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating account payable: {e}")
            raise InternalError(f"Error creating account payable: {str(e)}")

    def list_accounts(
        self,
        status: Optional[str] = None,
        supplier_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self.db.query(AccountsPayable).options(
            selectinload(AccountsPayable.payment_sources).selectinload(PaymentSource.investor)
        )
        if status:
            query = query.filter(AccountsPayable.status == PayableStatus(status))
        if supplier_id:
            query = query.filter(AccountsPayable.supplier_id == supplier_id)
        if start_date:
            query = query.filter(AccountsPayable.due_date >= start_date)
        if end_date:
            query = query.filter(AccountsPayable.due_date <= end_date)

        total = query.count()
        accounts = query.order_by(AccountsPayable.due_date).offset(offset).limit(limit).all()
        return {"accounts": accounts, "total": total, "limit": limit, "offset": offset}

    def get_account(self, account_id: UUID) -> AccountsPayable:
        account = self.db.query(AccountsPayable).filter(AccountsPayable.id == account_id).first()
        if not account:
            raise NotFoundError("Account payable not found")
        return account

    def _validate_sources(self, account: AccountsPayable, spec: SplitSources) -> None:
        total = sum_money(source.amount for source in spec.sources)
        if not amounts_match(total, account.amount):
            raise BadRequestError(
                f"Sum of payment sources ({format_money(total)}) does not match "
                f"the account amount ({format_money(account.amount)})",
                field="payment_sources"
            )

        investor_ids = {source.investor_id for source in spec.sources}
        active_count = self.db.query(Investor).filter(
            Investor.id.in_(list(investor_ids)),
            Investor.is_active == True
        ).count()
        if active_count != len(investor_ids):
            raise BadRequestError(
                "One or more investors do not exist or are inactive",
                field="payment_sources"
            )

    def pay_account(self, account_id: UUID, data: PayAccountRequest, user_id: UUID) -> AccountsPayable:
        """
        Pay an open account.

        Either a payment method, investor sources, or both. Writes status,
        sources and exactly one OUT cash entry for the full amount.
        """
        try:
            account = self._lock_account(account_id)
            if account.status != PayableStatus.OPEN:
                raise BadRequestError("Account is already paid")

            spec = data.to_payment_spec()
            if spec.payment_method_id:
                PaymentMethodService(self.db).require_payment_method(spec.payment_method_id)
            sources = []
            if isinstance(spec, SplitSources):
                self._validate_sources(account, spec)
                sources = spec.sources

            paid_at = data.paid_at or utcnow()
            account.status = PayableStatus.PAID
            account.paid_at = paid_at
            account.payment_method_id = spec.payment_method_id

            for position, source in enumerate(sources):
                account.payment_sources.append(PaymentSource(
                    investor_id=source.investor_id,
                    amount=quantize_money(source.amount),
                    position=position,
                ))

            self.journal.record(
                CashTransactionType.OUT,
                CashOrigin.AP,
                account.id,
                account.amount,
                paid_at,
                description=account.description,
                category_id=account.category_id,
                created_by=user_id,
            )

            self.db.commit()
            self.db.refresh(account)
            logger.info(
                f"Account payable {account.id} paid ({format_money(account.amount)}, "
                f"{len(sources)} investor sources)"
            )
            return account

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error paying account payable {account_id}: {e}")
            raise InternalError(f"Error paying account: {str(e)}")

    def reverse_account(self, account_id: UUID) -> AccountsPayable:
        """Undo a payment: sources and AP cash entries removed, account OPEN again."""
        try:
            account = self._lock_account(account_id)
            if account.status != PayableStatus.PAID:
                raise BadRequestError("Only paid accounts can be reversed")

            account.payment_sources.clear()
            removed = self.journal.remove_for_origin(CashOrigin.AP, account.id)

            account.status = PayableStatus.OPEN
            account.paid_at = None
            account.payment_method_id = None
            account.is_delivery_cost = False

            self.db.commit()
            self.db.refresh(account)
            logger.info(f"Account payable {account.id} reversed ({len(removed)} cash entries removed)")
            return account

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error reversing account payable {account_id}: {e}")
            raise InternalError(f"Error reversing account: {str(e)}")

    def set_delivery_cost_flag(self, ids: List[UUID], is_delivery_cost: bool) -> Dict[str, Any]:
        """Flag or unflag paid expenses as delivery cost, all or nothing."""
        try:
            requested = set(ids)
            accounts = self.db.query(AccountsPayable).filter(
                AccountsPayable.id.in_(list(requested))
            ).with_for_update().all()

            if len(accounts) != len(requested):
                raise NotFoundError(
                    f"{len(requested) - len(accounts)} of {len(requested)} accounts payable not found"
                )

            unpaid = [a for a in accounts if a.status != PayableStatus.PAID]
            if unpaid:
                raise BadRequestError(
                    f"Only paid expenses can be flagged as delivery cost ({len(unpaid)} not paid)"
                )

            for account in accounts:
                account.is_delivery_cost = is_delivery_cost

            self.db.commit()
            logger.info(f"Delivery cost flag set to {is_delivery_cost} on {len(accounts)} accounts")
            return {"updated_count": len(accounts), "is_delivery_cost": is_delivery_cost}

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating delivery cost flag: {e}")
            raise InternalError(f"Error updating delivery cost flag: {str(e)}")


class AccountsReceivableService:
    """
    Accounts receivable lifecycle: OPEN -> RECEIVED -> OPEN (reversal),
    OPEN -> CANCELED.

    A partial receipt lowers ``amount`` to the outstanding value and
    journals only what was received, so the journal is the history of
    every receipt made against the row.
    """

    def __init__(self, db: Session):
        self.db = db
        self.journal = CashJournalService(db)

    def _lock_account(self, account_id: UUID) -> AccountsReceivable:
        account = self.db.query(AccountsReceivable).filter(
            AccountsReceivable.id == account_id
        ).with_for_update().first()
        if not account:
            raise NotFoundError("Account receivable not found")
        return account

    def _get_order(self, sales_order_id: UUID):
        from app.modules.sales.models import SalesOrder

        order = self.db.query(SalesOrder).filter(SalesOrder.id == sales_order_id).first()
        if not order:
            raise NotFoundError("Sales order not found", field="sales_order_id")
        return order

    def _journaled_by_account(self, account_ids: List[UUID]) -> Dict[UUID, Decimal]:
        totals: Dict[UUID, Decimal] = {}
        if not account_ids:
            return totals
        entries = self.db.query(CashTransaction).filter(
            CashTransaction.origin == CashOrigin.AR,
            CashTransaction.origin_id.in_(account_ids)
        ).all()
        for entry in entries:
            totals[entry.origin_id] = totals.get(entry.origin_id, ZERO) + to_decimal(entry.amount)
        return totals

    @staticmethod
    def committed_value(account: AccountsReceivable, journaled: Decimal) -> Decimal:
        """
        Value of a receivable before any receipt.

        A partial receipt lowers ``amount`` and journals the difference, so
        an OPEN row is worth its amount plus its receipts. A RECEIVED row
        is worth what a reversal would restore.
        """
        amount = to_decimal(account.amount)
        if account.status == ReceivableStatus.RECEIVED:
            return max(amount, journaled)
        return amount + journaled

    def _order_receivables_total(self, sales_order_id: UUID, statuses, exclude_id: Optional[UUID] = None) -> Decimal:
        query = self.db.query(AccountsReceivable).filter(
            AccountsReceivable.sales_order_id == sales_order_id,
            AccountsReceivable.status.in_(statuses)
        )
        if exclude_id:
            query = query.filter(AccountsReceivable.id != exclude_id)
        accounts = query.all()
        journaled = self._journaled_by_account([ar.id for ar in accounts])
        return sum_money(self.committed_value(ar, journaled.get(ar.id, ZERO)) for ar in accounts)

    def _check_order_headroom(self, order, committed: Decimal, new_amount: Decimal) -> None:
        if exceeds(committed + new_amount, order.total):
            available = max(to_decimal(order.total) - committed, ZERO)
            raise BadRequestError(
                f"Sum of receivables ({format_money(committed + new_amount)}) exceeds "
                f"the order total ({format_money(order.total)}). Available: {format_money(available)}",
                field="amount"
            )

    def create_account(self, data: AccountReceivableCreate, user_id: UUID) -> AccountsReceivable:
        try:
            if data.customer_id:
                ContactService(self.db).require_client(data.customer_id)
            CategoryService(self.db).require_category(data.category_id)

            if data.sales_order_id:
                order = self._get_order(data.sales_order_id)
                committed = self._order_receivables_total(
                    order.id, [ReceivableStatus.OPEN, ReceivableStatus.RECEIVED]
                )
                self._check_order_headroom(order, committed, to_decimal(data.amount))

            account = AccountsReceivable(
                customer_id=data.customer_id,
                sales_order_id=data.sales_order_id,
                description=data.description,
                category_id=data.category_id,
                due_date=data.due_date,
                amount=quantize_money(data.amount),
                payment_days=data.payment_days,
                status=ReceivableStatus.OPEN,
                created_by=user_id,
            )
            self.db.add(account)
            self.db.commit()
            self.db.refresh(account)
            logger.info(f"Account receivable {account.id} created ({format_money(account.amount)})")
            return account

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating account receivable: {e}")
            raise InternalError(f"Error creating account receivable: {str(e)}")

    def list_accounts(
        self,
        status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
        sales_order_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self.db.query(AccountsReceivable)
        if status:
            query = query.filter(AccountsReceivable.status == ReceivableStatus(status))
        if customer_id:
            query = query.filter(AccountsReceivable.customer_id == customer_id)
        if sales_order_id:
            query = query.filter(AccountsReceivable.sales_order_id == sales_order_id)
        if start_date:
            query = query.filter(AccountsReceivable.due_date >= start_date)
        if end_date:
            query = query.filter(AccountsReceivable.due_date <= end_date)

        total = query.count()
        accounts = query.order_by(AccountsReceivable.due_date).offset(offset).limit(limit).all()
        return {"accounts": accounts, "total": total, "limit": limit, "offset": offset}

    def get_account(self, account_id: UUID) -> AccountsReceivable:
        account = self.db.query(AccountsReceivable).filter(AccountsReceivable.id == account_id).first()
        if not account:
            raise NotFoundError("Account receivable not found")
        return account

    def receive_account(
        self,
        account_id: UUID,
        data: ReceiveAccountRequest,
        user_id: UUID
    ) -> AccountReceivableReceiptOut:
        """
        Register a receipt.

        Without ``received_amount`` (or when it covers the outstanding
        amount) the account becomes RECEIVED. A smaller value is a partial
        receipt: the outstanding amount drops and the status stays OPEN.
        """
        try:
            account = self._lock_account(account_id)
            if account.status == ReceivableStatus.RECEIVED:
                raise BadRequestError("Account has already been received")
            if account.status != ReceivableStatus.OPEN:
                raise BadRequestError("Only open accounts can be received")

            if data.payment_method_id:
                PaymentMethodService(self.db).require_payment_method(data.payment_method_id)

            outstanding = to_decimal(account.amount)
            received = quantize_money(data.received_amount) if data.received_amount is not None else outstanding
            if received > outstanding:
                raise BadRequestError(
                    f"Received amount ({format_money(received)}) cannot exceed "
                    f"the outstanding amount ({format_money(outstanding)})",
                    field="received_amount"
                )

            remaining = outstanding - received
            is_partial = remaining > MONEY_TOLERANCE
            received_at = data.received_at or utcnow()

            if is_partial:
                account.amount = quantize_money(remaining)
                description = (
                    f"{account.description} (Partial receipt: {format_money(received)} "
                    f"of {format_money(outstanding)})"
                )
            else:
                account.status = ReceivableStatus.RECEIVED
                account.received_at = received_at
                account.payment_method_id = data.payment_method_id
                description = account.description

            self.journal.record(
                CashTransactionType.IN,
                CashOrigin.AR,
                account.id,
                received,
                received_at,
                description=description,
                category_id=account.category_id,
                created_by=user_id,
            )

            self.db.commit()
            self.db.refresh(account)
            logger.info(
                f"Account receivable {account.id} received {format_money(received)} "
                f"({'partial' if is_partial else 'full'})"
            )

            return AccountReceivableReceiptOut(
                **AccountReceivableOut.model_validate(account).model_dump(),
                received_amount=received,
                remaining_amount=remaining if is_partial else ZERO,
                is_partial=is_partial,
            )

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error receiving account receivable {account_id}: {e}")
            raise InternalError(f"Error receiving account: {str(e)}")

    def reverse_account(self, account_id: UUID) -> AccountReceivableReversalOut:
        """
        Undo the receipts of a RECEIVED account.

        The final receipt journals the stored amount itself, so the sum of
        the journal entries is the pre-receipt amount; it never drops below
        the stored amount.
        """
        try:
            account = self._lock_account(account_id)
            if account.status != ReceivableStatus.RECEIVED:
                raise BadRequestError("Only received accounts can be reversed")

            journaled = self.journal.total_for_origin(CashOrigin.AR, account.id)
            restored = quantize_money(max(to_decimal(account.amount), journaled))
            removed = self.journal.remove_for_origin(CashOrigin.AR, account.id)

            account.status = ReceivableStatus.OPEN
            account.received_at = None
            account.payment_method_id = None
            account.amount = restored

            self.db.commit()
            self.db.refresh(account)
            logger.info(
                f"Account receivable {account.id} reversed: amount restored to "
                f"{format_money(restored)}, {len(removed)} cash entries removed"
            )

            return AccountReceivableReversalOut(
                **AccountReceivableOut.model_validate(account).model_dump(),
                restored_amount=restored,
                transactions_removed=len(removed),
            )

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error reversing account receivable {account_id}: {e}")
            raise InternalError(f"Error reversing account: {str(e)}")

    def _has_partial_receipts(self, account: AccountsReceivable) -> bool:
        return len(self.journal.entries_for_origin(CashOrigin.AR, account.id)) > 0

    def update_account(self, account_id: UUID, data: AccountReceivableUpdate) -> AccountsReceivable:
        try:
            account = self._lock_account(account_id)
            if account.status == ReceivableStatus.RECEIVED:
                raise BadRequestError("Received accounts cannot be edited")
            if account.status == ReceivableStatus.CANCELED:
                raise BadRequestError("Canceled accounts cannot be edited")

            changes = data.model_dump(exclude_unset=True)
            if changes.get("category_id"):
                CategoryService(self.db).require_category(changes["category_id"])

            new_amount = changes.get("amount")
            if new_amount is not None and to_decimal(new_amount) != to_decimal(account.amount):
                if self._has_partial_receipts(account):
                    raise BadRequestError(
                        "Amount cannot be changed after partial receipts were registered",
                        field="amount"
                    )
                if account.sales_order_id:
                    order = self._get_order(account.sales_order_id)
                    others = self._order_receivables_total(
                        order.id, [ReceivableStatus.OPEN], exclude_id=account.id
                    )
                    self._check_order_headroom(order, others, to_decimal(new_amount))
                changes["amount"] = quantize_money(new_amount)

            for key, value in changes.items():
                if key in ("description", "due_date", "amount") and value is None:
                    continue
                setattr(account, key, value)

            self.db.commit()
            self.db.refresh(account)
            return account

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating account receivable {account_id}: {e}")
            raise InternalError(f"Error updating account: {str(e)}")

    def delete_account(self, account_id: UUID) -> None:
        try:
            account = self._lock_account(account_id)
            if account.status == ReceivableStatus.RECEIVED:
                raise BadRequestError("Received accounts cannot be deleted")
            if self._has_partial_receipts(account):
                raise BadRequestError("Accounts with partial receipts cannot be deleted")

            self.db.delete(account)
            self.db.commit()
            logger.info(f"Account receivable {account_id} deleted")

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting account receivable {account_id}: {e}")
            raise InternalError(f"Error deleting account: {str(e)}")

    def cancel_account(self, account_id: UUID) -> AccountsReceivable:
        """OPEN -> CANCELED, terminal."""
        try:
            account = self._lock_account(account_id)
            if account.status != ReceivableStatus.OPEN:
                raise BadRequestError("Only open accounts can be canceled")
            if self._has_partial_receipts(account):
                raise BadRequestError("Accounts with partial receipts cannot be canceled; reverse them first")

            account.status = ReceivableStatus.CANCELED
            self.db.commit()
            self.db.refresh(account)
            logger.info(f"Account receivable {account.id} canceled")
            return account

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error canceling account receivable {account_id}: {e}")
            raise InternalError(f"Error canceling account: {str(e)}")


class FinanceSummaryService:
    def __init__(self, db: Session):
        self.db = db

    def summary(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or utcnow().date()

        payables = self.db.query(AccountsPayable).all()
        open_ap = [a for a in payables if a.status == PayableStatus.OPEN]
        receivables = self.db.query(AccountsReceivable).all()
        open_ar = [a for a in receivables if a.status == ReceivableStatus.OPEN]
        transactions = self.db.query(CashTransaction).all()

        return {
            "accounts_payable": {
                "total_open": sum_money(a.amount for a in open_ap),
                "count_open": len(open_ap),
                "total_paid": sum_money(a.amount for a in payables if a.status == PayableStatus.PAID),
                "overdue": sum_money(a.amount for a in open_ap if a.due_date < today),
                "upcoming": sum_money(a.amount for a in open_ap if a.due_date >= today),
            },
            "accounts_receivable": {
                "total_open": sum_money(a.amount for a in open_ar),
                "count_open": len(open_ar),
                "total_received": sum_money(
                    a.amount for a in receivables if a.status == ReceivableStatus.RECEIVED
                ),
                "overdue": sum_money(a.amount for a in open_ar if a.due_date < today),
                "upcoming": sum_money(a.amount for a in open_ar if a.due_date >= today),
            },
            "cash": CashJournalService.totals(transactions),
        }
