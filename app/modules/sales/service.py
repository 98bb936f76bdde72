from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import date
from decimal import Decimal
import logging

from app.modules.sales.models import (
    SalesOrder, SalesOrderItem, SalesOrderStatus, SalesReturn, SalesReturnItem, SalesReturnStatus,
    RefundType, CustomerCredit, CustomerCreditStatus
)
from app.modules.sales.schemas import SalesOrderCreate, SalesReturnCreate
from app.modules.products.models import Product
from app.modules.finance.models import AccountsReceivable, ReceivableStatus, CashOrigin
from app.modules.finance.schemas import InstallmentsRequest
from app.modules.finance.installments import InstallmentService
from app.modules.finance.service import CashJournalService
from app.modules.inventory.service import StockLedgerService
from app.modules.contacts.service import ContactService
from app.common.exceptions import BadRequestError, NotFoundError, InternalError
from app.common.money import ZERO, MONEY_TOLERANCE, quantize_money, sum_money, to_decimal, format_money, format_quantity

logger = logging.getLogger(__name__)


class SalesOrderService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, order_id: UUID) -> SalesOrder:
        order = self.db.query(SalesOrder).options(
            selectinload(SalesOrder.items).selectinload(SalesOrderItem.product),
            selectinload(SalesOrder.accounts_receivable),
        ).filter(SalesOrder.id == order_id).first()
        if not order:
            raise NotFoundError("Sales order not found")
        return order

    def create_order(self, data: SalesOrderCreate, user_id: UUID) -> SalesOrder:
        """
        Create a sales order (DRAFT).

        Physical items are checked against the current balance; the check
        is repeated at delivery. Installments become OPEN receivables.
        """
        try:
            ContactService(self.db).require_client(data.customer_id)

            items = []
            required: Dict[UUID, Decimal] = {}
            for item in data.items:
                product = self.db.query(Product).filter(Product.id == item.product_id).first()
                if not product:
                    raise NotFoundError(f"Product {item.product_id} not found", field="items")
                if product.moves_stock():
                    required[product.id] = required.get(product.id, ZERO) + to_decimal(item.quantity)
                items.append(SalesOrderItem(
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=quantize_money(item.unit_price),
                    total=quantize_money(to_decimal(item.quantity) * to_decimal(item.unit_price)),
                ))

            StockLedgerService(self.db).check_availability(required)

            order = SalesOrder(
                customer_id=data.customer_id,
                sale_date=data.sale_date or date.today(),
                status=SalesOrderStatus.DRAFT,
                total=quantize_money(sum_money(i.total for i in items)),
                notes=data.notes,
                created_by=user_id,
                items=items,
            )
            self.db.add(order)
            self.db.flush()

            if data.installments:
                InstallmentService(self.db).create_receivables_for_order(
                    order,
                    InstallmentsRequest(installments=data.installments, category_id=data.category_id),
                    order.sale_date,
                    user_id,
                )

            self.db.commit()
            logger.info(f"Sales order {order.id} created ({format_money(order.total)})")
            return self._load(order.id)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating sales order: {e}")
            raise InternalError(f"Error creating sales order: {str(e)}")

    def list_orders(
        self,
        status: Optional[str] = None,
        customer_id: Optional[UUID] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self.db.query(SalesOrder).options(
            selectinload(SalesOrder.customer),
            selectinload(SalesOrder.items),
        )
        if status:
            query = query.filter(SalesOrder.status == SalesOrderStatus(status))
        if customer_id:
            query = query.filter(SalesOrder.customer_id == customer_id)

        total = query.count()
        orders = query.order_by(SalesOrder.created_at.desc()).offset(offset).limit(limit).all()
        return {
            "orders": [
                {
                    "id": o.id,
                    "customer_id": o.customer_id,
                    "customer_name": o.customer_name,
                    "sale_date": o.sale_date,
                    "status": o.status.value,
                    "total": o.total,
                    "items_count": len(o.items),
                    "created_at": o.created_at,
                }
                for o in orders
            ],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    def get_order(self, order_id: UUID) -> SalesOrder:
        return self._load(order_id)

    def deliver_order(self, order_id: UUID, user_id: UUID) -> SalesOrder:
        StockLedgerService(self.db).deliver_sale(order_id, user_id)
        return self._load(order_id)

    def cancel_order(self, order_id: UUID) -> SalesOrder:
        """Cancel the order and its OPEN receivables. Nothing may have been received yet."""
        try:
            order = self.db.query(SalesOrder).filter(SalesOrder.id == order_id).with_for_update().first()
            if not order:
                raise NotFoundError("Sales order not found")
            if order.status == SalesOrderStatus.CANCELED:
                raise BadRequestError("Sales order is already canceled")
            if order.status == SalesOrderStatus.DELIVERED:
                raise BadRequestError("Delivered sales orders cannot be canceled")

            receivables = self.db.query(AccountsReceivable).filter(
                AccountsReceivable.sales_order_id == order.id
            ).all()
            journal = CashJournalService(self.db)
            for account in receivables:
                if account.status == ReceivableStatus.RECEIVED:
                    raise BadRequestError("Sales order has received accounts; reverse them before canceling")
                if journal.entries_for_origin(CashOrigin.AR, account.id):
                    raise BadRequestError("Sales order has partial receipts; reverse them before canceling")

            canceled = 0
            for account in receivables:
                if account.status == ReceivableStatus.OPEN:
                    account.status = ReceivableStatus.CANCELED
                    canceled += 1
            order.status = SalesOrderStatus.CANCELED

            self.db.commit()
            logger.info(f"Sales order {order.id} canceled, {canceled} receivables canceled")
            return self._load(order.id)

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error canceling sales order {order_id}: {e}")
            raise InternalError(f"Error canceling sales order: {str(e)}")

    # ===== RETURNS =====

    def _load_return(self, return_id: UUID) -> SalesReturn:
        return self.db.query(SalesReturn).options(
            selectinload(SalesReturn.items).selectinload(SalesReturnItem.product),
            selectinload(SalesReturn.credits),
        ).filter(SalesReturn.id == return_id).one()

    def _returned_quantities(self, order_id: UUID) -> Dict[UUID, Decimal]:
        items = self.db.query(SalesReturnItem).join(SalesReturn).filter(
            SalesReturn.sales_order_id == order_id
        ).all()
        returned: Dict[UUID, Decimal] = {}
        for item in items:
            returned[item.sales_item_id] = returned.get(item.sales_item_id, ZERO) + to_decimal(item.quantity)
        return returned

    def _deduct_from_receivables(self, order: SalesOrder, total: Decimal) -> Decimal:
        """
        Lower the order's OPEN receivables by the returned value, earliest
        due date first. Rows with partial receipts keep their amount.
        Returns what could not be deducted.
        """
        journal = CashJournalService(self.db)
        receivables = self.db.query(AccountsReceivable).filter(
            AccountsReceivable.sales_order_id == order.id,
            AccountsReceivable.status == ReceivableStatus.OPEN
        ).order_by(AccountsReceivable.due_date).with_for_update().all()

        remaining = total
        for account in receivables:
            if remaining <= MONEY_TOLERANCE:
                break
            if journal.entries_for_origin(CashOrigin.AR, account.id):
                continue
            amount = to_decimal(account.amount)
            deduction = min(remaining, amount)
            new_amount = amount - deduction
            if new_amount <= MONEY_TOLERANCE:
                account.status = ReceivableStatus.CANCELED
                account.amount = ZERO
            else:
                account.amount = quantize_money(new_amount)
                account.description = f"{account.description} (deducted {format_money(deduction)} by return)"
            remaining -= deduction
        return max(remaining, ZERO)

    def create_return(self, order_id: UUID, data: SalesReturnCreate, user_id: UUID) -> SalesReturn:
        """
        Register a return against a delivered order.

        Physical items go back into stock through the ledger. The returned
        value either becomes a customer credit or is deducted from the
        order's open receivables, with any excess left as credit.
        """
        try:
            order = self.db.query(SalesOrder).options(
                selectinload(SalesOrder.items).selectinload(SalesOrderItem.product)
            ).filter(SalesOrder.id == order_id).with_for_update().first()
            if not order:
                raise NotFoundError("Sales order not found")
            if order.status != SalesOrderStatus.DELIVERED:
                raise BadRequestError("Only delivered sales orders accept returns")

            order_items = {item.id: item for item in order.items}
            returned = self._returned_quantities(order.id)

            items = []
            for requested in data.items:
                item = order_items.get(requested.sales_item_id)
                if not item:
                    raise NotFoundError(f"Sales item {requested.sales_item_id} not found in this order", field="items")
                available = to_decimal(item.quantity) - returned.get(item.id, ZERO)
                quantity = to_decimal(requested.quantity)
                if quantity > available:
                    raise BadRequestError(
                        f"Return quantity for {item.product_name} ({format_quantity(quantity)}) exceeds "
                        f"the quantity available to return ({format_quantity(available)})",
                        field="items"
                    )
                returned[item.id] = returned.get(item.id, ZERO) + quantity
                items.append(SalesReturnItem(
                    sales_item_id=item.id,
                    product_id=item.product_id,
                    quantity=quantity,
                    unit_price=item.unit_price,
                    total=quantize_money(quantity * to_decimal(item.unit_price)),
                ))

            total = quantize_money(sum_money(i.total for i in items))
            if total <= ZERO:
                raise BadRequestError("Return total must be greater than zero", field="items")

            sales_return = SalesReturn(
                sales_order_id=order.id,
                return_date=data.return_date or date.today(),
                reason=data.reason,
                total=total,
                refund_type=RefundType(data.refund_type.value),
                status=SalesReturnStatus.PROCESSED,
                created_by=user_id,
                items=items,
            )
            self.db.add(sales_return)
            self.db.flush()

            moved = StockLedgerService(self.db).restock_return(sales_return, user_id)

            if sales_return.refund_type == RefundType.ACCOUNT_RECEIVABLE:
                credit = self._deduct_from_receivables(order, total)
            else:
                credit = total

            if credit > MONEY_TOLERANCE:
                self.db.add(CustomerCredit(
                    customer_id=order.customer_id,
                    sales_return_id=sales_return.id,
                    amount=quantize_money(credit),
                    used_amount=ZERO,
                    description=f"Return of sales order #{str(order.id)[:8]}",
                    status=CustomerCreditStatus.ACTIVE,
                ))

            self.db.commit()
            logger.info(
                f"Sales return {sales_return.id} on order {order.id}: {format_money(total)}, "
                f"{moved} items restocked, credit {format_money(credit)}"
            )
            return self._load_return(sales_return.id)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating return for sales order {order_id}: {e}")
            raise InternalError(f"Error creating sales return: {str(e)}")

    def list_returns(self, order_id: UUID) -> Dict[str, Any]:
        self._load(order_id)
        returns = self.db.query(SalesReturn).options(
            selectinload(SalesReturn.items).selectinload(SalesReturnItem.product),
            selectinload(SalesReturn.credits),
        ).filter(SalesReturn.sales_order_id == order_id).order_by(SalesReturn.created_at.desc()).all()
        return {"returns": returns, "total": len(returns)}
