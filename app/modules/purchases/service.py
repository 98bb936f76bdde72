from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException
from typing import List, Optional, Dict, Any
from uuid import UUID
from datetime import date
import logging

from app.modules.purchases.models import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus
from app.modules.purchases.schemas import PurchaseOrderCreate
from app.modules.products.models import Product
from app.modules.finance.models import AccountsPayable, PayableStatus
from app.modules.finance.schemas import InstallmentsRequest
from app.modules.finance.installments import InstallmentService
from app.modules.inventory.schemas import PurchaseReceiveRequest
from app.modules.inventory.service import StockLedgerService
from app.modules.contacts.service import ContactService
from app.common.exceptions import BadRequestError, NotFoundError, InternalError
from app.common.money import quantize_money, sum_money, to_decimal, format_money

logger = logging.getLogger(__name__)


class PurchaseOrderService:
    """
    Purchase orders.

    Receiving goes through the stock ledger; payable installments through
    the installment service. Both only flush, the order service commits.
    """

    def __init__(self, db: Session):
        self.db = db

    def _load(self, order_id: UUID) -> PurchaseOrder:
        order = self.db.query(PurchaseOrder).options(
            selectinload(PurchaseOrder.items).selectinload(PurchaseOrderItem.product),
            selectinload(PurchaseOrder.receipts),
            selectinload(PurchaseOrder.accounts_payable).selectinload(AccountsPayable.payment_sources),
        ).filter(PurchaseOrder.id == order_id).first()
        if not order:
            raise NotFoundError("Purchase order not found")
        return order

    def create_order(self, data: PurchaseOrderCreate, user_id: UUID) -> PurchaseOrder:
        try:
            ContactService(self.db).require_provider(data.supplier_id)

            items = []
            for item in data.items:
                product = self.db.query(Product).filter(Product.id == item.product_id).first()
                if not product:
                    raise NotFoundError(f"Product {item.product_id} not found", field="items")
                items.append(PurchaseOrderItem(
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price=quantize_money(item.unit_price),
                    total=quantize_money(to_decimal(item.quantity) * to_decimal(item.unit_price)),
                ))

            order = PurchaseOrder(
                supplier_id=data.supplier_id,
                issue_date=data.issue_date or date.today(),
                status=PurchaseOrderStatus.DRAFT,
                total=quantize_money(sum_money(i.total for i in items)),
                notes=data.notes,
                created_by=user_id,
                items=items,
            )
            self.db.add(order)
            self.db.flush()

            if data.installments:
                InstallmentService(self.db).create_payables_for_order(
                    order,
                    InstallmentsRequest(installments=data.installments, category_id=data.category_id),
                    user_id,
                )

            self.db.commit()
            logger.info(f"Purchase order {order.id} created ({format_money(order.total)})")
            return self._load(order.id)

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating purchase order: {e}")
            raise InternalError(f"Error creating purchase order: {str(e)}")

    def list_orders(
        self,
        status: Optional[str] = None,
        supplier_id: Optional[UUID] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self.db.query(PurchaseOrder).options(
            selectinload(PurchaseOrder.supplier),
            selectinload(PurchaseOrder.items),
        )
        if status:
            query = query.filter(PurchaseOrder.status == PurchaseOrderStatus(status))
        if supplier_id:
            query = query.filter(PurchaseOrder.supplier_id == supplier_id)

        total = query.count()
        orders = query.order_by(PurchaseOrder.created_at.desc()).offset(offset).limit(limit).all()
        return {
            "orders": [
                {
                    "id": o.id,
                    "supplier_id": o.supplier_id,
                    "supplier_name": o.supplier_name,
                    "issue_date": o.issue_date,
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

    def get_order(self, order_id: UUID) -> PurchaseOrder:
        return self._load(order_id)

    def receive_order(self, order_id: UUID, data: PurchaseReceiveRequest, user_id: UUID) -> PurchaseOrder:
        StockLedgerService(self.db).receive_purchase(order_id, data, user_id)
        return self._load(order_id)

    def add_payables(self, order_id: UUID, data: InstallmentsRequest, user_id: UUID) -> List[AccountsPayable]:
        """Create payable installments for an existing order."""
        try:
            order = self.db.query(PurchaseOrder).filter(PurchaseOrder.id == order_id).with_for_update().first()
            if not order:
                raise NotFoundError("Purchase order not found")
            if order.status == PurchaseOrderStatus.CANCELED:
                raise BadRequestError("Canceled purchase orders cannot receive new payables")

            accounts = InstallmentService(self.db).create_payables_for_order(order, data, user_id)
            self.db.commit()
            for account in accounts:
                self.db.refresh(account)
            return accounts

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating payables for purchase order {order_id}: {e}")
            raise InternalError(f"Error creating accounts payable: {str(e)}")

    def cancel_order(self, order_id: UUID) -> PurchaseOrder:
        """Cancel the order and drop its OPEN payables; refused once anything was paid or received."""
        try:
            order = self.db.query(PurchaseOrder).filter(PurchaseOrder.id == order_id).with_for_update().first()
            if not order:
                raise NotFoundError("Purchase order not found")
            if order.status == PurchaseOrderStatus.CANCELED:
                raise BadRequestError("Purchase order is already canceled")
            if order.status == PurchaseOrderStatus.RECEIVED:
                raise BadRequestError("Received purchase orders cannot be canceled")

            payables = self.db.query(AccountsPayable).filter(
                AccountsPayable.purchase_order_id == order.id
            ).all()
            if any(ap.status == PayableStatus.PAID for ap in payables):
                raise BadRequestError("Purchase order has paid accounts; reverse them before canceling")

            for account in payables:
                self.db.delete(account)
            order.status = PurchaseOrderStatus.CANCELED

            self.db.commit()
            logger.info(f"Purchase order {order.id} canceled, {len(payables)} open payables removed")
            return self._load(order.id)

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error canceling purchase order {order_id}: {e}")
            raise InternalError(f"Error canceling purchase order: {str(e)}")
