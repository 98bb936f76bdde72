"""
Stock ledger

StockMovement is the source of truth; StockBalance is a per-product cache
that only this service writes. Every state change appends movements and
moves the cached balance by their signed effect inside one transaction.
"""

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_
from typing import List, Optional, Dict, Any
from uuid import UUID
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
import logging

from app.modules.products.models import (
    Product, ProductType, StockBalance, StockMovement, StockAdjustment,
    MovementType, MovementReference, AdjustmentType
)
from app.modules.purchases.models import PurchaseOrder, PurchaseOrderStatus, PurchaseReceipt
from app.modules.sales.models import SalesOrder, SalesOrderStatus, SalesReturn
from app.modules.finance.models import AccountsReceivable, ReceivableStatus
from app.modules.inventory.schemas import StockAdjustmentCreate, PurchaseReceiveRequest
from app.common.exceptions import BadRequestError, NotFoundError, InvalidInputError, InternalError
from app.common.money import ZERO, to_decimal, quantize_money, sum_money, format_quantity

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_DAYS = 30


def movement_effect(movement: StockMovement) -> Decimal:
    """Signed effect of a movement on the balance."""
    quantity = to_decimal(movement.quantity)
    if movement.type == MovementType.IN:
        return abs(quantity)
    if movement.type == MovementType.OUT:
        return -abs(quantity)
    return quantity


def movement_to_response(movement: StockMovement) -> dict:
    return {
        "id": movement.id,
        "product_id": movement.product_id,
        "product_name": movement.product.name if movement.product else None,
        "type": movement.type.value,
        "quantity": to_decimal(movement.quantity),
        "reference_type": movement.reference_type.value,
        "reference_id": movement.reference_id,
        "unit_cost": movement.unit_cost,
        "note": movement.note,
        "created_by": movement.created_by,
        "created_at": movement.created_at,
    }


def adjustment_to_response(adjustment: StockAdjustment) -> dict:
    """The photo payload is never sent back, only whether one exists."""
    return {
        "id": adjustment.id,
        "product_id": adjustment.product_id,
        "type": adjustment.type.value,
        "quantity": to_decimal(adjustment.quantity),
        "reason": adjustment.reason,
        "has_photo": bool(adjustment.photo_base64),
        "created_by": adjustment.created_by,
        "created_at": adjustment.created_at,
    }


class StockLedgerService:
    """Service for the stock ledger (movements, balances, adjustments)."""

    def __init__(self, db: Session):
        self.db = db

    # ===== INTERNAL =====

    def _get_product(self, product_id: UUID) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def _get_balance(self, product_id: UUID, lock: bool = False) -> Optional[StockBalance]:
        query = self.db.query(StockBalance).filter(StockBalance.product_id == product_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def _set_balance(self, product_id: UUID, quantity: Decimal) -> StockBalance:
        balance = self._get_balance(product_id, lock=True)
        if balance is None:
            balance = StockBalance(product_id=product_id, quantity=quantity)
            self.db.add(balance)
        else:
            balance.quantity = quantity
        return balance

    def current_quantity(self, product_id: UUID) -> Decimal:
        balance = self._get_balance(product_id)
        return to_decimal(balance.quantity) if balance else ZERO

    def apply_movement(
        self,
        product_id: UUID,
        type: MovementType,
        quantity: Decimal,
        reference_type: MovementReference,
        reference_id: Optional[UUID] = None,
        unit_cost: Optional[Decimal] = None,
        note: Optional[str] = None,
        created_by: Optional[UUID] = None
    ) -> StockMovement:
        """Append a movement and upsert the balance by its signed effect (flush only)."""
        movement = StockMovement(
            product_id=product_id,
            type=type,
            quantity=quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            unit_cost=unit_cost,
            note=note,
            created_by=created_by,
        )
        self.db.add(movement)

        balance = self._get_balance(product_id, lock=True)
        if balance is None:
            balance = StockBalance(product_id=product_id, quantity=movement_effect(movement))
            self.db.add(balance)
        else:
            balance.quantity = to_decimal(balance.quantity) + movement_effect(movement)

        self.db.flush()
        return movement

    # ===== PURCHASE RECEIPT =====

    def receive_purchase(
        self,
        order_id: UUID,
        data: Optional[PurchaseReceiveRequest] = None,
        user_id: Optional[UUID] = None
    ) -> PurchaseOrder:
        """
        Bring a purchase order into stock.

        One IN movement per item at the item's unit price, the product's
        cost price becomes the last purchase price, a receipt is recorded
        and the order becomes RECEIVED. Committed once.
        """
        data = data or PurchaseReceiveRequest()
        try:
            order = self.db.query(PurchaseOrder).options(
                selectinload(PurchaseOrder.items)
            ).filter(PurchaseOrder.id == order_id).with_for_update().first()
            if not order:
                raise NotFoundError("Purchase order not found")
            if order.status == PurchaseOrderStatus.RECEIVED:
                raise BadRequestError("Purchase order has already been received")
            if order.status == PurchaseOrderStatus.CANCELED:
                raise BadRequestError("Canceled purchase orders cannot be received")

            for item in order.items:
                product = self._get_product(item.product_id)
                self.apply_movement(
                    product.id,
                    MovementType.IN,
                    to_decimal(item.quantity),
                    MovementReference.PURCHASE,
                    reference_id=order.id,
                    unit_cost=item.unit_price,
                    note=f"Purchase order #{str(order.id)[:8]}",
                    created_by=user_id,
                )
                product.cost_price = item.unit_price

            receipt = PurchaseReceipt(
                purchase_order_id=order.id,
                receipt_date=data.receipt_date or date.today(),
                invoice_number=data.invoice_number,
                total=quantize_money(sum_money(item.total for item in order.items)),
                created_by=user_id,
            )
            self.db.add(receipt)
            order.status = PurchaseOrderStatus.RECEIVED

            self.db.commit()
            self.db.refresh(order)
            logger.info(f"Purchase order {order.id} received: {len(order.items)} items into stock")
            return order

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error receiving purchase order {order_id}: {e}")
            raise InternalError(f"Error receiving purchase order: {str(e)}")

    # ===== SALES DELIVERY =====

    def _required_quantities(self, order: SalesOrder) -> Dict[UUID, Decimal]:
        """Quantity per physical product, summing repeated lines."""
        required: Dict[UUID, Decimal] = {}
        for item in order.items:
            if item.product and not item.product.moves_stock():
                continue
            required[item.product_id] = required.get(item.product_id, ZERO) + to_decimal(item.quantity)
        return required

    def check_availability(self, required: Dict[UUID, Decimal]) -> None:
        """Raise naming the first product whose balance does not cover the required quantity."""
        for product_id, quantity in required.items():
            available = self.current_quantity(product_id)
            if available < quantity:
                product = self._get_product(product_id)
                raise BadRequestError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {format_quantity(available)}, required: {format_quantity(quantity)}",
                    field="items"
                )

    def deliver_sale(self, order_id: UUID, user_id: Optional[UUID] = None) -> SalesOrder:
        """
        Deliver a sales order.

        Stock is re-checked for every physical item before anything is
        written, then each physical line gets its own OUT movement. When
        the order has no OPEN or RECEIVED receivable, one OPEN receivable
        for the order total is created, due 30 days after the sale.
        """
        try:
            order = self.db.query(SalesOrder).options(
                selectinload(SalesOrder.items)
            ).filter(SalesOrder.id == order_id).with_for_update().first()
            if not order:
                raise NotFoundError("Sales order not found")
            if order.status == SalesOrderStatus.DELIVERED:
                raise BadRequestError("Sales order has already been delivered")
            if order.status == SalesOrderStatus.CANCELED:
                raise BadRequestError("Canceled sales orders cannot be delivered")

            already_moved = self.db.query(StockMovement).filter(
                StockMovement.reference_type == MovementReference.SALE,
                StockMovement.reference_id == order.id,
                StockMovement.type == MovementType.OUT
            ).count()
            if already_moved:
                raise BadRequestError("Stock has already been moved out for this order")

            required = self._required_quantities(order)
            self.check_availability(required)

            moved = 0
            for item in order.items:
                if item.product and not item.product.moves_stock():
                    continue
                self.apply_movement(
                    item.product_id,
                    MovementType.OUT,
                    to_decimal(item.quantity),
                    MovementReference.SALE,
                    reference_id=order.id,
                    note=f"Sales order #{str(order.id)[:8]}",
                    created_by=user_id,
                )
                moved += 1

            order.status = SalesOrderStatus.DELIVERED

            has_receivables = self.db.query(AccountsReceivable).filter(
                AccountsReceivable.sales_order_id == order.id,
                AccountsReceivable.status.in_([ReceivableStatus.OPEN, ReceivableStatus.RECEIVED])
            ).count() > 0
            if not has_receivables:
                self.db.add(AccountsReceivable(
                    customer_id=order.customer_id,
                    sales_order_id=order.id,
                    description=f"Order #{str(order.id)[:8]}",
                    due_date=order.sale_date + timedelta(days=DEFAULT_PAYMENT_DAYS),
                    amount=quantize_money(order.total),
                    payment_days=DEFAULT_PAYMENT_DAYS,
                    status=ReceivableStatus.OPEN,
                    created_by=user_id,
                ))

            self.db.commit()
            self.db.refresh(order)
            logger.info(f"Sales order {order.id} delivered: {moved} items moved out")
            return order

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error delivering sales order {order_id}: {e}")
            raise InternalError(f"Error delivering sales order: {str(e)}")

    def restock_return(self, sales_return: SalesReturn, user_id: Optional[UUID] = None) -> int:
        """One IN movement per returned physical item (flush only, the caller commits)."""
        moved = 0
        for item in sales_return.items:
            product = self._get_product(item.product_id)
            if not product.moves_stock():
                continue
            self.apply_movement(
                product.id,
                MovementType.IN,
                to_decimal(item.quantity),
                MovementReference.RETURN,
                reference_id=sales_return.id,
                note=f"Return of sales order #{str(sales_return.sales_order_id)[:8]}",
                created_by=user_id,
            )
            moved += 1
        return moved

    # ===== ADJUSTMENTS =====

    def create_adjustment(self, product_id: UUID, data: StockAdjustmentCreate, user_id: Optional[UUID] = None) -> dict:
        """Manual adjustment with its paired ADJUST movement."""
        try:
            product = self._get_product(product_id)

            quantity = to_decimal(data.quantity)
            if quantity == ZERO:
                raise InvalidInputError("Quantity must be different from zero", field="quantity")
            if not data.reason:
                raise InvalidInputError("Reason is required", field="reason")
            if data.type == AdjustmentType.AVARIA and not data.photo_base64:
                raise InvalidInputError("A photo is required for damage (AVARIA) adjustments", field="photo_base64")

            adjustment = StockAdjustment(
                product_id=product.id,
                type=AdjustmentType(data.type.value),
                quantity=quantity,
                reason=data.reason,
                photo_base64=data.photo_base64,
                created_by=user_id,
            )
            self.db.add(adjustment)
            self.db.flush()

            movement = self.apply_movement(
                product.id,
                MovementType.ADJUST,
                quantity,
                MovementReference.MANUAL,
                reference_id=adjustment.id,
                note=f"{data.type.value}: {data.reason}"[:255],
                created_by=user_id,
            )

            self.db.commit()
            self.db.refresh(adjustment)
            balance = self.current_quantity(product.id)
            logger.info(
                f"Stock adjustment {adjustment.id} ({adjustment.type.value}) on {product.sku}: "
                f"{format_quantity(quantity)}, balance {format_quantity(balance)}"
            )

            response = adjustment_to_response(adjustment)
            response["movement_id"] = movement.id
            response["balance"] = balance
            return response

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating stock adjustment for product {product_id}: {e}")
            raise InternalError(f"Error creating stock adjustment: {str(e)}")

    def list_adjustments(self, product_id: UUID) -> List[dict]:
        self._get_product(product_id)
        adjustments = self.db.query(StockAdjustment).filter(
            StockAdjustment.product_id == product_id
        ).order_by(StockAdjustment.created_at.desc()).all()
        return [adjustment_to_response(a) for a in adjustments]

    # ===== RECONCILIATION =====

    def reconcile_balance(self, product_id: UUID) -> dict:
        """
        Recompute the cached balance from the movement history.

        Negative history is clamped to zero. Running it twice gives the
        same result.
        """
        try:
            product = self._get_product(product_id)
            movements = self.db.query(StockMovement).filter(StockMovement.product_id == product_id).all()
            computed = max(sum_money(movement_effect(m) for m in movements), ZERO)

            previous = self.current_quantity(product_id)
            self._set_balance(product_id, computed)

            self.db.commit()
            logger.info(
                f"Stock balance of {product.sku} reconciled: "
                f"{format_quantity(previous)} -> {format_quantity(computed)}"
            )
            return {
                "product_id": product.id,
                "quantity": computed,
                "previous_quantity": previous,
                "unit": product.unit,
            }

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error reconciling stock of product {product_id}: {e}")
            raise InternalError(f"Error reconciling stock: {str(e)}")

    # ===== READ SIDE =====

    def list_balances(self, search: Optional[str] = None, low_stock: bool = False) -> Dict[str, Any]:
        query = self.db.query(Product).options(selectinload(Product.balance)).filter(
            Product.is_active == True,
            Product.type != ProductType.SERVICO
        )
        if search:
            query = query.filter(or_(Product.name.ilike(f"%{search}%"), Product.sku.ilike(f"%{search}%")))

        balances = []
        for product in query.order_by(Product.name).all():
            quantity = to_decimal(product.balance.quantity) if product.balance else ZERO
            min_stock = to_decimal(product.min_stock)
            is_low = quantity <= min_stock
            if low_stock and not is_low:
                continue
            balances.append({
                "product_id": product.id,
                "product_name": product.name,
                "product_sku": product.sku,
                "product_type": product.type.value,
                "unit": product.unit,
                "quantity": quantity,
                "min_stock": min_stock,
                "is_low_stock": is_low,
            })

        return {"balances": balances, "total": len(balances)}

    def list_movements(
        self,
        product_id: Optional[UUID] = None,
        type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        query = self.db.query(StockMovement).options(selectinload(StockMovement.product))
        if product_id:
            query = query.filter(StockMovement.product_id == product_id)
        if type:
            query = query.filter(StockMovement.type == MovementType(type))
        if start_date:
            query = query.filter(StockMovement.created_at >= datetime.combine(start_date, time.min, tzinfo=timezone.utc))
        if end_date:
            query = query.filter(StockMovement.created_at <= datetime.combine(end_date, time.max, tzinfo=timezone.utc))

        total = query.count()
        movements = query.order_by(StockMovement.created_at.desc()).offset(offset).limit(limit).all()
        return {
            "movements": [movement_to_response(m) for m in movements],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
