from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException
from uuid import UUID
from typing import List, Dict, Any
import logging

from app.modules.investors.models import Investor
from app.modules.investors.schemas import InvestorCreate, InvestorUpdate
from app.modules.finance.models import PaymentSource, AccountsPayable
from app.common.exceptions import NotFoundError, InternalError
from app.common.money import sum_money

logger = logging.getLogger(__name__)


class InvestorService:
    """Investors that fund payable payments"""

    def __init__(self, db: Session):
        self.db = db

    def create_investor(self, data: InvestorCreate) -> Investor:
        try:
            investor = Investor(**data.model_dump())
            self.db.add(investor)
            self.db.commit()
            self.db.refresh(investor)
            logger.info(f"Investor {investor.id} created")
            return investor
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating investor: {e}")
            raise InternalError(f"Error creating investor: {str(e)}")

    def list_investors(self, active_only: bool = False) -> List[Investor]:
        query = self.db.query(Investor)
        if active_only:
            query = query.filter(Investor.is_active == True)
        return query.order_by(Investor.name).all()

    def get_investor(self, investor_id: UUID) -> Investor:
        investor = self.db.query(Investor).filter(Investor.id == investor_id).first()
        if not investor:
            raise NotFoundError("Investor not found")
        return investor

    def update_investor(self, investor_id: UUID, data: InvestorUpdate) -> Investor:
        investor = self.get_investor(investor_id)
        try:
            for key, value in data.model_dump(exclude_unset=True).items():
                if key == "name" and value is None:
                    continue
                setattr(investor, key, value)
            self.db.commit()
            self.db.refresh(investor)
            return investor
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating investor {investor_id}: {e}")
            raise InternalError(f"Error updating investor: {str(e)}")

    def can_hard_delete(self, investor: Investor) -> bool:
        """Only investors that never funded a payment can be removed."""
        return self.db.query(PaymentSource).filter(
            PaymentSource.investor_id == investor.id
        ).count() == 0

    def delete_investor(self, investor_id: UUID) -> Dict[str, Any]:
        """Hard delete when unreferenced, otherwise deactivate."""
        try:
            investor = self.get_investor(investor_id)
            if self.can_hard_delete(investor):
                self.db.delete(investor)
                self.db.commit()
                logger.info(f"Investor {investor_id} deleted")
                return {"deleted": True, "deactivated": False, "message": "Investor removed"}

            investor.deactivate()
            self.db.commit()
            logger.info(f"Investor {investor_id} deactivated (has payment history)")
            return {
                "deleted": False,
                "deactivated": True,
                "message": "Investor deactivated (has registered payments)"
            }
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting investor {investor_id}: {e}")
            raise InternalError(f"Error deleting investor: {str(e)}")

    def payment_history(self, investor_id: UUID) -> Dict[str, Any]:
        """Payments funded by the investor with totals per month (YYYY-MM, newest first)."""
        investor = self.get_investor(investor_id)
        sources = self.db.query(PaymentSource).options(
            selectinload(PaymentSource.account_payable).selectinload(AccountsPayable.supplier)
        ).filter(
            PaymentSource.investor_id == investor_id
        ).order_by(PaymentSource.created_at.desc()).all()

        payments = []
        by_month: Dict[str, Dict[str, Any]] = {}
        for source in sources:
            account = source.account_payable
            payments.append({
                "id": source.id,
                "amount": source.amount,
                "paid_at": account.paid_at,
                "created_at": source.created_at,
                "account": {
                    "id": account.id,
                    "description": account.description,
                    "due_date": account.due_date,
                    "total_amount": account.amount,
                    "supplier_name": account.supplier_name,
                },
            })
            month = source.created_at.strftime("%Y-%m")
            bucket = by_month.setdefault(month, {"month": month, "amounts": [], "count": 0})
            bucket["amounts"].append(source.amount)
            bucket["count"] += 1

        monthly = [
            {"month": b["month"], "total": sum_money(b["amounts"]), "count": b["count"]}
            for b in sorted(by_month.values(), key=lambda b: b["month"], reverse=True)
        ]

        return {
            "investor": investor,
            "payments": payments,
            "summary": {
                "total_invested": sum_money(s.amount for s in sources),
                "total_accounts": len(sources),
                "by_month": monthly,
            },
        }
