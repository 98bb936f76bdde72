from sqlalchemy.orm import Session
from fastapi import HTTPException
from uuid import UUID
from typing import Dict, Any, Optional
import logging

from app.modules.categories.models import Category, CategoryType
from app.modules.categories.schemas import CategoryCreate
from app.common.exceptions import BadRequestError, NotFoundError, InternalError

logger = logging.getLogger(__name__)


class CategoryService:
    """Financial category management"""

    def __init__(self, db: Session):
        self.db = db

    def create_category(self, data: CategoryCreate) -> Category:
        try:
            existing = self.db.query(Category).filter(Category.name == data.name).first()
            if existing:
                raise BadRequestError(f"A category named '{data.name}' already exists", field="name")

            category = Category(
                name=data.name,
                type=CategoryType(data.type.value),
                description=data.description,
            )
            self.db.add(category)
            self.db.commit()
            self.db.refresh(category)
            return category

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating category: {e}")
            raise InternalError(f"Internal error: {str(e)}")

    def get_all_categories(self, type: Optional[str] = None, limit: int = 100, offset: int = 0) -> Dict[str, Any]:
        """List categories, optionally filtered by type"""
        query = self.db.query(Category).filter(Category.is_active == True)
        if type:
            query = query.filter(Category.type == CategoryType(type))
        total = query.count()
        categories = query.order_by(Category.name).offset(offset).limit(limit).all()

        return {
            "categories": categories,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def get_category_by_id(self, category_id: UUID) -> Category:
        category = self.db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError("Category not found")
        return category

    def require_category(self, category_id: Optional[UUID]) -> Optional[Category]:
        """Validate an optional category reference."""
        if category_id is None:
            return None
        return self.get_category_by_id(category_id)
