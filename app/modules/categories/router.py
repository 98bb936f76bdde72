from fastapi import APIRouter, status, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import ALL_ROLES
from app.modules.categories.service import CategoryService
from app.modules.categories.schemas import CategoryCreate, CategoryOut, CategoryList, CategoryType

categories_router = APIRouter(tags=["Categories"])

@categories_router.post("/", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(["ADMIN", "FINANCEIRO"]))
):
    return CategoryService(db).create_category(data)

@categories_router.get("/", response_model=CategoryList)
def list_categories(
    type: Optional[CategoryType] = Query(None),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CategoryService(db).get_all_categories(type.value if type else None, limit, offset)

@categories_router.get("/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return CategoryService(db).get_category_by_id(category_id)
