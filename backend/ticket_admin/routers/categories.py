"""Category and subcategory routes.

Categories are soft-deleted (``is_active = False``) so events keep their
taxonomy; subcategories are removed outright.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ticket_admin import permissions
from ticket_admin.database import get_db
from ticket_admin.errors import Conflict, NotFound
from ticket_admin.models.category import Category, SubCategory
from ticket_admin.responses import ok, paginate
from ticket_admin.schemas.category import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    SubCategoryCreate,
    SubCategoryOut,
    SubCategoryUpdate,
)
from ticket_admin.schemas.common import ApiResponse
from ticket_admin.security import require_back_office, require_permission
from ticket_admin.services.authorization import Principal

logger = logging.getLogger(__name__)
router = APIRouter()

can_manage = require_permission(permissions.MANAGE_CATEGORIES)


def _get_category(db: Session, category_id: str) -> Category:
    category = (
        db.query(Category)
        .options(selectinload(Category.subcategories))
        .filter(Category.id == category_id)
        .first()
    )
    if not category:
        raise NotFound("Category not found")
    return category


def _get_subcategory(db: Session, category_id: str, subcategory_id: str) -> SubCategory:
    sub = (
        db.query(SubCategory)
        .filter(SubCategory.id == subcategory_id, SubCategory.category_id == category_id)
        .first()
    )
    if not sub:
        raise NotFound("Subcategory not found")
    return sub


def _commit_unique(db: Session, message: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(message)


# Categories


@router.get("", response_model=ApiResponse[list[CategoryOut]])
def list_categories(
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    query = db.query(Category).options(selectinload(Category.subcategories))
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    if search:
        query = query.filter(Category.name.ilike(f"%{search}%"))
    rows, pagination = paginate(query.order_by(Category.name), page, limit)
    return ok([CategoryOut.model_validate(c) for c in rows], pagination=pagination)


@router.post("", response_model=ApiResponse[CategoryOut], status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, principal: Principal = Depends(can_manage), db: Session = Depends(get_db)):
    if db.query(Category).filter(Category.name == payload.name).first():
        raise Conflict("Category with this name already exists", field="name")

    category = Category(**payload.model_dump(), created_by_id=principal.id, updated_by_id=principal.id)
    db.add(category)
    _commit_unique(db, "Category with this name already exists")
    logger.info("Created category '%s' (%s) by %s", category.name, category.id, principal.id)
    return ok(CategoryOut.model_validate(_get_category(db, category.id)), "Category created successfully")


@router.get("/{category_id}", response_model=ApiResponse[CategoryOut])
def get_category(category_id: str, principal: Principal = Depends(require_back_office), db: Session = Depends(get_db)):
    return ok(CategoryOut.model_validate(_get_category(db, category_id)))


@router.put("/{category_id}", response_model=ApiResponse[CategoryOut])
def update_category(
    category_id: str,
    payload: CategoryUpdate,
    principal: Principal = Depends(can_manage),
    db: Session = Depends(get_db),
):
    category = _get_category(db, category_id)
    updates = payload.model_dump(exclude_unset=True)
    new_name = updates.get("name")
    if new_name and new_name != category.name:
        if db.query(Category).filter(Category.name == new_name, Category.id != category_id).first():
            raise Conflict("Category with this name already exists", field="name")

    for field, value in updates.items():
        setattr(category, field, value)
    category.updated_by_id = principal.id
    _commit_unique(db, "Category with this name already exists")
    logger.info("Updated category %s by %s", category_id, principal.id)
    return ok(CategoryOut.model_validate(_get_category(db, category_id)), "Category updated successfully")


@router.delete("/{category_id}", response_model=ApiResponse)
def delete_category(category_id: str, principal: Principal = Depends(can_manage), db: Session = Depends(get_db)):
    category = _get_category(db, category_id)
    category.is_active = False
    category.updated_by_id = principal.id
    db.commit()
    logger.info("Soft-deleted category %s by %s", category_id, principal.id)
    return ok(message="Category deleted successfully")


# Subcategories


@router.get("/{category_id}/subcategories", response_model=ApiResponse[list[SubCategoryOut]])
def list_subcategories(
    category_id: str,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    category = _get_category(db, category_id)
    return ok([SubCategoryOut.model_validate(s) for s in category.subcategories])


@router.post(
    "/{category_id}/subcategories",
    response_model=ApiResponse[SubCategoryOut],
    status_code=status.HTTP_201_CREATED,
)
def create_subcategory(
    category_id: str,
    payload: SubCategoryCreate,
    principal: Principal = Depends(can_manage),
    db: Session = Depends(get_db),
):
    _get_category(db, category_id)
    duplicate = (
        db.query(SubCategory)
        .filter(SubCategory.category_id == category_id, SubCategory.name == payload.name)
        .first()
    )
    if duplicate:
        raise Conflict("Subcategory with this name already exists in this category", field="name")

    sub = SubCategory(
        **payload.model_dump(),
        category_id=category_id,
        created_by_id=principal.id,
        updated_by_id=principal.id,
    )
    db.add(sub)
    _commit_unique(db, "Subcategory with this name already exists in this category")
    db.refresh(sub)
    logger.info("Created subcategory '%s' under %s by %s", sub.name, category_id, principal.id)
    return ok(SubCategoryOut.model_validate(sub), "Subcategory created successfully")


@router.put("/{category_id}/subcategories/{subcategory_id}", response_model=ApiResponse[SubCategoryOut])
def update_subcategory(
    category_id: str,
    subcategory_id: str,
    payload: SubCategoryUpdate,
    principal: Principal = Depends(can_manage),
    db: Session = Depends(get_db),
):
    sub = _get_subcategory(db, category_id, subcategory_id)
    updates = payload.model_dump(exclude_unset=True)
    new_name = updates.get("name")
    if new_name and new_name != sub.name:
        clash = (
            db.query(SubCategory)
            .filter(
                SubCategory.category_id == category_id,
                SubCategory.name == new_name,
                SubCategory.id != subcategory_id,
            )
            .first()
        )
        if clash:
            raise Conflict("Subcategory with this name already exists in this category", field="name")

    for field, value in updates.items():
        setattr(sub, field, value)
    sub.updated_by_id = principal.id
    _commit_unique(db, "Subcategory with this name already exists in this category")
    db.refresh(sub)
    logger.info("Updated subcategory %s by %s", subcategory_id, principal.id)
    return ok(SubCategoryOut.model_validate(sub), "Subcategory updated successfully")


@router.delete("/{category_id}/subcategories/{subcategory_id}", response_model=ApiResponse)
def delete_subcategory(
    category_id: str,
    subcategory_id: str,
    principal: Principal = Depends(can_manage),
    db: Session = Depends(get_db),
):
    sub = _get_subcategory(db, category_id, subcategory_id)
    db.delete(sub)
    db.commit()
    logger.info("Deleted subcategory %s by %s", subcategory_id, principal.id)
    return ok(message="Subcategory deleted successfully")
