from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Literal, Optional

from app.db import get_db
from app.deps import get_company_resolver
from app.schemas.categories import CategoryIn, CategoryOut, CategoryUpdate
from app.schemas.common import Page
from app.services import catalog
from app.services.company import DefaultCompanyResolver

router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    body: CategoryIn,
    db: Session = Depends(get_db),
    resolver: DefaultCompanyResolver = Depends(get_company_resolver),
):
    return catalog.create_category(db, body, resolver)


@router.get("", response_model=Page[CategoryOut])
def list_categories(
    page: int = 1,
    page_size: int = Query(20, alias="pageSize"),
    search: Optional[str] = None,
    active: Optional[bool] = None,
    company_id: Optional[str] = Query(None, alias="companyId"),
    sort_by: Literal["name", "displayOrder", "createdAt", "updatedAt"] = Query("displayOrder", alias="sortBy"),
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
):
    return catalog.list_categories(
        db, page=page, page_size=page_size, search=search, active=active,
        company_id=company_id, sort_by=sort_by, order=order,
    )


@router.get("/parents")
def list_parent_categories(
    company_id: Optional[str] = Query(None, alias="companyId"),
    db: Session = Depends(get_db),
) -> List[dict]:
    return catalog.parent_categories(db, company_id)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: str, db: Session = Depends(get_db)):
    return catalog.get_category(db, category_id)


@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(category_id: str, body: CategoryUpdate, db: Session = Depends(get_db)):
    return catalog.update_category(db, category_id, body)


@router.delete("/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db)):
    return catalog.remove_category(db, category_id)
