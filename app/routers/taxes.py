from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Literal, Optional

from app.db import get_db
from app.deps import get_company_resolver
from app.schemas.common import Page
from app.schemas.taxes import TaxIn, TaxOut, TaxUpdate
from app.services import catalog
from app.services.company import DefaultCompanyResolver

router = APIRouter(prefix="/taxes", tags=["taxes"])


@router.post("", response_model=TaxOut, status_code=201)
def create_tax(
    body: TaxIn,
    db: Session = Depends(get_db),
    resolver: DefaultCompanyResolver = Depends(get_company_resolver),
):
    return catalog.create_tax(db, body, resolver)


@router.get("", response_model=Page[TaxOut])
def list_taxes(
    page: int = 1,
    page_size: int = Query(20, alias="pageSize"),
    search: Optional[str] = None,
    active: Optional[bool] = None,
    company_id: Optional[str] = Query(None, alias="companyId"),
    sort_by: Literal["name", "rate", "code", "createdAt"] = Query("rate", alias="sortBy"),
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
):
    return catalog.list_taxes(
        db, page=page, page_size=page_size, search=search, active=active,
        company_id=company_id, sort_by=sort_by, order=order,
    )


@router.get("/{tax_id}", response_model=TaxOut)
def get_tax(tax_id: str, db: Session = Depends(get_db)):
    return catalog.get_tax(db, tax_id)


@router.patch("/{tax_id}", response_model=TaxOut)
def update_tax(tax_id: str, body: TaxUpdate, db: Session = Depends(get_db)):
    return catalog.update_tax(db, tax_id, body)


@router.delete("/{tax_id}")
def delete_tax(tax_id: str, db: Session = Depends(get_db)):
    return catalog.remove_tax(db, tax_id)
