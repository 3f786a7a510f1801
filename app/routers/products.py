from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Literal, Optional

from app.db import get_db
from app.deps import get_company_resolver
from app.schemas.products import ProductIn, ProductUpdate
from app.services import catalog, products
from app.services.company import DefaultCompanyResolver

router = APIRouter(prefix="/products", tags=["products"])


@router.post("", status_code=201)
def create_product(
    body: ProductIn,
    db: Session = Depends(get_db),
    resolver: DefaultCompanyResolver = Depends(get_company_resolver),
):
    return products.create_product(db, body, resolver)


@router.get("")
def list_products(
    page: int = 1,
    page_size: int = Query(20, alias="pageSize"),
    search: Optional[str] = None,
    active: Optional[bool] = None,
    track_stock: Optional[bool] = Query(None, alias="trackStock"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    company_id: Optional[str] = Query(None, alias="companyId"),
    sort_by: Literal["name", "code", "basePrice", "createdAt", "displayOrder"] = Query("displayOrder", alias="sortBy"),
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
):
    return products.list_products(
        db,
        page=page, page_size=page_size, search=search, active=active,
        track_stock=track_stock, category_id=category_id, company_id=company_id,
        sort_by=sort_by, order=order,
    )


@router.get("/check-code-uniqueness/{code}/{company_id}")
def check_code_uniqueness(code: str, company_id: str, db: Session = Depends(get_db)):
    return {"isUnique": products.is_code_unique(db, code, company_id)}


# ---------- lookups for the product form ----------

@router.get("/meta/companies")
def meta_companies(db: Session = Depends(get_db)):
    return [
        {"id": c.id, "name": c.name, "taxNumber": c.tax_number}
        for c in catalog.list_companies(db)
    ]


@router.get("/meta/categories")
def meta_categories(
    company_id: Optional[str] = Query(None, alias="companyId"),
    db: Session = Depends(get_db),
    resolver: DefaultCompanyResolver = Depends(get_company_resolver),
):
    return catalog.meta_categories(db, company_id, resolver)


@router.get("/meta/taxes")
def meta_taxes(
    company_id: Optional[str] = Query(None, alias="companyId"),
    db: Session = Depends(get_db),
    resolver: DefaultCompanyResolver = Depends(get_company_resolver),
):
    return catalog.meta_taxes(db, company_id, resolver)


@router.get("/meta/modifier-groups")
def meta_modifier_groups(
    company_id: Optional[str] = Query(None, alias="companyId"),
    db: Session = Depends(get_db),
    resolver: DefaultCompanyResolver = Depends(get_company_resolver),
):
    return products.list_modifier_groups(db, company_id, resolver)


# ---------- single product ----------

@router.get("/{product_id}")
def get_product(product_id: str, db: Session = Depends(get_db)):
    return products.get_product(db, product_id)


@router.patch("/{product_id}")
def update_product(
    product_id: str,
    body: ProductUpdate,
    db: Session = Depends(get_db),
    resolver: DefaultCompanyResolver = Depends(get_company_resolver),
):
    """
    Partial update. `variants` / `modifierGroups` are reconciled only when
    present in the body; an empty list clears the collection.
    """
    return products.update_product(db, product_id, body, resolver)


@router.delete("/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db)):
    """Soft delete: stamps deleted_at and deactivates."""
    return products.remove_product(db, product_id)
