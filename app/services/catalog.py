"""Companies, categories and taxes: plain CRUD with company scoping and soft delete."""
from datetime import datetime, timezone
from decimal import Decimal
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.core import Company, Category, Tax
from app.schemas.categories import CategoryIn, CategoryUpdate, CategoryOut, CategoryRef
from app.schemas.companies import CompanyIn
from app.schemas.taxes import TaxIn, TaxUpdate, TaxOut
from app.services.company import DefaultCompanyResolver, live_company
from app.util.errors import ConflictError, NotFoundError, ValidationFailed
from app.util.tx import atomic

log = logging.getLogger(__name__)

CATEGORY_TAKEN = "A category with this name already exists."
TAX_TAKEN = "A tax with this code already exists."
COMPANY_TAKEN = "A company with this tax number already exists."

CATEGORY_SORT = {
    "name": Category.name,
    "displayOrder": Category.display_order,
    "createdAt": Category.created_at,
    "updatedAt": Category.updated_at,
}
TAX_SORT = {
    "name": Tax.name,
    "rate": Tax.rate,
    "code": Tax.code,
    "createdAt": Tax.created_at,
}

def _clamp(page: int, page_size: int) -> tuple[int, int]:
    return max(page, 1), min(max(page_size, 1), 100)

def _stamp_deleted(row) -> None:
    row.deleted_at = datetime.now(timezone.utc)
    row.active = False


# ---------- companies ----------

def create_company(db: Session, body: CompanyIn) -> Company:
    with atomic(db, COMPANY_TAKEN):
        if db.query(Company.id).filter(Company.tax_number == body.tax_number).first():
            raise ConflictError(COMPANY_TAKEN)
        c = Company(**body.model_dump(), active=True)
        db.add(c)
        db.flush()
    log.info("company %s created", c.id)
    return c

def list_companies(db: Session) -> list[Company]:
    return db.query(Company).filter(Company.deleted_at.is_(None)).order_by(Company.name.asc()).all()

def get_company(db: Session, company_id: str) -> Company:
    c = live_company(db, company_id)
    if c is None:
        raise NotFoundError(f"Company with ID {company_id} not found.")
    return c

def remove_company(db: Session, company_id: str) -> dict:
    with atomic(db):
        _stamp_deleted(get_company(db, company_id))
    return {"ok": True, "id": company_id}


# ---------- categories ----------

def _category_out(db: Session, cat: Category) -> CategoryOut:
    out = CategoryOut.model_validate(cat)
    if cat.parent_id:
        parent = db.get(Category, cat.parent_id)
        if parent is not None:
            out.parent = CategoryRef.model_validate(parent)
    return out

def _live_category(db: Session, category_id: str) -> Category:
    cat = db.query(Category).filter(Category.id == category_id, Category.deleted_at.is_(None)).first()
    if cat is None:
        raise NotFoundError(f"Category with ID {category_id} not found.")
    return cat

def _category_name_taken(db: Session, company_id: str, name: str, exclude_id: str | None = None) -> bool:
    q = db.query(Category.id).filter(
        Category.company_id == company_id, Category.name == name, Category.deleted_at.is_(None)
    )
    if exclude_id:
        q = q.filter(Category.id != exclude_id)
    return q.first() is not None

def _check_parent(db: Session, company_id: str, parent_id: str, self_id: str | None = None) -> None:
    if parent_id == self_id:
        raise ValidationFailed("A category cannot be its own parent.")
    parent = _live_category(db, parent_id)
    if parent.company_id != company_id:
        raise NotFoundError(f"Category with ID {parent_id} not found.")

def create_category(db: Session, body: CategoryIn, resolver: DefaultCompanyResolver) -> CategoryOut:
    with atomic(db, CATEGORY_TAKEN):
        company = resolver.resolve(db, body.company_id)
        if _category_name_taken(db, company.id, body.name):
            raise ConflictError(CATEGORY_TAKEN)
        if body.parent_id:
            _check_parent(db, company.id, body.parent_id)
        cat = Category(company_id=company.id, **body.model_dump(exclude={"company_id"}))
        db.add(cat)
        db.flush()
        out = _category_out(db, cat)
    log.info("category %s created for company %s", cat.id, company.id)
    return out

def list_categories(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 20,
    search: str | None = None,
    active: bool | None = None,
    company_id: str | None = None,
    sort_by: str = "displayOrder",
    order: str = "asc",
) -> dict:
    page, page_size = _clamp(page, page_size)
    q = (
        db.query(Category)
        .join(Company, Company.id == Category.company_id)
        .filter(Category.deleted_at.is_(None), Company.deleted_at.is_(None))
    )
    if company_id:
        q = q.filter(Category.company_id == company_id)
    if active is not None:
        q = q.filter(Category.active == active)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Category.name.ilike(like), Category.description.ilike(like)))

    total = q.count()
    col = CATEGORY_SORT.get(sort_by, Category.display_order)
    rows = (
        q.order_by(col.desc() if order == "desc" else col.asc(), Category.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"data": [_category_out(db, c) for c in rows], "page": page, "pageSize": page_size, "total": total}

def get_category(db: Session, category_id: str) -> CategoryOut:
    return _category_out(db, _live_category(db, category_id))

def parent_categories(db: Session, company_id: str | None = None) -> list[dict]:
    q = db.query(Category).filter(
        Category.deleted_at.is_(None), Category.active.is_(True), Category.parent_id.is_(None)
    )
    if company_id:
        q = q.filter(Category.company_id == company_id)
    return [{"id": c.id, "name": c.name} for c in q.order_by(Category.display_order).all()]

def update_category(db: Session, category_id: str, body: CategoryUpdate) -> CategoryOut:
    patch = body.model_dump(exclude_unset=True, exclude={"company_id", "parent_id"})
    with atomic(db, CATEGORY_TAKEN):
        cat = _live_category(db, category_id)
        if patch.get("name") and _category_name_taken(db, cat.company_id, patch["name"], exclude_id=cat.id):
            raise ConflictError(CATEGORY_TAKEN)
        # parentId: absent -> keep, null -> detach, id -> reattach
        if "parent_id" in body.model_fields_set:
            if body.parent_id:
                _check_parent(db, cat.company_id, body.parent_id, self_id=cat.id)
            cat.parent_id = body.parent_id or None
        for key, val in patch.items():
            if val is None and key not in ("description", "image"):
                continue
            setattr(cat, key, val)
        db.flush()
        out = _category_out(db, cat)
    return out

def remove_category(db: Session, category_id: str) -> dict:
    with atomic(db):
        _stamp_deleted(_live_category(db, category_id))
    log.info("category %s soft-deleted", category_id)
    return {"ok": True, "id": category_id}

def meta_categories(db: Session, company_id: str | None, resolver: DefaultCompanyResolver) -> list[dict]:
    company_id = company_id or resolver.default_id()
    q = db.query(Category).filter(Category.deleted_at.is_(None), Category.active.is_(True))
    if company_id:
        q = q.filter(Category.company_id == company_id)
    return [
        {"id": c.id, "name": c.name, "description": c.description, "displayOrder": c.display_order}
        for c in q.order_by(Category.display_order.asc()).all()
    ]


# ---------- taxes ----------

def _live_tax(db: Session, tax_id: str) -> Tax:
    tax = db.query(Tax).filter(Tax.id == tax_id, Tax.deleted_at.is_(None)).first()
    if tax is None:
        raise NotFoundError(f"Tax with ID {tax_id} not found.")
    return tax

def _tax_code_taken(db: Session, company_id: str, code: str, exclude_id: str | None = None) -> bool:
    q = db.query(Tax.id).filter(Tax.company_id == company_id, Tax.code == code, Tax.deleted_at.is_(None))
    if exclude_id:
        q = q.filter(Tax.id != exclude_id)
    return q.first() is not None

def create_tax(db: Session, body: TaxIn, resolver: DefaultCompanyResolver) -> TaxOut:
    with atomic(db, TAX_TAKEN):
        company = resolver.resolve(db, body.company_id)
        if _tax_code_taken(db, company.id, body.code):
            raise ConflictError(TAX_TAKEN)
        values = body.model_dump(exclude={"company_id"})
        values["rate"] = Decimal(str(values["rate"]))
        tax = Tax(company_id=company.id, **values)
        db.add(tax)
        db.flush()
        out = TaxOut.model_validate(tax)
    log.info("tax %s (%s) created for company %s", tax.id, tax.code, company.id)
    return out

def list_taxes(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 20,
    search: str | None = None,
    active: bool | None = None,
    company_id: str | None = None,
    sort_by: str = "rate",
    order: str = "asc",
) -> dict:
    page, page_size = _clamp(page, page_size)
    q = (
        db.query(Tax)
        .join(Company, Company.id == Tax.company_id)
        .filter(Tax.deleted_at.is_(None), Company.deleted_at.is_(None))
    )
    if company_id:
        q = q.filter(Tax.company_id == company_id)
    if active is not None:
        q = q.filter(Tax.active == active)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Tax.name.ilike(like), Tax.code.ilike(like)))

    total = q.count()
    col = TAX_SORT.get(sort_by, Tax.rate)
    rows = (
        q.order_by(col.desc() if order == "desc" else col.asc(), Tax.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"data": [TaxOut.model_validate(t) for t in rows], "page": page, "pageSize": page_size, "total": total}

def get_tax(db: Session, tax_id: str) -> TaxOut:
    return TaxOut.model_validate(_live_tax(db, tax_id))

def update_tax(db: Session, tax_id: str, body: TaxUpdate) -> TaxOut:
    patch = body.model_dump(exclude_unset=True)
    with atomic(db, TAX_TAKEN):
        tax = _live_tax(db, tax_id)
        if patch.get("code") and _tax_code_taken(db, tax.company_id, patch["code"], exclude_id=tax.id):
            raise ConflictError(TAX_TAKEN)
        for key, val in patch.items():
            if val is None:
                continue
            if key == "rate":
                val = Decimal(str(val))
            setattr(tax, key, val)
        db.flush()
        out = TaxOut.model_validate(tax)
    return out

def remove_tax(db: Session, tax_id: str) -> dict:
    with atomic(db):
        _stamp_deleted(_live_tax(db, tax_id))
    log.info("tax %s soft-deleted", tax_id)
    return {"ok": True, "id": tax_id}

def meta_taxes(db: Session, company_id: str | None, resolver: DefaultCompanyResolver) -> list[dict]:
    company_id = company_id or resolver.default_id()
    q = db.query(Tax).filter(Tax.deleted_at.is_(None), Tax.active.is_(True))
    if company_id:
        q = q.filter(Tax.company_id == company_id)
    rows = q.order_by(Tax.is_default.desc(), Tax.rate.asc()).all()
    return [
        {"id": t.id, "name": t.name, "rate": float(t.rate), "code": t.code, "isDefault": bool(t.is_default)}
        for t in rows
    ]
