from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from decimal import Decimal
from app.db import get_db
from app.config import settings
from app.models.core import Company, Category, Tax, TaxType

router = APIRouter(prefix="/admin", tags=["admin"])

DEMO_TAX_NUMBER = "1234567890"

@router.post("/dev-bootstrap")
def dev_bootstrap(db: Session = Depends(get_db)):
    if settings.APP_ENV != "dev":
        raise HTTPException(403, detail="Not allowed")

    # Company
    c = db.query(Company).filter(Company.tax_number == DEMO_TAX_NUMBER).first()
    if not c:
        c = Company(
            name="Test Restaurant",
            tax_number=DEMO_TAX_NUMBER,
            tax_office="Test Tax Office",
            address="Test Address",
            phone="+90 555 123 4567",
            email="test@restaurant.com",
        )
        db.add(c); db.flush()

    # Categories
    categories = {}
    for pos, name in enumerate(("Main Courses", "Drinks", "Desserts", "Starters"), start=1):
        cat = (
            db.query(Category)
            .filter(Category.company_id == c.id, Category.name == name, Category.deleted_at.is_(None))
            .first()
        )
        if not cat:
            cat = Category(company_id=c.id, name=name, display_order=pos)
            db.add(cat); db.flush()
        categories[name] = cat.id

    # Taxes (VAT 8 is the default rate for food)
    taxes = {}
    for code, name, rate, is_default in (("VAT1", "VAT 1%", "1.00", False),
                                         ("VAT8", "VAT 8%", "8.00", True),
                                         ("VAT18", "VAT 18%", "18.00", False)):
        tax = (
            db.query(Tax)
            .filter(Tax.company_id == c.id, Tax.code == code, Tax.deleted_at.is_(None))
            .first()
        )
        if not tax:
            tax = Tax(company_id=c.id, name=name, code=code, rate=Decimal(rate),
                      type=TaxType.VAT, is_default=is_default, is_included=True)
            db.add(tax); db.flush()
        taxes[code] = tax.id

    db.commit()
    return {
        "company_id": c.id,
        "category_ids": categories,
        "tax_ids": taxes,
    }
