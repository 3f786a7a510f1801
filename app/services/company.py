from sqlalchemy.orm import Session
from app.models.core import Company
from app.util.errors import NotFoundError, ValidationFailed

class DefaultCompanyResolver:
    """
    Picks the company a catalog write belongs to.

    An explicit company id must point at a live company. Without one, the
    configured default company is used; there is no "first row wins" lookup.
    """

    def __init__(self, default_company_id: str | None):
        self.default_company_id = default_company_id

    def resolve(self, db: Session, company_id: str | None = None) -> Company:
        if company_id:
            company = live_company(db, company_id)
            if company is None:
                raise NotFoundError(f"Company with ID {company_id} not found or inactive.")
            return company

        if not self.default_company_id:
            raise ValidationFailed("No company given and no default company is configured.")
        company = live_company(db, self.default_company_id)
        if company is None:
            raise NotFoundError(f"Default company {self.default_company_id} not found or inactive.")
        return company

    def default_id(self) -> str | None:
        return self.default_company_id

def live_company(db: Session, company_id: str) -> Company | None:
    c = db.get(Company, company_id)
    if c is None or c.deleted_at is not None:
        return None
    return c
