from typing import Optional
from datetime import datetime
from app.schemas.common import CamelModel, OrmOut

class CompanyIn(CamelModel):
    name: str
    tax_number: str
    tax_office: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

class CompanyOut(OrmOut):
    id: str
    name: str
    tax_number: str
    tax_office: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None
