from pydantic import Field
from typing import Optional
from datetime import datetime
from app.models.core import TaxType
from app.schemas.common import CamelModel, OrmOut

class TaxIn(CamelModel):
    name: str = Field(min_length=1)
    rate: float = Field(ge=0, le=100)
    code: str = Field(min_length=1)
    type: TaxType = TaxType.VAT
    is_default: bool = False
    is_included: bool = True
    active: bool = True
    company_id: Optional[str] = None

class TaxUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    rate: Optional[float] = Field(None, ge=0, le=100)
    code: Optional[str] = Field(None, min_length=1)
    type: Optional[TaxType] = None
    is_default: Optional[bool] = None
    is_included: Optional[bool] = None
    active: Optional[bool] = None

class TaxOut(OrmOut):
    id: str
    company_id: str
    name: str
    rate: float
    code: str
    type: TaxType
    is_default: bool
    is_included: bool
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
