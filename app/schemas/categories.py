from pydantic import Field
from typing import Optional
from datetime import datetime
from app.schemas.common import CamelModel, OrmOut

class CategoryIn(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    company_id: Optional[str] = None  # falls back to the configured default company
    parent_id: Optional[str] = None
    image: Optional[str] = None
    show_in_menu: bool = True
    active: bool = True
    display_order: int = Field(0, ge=0)

class CategoryUpdate(CamelModel):
    # company is fixed at creation; a sent companyId is ignored
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    company_id: Optional[str] = None
    parent_id: Optional[str] = None
    image: Optional[str] = None
    show_in_menu: Optional[bool] = None
    active: Optional[bool] = None
    display_order: Optional[int] = Field(None, ge=0)

class CategoryRef(OrmOut):
    id: str
    name: str

class CategoryOut(OrmOut):
    id: str
    company_id: str
    parent_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    show_in_menu: bool
    active: bool
    display_order: int
    parent: Optional[CategoryRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
