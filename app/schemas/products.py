from pydantic import Field, field_validator
from typing import List, Optional
from app.models.core import ProductUnit
from app.schemas.common import CamelModel, reject_duplicate_ids

# ---------- nested inputs ----------

class VariantIn(CamelModel):
    name: str = Field(min_length=1)
    sku: Optional[str] = None
    price: float = Field(ge=0)

class VariantUpdateIn(VariantIn):
    id: Optional[str] = None

class ModifierItemIn(CamelModel):
    name: str = Field(min_length=1)
    price: float = Field(0, ge=0)
    max_quantity: int = Field(1, ge=1)
    affects_stock: bool = False

class ModifierItemUpdateIn(ModifierItemIn):
    id: Optional[str] = None

class ModifierGroupIn(CamelModel):
    name: str = Field(min_length=1)
    min_select: int = Field(0, ge=0)
    max_select: int = Field(1, ge=0)
    items: List[ModifierItemIn] = []

class ModifierGroupUpdateIn(CamelModel):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    min_select: Optional[int] = Field(None, ge=0)
    max_select: Optional[int] = Field(None, ge=0)
    # absent -> the group's modifiers are left alone; [] -> all removed
    items: Optional[List[ModifierItemUpdateIn]] = None

    @field_validator("items")
    @classmethod
    def _unique_items(cls, v):
        return reject_duplicate_ids(v, "modifier")

# ---------- product ----------

class ProductIn(CamelModel):
    company_id: Optional[str] = None  # falls back to the configured default company
    category_id: str
    tax_id: str
    code: str = Field(min_length=1)
    barcode: Optional[str] = None
    name: str = Field(min_length=1)
    description: Optional[str] = None
    base_price: float = Field(ge=0)
    track_stock: bool = False
    unit: ProductUnit = ProductUnit.PIECE
    critical_stock: Optional[float] = Field(None, ge=0)
    available: bool = True
    sellable: bool = True
    show_in_menu: bool = True
    featured: bool = False
    display_order: int = 0
    active: bool = True
    image: Optional[str] = None
    variants: Optional[List[VariantIn]] = None
    modifier_groups: Optional[List[ModifierGroupIn]] = None

class ProductUpdate(CamelModel):
    company_id: Optional[str] = None
    category_id: Optional[str] = None
    tax_id: Optional[str] = None
    code: Optional[str] = Field(None, min_length=1)
    barcode: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    track_stock: Optional[bool] = None
    unit: Optional[ProductUnit] = None
    critical_stock: Optional[float] = Field(None, ge=0)
    available: Optional[bool] = None
    sellable: Optional[bool] = None
    show_in_menu: Optional[bool] = None
    featured: Optional[bool] = None
    display_order: Optional[int] = None
    active: Optional[bool] = None
    image: Optional[str] = None
    variants: Optional[List[VariantUpdateIn]] = None
    modifier_groups: Optional[List[ModifierGroupUpdateIn]] = None

    @field_validator("variants")
    @classmethod
    def _unique_variants(cls, v):
        return reject_duplicate_ids(v, "variant")

    @field_validator("modifier_groups")
    @classmethod
    def _unique_groups(cls, v):
        return reject_duplicate_ids(v, "modifier group")

    def scalar_patch(self) -> dict:
        """Scalar fields the client actually sent (collections excluded)."""
        return self.model_dump(
            exclude_unset=True,
            exclude={"variants", "modifier_groups", "company_id", "category_id", "tax_id"},
        )
