from sqlalchemy import (
    String, ForeignKey, Boolean, Numeric, Enum, Text, Integer, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column
from enum import Enum as PyEnum
from decimal import Decimal
from app.db import Base
from app.models.common import IdMixin, TSMixin, SoftDeleteMixin

# ── Enums ───────────────────────────────────────────────────────────────────
class ProductUnit(PyEnum):
    PIECE = "PIECE"
    KG = "KG"
    GRAM = "GRAM"
    LITER = "LITER"
    ML = "ML"
    PORTION = "PORTION"
    BOX = "BOX"
    PACKAGE = "PACKAGE"

class TaxType(PyEnum):
    VAT = "VAT"
    OTV = "OTV"      # special consumption tax
    OIV = "OIV"      # special communication tax
    DAMGA = "DAMGA"  # stamp duty

# ── Company ─────────────────────────────────────────────────────────────────
class Company(Base, IdMixin, TSMixin, SoftDeleteMixin):
    __tablename__ = "company"
    name: Mapped[str] = mapped_column(String(160))
    tax_number: Mapped[str] = mapped_column(String(32), unique=True)
    tax_office: Mapped[str | None] = mapped_column(String(120))
    address: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(String(32))
    email: Mapped[str | None] = mapped_column(String(160))
    active: Mapped[bool] = mapped_column(Boolean, default=True)

# ── Categories & taxes ──────────────────────────────────────────────────────
class Category(Base, IdMixin, TSMixin, SoftDeleteMixin):
    __tablename__ = "category"
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("company.id"))
    parent_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("category.id"))
    name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text)
    image: Mapped[str | None] = mapped_column(String(400))
    show_in_menu: Mapped[bool] = mapped_column(Boolean, default=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)

class Tax(Base, IdMixin, TSMixin, SoftDeleteMixin):
    __tablename__ = "tax"
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("company.id"))
    name: Mapped[str] = mapped_column(String(60))
    rate: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    code: Mapped[str] = mapped_column(String(30))
    type: Mapped[TaxType] = mapped_column(Enum(TaxType), default=TaxType.VAT)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    is_included: Mapped[bool] = mapped_column(Boolean, default=True)  # price already contains the tax
    active: Mapped[bool] = mapped_column(Boolean, default=True)

# ── Products ────────────────────────────────────────────────────────────────
class Product(Base, IdMixin, TSMixin, SoftDeleteMixin):
    __tablename__ = "product"
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("company.id"))
    category_id: Mapped[str] = mapped_column(String(36), ForeignKey("category.id"))
    tax_id: Mapped[str] = mapped_column(String(36), ForeignKey("tax.id"))
    code: Mapped[str] = mapped_column(String(60))
    barcode: Mapped[str | None] = mapped_column(String(60))
    name: Mapped[str] = mapped_column(String(160))
    description: Mapped[str | None] = mapped_column(Text)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    track_stock: Mapped[bool] = mapped_column(Boolean, default=False)
    unit: Mapped[ProductUnit] = mapped_column(Enum(ProductUnit), default=ProductUnit.PIECE)
    critical_stock: Mapped[Decimal | None] = mapped_column(Numeric(12, 3))
    available: Mapped[bool] = mapped_column(Boolean, default=True)
    sellable: Mapped[bool] = mapped_column(Boolean, default=True)
    show_in_menu: Mapped[bool] = mapped_column(Boolean, default=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    image: Mapped[str | None] = mapped_column(String(400))
    has_variants: Mapped[bool] = mapped_column(Boolean, default=False)
    has_modifiers: Mapped[bool] = mapped_column(Boolean, default=False)
    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_product_company_code"),
    )

class ProductVariant(Base, IdMixin, TSMixin):
    __tablename__ = "product_variant"
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("product.id"))
    name: Mapped[str] = mapped_column(String(80))
    code: Mapped[str] = mapped_column(String(80))
    sku: Mapped[str | None] = mapped_column(String(60))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)

# ── Modifiers ───────────────────────────────────────────────────────────────
class ModifierGroup(Base, IdMixin, TSMixin):
    __tablename__ = "modifier_group"
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("company.id"))
    name: Mapped[str] = mapped_column(String(120))
    min_selection: Mapped[int] = mapped_column(Integer, default=0)
    max_selection: Mapped[int] = mapped_column(Integer, default=1)
    required: Mapped[bool] = mapped_column(Boolean, default=False)
    free_selection: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

class Modifier(Base, IdMixin, TSMixin):
    __tablename__ = "modifier"
    group_id: Mapped[str] = mapped_column(String(36), ForeignKey("modifier_group.id"))
    name: Mapped[str] = mapped_column(String(120))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    max_quantity: Mapped[int] = mapped_column(Integer, default=1)
    affects_stock: Mapped[bool] = mapped_column(Boolean, default=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

class ProductModifierGroup(Base, TSMixin):
    __tablename__ = "product_modifier_group"
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("product.id"), primary_key=True)
    modifier_group_id: Mapped[str] = mapped_column(String(36), ForeignKey("modifier_group.id"), primary_key=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
