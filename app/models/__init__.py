# Importing the module registers tables with Base for create_all()
from .core import (  # noqa: F401
    # Enums
    ProductUnit, TaxType,

    # Company scope
    Company,

    # Catalog
    Category, Tax, Product, ProductVariant,

    # Modifiers
    ModifierGroup, Modifier, ProductModifierGroup,
)

__all__ = [
    # Enums
    "ProductUnit", "TaxType",

    # Company scope
    "Company",

    # Catalog
    "Category", "Tax", "Product", "ProductVariant",

    # Modifiers
    "ModifierGroup", "Modifier", "ProductModifierGroup",
]
