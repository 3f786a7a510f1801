"""
Product writes and reads.

A product update is applied as one unit: scalar patch, variant
reconciliation, modifier-group reconciliation (with a nested modifier
reconciliation per group), join-row ordering and flag recomputation all
happen inside a single transaction, and the rehydrated product is read back
before commit. Any failure rolls the whole write back.

Modifier groups are shared between products. Editing a group's name or
selection limits through one product is visible on every product linked to
it; unlinking a group from a product only removes the join row.
"""
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.core import (
    Category, Company, Tax, Product, ProductVariant,
    ModifierGroup, Modifier, ProductModifierGroup,
)
from app.schemas.products import ProductIn, ProductUpdate
from app.services.company import DefaultCompanyResolver
from app.services.reconcile import (
    IncomingRecord, KeyedRecord, ReconcilePlan, reconcile, tag,
)
from app.util.errors import ConflictError, NotFoundError, ValidationFailed
from app.util.tx import atomic

log = logging.getLogger(__name__)

CODE_TAKEN = "A product with this code already exists for the company."

# columns a PATCH may null out; for the rest a null means "leave as is"
NULLABLE = {"barcode", "description", "critical_stock", "image"}

SORTABLE = {
    "name": Product.name,
    "code": Product.code,
    "basePrice": Product.base_price,
    "createdAt": Product.created_at,
    "displayOrder": Product.display_order,
}


# ---------- helpers ----------

def _money(val) -> Decimal:
    # go through str so floats like 12.1 don't carry binary noise
    return Decimal(str(val)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def _qty(val) -> Decimal | None:
    if val is None:
        return None
    return Decimal(str(val)).quantize(Decimal("0.001"))

def _as_float(val: Decimal | float | int | None) -> float | None:
    if val is None:
        return None
    return float(val)

def _ts(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


# ---------- reference checks ----------

def _live_product(db: Session, product_id: str, lock: bool = False) -> Product:
    q = db.query(Product).filter(Product.id == product_id, Product.deleted_at.is_(None))
    if lock:
        # serializes concurrent writers on the same product where the backend supports it
        q = q.with_for_update()
    p = q.first()
    if p is None:
        raise NotFoundError(f"Product with ID {product_id} not found.")
    return p

def _category_in(db: Session, company_id: str, category_id: str) -> Category:
    cat = (
        db.query(Category)
        .filter(Category.id == category_id, Category.company_id == company_id, Category.deleted_at.is_(None))
        .first()
    )
    if cat is None:
        raise NotFoundError(f"Category with ID {category_id} not found.")
    return cat

def _tax_in(db: Session, company_id: str, tax_id: str) -> Tax:
    tax = (
        db.query(Tax)
        .filter(Tax.id == tax_id, Tax.company_id == company_id, Tax.deleted_at.is_(None))
        .first()
    )
    if tax is None:
        raise NotFoundError(f"Tax with ID {tax_id} not found.")
    return tax

def _check_groups_follow(db: Session, p: Product) -> None:
    # linked groups stay with their company, so the links must be resent on a move
    foreign = (
        db.query(ProductModifierGroup.modifier_group_id)
        .join(ModifierGroup, ModifierGroup.id == ProductModifierGroup.modifier_group_id)
        .filter(ProductModifierGroup.product_id == p.id, ModifierGroup.company_id != p.company_id)
        .first()
    )
    if foreign is not None:
        raise ValidationFailed(
            "Product is linked to modifier groups of another company; send modifierGroups with the move."
        )

def code_taken(db: Session, company_id: str, code: str, exclude_id: str | None = None) -> bool:
    # soft-deleted products keep their code reserved (the unique key covers every row)
    q = db.query(Product.id).filter(Product.company_id == company_id, Product.code == code)
    if exclude_id:
        q = q.filter(Product.id != exclude_id)
    return q.first() is not None


# ---------- collection sync ----------

def _apply_plan(
    db: Session,
    plan: ReconcilePlan,
    rows: Mapping[str, Any],
    build: Callable[[Mapping[str, Any]], Any],
    assign: Callable[[Any, Mapping[str, Any]], None],
) -> None:
    for op in plan.updates:
        row = rows[op.id]
        assign(row, op.fields)
        row.display_order = op.display_order
    for op in plan.creates:
        row = build(op.fields)
        row.display_order = op.display_order
        db.add(row)
    for op in plan.deletes:
        db.delete(rows[op.id])

def _variant_values(fields: Mapping[str, Any]) -> dict:
    sku = fields.get("sku")
    return {
        "name": fields["name"],
        "sku": sku,
        "code": sku or fields["name"],
        "price": _money(fields["price"]),
    }

def sync_variants(db: Session, product_id: str, incoming: Iterable[IncomingRecord]) -> ReconcilePlan:
    rows = {
        v.id: v
        for v in db.query(ProductVariant)
        .filter(ProductVariant.product_id == product_id)
        .order_by(ProductVariant.display_order)
    }
    plan = reconcile(rows.keys(), list(incoming))

    def build(fields):
        return ProductVariant(product_id=product_id, active=True, **_variant_values(fields))

    def assign(row, fields):
        for k, v in _variant_values(fields).items():
            setattr(row, k, v)

    _apply_plan(db, plan, rows, build, assign)
    log.info("product %s variants reconciled: %s", product_id, plan.summary())
    return plan

def _modifier_values(fields: Mapping[str, Any]) -> dict:
    return {
        "name": fields["name"],
        "price": _money(fields.get("price") or 0),
        "max_quantity": fields.get("max_quantity") or 1,
        "affects_stock": bool(fields.get("affects_stock", False)),
    }

def sync_modifiers(db: Session, group_id: str, incoming: Iterable[IncomingRecord]) -> ReconcilePlan:
    rows = {
        m.id: m
        for m in db.query(Modifier)
        .filter(Modifier.group_id == group_id)
        .order_by(Modifier.display_order)
    }
    plan = reconcile(rows.keys(), list(incoming))

    def build(fields):
        return Modifier(group_id=group_id, active=True, **_modifier_values(fields))

    def assign(row, fields):
        for k, v in _modifier_values(fields).items():
            setattr(row, k, v)

    _apply_plan(db, plan, rows, build, assign)
    log.info("modifier group %s modifiers reconciled: %s", group_id, plan.summary())
    return plan

def _upsert_group(db: Session, company_id: str, g) -> ModifierGroup:
    """Update a referenced group's own fields in place, or create a new one."""
    gid = getattr(g, "id", None)
    if gid:
        mg = db.get(ModifierGroup, gid)
        if mg is None or mg.company_id != company_id:
            raise NotFoundError(f"Modifier group with ID {gid} not found.")
        mg.name = g.name
        if g.min_select is not None:
            mg.min_selection = g.min_select
        if g.max_select is not None:
            mg.max_selection = g.max_select
        mg.required = mg.min_selection > 0
        return mg

    min_sel = g.min_select if g.min_select is not None else 0
    mg = ModifierGroup(
        company_id=company_id,
        name=g.name,
        min_selection=min_sel,
        max_selection=g.max_select if g.max_select is not None else 1,
        required=min_sel > 0,
        free_selection=0,
        active=True,
    )
    db.add(mg)
    db.flush()
    return mg

def sync_modifier_groups(db: Session, product: Product, groups: list) -> ReconcilePlan:
    links = {
        link.modifier_group_id: link
        for link in db.query(ProductModifierGroup)
        .filter(ProductModifierGroup.product_id == product.id)
        .order_by(ProductModifierGroup.display_order)
    }

    resolved: list[IncomingRecord] = []
    for g in groups:
        mg = _upsert_group(db, product.company_id, g)
        if "items" in g.model_fields_set and g.items is not None:
            sync_modifiers(db, mg.id, [tag(i.model_dump()) for i in g.items])
        resolved.append(KeyedRecord(id=mg.id, fields={}))

    # every incoming group now has an identifier; unknown ones are new join rows
    plan = reconcile(links.keys(), resolved)
    for op in plan.updates:
        links[op.id].display_order = op.display_order
    for op in plan.creates:
        db.add(ProductModifierGroup(
            product_id=product.id,
            modifier_group_id=op.requested_id,
            display_order=op.display_order,
        ))
    for op in plan.deletes:
        db.delete(links[op.id])
    log.info("product %s modifier group links reconciled: %s", product.id, plan.summary())
    return plan


# ---------- read side ----------

def _modifier_group_out(mg: ModifierGroup, modifiers: list[Modifier]) -> dict:
    return {
        "id": mg.id,
        "companyId": mg.company_id,
        "name": mg.name,
        "minSelection": mg.min_selection,
        "maxSelection": mg.max_selection,
        "required": bool(mg.required),
        "freeSelection": mg.free_selection,
        "active": bool(mg.active),
        "modifiers": [
            {
                "id": m.id,
                "name": m.name,
                "price": _as_float(m.price) or 0.0,
                "maxQuantity": m.max_quantity,
                "affectsStock": bool(m.affects_stock),
                "displayOrder": m.display_order,
                "active": bool(m.active),
            }
            for m in modifiers
        ],
    }

def _modifiers_by_group(db: Session, group_ids: list[str]) -> dict[str, list[Modifier]]:
    out: dict[str, list[Modifier]] = {gid: [] for gid in group_ids}
    if not group_ids:
        return out
    rows = (
        db.query(Modifier)
        .filter(Modifier.group_id.in_(group_ids))
        .order_by(Modifier.group_id, Modifier.display_order)
        .all()
    )
    for m in rows:
        out[m.group_id].append(m)
    return out

def rehydrate(db: Session, p: Product) -> dict:
    """Product scalars plus every nested relation, each collection in display order."""
    category = db.get(Category, p.category_id)
    tax = db.get(Tax, p.tax_id)
    company = db.get(Company, p.company_id)

    variants = (
        db.query(ProductVariant)
        .filter(ProductVariant.product_id == p.id)
        .order_by(ProductVariant.display_order)
        .all()
    )
    links = (
        db.query(ProductModifierGroup, ModifierGroup)
        .join(ModifierGroup, ModifierGroup.id == ProductModifierGroup.modifier_group_id)
        .filter(ProductModifierGroup.product_id == p.id)
        .order_by(ProductModifierGroup.display_order)
        .all()
    )
    mods = _modifiers_by_group(db, [mg.id for _, mg in links])

    return {
        "id": p.id,
        "companyId": p.company_id,
        "categoryId": p.category_id,
        "taxId": p.tax_id,
        "code": p.code,
        "barcode": p.barcode,
        "name": p.name,
        "description": p.description,
        "basePrice": _as_float(p.base_price),
        "trackStock": bool(p.track_stock),
        "unit": p.unit.value,
        "criticalStock": _as_float(p.critical_stock),
        "available": bool(p.available),
        "sellable": bool(p.sellable),
        "showInMenu": bool(p.show_in_menu),
        "featured": bool(p.featured),
        "displayOrder": p.display_order,
        "active": bool(p.active),
        "image": p.image,
        "hasVariants": bool(p.has_variants),
        "hasModifiers": bool(p.has_modifiers),
        "version": p.version,
        "createdAt": _ts(p.created_at),
        "updatedAt": _ts(p.updated_at),
        "category": {"id": category.id, "name": category.name} if category else None,
        "tax": {"id": tax.id, "name": tax.name, "rate": _as_float(tax.rate), "code": tax.code} if tax else None,
        "company": {"id": company.id, "name": company.name} if company else None,
        "variants": [
            {
                "id": v.id,
                "name": v.name,
                "code": v.code,
                "sku": v.sku,
                "price": _as_float(v.price),
                "active": bool(v.active),
                "displayOrder": v.display_order,
            }
            for v in variants
        ],
        "modifierGroups": [
            {
                "modifierGroupId": mg.id,
                "displayOrder": link.display_order,
                "modifierGroup": _modifier_group_out(mg, mods[mg.id]),
            }
            for link, mg in links
        ],
    }


def get_product(db: Session, product_id: str) -> dict:
    return rehydrate(db, _live_product(db, product_id))

def list_products(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 20,
    search: str | None = None,
    active: bool | None = None,
    track_stock: bool | None = None,
    category_id: str | None = None,
    company_id: str | None = None,
    sort_by: str = "displayOrder",
    order: str = "asc",
) -> dict:
    page = max(page, 1)
    page_size = min(max(page_size, 1), 100)

    q = (
        db.query(Product)
        .join(Company, Company.id == Product.company_id)
        .filter(Product.deleted_at.is_(None), Company.deleted_at.is_(None))
    )
    if company_id:
        q = q.filter(Product.company_id == company_id)
    if category_id:
        q = q.filter(Product.category_id == category_id)
    if active is not None:
        q = q.filter(Product.active == active)
    if track_stock is not None:
        q = q.filter(Product.track_stock == track_stock)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Product.name.ilike(like), Product.code.ilike(like), Product.barcode.ilike(like)))

    total = q.count()
    col = SORTABLE.get(sort_by, Product.display_order)
    q = q.order_by(col.desc() if order == "desc" else col.asc(), Product.id)
    rows = q.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "data": [rehydrate(db, p) for p in rows],
        "page": page,
        "pageSize": page_size,
        "total": total,
    }

def list_modifier_groups(db: Session, company_id: str | None, resolver: DefaultCompanyResolver) -> list[dict]:
    company_id = company_id or resolver.default_id()
    q = (
        db.query(ModifierGroup)
        .join(Company, Company.id == ModifierGroup.company_id)
        .filter(ModifierGroup.active.is_(True), Company.deleted_at.is_(None))
    )
    if company_id:
        q = q.filter(ModifierGroup.company_id == company_id)
    groups = q.order_by(ModifierGroup.name).all()
    mods = _modifiers_by_group(db, [g.id for g in groups])
    return [_modifier_group_out(g, mods[g.id]) for g in groups]

def is_code_unique(db: Session, code: str, company_id: str) -> bool:
    return not code_taken(db, company_id, code)


# ---------- write side ----------

def create_product(db: Session, body: ProductIn, resolver: DefaultCompanyResolver) -> dict:
    with atomic(db, CODE_TAKEN):
        company = resolver.resolve(db, body.company_id)
        _category_in(db, company.id, body.category_id)
        _tax_in(db, company.id, body.tax_id)
        if code_taken(db, company.id, body.code):
            raise ConflictError(CODE_TAKEN)

        values = body.model_dump(exclude={"company_id", "variants", "modifier_groups"})
        values["base_price"] = _money(values["base_price"])
        values["critical_stock"] = _qty(values["critical_stock"])
        p = Product(
            company_id=company.id,
            has_variants=bool(body.variants),
            has_modifiers=bool(body.modifier_groups),
            **values,
        )
        db.add(p)
        db.flush()

        if body.variants:
            sync_variants(db, p.id, [tag(v.model_dump()) for v in body.variants])
        if body.modifier_groups:
            sync_modifier_groups(db, p, body.modifier_groups)

        db.flush()
        out = rehydrate(db, p)
    log.info("product %s created (code=%s company=%s)", p.id, p.code, p.company_id)
    return out

def update_product(db: Session, product_id: str, body: ProductUpdate, resolver: DefaultCompanyResolver) -> dict:
    sent = body.model_fields_set
    with atomic(db, CODE_TAKEN):
        p = _live_product(db, product_id, lock=True)

        moved = False
        if body.company_id:
            company_id = resolver.resolve(db, body.company_id).id
            moved = company_id != p.company_id
            p.company_id = company_id
        if body.category_id or moved:
            p.category_id = _category_in(db, p.company_id, body.category_id or p.category_id).id
        if body.tax_id or moved:
            p.tax_id = _tax_in(db, p.company_id, body.tax_id or p.tax_id).id
        if moved and not ("modifier_groups" in sent and body.modifier_groups is not None):
            _check_groups_follow(db, p)

        patch = body.scalar_patch()
        for key, val in patch.items():
            if val is None and key not in NULLABLE:
                continue
            if key == "base_price":
                val = _money(val)
            elif key == "critical_stock":
                val = _qty(val)
            setattr(p, key, val)

        if ("code" in patch or body.company_id) and code_taken(db, p.company_id, p.code, exclude_id=p.id):
            raise ConflictError(CODE_TAKEN)

        # a present-but-empty list clears the collection; an absent field leaves it alone
        if "variants" in sent and body.variants is not None:
            sync_variants(db, p.id, [tag(v.model_dump()) for v in body.variants])
            p.has_variants = bool(body.variants)

        if "modifier_groups" in sent and body.modifier_groups is not None:
            sync_modifier_groups(db, p, body.modifier_groups)
            p.has_modifiers = bool(body.modifier_groups)

        p.version = (p.version or 0) + 1
        db.flush()
        out = rehydrate(db, p)
    log.info("product %s updated to version %s", p.id, p.version)
    return out

def remove_product(db: Session, product_id: str) -> dict:
    with atomic(db):
        p = _live_product(db, product_id, lock=True)
        p.deleted_at = datetime.now(timezone.utc)
        p.active = False
    log.info("product %s soft-deleted", product_id)
    return {"ok": True, "id": product_id}
