from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Generic, List, TypeVar

T = TypeVar("T")

class CamelModel(BaseModel):
    """Accepts both `minSelect` and `min_select`; dumps camelCase with by_alias."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class OrmOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class Page(CamelModel, Generic[T]):
    data: List[T]
    page: int
    page_size: int
    total: int

def reject_duplicate_ids(rows: list[Any] | None, what: str):
    if not rows:
        return rows
    seen: set[str] = set()
    for r in rows:
        rid = getattr(r, "id", None)
        if not rid:
            continue
        if rid in seen:
            raise ValueError(f"duplicate {what} id {rid}")
        seen.add(rid)
    return rows
