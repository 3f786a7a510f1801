"""
Identifier-keyed collection reconciliation.

Given the identifiers of the rows currently persisted under a parent and the
ordered collection the client wants, work out which rows to update in place,
which to create and which to delete. Nothing here touches the database; the
caller applies the returned plan inside its own transaction.

Incoming records are tagged at the boundary:

    NewRecord(fields)          -> no identifier, always a create
    KeyedRecord(id, fields)    -> update if `id` is persisted, else a create

Every emitted create/update carries `display_order` equal to the record's
index in the incoming collection.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Union


@dataclass(frozen=True)
class NewRecord:
    fields: Mapping[str, Any]


@dataclass(frozen=True)
class KeyedRecord:
    id: str
    fields: Mapping[str, Any]


IncomingRecord = Union[NewRecord, KeyedRecord]


@dataclass(frozen=True)
class CreateOp:
    fields: Mapping[str, Any]
    display_order: int
    # identifier the client sent but which is not persisted under this parent
    requested_id: str | None = None


@dataclass(frozen=True)
class UpdateOp:
    id: str
    fields: Mapping[str, Any]
    display_order: int


@dataclass(frozen=True)
class DeleteOp:
    id: str


@dataclass
class ReconcilePlan:
    creates: list[CreateOp] = field(default_factory=list)
    updates: list[UpdateOp] = field(default_factory=list)
    deletes: list[DeleteOp] = field(default_factory=list)

    @property
    def kept_ids(self) -> list[str]:
        return [u.id for u in self.updates]

    @property
    def is_noop(self) -> bool:
        return not (self.creates or self.updates or self.deletes)

    def summary(self) -> str:
        return f"create={len(self.creates)} update={len(self.updates)} delete={len(self.deletes)}"


def tag(record: Mapping[str, Any], id_key: str = "id") -> IncomingRecord:
    """Split a raw incoming dict into its identifier and remaining fields."""
    fields = {k: v for k, v in record.items() if k != id_key}
    rid = record.get(id_key)
    if rid:
        return KeyedRecord(id=str(rid), fields=fields)
    return NewRecord(fields=fields)


def reconcile(existing_ids: Iterable[str], incoming: Sequence[IncomingRecord]) -> ReconcilePlan:
    existing = list(dict.fromkeys(existing_ids))
    known = set(existing)
    kept: set[str] = set()
    seen: set[str] = set()
    plan = ReconcilePlan()

    for i, rec in enumerate(incoming):
        if isinstance(rec, KeyedRecord):
            if rec.id in seen:
                raise ValueError(f"duplicate identifier {rec.id!r} in incoming collection")
            seen.add(rec.id)
            if rec.id in known:
                kept.add(rec.id)
                plan.updates.append(UpdateOp(id=rec.id, fields=dict(rec.fields), display_order=i))
                continue
            plan.creates.append(CreateOp(fields=dict(rec.fields), display_order=i, requested_id=rec.id))
        elif isinstance(rec, NewRecord):
            plan.creates.append(CreateOp(fields=dict(rec.fields), display_order=i))
        else:
            raise TypeError(f"unsupported incoming record: {rec!r}")

    plan.deletes = [DeleteOp(id=eid) for eid in existing if eid not in kept]
    return plan
