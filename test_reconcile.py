# test_reconcile.py
import pytest

from app.services.reconcile import (
    CreateOp, DeleteOp, KeyedRecord, NewRecord, UpdateOp, reconcile, tag,
)


def test_tag_splits_identifier_from_fields():
    assert tag({"id": "v1", "name": "S"}) == KeyedRecord(id="v1", fields={"name": "S"})
    assert tag({"name": "S"}) == NewRecord(fields={"name": "S"})
    # null / empty identifiers mean "new"
    assert tag({"id": None, "name": "S"}) == NewRecord(fields={"name": "S"})
    assert tag({"id": "", "name": "S"}) == NewRecord(fields={"name": "S"})


def test_update_create_delete_with_index_order():
    plan = reconcile(
        ["v1", "v2"],
        [KeyedRecord("v2", {"name": "M", "price": 13}), NewRecord({"name": "L", "price": 15})],
    )
    assert plan.updates == [UpdateOp(id="v2", fields={"name": "M", "price": 13}, display_order=0)]
    assert plan.creates == [CreateOp(fields={"name": "L", "price": 15}, display_order=1)]
    assert plan.deletes == [DeleteOp(id="v1")]
    assert plan.kept_ids == ["v2"]


def test_unknown_identifier_is_treated_as_new():
    plan = reconcile(["a"], [KeyedRecord("ghost", {"name": "x"})])
    assert plan.updates == []
    assert plan.creates == [CreateOp(fields={"name": "x"}, display_order=0, requested_id="ghost")]
    assert plan.deletes == [DeleteOp(id="a")]


def test_empty_incoming_deletes_everything():
    plan = reconcile(["a", "b", "c"], [])
    assert [d.id for d in plan.deletes] == ["a", "b", "c"]
    assert not plan.creates and not plan.updates


def test_nothing_existing_and_nothing_incoming_is_noop():
    assert reconcile([], []).is_noop


def test_only_missing_ids_are_deleted():
    existing = ["a", "b", "c", "d"]
    incoming = [KeyedRecord("d", {}), NewRecord({}), KeyedRecord("b", {})]
    plan = reconcile(existing, incoming)
    assert {d.id for d in plan.deletes} == {"a", "c"}
    # kept ∪ created covers every incoming position exactly once
    orders = sorted([u.display_order for u in plan.updates] + [c.display_order for c in plan.creates])
    assert orders == [0, 1, 2]


def test_display_order_follows_incoming_position():
    incoming = [KeyedRecord("c", {}), KeyedRecord("a", {}), KeyedRecord("b", {})]
    plan = reconcile(["a", "b", "c"], incoming)
    assert {u.id: u.display_order for u in plan.updates} == {"c": 0, "a": 1, "b": 2}
    assert plan.deletes == []


def test_reconciling_the_kept_state_again_only_updates():
    first = reconcile(["a", "b"], [KeyedRecord("b", {"n": 1}), NewRecord({"n": 2})])
    # pretend the create got id "z" and replay the same target collection
    second = reconcile(["b", "z"], [KeyedRecord("b", {"n": 1}), KeyedRecord("z", {"n": 2})])
    assert first.deletes == [DeleteOp(id="a")]
    assert second.creates == [] and second.deletes == []
    assert [(u.id, u.display_order) for u in second.updates] == [("b", 0), ("z", 1)]


def test_duplicate_identifiers_are_rejected():
    with pytest.raises(ValueError):
        reconcile(["a"], [KeyedRecord("a", {}), KeyedRecord("a", {})])
    with pytest.raises(ValueError):
        reconcile([], [KeyedRecord("x", {}), KeyedRecord("x", {})])


def test_fields_are_copied_not_shared():
    fields = {"name": "S"}
    plan = reconcile([], [NewRecord(fields)])
    fields["name"] = "changed"
    assert plan.creates[0].fields == {"name": "S"}
