# test_catalog.py
import pytest

from app.models.core import Company
from app.util.errors import ConflictError
from app.util.tx import CONSTRAINT_FAILED, atomic


def ok(step, r, code=200):
    assert r.status_code == code, f"{step} -> {r.status_code}: {r.text}"
    return r.json()


# ---------- companies ----------

def test_company_lifecycle(client):
    c = ok("POST /companies", client.post("/companies", json={
        "name": "Cafe", "taxNumber": "555", "email": "cafe@example.com",
    }), 201)
    assert c["active"] is True

    r = client.post("/companies", json={"name": "Copy", "taxNumber": "555"})
    assert r.status_code == 409

    assert [x["id"] for x in ok("GET /companies", client.get("/companies"))] == [c["id"]]
    ok("DELETE", client.delete(f"/companies/{c['id']}"))
    assert client.get(f"/companies/{c['id']}").status_code == 404
    assert ok("GET /companies", client.get("/companies")) == []


# ---------- categories ----------

def test_category_defaults_to_configured_company(client, boot):
    cat = ok("POST /categories", client.post("/categories", json={"name": "Soups"}), 201)
    assert cat["companyId"] == boot["company_id"]
    assert cat["showInMenu"] is True and cat["displayOrder"] == 0


def test_category_name_is_unique_per_company(client, boot):
    r = client.post("/categories", json={"name": "Drinks"})
    assert r.status_code == 409

    other = ok("company", client.post("/companies", json={"name": "Other", "taxNumber": "999"}), 201)
    ok("same name elsewhere", client.post("/categories", json={"name": "Drinks", "companyId": other["id"]}), 201)


def test_category_parent_handling(client, boot):
    child = ok("child", client.post("/categories", json={
        "name": "Hot Drinks", "parentId": boot["drinks_id"],
    }), 201)
    assert child["parent"] == {"id": boot["drinks_id"], "name": "Drinks"}

    parents = ok("parents", client.get("/categories/parents"))
    assert "Hot Drinks" not in {p["name"] for p in parents}

    r = client.patch(f"/categories/{child['id']}", json={"parentId": child["id"]})
    assert r.status_code == 400

    detached = ok("detach", client.patch(f"/categories/{child['id']}", json={"parentId": None}))
    assert detached["parentId"] is None and detached["parent"] is None


def test_category_update_and_soft_delete(client, boot):
    r = client.patch(f"/categories/{boot['drinks_id']}", json={"name": "Main Courses"})
    assert r.status_code == 409

    upd = ok("rename", client.patch(f"/categories/{boot['drinks_id']}", json={"name": "Beverages", "active": False}))
    assert upd["name"] == "Beverages" and upd["active"] is False

    ok("delete", client.delete(f"/categories/{boot['drinks_id']}"))
    assert client.get(f"/categories/{boot['drinks_id']}").status_code == 404

    listing = ok("list", client.get("/categories", params={"sortBy": "name"}))
    assert listing["total"] == 3
    assert [c["name"] for c in listing["data"]] == ["Desserts", "Main Courses", "Starters"]


def test_category_list_filters(client, boot):
    found = ok("search", client.get("/categories", params={"search": "dess"}))
    assert [c["name"] for c in found["data"]] == ["Desserts"]

    paged = ok("paged", client.get("/categories", params={"pageSize": 3, "page": 2}))
    assert paged["page"] == 2 and [c["name"] for c in paged["data"]] == ["Starters"]


# ---------- taxes ----------

def test_tax_crud(client, boot):
    tax = ok("POST /taxes", client.post("/taxes", json={"name": "Stamp", "rate": 0.95, "code": "DMG", "type": "DAMGA"}), 201)
    assert tax["companyId"] == boot["company_id"]
    assert tax["rate"] == 0.95 and tax["type"] == "DAMGA"
    assert tax["isIncluded"] is True and tax["isDefault"] is False

    r = client.post("/taxes", json={"name": "Again", "rate": 1, "code": "DMG"})
    assert r.status_code == 409

    upd = ok("PATCH", client.patch(f"/taxes/{tax['id']}", json={"rate": 1.5}))
    assert upd["rate"] == 1.5 and upd["code"] == "DMG"

    r = client.patch(f"/taxes/{tax['id']}", json={"code": "VAT8"})
    assert r.status_code == 409

    ok("DELETE", client.delete(f"/taxes/{tax['id']}"))
    assert client.get(f"/taxes/{tax['id']}").status_code == 404


def test_tax_rate_bounds(client, boot):
    assert client.post("/taxes", json={"name": "Bad", "rate": 101, "code": "B"}).status_code == 422
    assert client.post("/taxes", json={"name": "Bad", "rate": -1, "code": "B"}).status_code == 422


def test_tax_list_sorted_by_rate(client, boot):
    page = ok("list", client.get("/taxes"))
    assert [t["code"] for t in page["data"]] == ["VAT1", "VAT8", "VAT18"]
    page = ok("desc", client.get("/taxes", params={"order": "desc", "search": "vat1"}))
    assert [t["code"] for t in page["data"]] == ["VAT18", "VAT1"]


def test_dev_bootstrap_is_idempotent(client):
    first = ok("boot 1", client.post("/admin/dev-bootstrap"))
    second = ok("boot 2", client.post("/admin/dev-bootstrap"))
    assert first == second


# ---------- write units ----------

def test_unique_violation_carries_the_callers_message(session_factory):
    with session_factory() as s:
        with atomic(s, "Tax number taken."):
            s.add(Company(name="A", tax_number="42"))
        with pytest.raises(ConflictError) as err:
            with atomic(s, "Tax number taken."):
                s.add(Company(name="B", tax_number="42"))
        assert err.value.message == "Tax number taken."
        assert s.query(Company).count() == 1


def test_other_constraint_failures_get_a_generic_message(session_factory):
    with session_factory() as s:
        with pytest.raises(ConflictError) as err:
            with atomic(s, "Tax number taken."):
                s.add(Company(name=None, tax_number="43"))
        assert err.value.message == CONSTRAINT_FAILED
        assert s.query(Company).count() == 0
