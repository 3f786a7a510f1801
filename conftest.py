# conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db import Base, get_db
from app.deps import get_company_resolver
from app.services.company import DefaultCompanyResolver


@pytest.fixture()
def engine():
    # one shared in-memory connection so every session sees the same tables
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_company_resolver] = lambda: DefaultCompanyResolver(None)
    # no context manager: startup would create tables on the configured engine
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def boot(client):
    """Seed demo data and make the seeded company the default one."""
    r = client.post("/admin/dev-bootstrap")
    assert r.status_code == 200, f"/admin/dev-bootstrap failed: {r.text}"
    data = r.json()
    company_id = data["company_id"]
    app.dependency_overrides[get_company_resolver] = lambda: DefaultCompanyResolver(company_id)
    return {
        "company_id": company_id,
        "category_id": data["category_ids"]["Main Courses"],
        "drinks_id": data["category_ids"]["Drinks"],
        "tax_id": data["tax_ids"]["VAT8"],
        "tax18_id": data["tax_ids"]["VAT18"],
    }


@pytest.fixture()
def rng_suffix():
    import random, string
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=6))


@pytest.fixture()
def make_product(client, boot, rng_suffix):
    counter = {"n": 0}

    def _make(**extra):
        counter["n"] += 1
        body = {
            "categoryId": boot["category_id"],
            "taxId": boot["tax_id"],
            "code": f"P{counter['n']}-{rng_suffix}",
            "name": f"Product {counter['n']}",
            "basePrice": 100,
            "trackStock": False,
            "unit": "PIECE",
        }
        body.update(extra)
        r = client.post("/products", json=body)
        assert r.status_code == 201, f"POST /products failed: {r.text}"
        return r.json()

    return _make


@pytest.fixture()
def other_company(client, boot):
    """A second company with its own category and tax."""
    r = client.post("/companies", json={"name": "Branch", "taxNumber": "2222222222"})
    assert r.status_code == 201, f"POST /companies failed: {r.text}"
    company_id = r.json()["id"]
    r = client.post("/categories", json={"name": "Branch Mains", "companyId": company_id})
    assert r.status_code == 201, f"POST /categories failed: {r.text}"
    category_id = r.json()["id"]
    r = client.post("/taxes", json={"name": "Branch VAT", "rate": 10, "code": "BV10", "companyId": company_id})
    assert r.status_code == 201, f"POST /taxes failed: {r.text}"
    return {"company_id": company_id, "category_id": category_id, "tax_id": r.json()["id"]}
