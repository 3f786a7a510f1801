# app/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.middleware import RequestIdMiddleware
from app.db import Base, engine
from app.config import settings
from app.util.errors import install_error_handlers
from app.util.logs import configure_logging
from app import models  # noqa: F401  (registers tables)

from app.routers import admin, categories, companies, products, taxes

configure_logging(settings.LOG_LEVEL)
log = logging.getLogger(__name__)

app = FastAPI(title="Backoffice API", version="0.1.0")

@app.on_event("startup")
def init_db():
    Base.metadata.create_all(bind=engine)
    log.info("database ready (%s), default company=%s", engine.url.get_backend_name(),
             settings.DEFAULT_COMPANY_ID or "-")

# Middlewares
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

app.include_router(companies.router)
app.include_router(categories.router)
app.include_router(taxes.router)
app.include_router(products.router)
app.include_router(admin.router)

@app.get("/healthz")
def healthz():
    return {"ok": True}
