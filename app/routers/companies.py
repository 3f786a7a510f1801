from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.db import get_db
from app.schemas.companies import CompanyIn, CompanyOut
from app.services import catalog

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("", response_model=CompanyOut, status_code=201)
def create_company(body: CompanyIn, db: Session = Depends(get_db)):
    return catalog.create_company(db, body)


@router.get("", response_model=List[CompanyOut])
def list_companies(db: Session = Depends(get_db)):
    return catalog.list_companies(db)


@router.get("/{company_id}", response_model=CompanyOut)
def get_company(company_id: str, db: Session = Depends(get_db)):
    return catalog.get_company(db, company_id)


@router.delete("/{company_id}")
def delete_company(company_id: str, db: Session = Depends(get_db)):
    return catalog.remove_company(db, company_id)
