import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from schoollib.core.config import local_now
from schoollib.core.database import get_db
from schoollib.models import models
from schoollib.schemas import schemas

logger = logging.getLogger("schoollib.periodicals")

router = APIRouter()


def _get_periodical(db: Session, periodical_id: int) -> models.Periodical:
    periodical = db.query(models.Periodical).filter(models.Periodical.id == periodical_id).first()
    if not periodical:
        raise HTTPException(status_code=404, detail="Periodical not found")
    return periodical


def _get_record(db: Session, periodical_id: int, record_id: int) -> models.PeriodicalRecord:
    record = db.query(models.PeriodicalRecord).filter(
        models.PeriodicalRecord.id == record_id,
        models.PeriodicalRecord.periodical_id == periodical_id,
    ).first()
    if not record:
        raise HTTPException(status_code=404, detail="Periodical record not found")
    return record


@router.post("/periodicals/", response_model=schemas.PeriodicalOut)
def create_periodical(periodical_in: schemas.PeriodicalCreate, db: Session = Depends(get_db)):
    periodical = models.Periodical(**periodical_in.model_dump())
    periodical.name = periodical.name.strip()
    db.add(periodical)
    db.commit()
    db.refresh(periodical)
    logger.info(f"Created periodical id={periodical.id} name={periodical.name}")
    return periodical

@router.get("/periodicals/", response_model=List[schemas.PeriodicalOut])
def list_periodicals(db: Session = Depends(get_db)):
    return db.query(models.Periodical).order_by(models.Periodical.name).all()

@router.get("/periodicals/{periodical_id}", response_model=schemas.PeriodicalOut)
def read_periodical(periodical_id: int, db: Session = Depends(get_db)):
    return _get_periodical(db, periodical_id)

@router.put("/periodicals/{periodical_id}", response_model=schemas.PeriodicalOut)
def update_periodical(periodical_id: int, periodical_upd: schemas.PeriodicalUpdate,
                      db: Session = Depends(get_db)):
    periodical = _get_periodical(db, periodical_id)
    for k, v in periodical_upd.model_dump(exclude_unset=True).items():
        setattr(periodical, k, v)
    db.add(periodical)
    db.commit()
    db.refresh(periodical)
    logger.info(f"Updated periodical id={periodical.id}")
    return periodical

@router.delete("/periodicals/{periodical_id}")
def delete_periodical(periodical_id: int, db: Session = Depends(get_db)):
    periodical = _get_periodical(db, periodical_id)
    # borrowing records go with it
    db.delete(periodical)
    db.commit()
    logger.info(f"Deleted periodical id={periodical_id}")
    return {"ok": True}

# -----------------------------
# Issue lending
# -----------------------------
@router.post("/periodicals/{periodical_id}/records", response_model=schemas.PeriodicalRecordOut)
def lend_issue(periodical_id: int, record_in: schemas.PeriodicalRecordCreate,
               db: Session = Depends(get_db)):
    periodical = _get_periodical(db, periodical_id)
    record = models.PeriodicalRecord(
        periodical_id=periodical.id,
        borrow_date=record_in.borrow_date,
        borrower_name=record_in.borrower_name.strip(),
        issue_identifier=record_in.issue_identifier,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Periodical {periodical.id} issue {record.issue_identifier} lent to {record.borrower_name}")
    return record

@router.post("/periodicals/{periodical_id}/records/{record_id}/return",
             response_model=schemas.PeriodicalRecordOut)
def return_issue(periodical_id: int, record_id: int, db: Session = Depends(get_db)):
    record = _get_record(db, periodical_id, record_id)
    if record.return_date is not None:
        raise HTTPException(status_code=400, detail="Issue already returned")
    record.return_date = local_now()
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Periodical record {record.id} returned")
    return record

@router.delete("/periodicals/{periodical_id}/records/{record_id}")
def delete_issue_record(periodical_id: int, record_id: int, db: Session = Depends(get_db)):
    record = _get_record(db, periodical_id, record_id)
    db.delete(record)
    db.commit()
    logger.info(f"Deleted periodical record {record_id}")
    return {"ok": True}
