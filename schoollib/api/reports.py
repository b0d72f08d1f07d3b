from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from schoollib.core.database import get_db
from schoollib.schemas import schemas
from schoollib.services import fines, reports

router = APIRouter()

# -----------------------------
# Fines
# -----------------------------
@router.get("/fines/", response_model=schemas.UnpaidFines)
def list_unpaid_fines(batch: Optional[str] = None, db: Session = Depends(get_db)):
    loans = fines.unpaid_fines(db, batch=batch)
    items = [{"loan": loan, "remaining": loan.remaining_fine} for loan in loans]
    return {"fines": items, "total_remaining": sum(i["remaining"] for i in items)}

@router.post("/fines/{loan_id}/payments", response_model=schemas.LoanDetail)
def pay_fine(loan_id: int, payment: schemas.PaymentRequest, db: Session = Depends(get_db)):
    return fines.record_payment(db, loan_id, payment.amount)

@router.post("/fines/{loan_id}/write-off", response_model=schemas.LoanDetail)
def write_off_fine(loan_id: int, db: Session = Depends(get_db)):
    return fines.write_off(db, loan_id)

@router.get("/fines/payments", response_model=List[schemas.PaymentOut])
def list_payments(db: Session = Depends(get_db)):
    return [
        {
            "id": p.id,
            "loan_id": p.loan_id,
            "amount_paid": p.amount_paid,
            "payment_date": p.payment_date,
            "book_title": p.loan.book.title if p.loan and p.loan.book else None,
            "member_name": p.loan.member.name if p.loan and p.loan.member else None,
        }
        for p in fines.payment_history(db)
    ]

# -----------------------------
# Reports
# -----------------------------
@router.get("/reports/dashboard", response_model=schemas.DashboardOut)
def dashboard(db: Session = Depends(get_db)):
    return reports.dashboard(db)

@router.get("/reports/history", response_model=List[schemas.LoanDetail])
def history(date_from: Optional[date] = None, date_to: Optional[date] = None,
            q: Optional[str] = None, skip: int = 0, limit: int = 100,
            db: Session = Depends(get_db)):
    return reports.history(db, date_from=date_from, date_to=date_to, q=q, skip=skip, limit=limit)

@router.get("/reports/leaderboard", response_model=schemas.LeaderboardOut)
def leaderboard(date_from: Optional[date] = None, date_to: Optional[date] = None,
                db: Session = Depends(get_db)):
    return reports.leaderboard(reports.history(db, date_from=date_from, date_to=date_to))

@router.get("/reports/members/{member_id}", response_model=schemas.MemberStatusOut)
def member_status(member_id: int, db: Session = Depends(get_db)):
    return reports.member_status(db, member_id)

@router.delete("/reports/history/{loan_id}")
def purge_loan(loan_id: int, db: Session = Depends(get_db)):
    reports.purge_loan(db, loan_id)
    return {"ok": True}
