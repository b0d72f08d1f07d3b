import logging

from sqlalchemy.orm import Session

from schoollib.core.config import local_now
from schoollib.core.errors import ConflictError, NotFoundError, ValidationFailed
from schoollib.models import models

logger = logging.getLogger("schoollib.fines")


def unpaid_fines(db: Session, batch=None):
    """Loans with an outstanding fine, optionally limited to one member batch."""
    query = (
        db.query(models.Loan)
        .filter(models.Loan.fine_paid.is_(False), models.Loan.fine > 0)
        .order_by(models.Loan.return_date.desc())
    )
    if batch:
        query = query.join(models.Member).filter(models.Member.batch == batch)
    return query.all()


def _get_loan(db: Session, loan_id: int) -> models.Loan:
    loan = db.query(models.Loan).filter(models.Loan.id == loan_id).first()
    if not loan:
        raise NotFoundError("Loan not found")
    return loan


def record_payment(db: Session, loan_id: int, amount: int, now=None) -> models.Loan:
    loan = _get_loan(db, loan_id)
    if loan.fine_paid:
        raise ConflictError("Fine already settled")
    remaining = loan.remaining_fine
    if amount <= 0 or amount > remaining:
        raise ValidationFailed(f"Amount must be between 1 and the remaining fine ({remaining})")
    db.add(models.FinePayment(loan_id=loan.id, amount_paid=amount,
                              payment_date=now or local_now()))
    loan.paid_amount = (loan.paid_amount or 0) + amount
    loan.fine_paid = loan.paid_amount >= loan.fine
    db.add(loan)
    db.commit()
    db.refresh(loan)
    logger.info(f"Payment of {amount} on loan {loan.id}, paid {loan.paid_amount}/{loan.fine}")
    return loan


def write_off(db: Session, loan_id: int) -> models.Loan:
    loan = _get_loan(db, loan_id)
    if loan.fine_paid:
        raise ConflictError("Fine already settled")
    written_off = loan.remaining_fine
    loan.fine_paid = True
    db.add(loan)
    db.commit()
    db.refresh(loan)
    logger.info(f"Wrote off {written_off} on loan {loan.id}")
    return loan


def payment_history(db: Session):
    return db.query(models.FinePayment).order_by(models.FinePayment.payment_date.desc()).all()
