"""Check-out, check-in, renewal and hold workflows.

Each function is one unit of work against the session it is given and
commits at most once. Lookups that fail raise ``NotFoundError``; state that
forbids the action raises ``ConflictError``.
"""
import logging

from sqlalchemy.orm import Session

from schoollib.core.config import local_now
from schoollib.core.errors import ConflictError, NotFoundError, ValidationFailed
from schoollib.models import models
from schoollib.services import policy

logger = logging.getLogger("schoollib.circulation")

RENEWAL_MESSAGES = {
    policy.RENEWAL_OVERDUE: "Book is overdue. Please check it in instead of renewing.",
    policy.RENEWAL_TOO_EARLY: f"Renewal opens {policy.RENEWAL_WINDOW_DAYS} days before the due date.",
}


def _now(now):
    return now or local_now()


def get_member_by_barcode(db: Session, barcode: str) -> models.Member:
    member = db.query(models.Member).filter(models.Member.barcode == barcode.strip().lower()).first()
    if not member:
        raise NotFoundError("Member not found")
    return member


def get_book_by_barcode(db: Session, barcode: str) -> models.Book:
    book = db.query(models.Book).filter(models.Book.barcode == barcode.strip()).first()
    if not book:
        raise NotFoundError("Book not found")
    return book


def open_loan_for_book(db: Session, book_id: int) -> models.Loan:
    loan = (
        db.query(models.Loan)
        .filter(models.Loan.book_id == book_id, models.Loan.return_date.is_(None))
        .order_by(models.Loan.borrow_date.desc())
        .first()
    )
    if not loan:
        raise NotFoundError("No active borrow record found")
    return loan


def has_open_loan(db: Session, book_id: int) -> bool:
    return db.query(models.Loan).filter(models.Loan.book_id == book_id,
                                        models.Loan.return_date.is_(None)).count() > 0


def checkout(db: Session, member_barcode: str, book_barcode: str, now=None) -> models.Loan:
    now = _now(now)
    member = get_member_by_barcode(db, member_barcode)
    book = (
        db.query(models.Book)
        .filter(models.Book.barcode == book_barcode.strip())
        .with_for_update()
        .first()
    )
    if not book or book.status != "available":
        raise ConflictError("Book not available")
    loan = models.Loan(
        book_id=book.id,
        member_id=member.id,
        borrow_date=now,
        due_date=policy.checkout_due_date(now),
    )
    book.status = "borrowed"
    db.add(loan)
    db.add(book)
    db.commit()
    db.refresh(loan)
    logger.info(f"Book {book.id} issued to member {member.id} loan {loan.id} due {loan.due_date}")
    return loan


def preview_checkin(db: Session, book_barcode: str, now=None) -> dict:
    """Work out what checking a book in right now would cost, without saving."""
    now = _now(now)
    book = get_book_by_barcode(db, book_barcode)
    loan = open_loan_for_book(db, book.id)
    allowed = policy.checkin_allowed_days(loan.member.category)
    days = policy.effective_days(loan.borrow_date, now)
    fine = policy.fine_for_days(days, allowed)
    return {
        "loan": loan,
        "days_elapsed": days,
        "allowed_days": allowed,
        "fine": fine,
        "overdue": fine > 0,
    }


def checkin(db: Session, book_barcode: str, excluded_dates=(), now=None) -> models.Loan:
    now = _now(now)
    book = get_book_by_barcode(db, book_barcode)
    loan = open_loan_for_book(db, book.id)
    try:
        excluded = policy.validate_excluded_dates(excluded_dates, loan.borrow_date, now)
    except ValueError as exc:
        raise ValidationFailed(str(exc))
    loan.fine = policy.compute_fine(loan.borrow_date, now, loan.member.category, excluded)
    loan.excluded_days = excluded
    loan.return_date = now
    book.status = "available"
    db.add(loan)
    db.add(book)
    db.commit()
    db.refresh(loan)
    logger.info(f"Loan {loan.id} returned, fine={loan.fine} excluded_days={excluded}")
    return loan


def renew(db: Session, book_barcode: str, now=None) -> models.Loan:
    today = _now(now).date()
    book = get_book_by_barcode(db, book_barcode)
    if book.status != "borrowed":
        raise ConflictError("Book is not currently borrowed")
    loan = open_loan_for_book(db, book.id)
    member = db.query(models.Member).filter(models.Member.id == loan.member_id).first()
    if not member:
        raise NotFoundError("Member not found")
    decision = policy.check_renewal(loan.due_date, today, member.category)
    if not decision.allowed:
        logger.info(f"Renewal of loan {loan.id} refused: {decision.reason}")
        raise ConflictError(RENEWAL_MESSAGES[decision.reason], reason=decision.reason)
    loan.due_date = decision.new_due_date
    db.add(loan)
    db.commit()
    db.refresh(loan)
    logger.info(f"Loan {loan.id} renewed for member {member.id}, due {loan.due_date}")
    return loan


# -----------------------------
# Holds
# -----------------------------
def place_hold(db: Session, member_barcode: str, book_barcode: str, now=None) -> models.Hold:
    member = get_member_by_barcode(db, member_barcode)
    book = get_book_by_barcode(db, book_barcode)
    existing = (
        db.query(models.Hold)
        .filter(models.Hold.book_id == book.id, models.Hold.released.is_(False))
        .first()
    )
    if existing:
        raise ConflictError(f'Book "{book.title}" is already on hold for another member.')
    hold = models.Hold(book_id=book.id, member_id=member.id, hold_date=_now(now))
    if book.status == "available":
        book.status = "held"
        db.add(book)
    db.add(hold)
    db.commit()
    db.refresh(hold)
    logger.info(f"Hold {hold.id} placed on book {book.id} for member {member.id}")
    return hold


def list_holds(db: Session):
    return (
        db.query(models.Hold)
        .filter(models.Hold.released.is_(False))
        .order_by(models.Hold.hold_date)
        .all()
    )


def release_hold(db: Session, hold_id: int) -> models.Hold:
    hold = db.query(models.Hold).filter(models.Hold.id == hold_id).first()
    if not hold:
        raise NotFoundError("Hold not found")
    if hold.released:
        raise ConflictError("Hold already released")
    hold.released = True
    # a book still out on loan stays borrowed
    if hold.book.status == "held" and not has_open_loan(db, hold.book_id):
        hold.book.status = "available"
    db.add(hold)
    db.commit()
    db.refresh(hold)
    logger.info(f"Hold {hold.id} released, book {hold.book_id} is {hold.book.status}")
    return hold
