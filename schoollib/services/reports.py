import logging
from datetime import datetime, time, timedelta

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from schoollib.core.errors import NotFoundError
from schoollib.models import models

logger = logging.getLogger("schoollib.reports")


def dashboard(db: Session) -> dict:
    total_books = db.query(func.count(models.Book.id)).scalar()
    total_members = db.query(func.count(models.Member.id)).scalar()
    borrowed = db.query(func.count(models.Loan.id)).filter(models.Loan.return_date.is_(None)).scalar()
    pending = (
        db.query(func.coalesce(func.sum(models.Loan.fine - models.Loan.paid_amount), 0))
        .filter(models.Loan.fine_paid.is_(False), models.Loan.fine > 0)
        .scalar()
    )
    return {
        "total_books": total_books,
        "total_members": total_members,
        "borrowed": borrowed,
        "pending_fines": int(pending),
    }


def history(db: Session, date_from=None, date_to=None, q=None, skip=0, limit=None):
    """Borrow records newest first; the date bounds are inclusive."""
    query = db.query(models.Loan).order_by(models.Loan.borrow_date.desc())
    if date_from:
        query = query.filter(models.Loan.borrow_date >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(models.Loan.borrow_date < datetime.combine(date_to + timedelta(days=1), time.min))
    if q:
        like_q = f"%{q}%"
        query = (
            query.join(models.Member, models.Loan.member)
            .join(models.Book, models.Loan.book)
            .filter(or_(models.Member.name.ilike(like_q), models.Book.title.ilike(like_q)))
        )
    query = query.offset(skip)
    if limit:
        query = query.limit(limit)
    return query.all()


def leaderboard(loans) -> dict:
    """Rank readers, batches and books over a set of loans.

    Readers and batches only count books students have returned; books
    count every checkout.
    """
    readers, batches, books = {}, {}, {}
    for loan in loans:
        member, book = loan.member, loan.book
        pages = (book.pages or 0) if book else 0
        if loan.return_date and member and member.category == "student":
            entry = readers.setdefault(member.id, {"name": member.name, "count": 0, "total_pages": 0})
            entry["count"] += 1
            entry["total_pages"] += pages
            if member.batch:
                entry = batches.setdefault(member.batch, {"name": member.batch, "count": 0, "total_pages": 0})
                entry["count"] += 1
                entry["total_pages"] += pages
        if book:
            entry = books.setdefault(book.id, {"name": book.title, "count": 0})
            entry["count"] += 1

    def ranked(stats):
        return sorted(stats.values(), key=lambda r: r["count"], reverse=True)

    return {
        "top_readers": ranked(readers),
        "top_batches": ranked(batches),
        "top_books": ranked(books),
    }


def member_status(db: Session, member_id: int) -> dict:
    member = db.query(models.Member).filter(models.Member.id == member_id).first()
    if not member:
        raise NotFoundError("Member not found")
    loans = (
        db.query(models.Loan)
        .filter(models.Loan.member_id == member.id)
        .order_by(models.Loan.borrow_date.desc())
        .all()
    )
    return {
        "member": member,
        "not_returned": [l for l in loans if l.return_date is None],
        "returned": [l for l in loans if l.return_date is not None],
        "pending_fines": sum(l.fine or 0 for l in loans if not l.fine_paid),
    }


def purge_loan(db: Session, loan_id: int) -> None:
    loan = db.query(models.Loan).filter(models.Loan.id == loan_id).first()
    if not loan:
        raise NotFoundError("Loan not found")
    if loan.return_date is None and loan.book:
        loan.book.status = "available"
    db.delete(loan)
    db.commit()
    logger.info(f"Purged loan record {loan_id}")
