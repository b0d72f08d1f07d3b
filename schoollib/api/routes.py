import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from schoollib.core.database import get_db
from schoollib.models import models
from schoollib.schemas import schemas
from schoollib.services import circulation

logger = logging.getLogger("schoollib.api")

router = APIRouter()

# -----------------------------
# Books
# -----------------------------
@router.post("/books/", response_model=schemas.BookOut)
def create_book(book_in: schemas.BookCreate, db: Session = Depends(get_db)):
    existing = db.query(models.Book).filter(models.Book.barcode == book_in.barcode.strip()).first()
    if existing:
        raise HTTPException(status_code=400, detail="Barcode already exists")
    book = models.Book(
        title=book_in.title.strip(),
        author=book_in.author.strip() if book_in.author else None,
        barcode=book_in.barcode.strip(),
        pages=book_in.pages,
        shelf_location=book_in.shelf_location,
        status="available",
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    logger.info(f"Created book id={book.id} title={book.title}")
    return book

@router.get("/books/", response_model=List[schemas.BookOut])
def list_books(q: Optional[str] = Query(None, description="search title or author"),
               status: Optional[str] = None,
               skip: int = 0, limit: int = 20, db: Session = Depends(get_db)):
    query = db.query(models.Book)
    if q:
        like_q = f"%{q}%"
        query = query.filter((models.Book.title.ilike(like_q)) | (models.Book.author.ilike(like_q)))
    if status:
        query = query.filter(models.Book.status == status)
    return query.order_by(models.Book.title).offset(skip).limit(limit).all()

@router.get("/books/barcode/{barcode}", response_model=schemas.BookOut)
def read_book_by_barcode(barcode: str, db: Session = Depends(get_db)):
    return circulation.get_book_by_barcode(db, barcode)

@router.get("/books/{book_id}", response_model=schemas.BookOut)
def read_book(book_id: int, db: Session = Depends(get_db)):
    book = db.query(models.Book).filter(models.Book.id == book_id).first()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book

@router.put("/books/{book_id}", response_model=schemas.BookOut)
def update_book(book_id: int, book_upd: schemas.BookUpdate, db: Session = Depends(get_db)):
    book = db.query(models.Book).filter(models.Book.id == book_id).first()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    data = book_upd.model_dump(exclude_unset=True)
    if data.get('barcode') and data['barcode'] != book.barcode:
        clash = db.query(models.Book).filter(models.Book.barcode == data['barcode']).first()
        if clash:
            raise HTTPException(status_code=400, detail="Barcode already exists")
    if data.get('status'):
        out_on_loan = circulation.has_open_loan(db, book.id)
        if out_on_loan and data['status'] != "borrowed":
            raise HTTPException(status_code=400, detail="Book has an active loan; check it in first")
        if not out_on_loan and data['status'] == "borrowed":
            raise HTTPException(status_code=400, detail="Book has no active loan; check it out instead")
    for k, v in data.items():
        setattr(book, k, v)
    db.add(book)
    db.commit()
    db.refresh(book)
    logger.info(f"Updated book id={book.id}")
    return book

@router.delete("/books/{book_id}")
def delete_book(book_id: int, db: Session = Depends(get_db)):
    book = db.query(models.Book).filter(models.Book.id == book_id).first()
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    open_loans = db.query(models.Loan).filter(models.Loan.book_id == book.id,
                                              models.Loan.return_date.is_(None)).count()
    if open_loans > 0:
        raise HTTPException(status_code=400, detail="Cannot delete book with active loans")
    db.delete(book)
    db.commit()
    logger.info(f"Deleted book id={book_id}")
    return {"ok": True}

# -----------------------------
# Members
# -----------------------------
@router.post("/members/", response_model=schemas.MemberOut)
def create_member(member_in: schemas.MemberCreate, db: Session = Depends(get_db)):
    existing = db.query(models.Member).filter(models.Member.barcode == member_in.barcode).first()
    if existing:
        raise HTTPException(status_code=400, detail="Barcode already registered")
    member = models.Member(name=member_in.name.strip(), barcode=member_in.barcode,
                           batch=member_in.batch, category=member_in.category)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Created member id={member.id} barcode={member.barcode}")
    return member

@router.get("/members/", response_model=List[schemas.MemberOut])
def list_members(q: Optional[str] = Query(None, description="search name"),
                 category: Optional[str] = None, batch: Optional[str] = None,
                 skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    query = db.query(models.Member)
    if q:
        query = query.filter(models.Member.name.ilike(f"%{q}%"))
    if category:
        query = query.filter(models.Member.category == category)
    if batch:
        query = query.filter(models.Member.batch == batch)
    return query.order_by(models.Member.name).offset(skip).limit(limit).all()

@router.get("/members/barcode/{barcode}", response_model=schemas.MemberOut)
def read_member_by_barcode(barcode: str, db: Session = Depends(get_db)):
    return circulation.get_member_by_barcode(db, barcode)

@router.get("/members/{member_id}", response_model=schemas.MemberOut)
def read_member(member_id: int, db: Session = Depends(get_db)):
    member = db.query(models.Member).filter(models.Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member

@router.put("/members/{member_id}", response_model=schemas.MemberOut)
def update_member(member_id: int, member_upd: schemas.MemberUpdate, db: Session = Depends(get_db)):
    member = db.query(models.Member).filter(models.Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    for k, v in member_upd.model_dump(exclude_unset=True).items():
        setattr(member, k, v)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Updated member id={member.id}")
    return member

@router.delete("/members/{member_id}")
def delete_member(member_id: int, db: Session = Depends(get_db)):
    member = db.query(models.Member).filter(models.Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    open_loans = db.query(models.Loan).filter(models.Loan.member_id == member.id,
                                              models.Loan.return_date.is_(None)).count()
    if open_loans > 0:
        raise HTTPException(status_code=400, detail="Cannot delete member with books still out")
    for hold in member.holds:
        if not hold.released and hold.book.status == "held":
            hold.book.status = "available"
    db.delete(member)
    db.commit()
    logger.info(f"Deleted member id={member_id}")
    return {"ok": True}

# -----------------------------
# Circulation
# -----------------------------
@router.post("/circulation/checkout", response_model=schemas.LoanDetail)
def checkout(req: schemas.CheckoutRequest, db: Session = Depends(get_db)):
    return circulation.checkout(db, req.member_barcode, req.book_barcode)

@router.get("/circulation/checkin/{book_barcode}", response_model=schemas.CheckinPreview)
def preview_checkin(book_barcode: str, db: Session = Depends(get_db)):
    return circulation.preview_checkin(db, book_barcode)

@router.post("/circulation/checkin", response_model=schemas.LoanDetail)
def checkin(req: schemas.CheckinRequest, db: Session = Depends(get_db)):
    return circulation.checkin(db, req.book_barcode, req.excluded_dates)

@router.post("/circulation/renew", response_model=schemas.LoanDetail)
def renew(req: schemas.RenewRequest, db: Session = Depends(get_db)):
    return circulation.renew(db, req.book_barcode)

@router.get("/circulation/loans", response_model=List[schemas.LoanDetail])
def list_open_loans(skip: int = 0, limit: int = 50, db: Session = Depends(get_db)):
    return (db.query(models.Loan).filter(models.Loan.return_date.is_(None))
            .order_by(models.Loan.borrow_date.desc()).offset(skip).limit(limit).all())

@router.post("/circulation/holds", response_model=schemas.HoldOut)
def place_hold(req: schemas.HoldRequest, db: Session = Depends(get_db)):
    return circulation.place_hold(db, req.member_barcode, req.book_barcode)

@router.get("/circulation/holds", response_model=List[schemas.HoldOut])
def list_holds(db: Session = Depends(get_db)):
    return circulation.list_holds(db)

@router.post("/circulation/holds/{hold_id}/release", response_model=schemas.HoldOut)
def release_hold(hold_id: int, db: Session = Depends(get_db)):
    return circulation.release_hold(db, hold_id)
