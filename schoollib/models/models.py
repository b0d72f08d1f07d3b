from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from schoollib.core.config import local_now
from schoollib.core.database import Base

BOOK_STATUSES = ("available", "borrowed", "held")
MEMBER_CATEGORIES = ("student", "teacher", "class", "outside")
PERIODICAL_TYPES = ("weekly", "monthly", "yearly")


class Book(Base):
    __tablename__ = "books"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    author = Column(String, nullable=True, index=True)
    barcode = Column(String, unique=True, nullable=False, index=True)
    pages = Column(Integer, nullable=True)
    shelf_location = Column(String, nullable=True)
    status = Column(String, nullable=False, default="available", index=True)
    created_at = Column(DateTime, default=local_now)
    loans = relationship("Loan", back_populates="book", cascade="all, delete-orphan")
    holds = relationship("Hold", back_populates="book", cascade="all, delete-orphan")

Index('ix_books_title_author', Book.title, Book.author)

class Member(Base):
    __tablename__ = "members"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    barcode = Column(String, unique=True, nullable=False, index=True)
    batch = Column(String, nullable=True, index=True)
    category = Column(String, nullable=False, default="student")
    joined_at = Column(DateTime, default=local_now)
    loans = relationship("Loan", back_populates="member", cascade="all, delete-orphan")
    holds = relationship("Hold", back_populates="member", cascade="all, delete-orphan")

class Loan(Base):
    """One borrow transaction; ``return_date`` stays null while the book is out."""
    __tablename__ = "loans"
    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey("books.id"), index=True)
    member_id = Column(Integer, ForeignKey("members.id"), index=True)
    borrow_date = Column(DateTime, default=local_now, index=True)
    due_date = Column(Date, nullable=False)
    return_date = Column(DateTime, nullable=True, index=True)
    fine = Column(Integer, default=0, nullable=False)
    fine_paid = Column(Boolean, default=False, nullable=False)
    paid_amount = Column(Integer, default=0, nullable=False)
    excluded_days = Column(Integer, default=0, nullable=False)
    book = relationship("Book", back_populates="loans")
    member = relationship("Member", back_populates="loans")
    payments = relationship("FinePayment", back_populates="loan", cascade="all, delete-orphan")

    @property
    def remaining_fine(self):
        return (self.fine or 0) - (self.paid_amount or 0)

class Hold(Base):
    __tablename__ = "holds"
    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey("books.id"), index=True)
    member_id = Column(Integer, ForeignKey("members.id"), index=True)
    hold_date = Column(DateTime, default=local_now)
    released = Column(Boolean, default=False, nullable=False, index=True)
    book = relationship("Book", back_populates="holds")
    member = relationship("Member", back_populates="holds")

class FinePayment(Base):
    __tablename__ = "fine_payments"
    id = Column(Integer, primary_key=True, index=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), index=True)
    amount_paid = Column(Integer, nullable=False)
    payment_date = Column(DateTime, default=local_now)
    loan = relationship("Loan", back_populates="payments")

class Periodical(Base):
    __tablename__ = "periodicals"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    language = Column(String, nullable=True)
    type = Column(String, nullable=False, default="monthly")
    image_url = Column(String, nullable=True)
    records = relationship("PeriodicalRecord", back_populates="periodical", cascade="all, delete-orphan")

class PeriodicalRecord(Base):
    """A loose issue lent out by name; periodicals are not tied to member accounts."""
    __tablename__ = "periodical_records"
    id = Column(Integer, primary_key=True, index=True)
    periodical_id = Column(Integer, ForeignKey("periodicals.id"), index=True)
    borrow_date = Column(Date, nullable=False)
    issue_identifier = Column(String, nullable=True)
    borrower_name = Column(String, nullable=False)
    return_date = Column(DateTime, nullable=True)
    periodical = relationship("Periodical", back_populates="records")
