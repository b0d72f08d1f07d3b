from pydantic import BaseModel, ConfigDict, Field, constr, field_validator
from datetime import date, datetime
from typing import List, Optional

from schoollib.models.models import BOOK_STATUSES, MEMBER_CATEGORIES, PERIODICAL_TYPES

class BookBase(BaseModel):
    title: constr(min_length=1)
    author: Optional[str] = None
    barcode: constr(min_length=1)
    pages: Optional[int] = Field(default=None, ge=0)
    shelf_location: Optional[str] = None

class BookCreate(BookBase):
    pass

class BookUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    barcode: Optional[str] = None
    pages: Optional[int] = Field(default=None, ge=0)
    shelf_location: Optional[str] = None
    status: Optional[str] = None

    @field_validator('title', 'barcode')
    @classmethod
    def ensure_present(cls, v):
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator('status')
    @classmethod
    def ensure_known_status(cls, v):
        if v not in BOOK_STATUSES:
            raise ValueError(f"status must be one of {', '.join(BOOK_STATUSES)}")
        return v

class BookOut(BookBase):
    id: int
    status: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)

class BookSummary(BaseModel):
    id: int
    title: str
    barcode: str
    model_config = ConfigDict(from_attributes=True)

class MemberBase(BaseModel):
    name: constr(min_length=1)
    barcode: constr(min_length=1)
    batch: Optional[str] = None
    category: str = "student"

    @field_validator('barcode')
    @classmethod
    def normalize_barcode(cls, v):
        return v.strip().lower()

    @field_validator('category')
    @classmethod
    def ensure_known_category(cls, v):
        if v not in MEMBER_CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(MEMBER_CATEGORIES)}")
        return v

class MemberCreate(MemberBase):
    pass

class MemberUpdate(BaseModel):
    name: Optional[str] = None
    batch: Optional[str] = None
    category: Optional[str] = None

    @field_validator('name')
    @classmethod
    def ensure_present(cls, v):
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator('category')
    @classmethod
    def ensure_known_category(cls, v):
        if v not in MEMBER_CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(MEMBER_CATEGORIES)}")
        return v

class MemberOut(MemberBase):
    id: int
    joined_at: datetime
    model_config = ConfigDict(from_attributes=True)

class MemberSummary(BaseModel):
    id: int
    name: str
    barcode: str
    batch: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)

class LoanOut(BaseModel):
    id: int
    book_id: int
    member_id: int
    borrow_date: datetime
    due_date: date
    return_date: Optional[datetime] = None
    fine: int
    fine_paid: bool
    paid_amount: int
    excluded_days: int
    model_config = ConfigDict(from_attributes=True)

class LoanDetail(LoanOut):
    book: Optional[BookSummary] = None
    member: Optional[MemberSummary] = None

# -----------------------------
# Circulation requests/results
# -----------------------------
class CheckoutRequest(BaseModel):
    member_barcode: constr(min_length=1)
    book_barcode: constr(min_length=1)

    @field_validator('member_barcode')
    @classmethod
    def normalize_member_barcode(cls, v):
        return v.strip().lower()

class CheckinRequest(BaseModel):
    book_barcode: constr(min_length=1)
    excluded_dates: List[date] = []

class CheckinPreview(BaseModel):
    loan: LoanDetail
    days_elapsed: int
    allowed_days: Optional[int]
    fine: int
    overdue: bool

class RenewRequest(BaseModel):
    book_barcode: constr(min_length=1)

class HoldRequest(CheckoutRequest):
    pass

class HoldOut(BaseModel):
    id: int
    hold_date: datetime
    released: bool
    book: BookSummary
    member: MemberSummary
    model_config = ConfigDict(from_attributes=True)

# -----------------------------
# Fines & reports
# -----------------------------
class PaymentRequest(BaseModel):
    amount: int = Field(gt=0)

class FineOut(BaseModel):
    loan: LoanDetail
    remaining: int

class UnpaidFines(BaseModel):
    fines: List[FineOut]
    total_remaining: int

class PaymentOut(BaseModel):
    id: int
    loan_id: int
    amount_paid: int
    payment_date: datetime
    book_title: Optional[str] = None
    member_name: Optional[str] = None

class DashboardOut(BaseModel):
    total_books: int
    total_members: int
    borrowed: int
    pending_fines: int

class RankedItem(BaseModel):
    name: str
    count: int
    total_pages: Optional[int] = None

class LeaderboardOut(BaseModel):
    top_readers: List[RankedItem]
    top_batches: List[RankedItem]
    top_books: List[RankedItem]

class MemberStatusOut(BaseModel):
    member: MemberOut
    not_returned: List[LoanDetail]
    returned: List[LoanDetail]
    pending_fines: int

# -----------------------------
# Periodicals
# -----------------------------
class PeriodicalBase(BaseModel):
    name: constr(min_length=1)
    language: Optional[str] = None
    type: str = "monthly"
    image_url: Optional[str] = None

    @field_validator('type')
    @classmethod
    def ensure_known_type(cls, v):
        if v not in PERIODICAL_TYPES:
            raise ValueError(f"type must be one of {', '.join(PERIODICAL_TYPES)}")
        return v

class PeriodicalCreate(PeriodicalBase):
    pass

class PeriodicalUpdate(BaseModel):
    name: Optional[str] = None
    language: Optional[str] = None
    type: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator('name')
    @classmethod
    def ensure_present(cls, v):
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator('type')
    @classmethod
    def ensure_known_type(cls, v):
        if v not in PERIODICAL_TYPES:
            raise ValueError(f"type must be one of {', '.join(PERIODICAL_TYPES)}")
        return v

class PeriodicalRecordCreate(BaseModel):
    borrow_date: date
    borrower_name: constr(min_length=1)
    issue_identifier: Optional[str] = None

class PeriodicalRecordOut(PeriodicalRecordCreate):
    id: int
    periodical_id: int
    return_date: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class PeriodicalOut(PeriodicalBase):
    id: int
    records: List[PeriodicalRecordOut] = []
    model_config = ConfigDict(from_attributes=True)
