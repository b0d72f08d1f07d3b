import os

os.environ.setdefault("SCHOOLLIB_DB", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from schoollib.core.config import local_now
from schoollib.core.database import Base, get_db
from schoollib.main import app
from schoollib.models import models


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_member(db):
    def _add(barcode="s100", name="Test Student", category="student", batch="10A"):
        member = models.Member(name=name, barcode=barcode, category=category, batch=batch)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member
    return _add


@pytest.fixture
def add_book(db):
    def _add(barcode="B100", title="Test Book", status="available", pages=None):
        book = models.Book(title=title, author="Author", barcode=barcode, status=status, pages=pages)
        db.add(book)
        db.commit()
        db.refresh(book)
        return book
    return _add


@pytest.fixture
def add_loan(db):
    """Create a loan borrowed ``days_ago`` days back, marking the book borrowed."""
    def _add(book, member, days_ago=0, due_in=None, returned=False, fine=0):
        borrowed = local_now() - timedelta(days=days_ago)
        if due_in is None:
            due = borrowed.date() + timedelta(days=15)
        else:
            due = local_now().date() + timedelta(days=due_in)
        loan = models.Loan(book_id=book.id, member_id=member.id, borrow_date=borrowed,
                           due_date=due, fine=fine,
                           return_date=local_now() if returned else None)
        if not returned:
            book.status = "borrowed"
            db.add(book)
        db.add(loan)
        db.commit()
        db.refresh(loan)
        return loan
    return _add
