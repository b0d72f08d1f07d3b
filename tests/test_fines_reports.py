from datetime import timedelta

from schoollib.core.config import local_now
from schoollib.models import models
from schoollib.services import reports


def test_unpaid_fines_with_batch_filter(client, add_book, add_member, add_loan):
    a = add_member(barcode="s1", batch="10A")
    b = add_member(barcode="s2", batch="10B")
    add_loan(add_book(barcode="B1"), a, returned=True, fine=6)
    add_loan(add_book(barcode="B2"), b, returned=True, fine=4)
    add_loan(add_book(barcode="B3"), b, returned=True, fine=0)

    body = client.get("/fines/").json()
    assert len(body["fines"]) == 2
    assert body["total_remaining"] == 10

    body = client.get("/fines/", params={"batch": "10B"}).json()
    assert [f["loan"]["member"]["barcode"] for f in body["fines"]] == ["s2"]
    assert body["total_remaining"] == 4


def test_partial_then_full_payment(client, add_book, add_member, add_loan):
    loan = add_loan(add_book(), add_member(), returned=True, fine=6)

    r = client.post(f"/fines/{loan.id}/payments", json={"amount": 2})
    assert r.status_code == 200
    assert r.json()["paid_amount"] == 2
    assert r.json()["fine_paid"] is False
    assert client.get("/fines/").json()["fines"][0]["remaining"] == 4

    r = client.post(f"/fines/{loan.id}/payments", json={"amount": 4})
    assert r.json()["paid_amount"] == 6
    assert r.json()["fine_paid"] is True
    assert client.get("/fines/").json()["fines"] == []

    payments = client.get("/fines/payments").json()
    assert sorted(p["amount_paid"] for p in payments) == [2, 4]
    assert payments[0]["book_title"] == "Test Book"
    assert payments[0]["member_name"] == "Test Student"


def test_payment_above_remaining_is_rejected(client, add_book, add_member, add_loan):
    loan = add_loan(add_book(), add_member(), returned=True, fine=3)
    assert client.post(f"/fines/{loan.id}/payments", json={"amount": 4}).status_code == 422
    assert client.post(f"/fines/{loan.id}/payments", json={"amount": 0}).status_code == 422
    assert client.post("/fines/999/payments", json={"amount": 1}).status_code == 404


def test_write_off_closes_fine(client, add_book, add_member, add_loan):
    loan = add_loan(add_book(), add_member(), returned=True, fine=5)
    client.post(f"/fines/{loan.id}/payments", json={"amount": 1})
    r = client.post(f"/fines/{loan.id}/write-off")
    assert r.status_code == 200
    assert r.json()["fine_paid"] is True
    assert r.json()["paid_amount"] == 1
    assert client.post(f"/fines/{loan.id}/write-off").status_code == 409


def test_dashboard(client, add_book, add_member, add_loan):
    member = add_member()
    add_loan(add_book(barcode="B1"), member)
    add_loan(add_book(barcode="B2"), member, returned=True, fine=7)
    add_book(barcode="B3")
    assert client.get("/reports/dashboard").json() == {
        "total_books": 3,
        "total_members": 1,
        "borrowed": 1,
        "pending_fines": 7,
    }


def test_history_date_filter_and_search(client, add_book, add_member, add_loan):
    member = add_member(name="Anu")
    add_loan(add_book(barcode="B1", title="Old Read"), member, days_ago=40, returned=True)
    add_loan(add_book(barcode="B2", title="New Read"), member, days_ago=2)

    since = (local_now().date() - timedelta(days=10)).isoformat()
    r = client.get("/reports/history", params={"date_from": since})
    assert [l["book"]["title"] for l in r.json()] == ["New Read"]

    r = client.get("/reports/history", params={"q": "old"})
    assert [l["book"]["title"] for l in r.json()] == ["Old Read"]

    r = client.get("/reports/history")
    assert [l["book"]["title"] for l in r.json()] == ["New Read", "Old Read"]


def test_leaderboard_counts_returned_student_loans(client, add_book, add_member, add_loan):
    anu = add_member(barcode="s1", name="Anu", batch="10A")
    ravi = add_member(barcode="s2", name="Ravi", batch="10B")
    teacher = add_member(barcode="t1", name="Meera", category="teacher", batch=None)
    b1 = add_book(barcode="B1", title="Wings of Fire", pages=180)
    b2 = add_book(barcode="B2", title="Jungle Book", pages=277)

    add_loan(b1, anu, days_ago=30, returned=True)
    add_loan(b2, anu, days_ago=20, returned=True)
    add_loan(b1, ravi, days_ago=10, returned=True)
    add_loan(b2, ravi, days_ago=1)
    add_loan(b1, teacher, days_ago=1, returned=True)

    body = client.get("/reports/leaderboard").json()
    assert body["top_readers"][0] == {"name": "Anu", "count": 2, "total_pages": 457}
    assert body["top_readers"][1] == {"name": "Ravi", "count": 1, "total_pages": 180}
    assert [b["name"] for b in body["top_batches"]] == ["10A", "10B"]
    assert body["top_books"][0]["name"] == "Wings of Fire"
    assert body["top_books"][0]["count"] == 3
    assert body["top_books"][1]["count"] == 2


def test_member_status(client, add_book, add_member, add_loan):
    member = add_member()
    add_loan(add_book(barcode="B1"), member)
    add_loan(add_book(barcode="B2"), member, returned=True, fine=6)
    r = client.get(f"/reports/members/{member.id}")
    assert r.status_code == 200
    body = r.json()
    assert len(body["not_returned"]) == 1
    assert len(body["returned"]) == 1
    assert body["pending_fines"] == 6
    assert client.get("/reports/members/999").status_code == 404


def test_purge_open_loan_frees_the_book(client, db, add_book, add_member, add_loan):
    book = add_book()
    loan = add_loan(book, add_member())
    loan_id, book_id = loan.id, book.id
    assert client.delete(f"/reports/history/{loan_id}").json() == {"ok": True}
    db.expire_all()
    assert db.get(models.Loan, loan_id) is None
    assert db.get(models.Book, book_id).status == "available"
    assert client.delete(f"/reports/history/{loan_id}").status_code == 404


def test_leaderboard_ignores_loans_without_book():
    class Row:
        def __init__(self, **kw):
            self.__dict__.update(kw)

    member = Row(id=1, name="Anu", batch=None, category="student")
    loans = [Row(member=member, book=None, return_date=local_now())]
    board = reports.leaderboard(loans)
    assert board["top_readers"] == [{"name": "Anu", "count": 1, "total_pages": 0}]
    assert board["top_batches"] == []
    assert board["top_books"] == []
