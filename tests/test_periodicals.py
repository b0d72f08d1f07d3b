from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from schoollib.core import config
from schoollib.models import models


def create_periodical(client, name="Yojana", kind="monthly"):
    r = client.post("/periodicals/", json={"name": name, "language": "English", "type": kind})
    assert r.status_code == 200
    return r.json()


def test_create_and_list_periodicals(client):
    create_periodical(client, name="Vanitha", kind="weekly")
    create_periodical(client, name="Balarama")
    r = client.get("/periodicals/")
    assert [p["name"] for p in r.json()] == ["Balarama", "Vanitha"]
    assert r.json()[0]["records"] == []


def test_unknown_periodical_type_is_rejected(client):
    r = client.post("/periodicals/", json={"name": "Yojana", "type": "daily"})
    assert r.status_code == 422


def test_update_periodical(client):
    periodical = create_periodical(client)
    r = client.put(f"/periodicals/{periodical['id']}", json={"type": "yearly", "image_url": "yojana.png"})
    assert r.status_code == 200
    assert r.json()["type"] == "yearly"
    assert r.json()["image_url"] == "yojana.png"
    assert client.put(f"/periodicals/{periodical['id']}", json={"name": None}).status_code == 422
    assert client.put("/periodicals/999", json={"type": "weekly"}).status_code == 404


def test_lend_and_return_issue(client):
    periodical = create_periodical(client)
    url = f"/periodicals/{periodical['id']}/records"
    r = client.post(url, json={"borrow_date": "2024-05-02", "borrower_name": "Anu", "issue_identifier": "No. 221"})
    assert r.status_code == 200
    record = r.json()
    assert record["return_date"] is None

    r = client.post(f"{url}/{record['id']}/return")
    assert r.status_code == 200
    assert r.json()["return_date"] is not None
    assert client.post(f"{url}/{record['id']}/return").status_code == 400

    records = client.get(f"/periodicals/{periodical['id']}").json()["records"]
    assert [rec["issue_identifier"] for rec in records] == ["No. 221"]


def test_issue_needs_borrower_name(client):
    periodical = create_periodical(client)
    r = client.post(f"/periodicals/{periodical['id']}/records", json={"borrow_date": "2024-05-02"})
    assert r.status_code == 422


def test_delete_record_and_periodical(client, db):
    periodical = create_periodical(client)
    url = f"/periodicals/{periodical['id']}/records"
    first = client.post(url, json={"borrow_date": "2024-05-02", "borrower_name": "Anu"}).json()
    client.post(url, json={"borrow_date": "2024-05-03", "borrower_name": "Ravi"})

    assert client.delete(f"{url}/{first['id']}").json() == {"ok": True}
    assert client.delete(f"{url}/{first['id']}").status_code == 404
    assert len(client.get(f"/periodicals/{periodical['id']}").json()["records"]) == 1

    assert client.delete(f"/periodicals/{periodical['id']}").json() == {"ok": True}
    assert client.get(f"/periodicals/{periodical['id']}").status_code == 404
    db.expire_all()
    assert db.query(models.PeriodicalRecord).count() == 0


def test_local_now_uses_configured_zone(monkeypatch):
    try:
        ZoneInfo("Asia/Kolkata")
    except ZoneInfoNotFoundError:
        pytest.skip("no time zone database")
    monkeypatch.setattr(config, "LOCAL_TZ", "Asia/Kolkata")
    expected = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=5, minutes=30)
    assert abs(config.local_now() - expected) < timedelta(seconds=5)
    assert config.local_now().tzinfo is None
