from datetime import date, timedelta

from conftest import auth_headers, make_book, make_user

from library_api.extensions import db
from library_api.models.borrow import BorrowLine


def _borrow(client, member, book_ids):
    r = client.post("/api/users/borrow", json={"book_ids": book_ids}, headers=member["headers"])
    return r.get_json()["data"]["borrow_id"]


def test_my_borrows_groups_and_annotates(app, client, member):
    a = make_book(app, title="A", category="History")
    b = make_book(app, title="B", category="Poetry")
    c = make_book(app, title="C", category="History")
    first = _borrow(client, member, [a, b])
    second = _borrow(client, member, [c])
    client.post(f"/api/users/borrows/{first}/books/{b}/return", headers=member["headers"])
    with app.app_context():
        line = BorrowLine.query.filter_by(borrow_id=first, book_id=a).one()
        line.due_date = date.today() - timedelta(days=3)
        db.session.commit()

    data = client.get("/api/users/my-borrows", headers=member["headers"]).get_json()["data"]
    assert [g["borrow_id"] for g in data["borrows"]] == [second, first]
    lines = {bk["book_id"]: bk for g in data["borrows"] for bk in g["books"]}
    assert lines[a]["is_overdue"] is True
    assert lines[a]["days_until_due"] == 0
    assert lines[b]["status"] == "RETURNED"
    assert lines[b]["days_until_due"] == 0
    assert lines[c]["days_until_due"] == 30
    assert data["summary"] == {
        "total_borrows": 2,
        "active_borrows": 2,
        "total_books": 3,
        "active_books": 2,
        "overdue_books": 1,
    }


def test_no_card_gives_empty_results(app, client):
    user_id = make_user(app, name="Browser", email="browser@example.com")
    headers = auth_headers(app, user_id)

    data = client.get("/api/users/my-borrows", headers=headers).get_json()["data"]
    assert data["borrows"] == []
    assert data["library_card"] is None

    r = client.get("/api/users/borrow-history", headers=headers)
    assert r.status_code == 200
    assert r.get_json()["data"]["history"] == []

    stats = client.get("/api/users/borrow-statistics", headers=headers).get_json()["data"]
    assert stats["overview"]["total_books"] == 0
    assert stats["user"]["email"] == "browser@example.com"


def test_history_pagination_and_filter(app, client, member):
    ids = [make_book(app, title=f"Book {i}") for i in range(3)]
    borrow_id = _borrow(client, member, ids)
    client.post(f"/api/users/borrows/{borrow_id}/books/{ids[0]}/return", headers=member["headers"])

    r = client.get("/api/users/borrow-history?limit=2", headers=member["headers"])
    data = r.get_json()["data"]
    assert len(data["history"]) == 2
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["has_next"] is True

    r = client.get("/api/users/borrow-history?status=returned", headers=member["headers"])
    history = r.get_json()["data"]["history"]
    assert [h["book_id"] for h in history] == [ids[0]]

    assert client.get("/api/users/borrow-history?status=LOST", headers=member["headers"]).status_code == 400
    assert client.get("/api/users/borrow-history?limit=500", headers=member["headers"]).status_code == 400


def test_statistics(app, client, member):
    a = make_book(app, title="A", category="History")
    b = make_book(app, title="B", category="History")
    c = make_book(app, title="C", category="Poetry")
    first = _borrow(client, member, [a, b])
    _borrow(client, member, [c])
    client.post(f"/api/users/borrows/{first}/books/{a}/return", headers=member["headers"])
    with app.app_context():
        line = BorrowLine.query.filter_by(borrow_id=first, book_id=a).one()
        line.start_date = date.today() - timedelta(days=10)
        overdue = BorrowLine.query.filter_by(book_id=c).one()
        overdue.due_date = date.today() - timedelta(days=1)
        db.session.commit()

    data = client.get("/api/users/borrow-statistics", headers=member["headers"]).get_json()["data"]
    assert data["overview"] == {
        "total_books": 3,
        "currently_borrowed": 2,
        "total_returned": 1,
        "overdue_books": 1,
        "total_borrows": 2,
        "avg_borrow_days": 10,
    }
    assert data["favorite_categories"][0] == {"category": "History", "count": 2}
    assert len(data["recent_activity"]) == 3
    assert data["user"]["name"] == "Reader"
