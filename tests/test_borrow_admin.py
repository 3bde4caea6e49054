from conftest import auth_headers, available_copies, make_book, make_card, make_user

from library_api.models.book_renewal import BookRenewal
from library_api.models.borrow import BorrowLine, BorrowRecord


def _create(client, headers, **body):
    return client.post("/api/borrow", json=body, headers=headers)


def test_staff_only(app, client, member):
    assert client.get("/api/borrow", headers=member["headers"]).status_code == 403
    assert client.get("/api/borrow").status_code == 401


def test_desk_checkout_has_no_per_card_cap(app, client, librarian):
    card_id = make_card(app)
    book_ids = [make_book(app, title=f"Book {i}") for i in range(6)]

    r = _create(client, librarian["headers"], card_id=card_id, book_ids=book_ids)
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert data["total_books"] == 6
    assert data["librarian_id"] == librarian["user_id"]
    assert data["librarian_name"] == "Librarian"
    assert all(available_copies(app, b) == 0 for b in book_ids)


def test_desk_checkout_validation(app, client, librarian):
    card_id = make_card(app)
    book_id = make_book(app)

    assert _create(client, librarian["headers"], card_id="LIBNOPE0000", book_ids=[book_id]).status_code == 404
    assert _create(client, librarian["headers"], card_id=card_id, book_ids=[]).status_code == 400

    reader = make_user(app, name="Plain", email="plain@example.com")
    r = _create(client, librarian["headers"], card_id=card_id, book_ids=[book_id], librarian_id=reader)
    assert r.status_code == 400

    inactive = make_card(app, card_id="LIBOFF00001", email="off@example.com", active=False, national_id="121212121212")
    assert _create(client, librarian["headers"], card_id=inactive, book_ids=[book_id]).status_code == 400
    assert available_copies(app, book_id) == 1


def test_list_get_and_search(app, client, librarian):
    card_id = make_card(app)
    book_id = make_book(app)
    borrow_id = _create(client, librarian["headers"], card_id=card_id, book_ids=[book_id]).get_json()["data"]["borrow_id"]

    r = client.get("/api/borrow", headers=librarian["headers"])
    assert r.get_json()["count"] == 1
    assert r.get_json()["data"][0]["card_name"] == "Reader"

    r = client.get(f"/api/borrow/{borrow_id}", headers=librarian["headers"])
    assert r.get_json()["data"]["books"][0]["book_id"] == book_id

    r = client.get("/api/borrow/search?card_id=test", headers=librarian["headers"])
    assert r.get_json()["count"] == 1
    r = client.get(f"/api/borrow/search?borrow_id={borrow_id + 1}", headers=librarian["headers"])
    assert r.get_json()["count"] == 0
    assert client.get("/api/borrow/search", headers=librarian["headers"]).status_code == 400
    assert client.get("/api/borrow/999", headers=librarian["headers"]).status_code == 404


def test_completing_cascades_line_returns(app, client, librarian, member):
    first = make_book(app, title="First", copies=2)
    second = make_book(app, title="Second", copies=1)
    borrow_id = client.post(
        "/api/users/borrow", json={"book_ids": [first, second]}, headers=member["headers"]
    ).get_json()["data"]["borrow_id"]
    client.post(f"/api/users/borrows/{borrow_id}/books/{first}/return", headers=member["headers"])

    r = client.patch(f"/api/borrow/{borrow_id}/status", json={"status": "RETURNED"}, headers=librarian["headers"])
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["status"] == "COMPLETED"
    assert {line["status"] for line in data["books"]} == {"RETURNED"}
    # each copy comes back exactly once
    assert available_copies(app, first) == 2
    assert available_copies(app, second) == 1

    r = client.patch(f"/api/borrow/{borrow_id}/status", json={"status": "ACTIVE"}, headers=librarian["headers"])
    assert r.status_code == 409


def test_status_validation(app, client, librarian):
    card_id = make_card(app)
    borrow_id = _create(client, librarian["headers"], card_id=card_id, book_ids=[make_book(app)]).get_json()["data"]["borrow_id"]
    r = client.patch(f"/api/borrow/{borrow_id}/status", json={"status": "LOST"}, headers=librarian["headers"])
    assert r.status_code == 400
    r = client.patch("/api/borrow/999/status", json={"status": "COMPLETED"}, headers=librarian["headers"])
    assert r.status_code == 404


def test_delete_only_after_completion(app, client, librarian, member):
    book_id = make_book(app)
    borrow_id = client.post(
        "/api/users/borrow", json={"book_ids": [book_id]}, headers=member["headers"]
    ).get_json()["data"]["borrow_id"]
    client.post(f"/api/users/borrows/{borrow_id}/books/{book_id}/renew", json={}, headers=member["headers"])

    assert client.delete(f"/api/borrow/{borrow_id}", headers=librarian["headers"]).status_code == 409

    client.post(f"/api/users/borrows/{borrow_id}/books/{book_id}/return", headers=member["headers"])
    r = client.delete(f"/api/borrow/{borrow_id}", headers=librarian["headers"])
    assert r.status_code == 200
    with app.app_context():
        assert BorrowRecord.query.count() == 0
        assert BorrowLine.query.count() == 0
        assert BookRenewal.query.count() == 0
    assert client.delete(f"/api/borrow/{borrow_id}", headers=librarian["headers"]).status_code == 404


def test_admin_can_use_ledger(app, client, admin):
    card_id = make_card(app)
    r = _create(client, admin["headers"], card_id=card_id, book_ids=[make_book(app)])
    assert r.status_code == 201
    assert r.get_json()["data"]["librarian_id"] == admin["user_id"]


def test_librarian_role_claim_is_required(app, client):
    user_id = make_user(app, name="Sneaky", email="sneaky@example.com")
    r = client.get("/api/borrow", headers=auth_headers(app, user_id))
    assert r.status_code == 403
