from conftest import make_book

from library_api.extensions import db
from library_api.models.book import Book

BOOK = {"title": "The Hobbit", "author": "J.R.R. Tolkien", "quantity": 3, "isbn": "9780547928227", "category": "Fantasy"}


def test_create_requires_staff(client, member):
    assert client.post("/api/books", json=BOOK).status_code == 401
    assert client.post("/api/books", json=BOOK, headers=member["headers"]).status_code == 403


def test_create_update_delete(client, librarian):
    r = client.post("/api/books", json=BOOK, headers=librarian["headers"])
    assert r.status_code == 201
    book = r.get_json()["data"]
    assert book["available_copies"] == 3
    assert book["total_copies"] == 3

    assert client.post("/api/books", json=BOOK, headers=librarian["headers"]).status_code == 409

    r = client.put(f"/api/books/{book['id']}", json={"quantity": 2, "available": 5}, headers=librarian["headers"])
    updated = r.get_json()["data"]
    assert updated["total_copies"] == 2
    assert updated["available_copies"] == 2

    assert client.delete(f"/api/books/{book['id']}", headers=librarian["headers"]).status_code == 200
    assert client.get(f"/api/books/{book['id']}").status_code == 404


def test_create_validation(client, librarian):
    assert client.post("/api/books", json={"title": "No author", "quantity": 1}, headers=librarian["headers"]).status_code == 400
    assert client.post("/api/books", json={"title": "T", "author": "A"}, headers=librarian["headers"]).status_code == 400
    assert client.post("/api/books", json={"title": "T", "author": "A", "quantity": 0}, headers=librarian["headers"]).status_code == 400

    r = client.post("/api/books", json={"title": "T", "author": "A", "quantity": 1}, headers=librarian["headers"])
    assert r.get_json()["data"]["category"] == "Other"


def test_book_with_ledger_lines_cannot_be_deleted(app, client, librarian, member):
    book_id = make_book(app)
    borrow_id = client.post("/api/users/borrow", json={"book_ids": [book_id]}, headers=member["headers"]).get_json()["data"]["borrow_id"]
    assert client.delete(f"/api/books/{book_id}", headers=librarian["headers"]).status_code == 409

    client.post(f"/api/users/borrows/{borrow_id}/books/{book_id}/return", headers=member["headers"])
    assert client.delete(f"/api/books/{book_id}", headers=librarian["headers"]).status_code == 409


def test_list_paginates_and_filters(app, client):
    for i in range(12):
        make_book(app, title=f"Volume {i}", author="Ann Author" if i % 2 else "Bob Writer", category="History")
    make_book(app, title="Odd one", author="Someone", category="Poetry")

    r = client.get("/api/books?page=2&limit=5")
    data = r.get_json()["data"]
    assert len(data["books"]) == 5
    assert data["pagination"]["total"] == 13
    assert data["pagination"]["total_pages"] == 3
    assert data["pagination"]["has_next"] is True

    r = client.get("/api/books?author=ann&limit=100")
    assert r.get_json()["data"]["pagination"]["total"] == 6
    r = client.get("/api/books?category=poetry")
    assert r.get_json()["count"] == 1

    assert client.get("/api/books?limit=101").status_code == 400
    assert client.get("/api/books?page=0").status_code == 400


def test_search_ranks_title_matches_first(app, client):
    make_book(app, title="About Tolkien", author="Critic")
    make_book(app, title="Roverandom", author="Tolkien")
    none_left = make_book(app, title="Tolkien Letters", author="Tolkien")
    with app.app_context():
        db.session.get(Book, none_left).available_copies = 0
        db.session.commit()

    r = client.get("/api/books/search?q=tolkien")
    titles = [b["title"] for b in r.get_json()["data"]]
    assert titles == ["About Tolkien", "Roverandom"]
    assert client.get("/api/books/search?q=t").status_code == 400


def test_categories_and_popular(app, client):
    make_book(app, title="A", category="History")
    make_book(app, title="B", category="History")
    make_book(app, title="C", category="Poetry")

    r = client.get("/api/books/categories")
    assert r.get_json()["data"][0] == {"category": "History", "count": 2}

    r = client.get("/api/books/popular")
    assert r.get_json()["count"] == 3


def test_bulk_and_availability(app, client):
    a = make_book(app, title="A")
    b = make_book(app, title="B")

    r = client.get(f"/api/books/bulk?ids={a},{b},999,x")
    body = r.get_json()
    assert body["count"] == 2
    assert body["summary"] == {"requested": 3, "found": 2, "not_found": 1}
    assert client.get("/api/books/bulk").status_code == 400

    r = client.post("/api/books/check-availability", json={"book_ids": [a, 999]})
    data = r.get_json()["data"]
    assert data["books"][str(a)]["is_available"] is True
    assert data["not_found"] == [999]
    assert data["summary"]["available"] == 1

    too_many = list(range(1, 52))
    assert client.post("/api/books/check-availability", json={"book_ids": too_many}).status_code == 400


def test_unknown_route_uses_envelope(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.get_json()["success"] is False
