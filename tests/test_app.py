from library_api.extensions import db
from library_api.models.user import User
from library_api.services.book_service import BookService


def test_health_and_index(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json()["environment"] == "testing"

    r = client.get("/")
    assert r.get_json()["data"]["endpoints"]["books"] == "/api/books"


def test_method_not_allowed_uses_envelope(client):
    r = client.delete("/health")
    assert r.status_code == 405
    assert r.get_json()["success"] is False


def test_unhandled_error_is_500(app, client, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(BookService, "popular_books", staticmethod(explode))
    r = client.get("/api/books/popular")
    assert r.status_code == 500
    assert "database went away" in r.get_json()["message"]

    app.config["DEBUG_ERRORS"] = False
    r = client.get("/api/books/popular")
    assert r.get_json()["message"] == "Internal server error"


def test_cli_create_user(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["init-db"])
    assert result.exit_code == 0

    result = runner.invoke(args=[
        "create-user", "--name", "Head Librarian", "--email", "Head@Library.org",
        "--password", "secret123", "--role", "librarian",
    ])
    assert result.exit_code == 0, result.output
    with app.app_context():
        user = User.query.filter_by(email="head@library.org").one()
        assert user.role == "librarian"
        assert db.session.query(User).count() == 1

    result = runner.invoke(args=[
        "create-user", "--name", "Again", "--email", "head@library.org", "--password", "secret123",
    ])
    assert result.exit_code != 0
