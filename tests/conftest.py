import pytest
from werkzeug.security import generate_password_hash

from library_api import create_app
from library_api.config import TestingConfig
from library_api.extensions import db
from library_api.models.book import Book
from library_api.models.library_card import LibraryCard
from library_api.models.user import ROLE_ADMIN, ROLE_LIBRARIAN, ROLE_MEMBER, ROLE_USER, User
from library_api.services.auth_service import AuthService

PASSWORD = "secret123"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(app, name="Reader", email="reader@example.com", role=ROLE_USER, password=PASSWORD) -> int:
    with app.app_context():
        user = User(name=name, email=email, password_hash=generate_password_hash(password), role=role)
        db.session.add(user)
        db.session.commit()
        return user.id


def make_card(app, card_id="LIBTEST0001", email="reader@example.com", user_id=None, active=True,
              national_id="001122334455", name="Reader") -> str:
    with app.app_context():
        card = LibraryCard(
            id=card_id,
            name=name,
            email=email,
            phone="0912345678",
            address="1 Library Street",
            national_id=national_id,
            is_active=active,
            user_id=user_id,
        )
        db.session.add(card)
        db.session.commit()
        return card.id


def make_book(app, title="Dune", author="Frank Herbert", copies=1, category="Science Fiction", isbn=None) -> int:
    with app.app_context():
        book = Book(
            title=title,
            author=author,
            category=category,
            isbn=isbn,
            total_copies=copies,
            available_copies=copies,
        )
        db.session.add(book)
        db.session.commit()
        return book.id


def auth_headers(app, user_id: int) -> dict:
    with app.app_context():
        token = AuthService.issue_token(db.session.get(User, user_id))
    return {"Authorization": f"Bearer {token}"}


def available_copies(app, book_id: int) -> int:
    with app.app_context():
        return db.session.get(Book, book_id).available_copies


@pytest.fixture
def member(app):
    """A member account with an active linked card."""
    user_id = make_user(app, role=ROLE_MEMBER)
    card_id = make_card(app, user_id=user_id)
    return {"user_id": user_id, "card_id": card_id, "headers": auth_headers(app, user_id)}


@pytest.fixture
def librarian(app):
    user_id = make_user(app, name="Librarian", email="librarian@example.com", role=ROLE_LIBRARIAN)
    return {"user_id": user_id, "headers": auth_headers(app, user_id)}


@pytest.fixture
def admin(app):
    user_id = make_user(app, name="Admin", email="admin@example.com", role=ROLE_ADMIN)
    return {"user_id": user_id, "headers": auth_headers(app, user_id)}
