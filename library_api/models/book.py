from library_api.extensions import db
from library_api.utils.helpers import utcnow

DEFAULT_CATEGORY = "Other"


class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_books_available_copies",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    publisher = db.Column(db.String(200), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    isbn = db.Column(db.String(32), unique=True, nullable=True, index=True)
    category = db.Column(db.String(100), nullable=False, default=DEFAULT_CATEGORY, index=True)
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(500), nullable=True)

    total_copies = db.Column(db.Integer, nullable=False, default=1)
    available_copies = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def is_available(self) -> bool:
        return (self.available_copies or 0) > 0

    def summary(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "category": self.category,
            "image": self.image,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "publisher": self.publisher,
            "year": self.year,
            "isbn": self.isbn,
            "category": self.category,
            "description": self.description,
            "image": self.image,
            "total_copies": self.total_copies,
            "available_copies": self.available_copies,
            "is_available": self.is_available,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
