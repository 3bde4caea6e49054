from library_api.extensions import db
from library_api.utils.helpers import utcnow

collection_books = db.Table(
    "collection_books",
    db.Column("collection_id", db.String(50), db.ForeignKey("collections.id"), primary_key=True),
    db.Column("book_id", db.Integer, db.ForeignKey("books.id"), primary_key=True),
)


class Collection(db.Model):
    __tablename__ = "collections"

    id = db.Column(db.String(50), primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    image = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    books = db.relationship("Book", secondary=collection_books, backref="collections", order_by="Book.title")

    def to_dict(self, with_books: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "book_count": len(self.books),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if with_books:
            data["books"] = [
                {
                    "id": b.id,
                    "title": b.title,
                    "category": b.category,
                    "author": b.author,
                    "publisher": b.publisher,
                    "status": "AVAILABLE" if b.is_available else "UNAVAILABLE",
                }
                for b in self.books
            ]
        return data
