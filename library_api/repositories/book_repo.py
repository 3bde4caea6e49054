from sqlalchemy import case, func, or_

from library_api.extensions import db
from library_api.models.book import Book


class BookRepo:
    @staticmethod
    def _filtered(search: str | None = None, category: str | None = None, author: str | None = None):
        q = Book.query
        if search:
            like = f"%{search}%"
            q = q.filter(or_(Book.title.ilike(like), Book.author.ilike(like)))
        if category:
            q = q.filter(Book.category.ilike(f"%{category}%"))
        if author:
            q = q.filter(Book.author.ilike(f"%{author}%"))
        return q

    @staticmethod
    def count_filtered(**filters) -> int:
        return BookRepo._filtered(**filters).count()

    @staticmethod
    def list_filtered(offset: int, limit: int, **filters):
        return (
            BookRepo._filtered(**filters)
            .order_by(Book.created_at.desc(), Book.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get(book_id: int):
        return db.session.get(Book, book_id)

    @staticmethod
    def get_many(book_ids):
        if not book_ids:
            return []
        return Book.query.filter(Book.id.in_(book_ids)).order_by(Book.title.asc()).all()

    @staticmethod
    def lock_many(book_ids):
        """Rows are locked until the surrounding transaction ends (no-op on SQLite)."""
        rows = Book.query.filter(Book.id.in_(book_ids)).with_for_update().all()
        return {b.id: b for b in rows}

    @staticmethod
    def get_by_isbn(isbn: str, exclude_id: int | None = None):
        q = Book.query.filter(Book.isbn == isbn)
        if exclude_id is not None:
            q = q.filter(Book.id != exclude_id)
        return q.first()

    @staticmethod
    def search_available(term: str, limit: int = 20):
        like = f"%{term}%"
        rank = case(
            (Book.title.ilike(like), 1),
            (Book.author.ilike(like), 2),
            else_=3,
        )
        return (
            Book.query.filter(
                or_(Book.title.ilike(like), Book.author.ilike(like), Book.category.ilike(like)),
                Book.available_copies > 0,
            )
            .order_by(rank, Book.title.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def categories():
        count = func.count(Book.id).label("count")
        return (
            db.session.query(Book.category, count)
            .filter(Book.category.isnot(None))
            .group_by(Book.category)
            .order_by(count.desc(), Book.category.asc())
            .all()
        )

    @staticmethod
    def newest_available(limit: int = 10):
        return (
            Book.query.filter(Book.available_copies > 0)
            .order_by(Book.created_at.desc(), Book.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def take_copy(book_id: int) -> bool:
        """Guarded decrement; False when no copy was left."""
        updated = (
            db.session.query(Book)
            .filter(Book.id == book_id, Book.available_copies > 0)
            .update({Book.available_copies: Book.available_copies - 1}, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def put_back_copy(book_id: int) -> bool:
        """Guarded increment, never past total_copies."""
        updated = (
            db.session.query(Book)
            .filter(Book.id == book_id, Book.available_copies < Book.total_copies)
            .update({Book.available_copies: Book.available_copies + 1}, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def create(book: Book):
        db.session.add(book)
        db.session.commit()
        return book

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(book: Book):
        db.session.delete(book)
        db.session.commit()
