from flask import current_app

from library_api.errors import ConflictError, NotFoundError, ValidationError
from library_api.models.book import DEFAULT_CATEGORY, Book
from library_api.models.borrow import LINE_BORROWED
from library_api.repositories.book_repo import BookRepo
from library_api.repositories.borrow_repo import BorrowRepo
from library_api.utils.helpers import clean_str, paginate, parse_id_list, parse_int

MAX_AVAILABILITY_CHECK = 50
MAX_BULK_IDS = 100
MIN_SEARCH_LENGTH = 2


class BookService:
    @staticmethod
    def list_books(page=1, limit=10, search=None, category=None, author=None):
        filters = {
            "search": clean_str(search),
            "category": clean_str(category),
            "author": clean_str(author),
        }
        total = BookRepo.count_filtered(**filters)
        pagination = paginate(page, limit, total)
        books = BookRepo.list_filtered(pagination["offset"], pagination["limit"], **filters)
        return books, pagination

    @staticmethod
    def get_book(book_id: int):
        book = BookRepo.get(book_id)
        if not book:
            raise NotFoundError("Book not found")
        return book

    @staticmethod
    def search_books(term: str | None):
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise ValidationError(f"Search term must have at least {MIN_SEARCH_LENGTH} characters")
        return BookRepo.search_available(term)

    @staticmethod
    def categories():
        return [{"category": category, "count": int(count)} for category, count in BookRepo.categories()]

    @staticmethod
    def popular_books():
        return BookRepo.newest_available()

    @staticmethod
    def bulk_books(raw_ids: str | None):
        if not raw_ids:
            raise ValidationError("ids query parameter is required (ids=1,2,3)")
        ids = []
        for part in raw_ids.split(","):
            part = part.strip()
            if part.isdigit() and int(part) not in ids:
                ids.append(int(part))
        if not ids:
            raise ValidationError("ids contains no valid book id")
        if len(ids) > MAX_BULK_IDS:
            raise ValidationError(f"At most {MAX_BULK_IDS} books per request")
        books = BookRepo.get_many(ids)
        summary = {"requested": len(ids), "found": len(books), "not_found": len(ids) - len(books)}
        return books, summary

    @staticmethod
    def check_availability(book_ids):
        ids = parse_id_list(book_ids, "book_ids", max_items=MAX_AVAILABILITY_CHECK)
        books = {b.id: b for b in BookRepo.get_many(ids)}
        not_found = [i for i in ids if i not in books]
        return {
            "books": {
                str(b.id): {
                    "id": b.id,
                    "title": b.title,
                    "author": b.author,
                    "available": b.available_copies,
                    "total": b.total_copies,
                    "is_available": b.is_available,
                }
                for b in books.values()
            },
            "summary": {
                "total": len(ids),
                "available": sum(1 for b in books.values() if b.is_available),
                "unavailable": sum(1 for b in books.values() if not b.is_available),
                "not_found": len(not_found),
            },
            "not_found": not_found,
        }

    @staticmethod
    def create_book(data: dict):
        title = clean_str(data.get("title"))
        author = clean_str(data.get("author"))
        if not title or not author or data.get("quantity") in (None, ""):
            raise ValidationError("title, author and quantity are required")
        quantity = parse_int(data.get("quantity"), "quantity", minimum=1)

        isbn = clean_str(data.get("isbn"))
        if isbn and BookRepo.get_by_isbn(isbn):
            raise ConflictError("ISBN already exists")

        year = data.get("year")
        book = Book(
            title=title,
            author=author,
            publisher=clean_str(data.get("publisher")),
            year=parse_int(year, "year") if year not in (None, "") else None,
            isbn=isbn,
            category=clean_str(data.get("category")) or DEFAULT_CATEGORY,
            description=clean_str(data.get("description")),
            image=clean_str(data.get("image")),
            total_copies=quantity,
            available_copies=quantity,
        )
        BookRepo.create(book)
        current_app.logger.info(f"[books] Created book {book.id}")
        return book

    @staticmethod
    def update_book(book_id: int, data: dict):
        book = BookService.get_book(book_id)

        isbn = clean_str(data.get("isbn"))
        if isbn and BookRepo.get_by_isbn(isbn, exclude_id=book.id):
            raise ConflictError("ISBN already exists")

        for k in ["title", "author", "publisher", "category", "description", "image"]:
            value = clean_str(data.get(k))
            if value:
                setattr(book, k, value)
        if isbn:
            book.isbn = isbn
        if data.get("year") not in (None, ""):
            book.year = parse_int(data["year"], "year")

        if data.get("quantity") not in (None, ""):
            book.total_copies = parse_int(data["quantity"], "quantity", minimum=1)
        if data.get("available") not in (None, ""):
            book.available_copies = parse_int(data["available"], "available", minimum=0)

        # consistency
        if book.available_copies < 0:
            book.available_copies = 0
        if book.available_copies > book.total_copies:
            book.available_copies = book.total_copies

        BookRepo.update()
        return book

    @staticmethod
    def delete_book(book_id: int):
        book = BookService.get_book(book_id)
        if BorrowRepo.count_lines_for_book(book.id, LINE_BORROWED) > 0:
            raise ConflictError("This book is currently borrowed; it can be deleted after all copies are returned")
        if BorrowRepo.count_lines_for_book(book.id) > 0:
            raise ConflictError("This book has borrow history and cannot be deleted")
        BookRepo.delete(book)
        current_app.logger.info(f"[books] Deleted book {book_id}")
