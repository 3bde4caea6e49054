from datetime import date

from sqlalchemy import case, func
from sqlalchemy.orm import joinedload

from library_api.extensions import db
from library_api.models.book import Book
from library_api.models.book_renewal import BookRenewal
from library_api.models.borrow import LINE_BORROWED, LINE_RETURNED, BorrowLine, BorrowRecord


class BorrowRepo:
    # ---- headers ----
    @staticmethod
    def get(borrow_id: int):
        return db.session.get(BorrowRecord, borrow_id)

    @staticmethod
    def lock(borrow_id: int):
        return BorrowRecord.query.filter(BorrowRecord.id == borrow_id).with_for_update().first()

    @staticmethod
    def list_all():
        return (
            BorrowRecord.query.options(joinedload(BorrowRecord.card), joinedload(BorrowRecord.librarian))
            .order_by(BorrowRecord.borrow_date.desc(), BorrowRecord.id.desc())
            .all()
        )

    @staticmethod
    def search(borrow_id: int | None = None, card_fragment: str | None = None):
        q = BorrowRecord.query.options(joinedload(BorrowRecord.card), joinedload(BorrowRecord.librarian))
        if borrow_id is not None:
            q = q.filter(BorrowRecord.id == borrow_id)
        if card_fragment:
            q = q.filter(BorrowRecord.card_id.ilike(f"%{card_fragment}%"))
        return q.order_by(BorrowRecord.borrow_date.desc(), BorrowRecord.id.desc()).all()

    @staticmethod
    def add(entity):
        db.session.add(entity)
        return entity

    @staticmethod
    def flush():
        db.session.flush()

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def rollback():
        db.session.rollback()

    @staticmethod
    def delete_record(record: BorrowRecord):
        line_ids = [line.id for line in record.lines]
        if line_ids:
            BookRenewal.query.filter(BookRenewal.line_id.in_(line_ids)).delete(synchronize_session=False)
        for line in list(record.lines):
            db.session.delete(line)
        db.session.delete(record)

    # ---- lines ----
    @staticmethod
    def count_outstanding_for_card(card_id: str) -> int:
        return (
            BorrowLine.query.join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id)
            .filter(BorrowRecord.card_id == card_id, BorrowLine.status == LINE_BORROWED)
            .count()
        )

    @staticmethod
    def count_outstanding_in_record(borrow_id: int) -> int:
        return BorrowLine.query.filter(
            BorrowLine.borrow_id == borrow_id,
            BorrowLine.status == LINE_BORROWED,
        ).count()

    @staticmethod
    def count_lines_for_book(book_id: int, status: str | None = None) -> int:
        q = BorrowLine.query.filter(BorrowLine.book_id == book_id)
        if status:
            q = q.filter(BorrowLine.status == status)
        return q.count()

    @staticmethod
    def find_line_for_card(borrow_id: int, book_id: int, card_id: str, lock: bool = False):
        q = (
            BorrowLine.query.join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id)
            .filter(
                BorrowLine.borrow_id == borrow_id,
                BorrowLine.book_id == book_id,
                BorrowRecord.card_id == card_id,
            )
            .order_by(BorrowLine.id.desc())
        )
        if lock:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def outstanding_lines(borrow_id: int, lock: bool = False):
        q = BorrowLine.query.filter(
            BorrowLine.borrow_id == borrow_id,
            BorrowLine.status == LINE_BORROWED,
        ).order_by(BorrowLine.id)
        if lock:
            q = q.with_for_update()
        return q.all()

    @staticmethod
    def lines_for_card(card_id: str):
        return (
            BorrowLine.query.join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id)
            .options(joinedload(BorrowLine.book), joinedload(BorrowLine.record))
            .filter(BorrowRecord.card_id == card_id)
            .order_by(BorrowRecord.borrow_date.desc(), BorrowRecord.id.desc(), BorrowLine.start_date.desc(), BorrowLine.id)
            .all()
        )

    @staticmethod
    def _history_query(card_id: str, status: str | None):
        q = BorrowLine.query.join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id).filter(
            BorrowRecord.card_id == card_id
        )
        if status:
            q = q.filter(BorrowLine.status == status)
        return q

    @staticmethod
    def count_history(card_id: str, status: str | None = None) -> int:
        return BorrowRepo._history_query(card_id, status).count()

    @staticmethod
    def history(card_id: str, offset: int, limit: int, status: str | None = None):
        return (
            BorrowRepo._history_query(card_id, status)
            .options(joinedload(BorrowLine.book), joinedload(BorrowLine.record))
            .order_by(BorrowRecord.borrow_date.desc(), BorrowLine.start_date.desc(), BorrowLine.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def stats_for_card(card_id: str, on_date: date):
        overdue = case(
            ((BorrowLine.status == LINE_BORROWED) & (BorrowLine.due_date < on_date), 1),
        )
        return (
            db.session.query(
                func.count(BorrowLine.id).label("total_books"),
                func.count(case((BorrowLine.status == LINE_BORROWED, 1))).label("currently_borrowed"),
                func.count(case((BorrowLine.status == LINE_RETURNED, 1))).label("total_returned"),
                func.count(overdue).label("overdue_books"),
                func.count(func.distinct(BorrowRecord.id)).label("total_borrows"),
            )
            .select_from(BorrowLine)
            .join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id)
            .filter(BorrowRecord.card_id == card_id)
            .one()
        )

    @staticmethod
    def returned_spans_for_card(card_id: str):
        """(start_date, return_date) pairs; date arithmetic is done in Python for portability."""
        return (
            db.session.query(BorrowLine.start_date, BorrowLine.return_date)
            .join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id)
            .filter(BorrowRecord.card_id == card_id, BorrowLine.return_date.isnot(None))
            .all()
        )

    @staticmethod
    def top_categories_for_card(card_id: str, limit: int = 5):
        count = func.count(BorrowLine.id).label("count")
        return (
            db.session.query(Book.category, count)
            .select_from(BorrowLine)
            .join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id)
            .join(Book, BorrowLine.book_id == Book.id)
            .filter(BorrowRecord.card_id == card_id)
            .group_by(Book.category)
            .order_by(count.desc(), Book.category.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def recent_for_card(card_id: str, limit: int = 10):
        return (
            BorrowLine.query.join(BorrowRecord, BorrowLine.borrow_id == BorrowRecord.id)
            .options(joinedload(BorrowLine.book))
            .filter(BorrowRecord.card_id == card_id)
            .order_by(BorrowLine.start_date.desc(), BorrowLine.id.desc())
            .limit(limit)
            .all()
        )

    # ---- reminders ----
    @staticmethod
    def find_overdue(on_date: date):
        return (
            BorrowLine.query.options(joinedload(BorrowLine.book), joinedload(BorrowLine.record).joinedload(BorrowRecord.card))
            .filter(BorrowLine.status == LINE_BORROWED, BorrowLine.due_date < on_date)
            .all()
        )

    @staticmethod
    def find_due_between(start: date, end: date):
        return (
            BorrowLine.query.options(joinedload(BorrowLine.book), joinedload(BorrowLine.record).joinedload(BorrowRecord.card))
            .filter(
                BorrowLine.status == LINE_BORROWED,
                BorrowLine.due_date >= start,
                BorrowLine.due_date <= end,
            )
            .all()
        )
