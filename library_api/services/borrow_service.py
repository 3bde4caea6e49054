from datetime import timedelta

from flask import current_app

from library_api.errors import ConflictError, NotFoundError, ValidationError
from library_api.models.book_renewal import BookRenewal
from library_api.models.borrow import (
    LINE_BORROWED,
    LINE_RETURNED,
    RECORD_ACTIVE,
    RECORD_COMPLETED,
    RECORD_STATUSES,
    BorrowLine,
    BorrowRecord,
)
from library_api.models.notification_log import NOTIF_BORROW, NOTIF_RENEWAL, NOTIF_RETURN
from library_api.models.user import STAFF_ROLES, User
from library_api.repositories.book_repo import BookRepo
from library_api.repositories.borrow_repo import BorrowRepo
from library_api.repositories.card_repo import CardRepo
from library_api.repositories.user_repo import UserRepo
from library_api.services.auth_service import AuthService
from library_api.services.notification_service import NotificationService
from library_api.utils.helpers import clean_str, iso, parse_id_list, parse_int, today

# accepted on the admin status endpoint as a synonym of COMPLETED
STATUS_ALIASES = {"RETURNED": RECORD_COMPLETED}


class BorrowService:
    """
    Borrow / renew / return lifecycle.
    Every mutating operation runs in one transaction: rows are locked, all
    checks pass before the first write, and availability moves through the
    guarded updates in BookRepo. Mails are dispatched only after commit.
    """

    # ---- helpers ----
    @staticmethod
    def _user(user_id: int) -> User:
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def _borrowing_card(user: User):
        card = AuthService.card_for_user(user)
        if card is None or not card.is_active:
            raise ValidationError(
                "You have no active library card. Please contact a librarian to register one."
            )
        return card

    @staticmethod
    def _lock_available_books(book_ids):
        """Lock the requested books and report every unusable one in a single error."""
        books = BookRepo.lock_many(book_ids)
        problems = []
        for book_id in book_ids:
            book = books.get(book_id)
            if book is None:
                problems.append(f"Book #{book_id} does not exist")
            elif not book.is_available:
                problems.append(f"'{book.title}' has no available copy")
        if problems:
            raise ValidationError("Some books cannot be borrowed: " + ", ".join(problems))
        return books

    @staticmethod
    def _open_record(card_id: str, book_ids, books: dict, librarian_id: int | None = None) -> BorrowRecord:
        """Insert the header and one line per book, taking one copy of each."""
        loan_days = int(current_app.config.get("BORROW_LOAN_DAYS", 30))
        start = today()

        record = BorrowRepo.add(BorrowRecord(
            card_id=card_id,
            librarian_id=librarian_id,
            borrow_date=start,
            status=RECORD_ACTIVE,
        ))
        BorrowRepo.flush()

        for book_id in book_ids:
            if not BookRepo.take_copy(book_id):
                raise ConflictError(f"'{books[book_id].title}' was borrowed by someone else, please try again")
            BorrowRepo.add(BorrowLine(
                borrow_id=record.id,
                book_id=book_id,
                start_date=start,
                due_date=start + timedelta(days=loan_days),
                status=LINE_BORROWED,
                renewal_count=0,
            ))
        BorrowRepo.flush()
        return record

    @staticmethod
    def _return_line(line: BorrowLine, on_date=None) -> None:
        """
        The one BORROWED -> RETURNED transition, shared by the member return and
        the admin status cascade. Does not commit.
        """
        line.status = LINE_RETURNED
        line.return_date = on_date or today()
        if not BookRepo.put_back_copy(line.book_id):
            current_app.logger.warning(
                f"[borrow] Book {line.book_id} already at total copies when line {line.id} was returned"
            )

    @staticmethod
    def _complete_if_done(record: BorrowRecord) -> None:
        BorrowRepo.flush()
        if BorrowRepo.count_outstanding_in_record(record.id) == 0:
            record.status = RECORD_COMPLETED

    # ---- member lifecycle ----
    @staticmethod
    def borrow_books(user_id: int, book_ids) -> dict:
        ids = parse_id_list(book_ids, "book_ids")
        user = BorrowService._user(user_id)
        card = BorrowService._borrowing_card(user)
        max_books = int(current_app.config.get("BORROW_MAX_BOOKS", 5))

        try:
            CardRepo.lock(card.id)
            current = BorrowRepo.count_outstanding_for_card(card.id)
            if current + len(ids) > max_books:
                raise ValidationError(
                    f"You can borrow at most {max_books} books. You currently have {current} borrowed."
                )

            books = BorrowService._lock_available_books(ids)
            record = BorrowService._open_record(card.id, ids, books)
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise

        line = record.lines[0]
        summaries = [books[book_id].summary() for book_id in ids]
        current_app.logger.info(f"[borrow] Card {card.id} borrowed {len(ids)} book(s) in record {record.id}")

        result = {
            "borrow_id": record.id,
            "borrow_date": iso(record.borrow_date),
            "due_date": iso(line.due_date),
            "total_books": len(ids),
            "books": summaries,
            "library_card": card.summary(),
        }
        NotificationService.dispatch(NOTIF_BORROW, {
            "to_email": user.email,
            "name": card.name,
            "borrow_id": record.id,
            "borrow_date": result["borrow_date"],
            "due_date": result["due_date"],
            "books": [{"title": b["title"], "author": b["author"]} for b in summaries],
        })
        return result

    @staticmethod
    def _member_line(user: User, borrow_id: int, book_id: int) -> BorrowLine:
        card = AuthService.card_for_user(user)
        if card is None:
            raise NotFoundError("You have no library card")
        line = BorrowRepo.find_line_for_card(borrow_id, book_id, card.id, lock=True)
        if line is None:
            raise NotFoundError("Borrow record not found or it does not belong to you")
        return line

    @staticmethod
    def renew(user_id: int, borrow_id: int, book_id: int, days=None) -> dict:
        cfg = current_app.config
        max_days = int(cfg.get("RENEW_MAX_DAYS", 30))
        max_count = int(cfg.get("RENEW_MAX_COUNT", 2))
        days = int(cfg.get("RENEW_DEFAULT_DAYS", 15)) if days in (None, "") else parse_int(
            days, "renew_days", minimum=1, maximum=max_days
        )
        user = BorrowService._user(user_id)

        try:
            line = BorrowService._member_line(user, borrow_id, book_id)
            if line.status != LINE_BORROWED:
                raise ValidationError("This book is not currently borrowed")
            if line.renewal_count >= max_count:
                raise ValidationError(f"This book has already been renewed the maximum of {max_count} times")
            on_date = today()
            if on_date > line.due_date:
                raise ValidationError("Overdue books cannot be renewed, please return it to the library")

            old_due = line.due_date
            line.due_date = old_due + timedelta(days=days)
            line.renewal_count += 1
            BorrowRepo.add(BookRenewal(
                line_id=line.id,
                renewed_date=on_date,
                renewed_days=days,
                old_due_date=old_due,
                new_due_date=line.due_date,
                performed_by=user.id,
            ))
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise

        current_app.logger.info(f"[borrow] Line {line.id} renewed by {days} days ({line.renewal_count}/{max_count})")
        result = {
            "borrow_id": line.borrow_id,
            "book_id": line.book_id,
            "title": line.book.title,
            "old_due_date": iso(old_due),
            "new_due_date": iso(line.due_date),
            "renewal_count": line.renewal_count,
            "max_renewals": max_count,
            "remaining_renewals": max_count - line.renewal_count,
            "renewed_days": days,
        }
        NotificationService.dispatch(NOTIF_RENEWAL, {
            "to_email": user.email,
            "name": user.name,
            "borrow_id": line.borrow_id,
            "line_id": line.id,
            **{k: result[k] for k in ("title", "renewed_days", "old_due_date", "new_due_date",
                                      "renewal_count", "max_renewals")},
        })
        return result

    @staticmethod
    def return_book(user_id: int, borrow_id: int, book_id: int) -> dict:
        user = BorrowService._user(user_id)

        try:
            # header before line, same order as update_record_status
            record = BorrowRepo.lock(borrow_id)
            line = BorrowService._member_line(user, borrow_id, book_id)
            if line.status != LINE_BORROWED:
                raise ValidationError("This book has already been returned")
            BorrowService._return_line(line)
            BorrowService._complete_if_done(record)
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise

        days_borrowed = line.days_borrowed()
        current_app.logger.info(f"[borrow] Line {line.id} returned after {days_borrowed} day(s)")
        result = {
            "borrow_id": record.id,
            "book_id": line.book_id,
            "title": line.book.title,
            "return_date": iso(line.return_date),
            "days_borrowed": days_borrowed,
            "status": line.status,
            "borrow_status": record.status,
        }
        NotificationService.dispatch(NOTIF_RETURN, {
            "to_email": user.email,
            "name": user.name,
            "borrow_id": record.id,
            "line_id": line.id,
            "title": result["title"],
            "start_date": iso(line.start_date),
            "return_date": result["return_date"],
            "days_borrowed": days_borrowed,
        })
        return result

    # ---- administrative ledger ----
    @staticmethod
    def record_dict(record: BorrowRecord, with_lines: bool = False) -> dict:
        data = {
            "borrow_id": record.id,
            "card_id": record.card_id,
            "card_name": record.card.name if record.card else None,
            "librarian_id": record.librarian_id,
            "librarian_name": record.librarian.name if record.librarian else None,
            "borrow_date": iso(record.borrow_date),
            "status": record.status,
            "total_books": len(record.lines),
        }
        if with_lines:
            on_date = today()
            data["books"] = [
                {
                    "line_id": line.id,
                    "book_id": line.book_id,
                    "title": line.book.title if line.book else None,
                    "author": line.book.author if line.book else None,
                    "start_date": iso(line.start_date),
                    "due_date": iso(line.due_date),
                    "return_date": iso(line.return_date),
                    "status": line.status,
                    "renewal_count": line.renewal_count,
                    "is_overdue": line.is_overdue(on_date),
                }
                for line in record.lines
            ]
        return data

    @staticmethod
    def list_records():
        return BorrowRepo.list_all()

    @staticmethod
    def search_records(borrow_id=None, card_id=None):
        borrow_id = None if borrow_id in (None, "") else parse_int(borrow_id, "borrow_id", minimum=1)
        card_fragment = clean_str(card_id)
        if borrow_id is None and not card_fragment:
            raise ValidationError("Provide borrow_id or card_id to search")
        return BorrowRepo.search(borrow_id=borrow_id, card_fragment=card_fragment)

    @staticmethod
    def get_record(borrow_id: int) -> BorrowRecord:
        record = BorrowRepo.get(borrow_id)
        if not record:
            raise NotFoundError("Borrow record not found")
        return record

    @staticmethod
    def create_record(card_id, book_ids, librarian_id=None, acting_user_id: int | None = None) -> BorrowRecord:
        """Librarian desk checkout: no per-card cap, no ownership check."""
        card_id = clean_str(card_id)
        if not card_id:
            raise ValidationError("card_id is required")
        ids = parse_id_list(book_ids, "book_ids")

        librarian_id = acting_user_id if librarian_id in (None, "") else parse_int(librarian_id, "librarian_id")
        librarian = UserRepo.get_by_id(librarian_id) if librarian_id is not None else None
        if librarian is None or librarian.role not in STAFF_ROLES:
            raise ValidationError("librarian_id must reference a librarian or admin account")

        try:
            card = CardRepo.lock(card_id.upper())
            if card is None:
                raise NotFoundError("Library card not found")
            if not card.is_active:
                raise ValidationError("This library card is not active")
            books = BorrowService._lock_available_books(ids)
            record = BorrowService._open_record(card.id, ids, books, librarian_id=librarian.id)
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise

        current_app.logger.info(f"[borrow] Librarian {librarian.id} opened record {record.id} for card {card.id}")
        return record

    @staticmethod
    def update_record_status(borrow_id: int, status) -> BorrowRecord:
        status = (clean_str(status) or "").upper()
        status = STATUS_ALIASES.get(status, status)
        if status not in RECORD_STATUSES:
            raise ValidationError("status must be ACTIVE, COMPLETED or RETURNED")

        try:
            record = BorrowRepo.lock(borrow_id)
            if record is None:
                raise NotFoundError("Borrow record not found")
            if record.status == RECORD_COMPLETED and status == RECORD_ACTIVE:
                raise ConflictError("A completed borrow record cannot be reopened")

            returned = 0
            if status == RECORD_COMPLETED:
                on_date = today()
                for line in BorrowRepo.outstanding_lines(record.id, lock=True):
                    BorrowService._return_line(line, on_date)
                    returned += 1
                record.status = RECORD_COMPLETED
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise

        current_app.logger.info(f"[borrow] Record {record.id} set to {record.status} ({returned} line(s) returned)")
        return record

    @staticmethod
    def delete_record(borrow_id: int) -> None:
        try:
            record = BorrowRepo.lock(borrow_id)
            if record is None:
                raise NotFoundError("Borrow record not found")
            if record.status == RECORD_ACTIVE or BorrowRepo.count_outstanding_in_record(record.id) > 0:
                raise ConflictError("Active borrow records cannot be deleted, return all books first")
            BorrowRepo.delete_record(record)
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise
        current_app.logger.info(f"[borrow] Deleted record {borrow_id}")
