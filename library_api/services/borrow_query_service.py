from library_api.errors import NotFoundError, ValidationError
from library_api.models.borrow import LINE_BORROWED, LINE_STATUSES, RECORD_ACTIVE
from library_api.repositories.borrow_repo import BorrowRepo
from library_api.repositories.user_repo import UserRepo
from library_api.services.auth_service import AuthService
from library_api.utils.helpers import clean_str, iso, paginate, today


def _line_dict(line, on_date) -> dict:
    book = line.book
    return {
        "line_id": line.id,
        "borrow_id": line.borrow_id,
        "book_id": line.book_id,
        "title": book.title if book else None,
        "author": book.author if book else None,
        "category": book.category if book else None,
        "image": book.image if book else None,
        "start_date": iso(line.start_date),
        "due_date": iso(line.due_date),
        "return_date": iso(line.return_date),
        "status": line.status,
        "renewal_count": line.renewal_count,
        "is_overdue": line.is_overdue(on_date),
        "days_until_due": line.days_until_due(on_date),
        "days_borrowed": line.days_borrowed(on_date),
    }


class BorrowQueryService:
    """Read-only views of a member's ledger. A caller without a card gets empty results."""

    @staticmethod
    def _card_for(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user, AuthService.card_for_user(user)

    @staticmethod
    def my_borrows(user_id: int) -> dict:
        _user, card = BorrowQueryService._card_for(user_id)
        on_date = today()
        groups = {}
        if card is not None:
            for line in BorrowRepo.lines_for_card(card.id):
                record = line.record
                group = groups.get(record.id)
                if group is None:
                    group = groups[record.id] = {
                        "borrow_id": record.id,
                        "borrow_date": iso(record.borrow_date),
                        "status": record.status,
                        "books": [],
                    }
                group["books"].append(_line_dict(line, on_date))

        borrows = list(groups.values())
        lines = [b for g in borrows for b in g["books"]]
        return {
            "borrows": borrows,
            "library_card": card.summary() if card else None,
            "summary": {
                "total_borrows": len(borrows),
                "active_borrows": sum(1 for g in borrows if g["status"] == RECORD_ACTIVE),
                "total_books": len(lines),
                "active_books": sum(1 for b in lines if b["status"] == LINE_BORROWED),
                "overdue_books": sum(1 for b in lines if b["is_overdue"]),
            },
        }

    @staticmethod
    def history(user_id: int, page=1, limit=10, status=None):
        status = (clean_str(status) or "").upper() or None
        if status and status not in LINE_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(LINE_STATUSES)}")

        _user, card = BorrowQueryService._card_for(user_id)
        total = BorrowRepo.count_history(card.id, status) if card else 0
        pagination = paginate(page, limit, total)
        if card is None or total == 0:
            return [], pagination

        on_date = today()
        lines = BorrowRepo.history(card.id, pagination["offset"], pagination["limit"], status)
        items = []
        for line in lines:
            item = _line_dict(line, on_date)
            item["borrow_date"] = iso(line.record.borrow_date)
            item["borrow_status"] = line.record.status
            items.append(item)
        return items, pagination

    @staticmethod
    def statistics(user_id: int) -> dict:
        user, card = BorrowQueryService._card_for(user_id)
        account = {"name": user.name, "email": user.email}
        if card is None:
            return {
                "overview": {
                    "total_books": 0,
                    "currently_borrowed": 0,
                    "total_returned": 0,
                    "overdue_books": 0,
                    "total_borrows": 0,
                    "avg_borrow_days": 0,
                },
                "favorite_categories": [],
                "recent_activity": [],
                "user": account,
            }

        on_date = today()
        row = BorrowRepo.stats_for_card(card.id, on_date)
        spans = [(returned - start).days for start, returned in BorrowRepo.returned_spans_for_card(card.id)]
        avg_days = round(sum(spans) / len(spans)) if spans else 0

        return {
            "overview": {
                "total_books": int(row.total_books or 0),
                "currently_borrowed": int(row.currently_borrowed or 0),
                "total_returned": int(row.total_returned or 0),
                "overdue_books": int(row.overdue_books or 0),
                "total_borrows": int(row.total_borrows or 0),
                "avg_borrow_days": avg_days,
            },
            "favorite_categories": [
                {"category": category, "count": int(count)}
                for category, count in BorrowRepo.top_categories_for_card(card.id)
            ],
            "recent_activity": [_line_dict(line, on_date) for line in BorrowRepo.recent_for_card(card.id)],
            "user": account,
            "library_card": card.summary(),
        }
