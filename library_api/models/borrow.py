from library_api.extensions import db
from library_api.utils.helpers import today, utcnow

RECORD_ACTIVE = "ACTIVE"
RECORD_COMPLETED = "COMPLETED"
RECORD_STATUSES = (RECORD_ACTIVE, RECORD_COMPLETED)

LINE_BORROWED = "BORROWED"
LINE_RETURNED = "RETURNED"
LINE_STATUSES = (LINE_BORROWED, LINE_RETURNED)


class BorrowRecord(db.Model):
    """One borrowing transaction on a card; owns one line per book."""

    __tablename__ = "borrow_records"

    id = db.Column(db.Integer, primary_key=True)

    card_id = db.Column(db.String(12), db.ForeignKey("library_cards.id"), nullable=False, index=True)
    librarian_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    borrow_date = db.Column(db.Date, nullable=False, default=today)
    status = db.Column(db.String(20), nullable=False, default=RECORD_ACTIVE)  # ACTIVE/COMPLETED

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    card = db.relationship("LibraryCard", backref="borrow_records")
    librarian = db.relationship("User")
    lines = db.relationship(
        "BorrowLine",
        back_populates="record",
        order_by="BorrowLine.id",
    )


class BorrowLine(db.Model):
    __tablename__ = "borrow_lines"
    __table_args__ = (
        db.CheckConstraint("renewal_count >= 0", name="ck_borrow_lines_renewal_count"),
    )

    id = db.Column(db.Integer, primary_key=True)

    borrow_id = db.Column(db.Integer, db.ForeignKey("borrow_records.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)

    start_date = db.Column(db.Date, nullable=False, default=today)
    due_date = db.Column(db.Date, nullable=False)
    return_date = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=LINE_BORROWED, index=True)  # BORROWED/RETURNED
    renewal_count = db.Column(db.Integer, nullable=False, default=0)

    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    record = db.relationship("BorrowRecord", back_populates="lines")
    book = db.relationship("Book", backref="borrow_lines")

    def is_overdue(self, on_date=None) -> bool:
        on_date = on_date or today()
        return self.status == LINE_BORROWED and on_date > self.due_date

    def days_until_due(self, on_date=None) -> int:
        on_date = on_date or today()
        if self.status != LINE_BORROWED:
            return 0
        return max(0, (self.due_date - on_date).days)

    def days_borrowed(self, on_date=None) -> int:
        end = self.return_date or on_date or today()
        return (end - self.start_date).days
