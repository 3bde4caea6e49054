from library_api.extensions import db
from library_api.utils.helpers import today


class BookRenewal(db.Model):
    __tablename__ = "book_renewals"

    id = db.Column(db.Integer, primary_key=True)

    line_id = db.Column(db.Integer, db.ForeignKey("borrow_lines.id"), nullable=False, index=True)

    renewed_date = db.Column(db.Date, nullable=False, default=today)
    renewed_days = db.Column(db.Integer, nullable=False)
    old_due_date = db.Column(db.Date, nullable=False)
    new_due_date = db.Column(db.Date, nullable=False)

    performed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    line = db.relationship("BorrowLine", backref="renewals")
