# library_api/models/notification_log.py
from library_api.extensions import db
from library_api.utils.helpers import utcnow

# notification types
NOTIF_BORROW = "borrow"
NOTIF_RENEWAL = "renewal"
NOTIF_RETURN = "return"
NOTIF_CARD_ISSUED = "card_issued"
NOTIF_OVERDUE = "overdue"
NOTIF_DUE_SOON = "due_soon"


class NotificationLog(db.Model):
    __tablename__ = "notification_logs"

    id = db.Column(db.Integer, primary_key=True)

    # not a FK: headers can be deleted while their mail history stays
    borrow_id = db.Column(db.Integer, nullable=True, index=True)
    line_id = db.Column(db.Integer, nullable=True, index=True)

    type = db.Column(db.String(50), nullable=False, default=NOTIF_BORROW)

    email = db.Column(db.String(255), nullable=True)
    subject = db.Column(db.String(255), nullable=True)
    message = db.Column(db.String(1000), nullable=True)

    success = db.Column(db.Boolean, nullable=False, default=True)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    error_message = db.Column(db.String(500), nullable=True)

    sent_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "borrow_id": self.borrow_id,
            "line_id": self.line_id,
            "type": self.type,
            "email": self.email,
            "subject": self.subject,
            "success": bool(self.success),
            "attempts": self.attempts,
            "error": self.error_message,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }
