from library_api.extensions import db
from library_api.models.notification_log import NotificationLog


class NotificationRepo:
    @staticmethod
    def already_sent(line_id: int, notif_type: str) -> bool:
        return (
            NotificationLog.query.filter_by(line_id=line_id, type=notif_type, success=True).first()
            is not None
        )

    @staticmethod
    def recent(limit: int = 100, notif_type: str | None = None):
        q = NotificationLog.query
        if notif_type:
            q = q.filter_by(type=notif_type)
        return q.order_by(NotificationLog.sent_at.desc(), NotificationLog.id.desc()).limit(limit).all()

    @staticmethod
    def log(entry: NotificationLog, commit: bool = True):
        db.session.add(entry)
        if commit:
            db.session.commit()
        return entry
