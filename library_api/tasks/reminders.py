# library_api/tasks/reminders.py
from library_api.extensions import db
from library_api.services.notification_service import NotificationService


def run_reminder_job(app):
    """
    Periodic job: overdue and due-soon mails for BORROWED lines.
    Runs outside any request, so it opens its own app context.
    """
    with app.app_context():
        try:
            return NotificationService.run_reminders()
        except Exception as e:
            db.session.rollback()
            app.logger.exception(f"[reminders] Error: {e}")
            return None
