import time
from datetime import timedelta

from flask import current_app

from library_api.extensions import db
from library_api.models.notification_log import NOTIF_DUE_SOON, NOTIF_OVERDUE, NotificationLog
from library_api.repositories.borrow_repo import BorrowRepo
from library_api.repositories.notification_repo import NotificationRepo
from library_api.services.mail_service import MailService
from library_api.utils.helpers import today, utcnow


def _deliver_in_context(app, kind: str, payload: dict):
    with app.app_context():
        NotificationService.deliver(kind, payload)


class NotificationService:
    @staticmethod
    def dispatch(kind: str, payload: dict) -> None:
        """
        Hand a confirmation mail off after the caller's transaction committed.
        Never raises: a lost mail must not fail the request that caused it.
        """
        app = current_app._get_current_object()
        try:
            if app.config.get("NOTIFY_ASYNC", True):
                scheduler = app.extensions.get("apscheduler")
                if scheduler is not None and scheduler.running:
                    scheduler.add_job(
                        _deliver_in_context,
                        args=[app, kind, payload],
                        name=f"notify:{kind}",
                        misfire_grace_time=None,
                    )
                    return
                app.logger.warning(f"[notify] Scheduler not running, sending '{kind}' inline")
            NotificationService.deliver(kind, payload)
        except Exception as e:
            app.logger.exception(f"[notify] Dispatch of '{kind}' failed: {e}")

    @staticmethod
    def deliver(kind: str, payload: dict) -> bool:
        """Render, send with retries, and record one NotificationLog row."""
        logger = current_app.logger
        to_email = payload.get("to_email")
        try:
            subject, body = MailService.render(kind, payload)
        except ValueError as e:
            logger.error(f"[notify] {e}")
            return False

        max_attempts = max(1, int(current_app.config.get("MAIL_MAX_ATTEMPTS", 1)))
        delay = float(current_app.config.get("MAIL_RETRY_DELAY", 0))

        ok, err, attempts = False, None, 0
        if not to_email:
            err = "missing_email"
        else:
            while attempts < max_attempts and not ok:
                attempts += 1
                ok, err = MailService.send_email(to_email, subject, body)
                if not ok and attempts < max_attempts and delay > 0:
                    time.sleep(delay * attempts)

        try:
            NotificationRepo.log(
                NotificationLog(
                    borrow_id=payload.get("borrow_id"),
                    line_id=payload.get("line_id"),
                    type=kind,
                    email=to_email,
                    subject=subject,
                    message=body[:1000],
                    success=ok,
                    attempts=attempts,
                    error_message=err[:500] if err else None,
                    sent_at=utcnow(),
                )
            )
        except Exception as e:
            db.session.rollback()
            logger.exception(f"[notify] Could not log '{kind}' notification: {e}")

        if ok:
            logger.info(f"[notify] '{kind}' mail sent to {to_email} after {attempts} attempt(s)")
        else:
            logger.warning(f"[notify] '{kind}' mail to {to_email} failed: {err}")
        return ok

    @staticmethod
    def run_reminders() -> dict:
        """
        Overdue and due-soon reminders for outstanding lines.
        Each line gets at most one successful mail per reminder type.
        """
        on_date = today()
        soon_limit = on_date + timedelta(days=int(current_app.config.get("REMINDER_DUE_SOON_DAYS", 2)))

        overdue_lines = BorrowRepo.find_overdue(on_date)
        due_soon_lines = BorrowRepo.find_due_between(on_date, soon_limit)

        counts = {
            "overdue": len(overdue_lines),
            "due_soon": len(due_soon_lines),
            "overdue_sent": 0,
            "due_soon_sent": 0,
            "skipped": 0,
        }

        for kind, lines, key in (
            (NOTIF_OVERDUE, overdue_lines, "overdue_sent"),
            (NOTIF_DUE_SOON, due_soon_lines, "due_soon_sent"),
        ):
            for line in lines:
                if NotificationRepo.already_sent(line.id, kind):
                    counts["skipped"] += 1
                    continue
                card = line.record.card if line.record else None
                payload = {
                    "to_email": card.email if card else None,
                    "name": card.name if card else None,
                    "borrow_id": line.borrow_id,
                    "line_id": line.id,
                    "title": line.book.title if line.book else f"Book #{line.book_id}",
                    "due_date": line.due_date.isoformat(),
                }
                if NotificationService.deliver(kind, payload):
                    counts[key] += 1

        current_app.logger.info(
            f"[reminders] overdue={counts['overdue']} due_soon={counts['due_soon']} "
            f"overdue_sent={counts['overdue_sent']} due_soon_sent={counts['due_soon_sent']} "
            f"skipped={counts['skipped']}"
        )
        return counts

    @staticmethod
    def recent_logs(limit: int = 100, notif_type: str | None = None):
        return NotificationRepo.recent(limit=limit, notif_type=notif_type)
