from datetime import date, timedelta

from conftest import make_book

from library_api.extensions import db, mail
from library_api.models.borrow import BorrowLine
from library_api.models.notification_log import NotificationLog
from library_api.services import mail_service
from library_api.services.notification_service import NotificationService


def test_borrow_sends_confirmation_mail(app, client, member):
    book_id = make_book(app, title="Dune")
    with mail.record_messages() as outbox:
        r = client.post("/api/users/borrow", json={"book_ids": [book_id]}, headers=member["headers"])
    assert r.status_code == 201
    assert len(outbox) == 1
    assert outbox[0].recipients == ["reader@example.com"]
    assert "Dune" in outbox[0].body

    with app.app_context():
        entry = NotificationLog.query.one()
        assert entry.type == "borrow"
        assert entry.success is True
        assert entry.attempts == 1


def test_mail_failure_never_fails_the_request(app, client, member, monkeypatch):
    def broken_send(message):
        raise ConnectionError("smtp down")

    monkeypatch.setattr(mail_service.mail, "send", broken_send)
    book_id = make_book(app)
    r = client.post("/api/users/borrow", json={"book_ids": [book_id]}, headers=member["headers"])
    assert r.status_code == 201

    with app.app_context():
        entry = NotificationLog.query.one()
        assert entry.success is False
        assert entry.attempts == app.config["MAIL_MAX_ATTEMPTS"]
        assert "smtp down" in entry.error_message


def test_dispatch_queues_on_running_scheduler(app):
    class FakeScheduler:
        running = True

        def __init__(self):
            self.jobs = []

        def add_job(self, func, args=None, **kwargs):
            self.jobs.append((func, args))

    scheduler = FakeScheduler()
    app.config["NOTIFY_ASYNC"] = True
    app.extensions["apscheduler"] = scheduler
    with app.app_context():
        NotificationService.dispatch("card_issued", {"to_email": "a@example.com", "card_id": "LIB123"})
        assert NotificationLog.query.count() == 0

    func, args = scheduler.jobs[0]
    with mail.record_messages() as outbox:
        func(*args)
    assert len(outbox) == 1
    assert "LIB123" in outbox[0].body


def test_reminders_mail_each_line_once(app, client, admin, member):
    overdue_id = make_book(app, title="Late")
    soon_id = make_book(app, title="Soon")
    later_id = make_book(app, title="Later")
    client.post("/api/users/borrow", json={"book_ids": [overdue_id, soon_id, later_id]}, headers=member["headers"])
    with app.app_context():
        BorrowLine.query.filter_by(book_id=overdue_id).one().due_date = date.today() - timedelta(days=2)
        BorrowLine.query.filter_by(book_id=soon_id).one().due_date = date.today() + timedelta(days=1)
        db.session.commit()

    with mail.record_messages() as outbox:
        r = client.post("/api/notifications/run-reminders", headers=admin["headers"])
    counts = r.get_json()["data"]
    assert counts["overdue"] == 1
    assert counts["due_soon"] == 1
    assert counts["overdue_sent"] == 1
    assert counts["due_soon_sent"] == 1
    assert {m.subject for m in outbox} == {"Library: overdue book", "Library: due date approaching"}

    counts = client.post("/api/notifications/run-reminders", headers=admin["headers"]).get_json()["data"]
    assert counts["skipped"] == 2
    assert counts["overdue_sent"] == 0

    r = client.get("/api/notifications?type=overdue", headers=admin["headers"])
    assert r.get_json()["count"] == 1
    assert client.get("/api/notifications", headers=member["headers"]).status_code == 403


def test_returned_lines_get_no_reminder(app, client, admin, member):
    book_id = make_book(app)
    borrow_id = client.post("/api/users/borrow", json={"book_ids": [book_id]}, headers=member["headers"]).get_json()["data"]["borrow_id"]
    client.post(f"/api/users/borrows/{borrow_id}/books/{book_id}/return", headers=member["headers"])
    with app.app_context():
        BorrowLine.query.one().due_date = date.today() - timedelta(days=5)
        db.session.commit()

    counts = client.post("/api/notifications/run-reminders", headers=admin["headers"]).get_json()["data"]
    assert counts["overdue"] == 0
