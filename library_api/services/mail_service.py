# library_api/services/mail_service.py
from __future__ import annotations

from flask import current_app
from flask_mail import Message

from library_api.extensions import mail
from library_api.models.notification_log import (
    NOTIF_BORROW,
    NOTIF_CARD_ISSUED,
    NOTIF_DUE_SOON,
    NOTIF_OVERDUE,
    NOTIF_RENEWAL,
    NOTIF_RETURN,
)


class MailService:
    @staticmethod
    def send_email(to_email: str, subject: str, body: str) -> tuple[bool, str | None]:
        """
        return: (success, error_text)
        """
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body)
            mail.send(msg)
            return True, None
        except Exception as e:
            current_app.logger.warning(f"[MailService] Mail could not be sent to {to_email}: {e}")
            return False, str(e)

    @staticmethod
    def render(kind: str, payload: dict) -> tuple[str, str]:
        renderer = _RENDERERS.get(kind)
        if renderer is None:
            raise ValueError(f"Unknown notification type: {kind}")
        return renderer(payload)


def _greeting(payload: dict) -> str:
    return f"Hello {payload.get('name') or 'reader'},\n\n"


def _borrow(payload: dict) -> tuple[str, str]:
    books = "\n".join(
        f"  - {b.get('title')} ({b.get('author')})" for b in payload.get("books", [])
    )
    body = (
        _greeting(payload)
        + "Your borrowing was recorded successfully.\n\n"
        f"Borrow number: {payload.get('borrow_id')}\n"
        f"Borrow date: {payload.get('borrow_date')}\n"
        f"Due date: {payload.get('due_date')}\n"
        f"Books ({len(payload.get('books', []))}):\n{books}\n\n"
        "Each book can be renewed at most twice, and only before it is overdue.\n"
    )
    return "Library: borrowing confirmed", body


def _renewal(payload: dict) -> tuple[str, str]:
    body = (
        _greeting(payload)
        + f"'{payload.get('title')}' was renewed for {payload.get('renewed_days')} days.\n\n"
        f"Previous due date: {payload.get('old_due_date')}\n"
        f"New due date: {payload.get('new_due_date')}\n"
        f"Renewals used: {payload.get('renewal_count')}/{payload.get('max_renewals')}\n"
    )
    return "Library: renewal confirmed", body


def _return(payload: dict) -> tuple[str, str]:
    body = (
        _greeting(payload)
        + f"'{payload.get('title')}' has been returned. Thank you!\n\n"
        f"Borrowed on: {payload.get('start_date')}\n"
        f"Returned on: {payload.get('return_date')}\n"
        f"Days borrowed: {payload.get('days_borrowed')}\n"
    )
    return "Library: return confirmed", body


def _card_issued(payload: dict) -> tuple[str, str]:
    body = (
        _greeting(payload)
        + "Your library card has been issued.\n\n"
        f"Card number: {payload.get('card_id')}\n\n"
        "Keep this number: you need it to link your online account and to borrow books.\n"
    )
    return "Library: your library card", body


def _overdue(payload: dict) -> tuple[str, str]:
    body = (
        _greeting(payload)
        + f"The due date of '{payload.get('title')}' has passed.\n"
        f"Due date: {payload.get('due_date')}\n\n"
        "Please return it as soon as possible.\n"
    )
    return "Library: overdue book", body


def _due_soon(payload: dict) -> tuple[str, str]:
    body = (
        _greeting(payload)
        + f"'{payload.get('title')}' is due soon.\n"
        f"Due date: {payload.get('due_date')}\n\n"
        "You can renew it from your account before that date.\n"
    )
    return "Library: due date approaching", body


_RENDERERS = {
    NOTIF_BORROW: _borrow,
    NOTIF_RENEWAL: _renewal,
    NOTIF_RETURN: _return,
    NOTIF_CARD_ISSUED: _card_issued,
    NOTIF_OVERDUE: _overdue,
    NOTIF_DUE_SOON: _due_soon,
}
