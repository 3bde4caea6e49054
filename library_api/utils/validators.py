import re
from typing import Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^(84|0[35789])[0-9]{8}$")
NATIONAL_ID_RE = re.compile(r"^[0-9]{12}$")


class ContactValidator:
    """Format checks for registration input."""

    @staticmethod
    def normalize_email(raw: Optional[str]) -> str:
        return (raw or "").strip().lower()

    @staticmethod
    def is_valid_email(email: Optional[str]) -> bool:
        return bool(email) and EMAIL_RE.match(email.strip()) is not None

    @staticmethod
    def is_valid_phone(phone: Optional[str]) -> bool:
        if not phone:
            return False
        digits = re.sub(r"[\s.\-]", "", phone)
        return PHONE_RE.match(digits) is not None

    @staticmethod
    def is_valid_national_id(value: Optional[str]) -> bool:
        return bool(value) and NATIONAL_ID_RE.match(value.strip()) is not None


class PasswordValidator:
    MIN_LENGTH = 6

    @staticmethod
    def is_valid(password: Optional[str]) -> bool:
        return bool(password) and len(password) >= PasswordValidator.MIN_LENGTH
