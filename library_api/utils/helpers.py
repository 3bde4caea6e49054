import math
import secrets
import string
from datetime import date, datetime, timezone

from library_api.errors import ValidationError

CARD_ID_PREFIX = "LIB"
CARD_ID_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    # naive UTC, same shape as the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return date.today()


def iso(value):
    if value is None:
        return None
    return value.isoformat()


def generate_card_id(length: int = 9) -> str:
    return CARD_ID_PREFIX + "".join(secrets.choice(CARD_ID_ALPHABET) for _ in range(length))


def parse_int(value, field: str, minimum: int | None = None, maximum: int | None = None) -> int:
    """Coerce request input to int or raise ValidationError naming the field."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return number


def parse_id_list(values, field: str = "book_ids", max_items: int | None = None) -> list[int]:
    """Validate a non-empty list of integer ids, dropping duplicates but keeping order."""
    if not values or not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be a non-empty list")
    if max_items is not None and len(values) > max_items:
        raise ValidationError(f"At most {max_items} items are allowed in {field}")
    ids = []
    for raw in values:
        book_id = parse_int(raw, field, minimum=1)
        if book_id not in ids:
            ids.append(book_id)
    return ids


def paginate(page, limit, total: int, max_limit: int = 100) -> dict:
    page = parse_int(page, "page", minimum=1)
    limit = parse_int(limit, "limit", minimum=1, maximum=max_limit)
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "page": page,
        "limit": limit,
        "offset": (page - 1) * limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def clean_str(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None
