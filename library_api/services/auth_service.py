from flask import current_app
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from library_api.errors import AuthError, ConflictError, NotFoundError, ServiceError, ValidationError
from library_api.extensions import db
from library_api.models.library_card import LibraryCard
from library_api.models.notification_log import NOTIF_CARD_ISSUED
from library_api.models.user import ROLE_MEMBER, ROLE_USER, User
from library_api.repositories.card_repo import CardRepo
from library_api.repositories.user_repo import UserRepo
from library_api.services.notification_service import NotificationService
from library_api.utils.helpers import clean_str, generate_card_id
from library_api.utils.validators import ContactValidator, PasswordValidator

CARD_ID_ATTEMPTS = 10


def profile_dict(user: User) -> dict:
    card = CardRepo.get_by_user(user.id)
    data = user.to_dict()
    data["has_library_card"] = card is not None
    data["library_card"] = card.to_dict() if card else None
    return data


class AuthService:
    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "name": user.name},
        )

    @staticmethod
    def register(name: str, email: str, password: str, card_id: str | None = None):
        name = clean_str(name)
        email = ContactValidator.normalize_email(email)
        if not name or not email or not password:
            raise ValidationError("name, email and password are required")
        if not ContactValidator.is_valid_email(email):
            raise ValidationError("Invalid email address")
        if not PasswordValidator.is_valid(password):
            raise ValidationError(f"Password must be at least {PasswordValidator.MIN_LENGTH} characters")
        if UserRepo.get_by_email(email):
            raise ConflictError("Email is already in use")

        card = None
        if card_id:
            card = AuthService._linkable_card(card_id)

        user = User(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=ROLE_MEMBER if card else ROLE_USER,
        )
        try:
            UserRepo.add(user)
            db.session.flush()
            if card:
                card.user_id = user.id
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("Email or library card is already in use")

        current_app.logger.info(f"[auth] Registered user {user.id} (card={card.id if card else None})")
        return user

    @staticmethod
    def register_card(data: dict) -> LibraryCard:
        name = clean_str(data.get("name"))
        email = ContactValidator.normalize_email(data.get("email"))
        phone = clean_str(data.get("phone"))
        address = clean_str(data.get("address"))
        national_id = clean_str(data.get("national_id"))

        if not all([name, email, phone, address, national_id]):
            raise ValidationError("name, email, phone, address and national_id are required")
        if not ContactValidator.is_valid_email(email):
            raise ValidationError("Invalid email address")
        if not ContactValidator.is_valid_phone(phone):
            raise ValidationError("Invalid phone number")
        if not ContactValidator.is_valid_national_id(national_id):
            raise ValidationError("national_id must have exactly 12 digits")
        if CardRepo.get_by_email(email):
            raise ConflictError("This email already has a library card")
        if CardRepo.get_by_national_id(national_id):
            raise ConflictError("This national id already has a library card")

        card_id = None
        for _ in range(CARD_ID_ATTEMPTS):
            candidate = generate_card_id()
            if not CardRepo.exists(candidate):
                card_id = candidate
                break
        if card_id is None:
            raise ServiceError("Could not generate a unique card id, please try again", 500)

        card = CardRepo.create(LibraryCard(
            id=card_id,
            name=name,
            email=email,
            phone=phone,
            address=address,
            national_id=national_id,
            is_active=True,
        ))
        current_app.logger.info(f"[auth] Issued library card {card.id}")

        NotificationService.dispatch(NOTIF_CARD_ISSUED, {
            "to_email": card.email,
            "name": card.name,
            "card_id": card.id,
        })
        return card

    @staticmethod
    def login(email: str, password: str):
        email = ContactValidator.normalize_email(email)
        if not email or not password:
            raise ValidationError("email and password are required")

        user = UserRepo.get_by_email(email)
        if not user or not check_password_hash(user.password_hash, password):
            raise AuthError("Wrong email or password")

        return AuthService.issue_token(user), user

    @staticmethod
    def link_card(user_id: int, card_id: str) -> LibraryCard:
        if not clean_str(card_id):
            raise ValidationError("card_id is required")
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if CardRepo.get_by_user(user.id):
            raise ConflictError("This account is already linked to a library card")

        card = AuthService._linkable_card(card_id)
        card.user_id = user.id
        if user.role == ROLE_USER:
            user.role = ROLE_MEMBER
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("This library card is already linked to another account")
        current_app.logger.info(f"[auth] Linked card {card.id} to user {user.id}")
        return card

    @staticmethod
    def _linkable_card(card_id) -> LibraryCard:
        card_id = clean_str(card_id)
        if not card_id:
            raise ValidationError("card_id must be a non-empty string")
        card = CardRepo.get(card_id.upper())
        if not card:
            raise ValidationError("Library card does not exist")
        if card.user_id is not None:
            raise ConflictError("This library card is already linked to another account")
        return card

    @staticmethod
    def card_for_user(user: User) -> LibraryCard | None:
        """Linked card first; otherwise a card registered with the account's email."""
        card = CardRepo.get_by_user(user.id)
        if card is None:
            card = CardRepo.get_by_email(user.email)
            if card is not None and card.user_id not in (None, user.id):
                return None
        return card
