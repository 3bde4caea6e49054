from flask import current_app

from library_api.errors import ConflictError, NotFoundError, ValidationError
from library_api.extensions import db
from library_api.models.user import ROLES, STAFF_ROLES, User
from library_api.repositories.card_repo import CardRepo
from library_api.repositories.user_repo import UserRepo
from library_api.utils.helpers import clean_str
from library_api.utils.validators import ContactValidator


class UserService:
    @staticmethod
    def get_user(user_id: int) -> User:
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def list_users():
        return UserRepo.list_all()

    @staticmethod
    def search_users(name: str | None = None, email: str | None = None, role: str | None = None):
        if role and role not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
        return UserRepo.search(name=clean_str(name), email=clean_str(email), role=clean_str(role))

    @staticmethod
    def _apply_account_fields(user: User, data: dict) -> bool:
        changed = False
        name = clean_str(data.get("name"))
        if name:
            user.name = name
            changed = True
        if data.get("email"):
            email = ContactValidator.normalize_email(data["email"])
            if not ContactValidator.is_valid_email(email):
                raise ValidationError("Invalid email address")
            if email != user.email:
                if UserRepo.get_by_email(email, exclude_id=user.id):
                    raise ConflictError("Email is already in use")
                card = CardRepo.get_by_email(email)
                if card is not None and card.user_id != user.id:
                    raise ConflictError("Email belongs to another library card")
                user.email = email
                changed = True
        return changed

    @staticmethod
    def update_user(user_id: int, data: dict) -> User:
        user = UserService.get_user(user_id)
        changed = UserService._apply_account_fields(user, data)

        role = clean_str(data.get("role"))
        if role:
            if role not in ROLES:
                raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
            user.role = role
            changed = True

        if not changed:
            raise ValidationError("No field to update")
        UserRepo.commit()
        current_app.logger.info(f"[users] Updated user {user.id}")
        return user

    @staticmethod
    def delete_user(user_id: int):
        user = UserService.get_user(user_id)
        if CardRepo.get_by_user(user.id) is not None or user.role in STAFF_ROLES:
            raise ConflictError("Users linked to a library card or with a staff role cannot be deleted")
        UserRepo.delete(user)
        current_app.logger.info(f"[users] Deleted user {user_id}")

    @staticmethod
    def update_my_profile(user_id: int, data: dict) -> User:
        """Account name/email plus, when a card is linked, its name/phone/address."""
        user = UserService.get_user(user_id)
        changed = UserService._apply_account_fields(user, data)

        card = CardRepo.get_by_user(user.id)
        phone = clean_str(data.get("phone"))
        address = clean_str(data.get("address"))
        if card is not None:
            if phone:
                if not ContactValidator.is_valid_phone(phone):
                    raise ValidationError("Invalid phone number")
                card.phone = phone
                changed = True
            if address:
                card.address = address
                changed = True
            name = clean_str(data.get("name"))
            if name:
                card.name = name

        if not changed:
            raise ValidationError("No field to update")
        db.session.commit()
        return user
