from library_api.extensions import db
from library_api.models.library_card import LibraryCard


class CardRepo:
    @staticmethod
    def get(card_id: str):
        return db.session.get(LibraryCard, card_id)

    @staticmethod
    def get_by_email(email: str):
        return LibraryCard.query.filter_by(email=email).first()

    @staticmethod
    def get_by_national_id(national_id: str):
        return LibraryCard.query.filter_by(national_id=national_id).first()

    @staticmethod
    def get_by_user(user_id: int):
        return LibraryCard.query.filter_by(user_id=user_id).first()

    @staticmethod
    def lock(card_id: str):
        return LibraryCard.query.filter(LibraryCard.id == card_id).with_for_update().first()

    @staticmethod
    def exists(card_id: str) -> bool:
        return db.session.get(LibraryCard, card_id) is not None

    @staticmethod
    def create(card: LibraryCard):
        db.session.add(card)
        db.session.commit()
        return card
