from library_api.extensions import db
from library_api.utils.helpers import utcnow


class LibraryCard(db.Model):
    __tablename__ = "library_cards"

    id = db.Column(db.String(12), primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    national_id = db.Column(db.String(12), unique=True, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # one card per account
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="card")

    def summary(self) -> dict:
        return {"card_id": self.id, "card_name": self.name}

    def to_dict(self) -> dict:
        return {
            "card_id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "national_id": self.national_id,
            "is_active": bool(self.is_active),
            "user_id": self.user_id,
            "member_since": self.created_at.isoformat() if self.created_at else None,
        }
