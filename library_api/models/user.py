from library_api.extensions import db
from library_api.utils.helpers import utcnow

ROLE_USER = "user"
ROLE_MEMBER = "member"
ROLE_LIBRARIAN = "librarian"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_MEMBER, ROLE_LIBRARIAN, ROLE_ADMIN)
STAFF_ROLES = (ROLE_LIBRARIAN, ROLE_ADMIN)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # resolved once here and carried in the JWT instead of inferred per request
    role = db.Column(db.String(20), nullable=False, default=ROLE_USER)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    card = db.relationship("LibraryCard", back_populates="user", uselist=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
