
from library_api.extensions import db
from library_api.models.user import User


class UserRepo:
    @staticmethod
    def get_by_email(email: str, exclude_id: int | None = None):
        q = User.query.filter(User.email == email)
        if exclude_id is not None:
            q = q.filter(User.id != exclude_id)
        return q.first()

    @staticmethod
    def get_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def list_all():
        return User.query.order_by(User.name.asc(), User.id.asc()).all()

    @staticmethod
    def search(name: str | None = None, email: str | None = None, role: str | None = None):
        q = User.query
        if name:
            q = q.filter(User.name.ilike(f"%{name}%"))
        if email:
            q = q.filter(User.email.ilike(f"%{email}%"))
        if role:
            q = q.filter(User.role == role)
        return q.order_by(User.name.asc(), User.id.asc()).all()

    @staticmethod
    def add(user: User):
        db.session.add(user)
        return user

    @staticmethod
    def create(user: User):
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def delete(user: User):
        db.session.delete(user)
        db.session.commit()
