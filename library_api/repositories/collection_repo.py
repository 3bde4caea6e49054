from library_api.extensions import db
from library_api.models.collection import Collection


class CollectionRepo:
    @staticmethod
    def list_all():
        return Collection.query.order_by(Collection.name.asc()).all()

    @staticmethod
    def search(id_fragment: str | None = None, name: str | None = None):
        q = Collection.query
        if id_fragment:
            q = q.filter(Collection.id.ilike(f"%{id_fragment}%"))
        if name:
            q = q.filter(Collection.name.ilike(f"%{name}%"))
        return q.order_by(Collection.name.asc()).all()

    @staticmethod
    def get(collection_id: str):
        return db.session.get(Collection, collection_id)

    @staticmethod
    def create(collection: Collection):
        db.session.add(collection)
        db.session.commit()
        return collection

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(collection: Collection):
        collection.books = []
        db.session.delete(collection)
        db.session.commit()
