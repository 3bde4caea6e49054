from flask import current_app

from library_api.errors import ConflictError, NotFoundError, ValidationError
from library_api.models.collection import Collection
from library_api.repositories.book_repo import BookRepo
from library_api.repositories.collection_repo import CollectionRepo
from library_api.utils.helpers import clean_str, parse_int


class CollectionService:
    @staticmethod
    def list_collections():
        return CollectionRepo.list_all()

    @staticmethod
    def search_collections(collection_id=None, name=None):
        return CollectionRepo.search(id_fragment=clean_str(collection_id), name=clean_str(name))

    @staticmethod
    def get_collection(collection_id: str) -> Collection:
        collection = CollectionRepo.get(collection_id)
        if not collection:
            raise NotFoundError("Collection not found")
        return collection

    @staticmethod
    def create_collection(data: dict) -> Collection:
        collection_id = clean_str(data.get("id"))
        name = clean_str(data.get("name"))
        description = clean_str(data.get("description"))
        if not collection_id or not name or not description:
            raise ValidationError("id, name and description are required")
        if len(collection_id) > 50:
            raise ValidationError("id must be at most 50 characters")
        if CollectionRepo.get(collection_id):
            raise ConflictError("A collection with this id already exists")

        collection = CollectionRepo.create(Collection(
            id=collection_id,
            name=name,
            description=description,
            image=clean_str(data.get("image")),
        ))
        current_app.logger.info(f"[collections] Created collection {collection.id}")
        return collection

    @staticmethod
    def update_collection(collection_id: str, data: dict) -> Collection:
        collection = CollectionService.get_collection(collection_id)
        for k in ["name", "description", "image"]:
            value = clean_str(data.get(k))
            if value:
                setattr(collection, k, value)
        CollectionRepo.update()
        return collection

    @staticmethod
    def add_book(collection_id: str, book_id) -> Collection:
        collection = CollectionService.get_collection(collection_id)
        book = BookRepo.get(parse_int(book_id, "book_id", minimum=1))
        if not book:
            raise NotFoundError("Book not found")
        if book in collection.books:
            raise ConflictError("This book is already in the collection")
        collection.books.append(book)
        CollectionRepo.update()
        return collection

    @staticmethod
    def remove_book(collection_id: str, book_id: int) -> Collection:
        collection = CollectionService.get_collection(collection_id)
        book = next((b for b in collection.books if b.id == book_id), None)
        if book is None:
            raise NotFoundError("This book is not in the collection")
        collection.books.remove(book)
        CollectionRepo.update()
        return collection

    @staticmethod
    def delete_collection(collection_id: str) -> None:
        CollectionRepo.delete(CollectionService.get_collection(collection_id))
        current_app.logger.info(f"[collections] Deleted collection {collection_id}")
