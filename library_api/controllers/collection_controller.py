from flask import Blueprint, jsonify, request

from library_api.services.collection_service import CollectionService
from library_api.utils.decorators import staff_required

collection_bp = Blueprint("collections", __name__, url_prefix="/api/collections")


@collection_bp.get("")
def list_collections():
    collections = CollectionService.list_collections()
    return jsonify({"success": True, "data": [c.to_dict() for c in collections], "count": len(collections)})


@collection_bp.get("/search")
def search_collections():
    collections = CollectionService.search_collections(
        collection_id=request.args.get("id"),
        name=request.args.get("name"),
    )
    return jsonify({"success": True, "data": [c.to_dict() for c in collections], "count": len(collections)})


@collection_bp.get("/<collection_id>")
def get_collection(collection_id: str):
    collection = CollectionService.get_collection(collection_id)
    return jsonify({"success": True, "data": collection.to_dict(with_books=True)})


@collection_bp.post("")
@staff_required
def create_collection():
    data = request.get_json(silent=True) or {}
    collection = CollectionService.create_collection(data)
    return jsonify({"success": True, "message": "Collection created", "data": collection.to_dict()}), 201


@collection_bp.put("/<collection_id>")
@staff_required
def update_collection(collection_id: str):
    data = request.get_json(silent=True) or {}
    collection = CollectionService.update_collection(collection_id, data)
    return jsonify({"success": True, "message": "Collection updated", "data": collection.to_dict()})


@collection_bp.post("/<collection_id>/books")
@staff_required
def add_book(collection_id: str):
    data = request.get_json(silent=True) or {}
    collection = CollectionService.add_book(collection_id, data.get("book_id"))
    return jsonify({
        "success": True,
        "message": "Book added to collection",
        "data": collection.to_dict(with_books=True),
    }), 201


@collection_bp.delete("/<collection_id>/books/<int:book_id>")
@staff_required
def remove_book(collection_id: str, book_id: int):
    collection = CollectionService.remove_book(collection_id, book_id)
    return jsonify({
        "success": True,
        "message": "Book removed from collection",
        "data": collection.to_dict(with_books=True),
    })


@collection_bp.delete("/<collection_id>")
@staff_required
def delete_collection(collection_id: str):
    CollectionService.delete_collection(collection_id)
    return jsonify({"success": True, "message": "Collection deleted"})
