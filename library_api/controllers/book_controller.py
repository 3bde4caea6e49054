from flask import Blueprint, jsonify, request

from library_api.services.book_service import BookService
from library_api.utils.decorators import staff_required

book_bp = Blueprint("books", __name__, url_prefix="/api/books")


@book_bp.get("")
def list_books():
    books, pagination = BookService.list_books(
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 10),
        search=request.args.get("search"),
        category=request.args.get("category"),
        author=request.args.get("author"),
    )
    pagination.pop("offset", None)
    return jsonify({
        "success": True,
        "data": {"books": [b.to_dict() for b in books], "pagination": pagination},
        "count": len(books),
    })


@book_bp.get("/search")
def search_books():
    books = BookService.search_books(request.args.get("q"))
    return jsonify({"success": True, "data": [b.to_dict() for b in books], "count": len(books)})


@book_bp.get("/categories")
def categories():
    data = BookService.categories()
    return jsonify({"success": True, "data": data, "count": len(data)})


@book_bp.get("/popular")
def popular_books():
    books = BookService.popular_books()
    return jsonify({"success": True, "data": [b.to_dict() for b in books], "count": len(books)})


@book_bp.get("/bulk")
def bulk_books():
    books, summary = BookService.bulk_books(request.args.get("ids"))
    return jsonify({
        "success": True,
        "data": [b.to_dict() for b in books],
        "count": len(books),
        "summary": summary,
    })


@book_bp.post("/check-availability")
def check_availability():
    data = request.get_json(silent=True) or {}
    return jsonify({"success": True, "data": BookService.check_availability(data.get("book_ids"))})


@book_bp.get("/<int:book_id>")
def get_book(book_id: int):
    return jsonify({"success": True, "data": BookService.get_book(book_id).to_dict()})


@book_bp.post("")
@staff_required
def create_book():
    data = request.get_json(silent=True) or {}
    b = BookService.create_book(data)
    return jsonify({"success": True, "message": "Book created", "data": b.to_dict()}), 201


@book_bp.put("/<int:book_id>")
@staff_required
def update_book(book_id: int):
    data = request.get_json(silent=True) or {}
    b = BookService.update_book(book_id, data)
    return jsonify({"success": True, "message": "Book updated", "data": b.to_dict()})


@book_bp.delete("/<int:book_id>")
@staff_required
def delete_book(book_id: int):
    BookService.delete_book(book_id)
    return jsonify({"success": True, "message": "Book deleted"})
