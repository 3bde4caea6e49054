from flask import Blueprint, jsonify, request

from library_api.services.borrow_service import BorrowService
from library_api.utils.decorators import current_user_id, staff_required

borrow_bp = Blueprint("borrow", __name__, url_prefix="/api/borrow")


@borrow_bp.get("")
@staff_required
def list_records():
    records = BorrowService.list_records()
    return jsonify({
        "success": True,
        "data": [BorrowService.record_dict(r) for r in records],
        "count": len(records),
    })


@borrow_bp.get("/search")
@staff_required
def search_records():
    records = BorrowService.search_records(
        borrow_id=request.args.get("borrow_id"),
        card_id=request.args.get("card_id"),
    )
    return jsonify({
        "success": True,
        "data": [BorrowService.record_dict(r) for r in records],
        "count": len(records),
    })


@borrow_bp.get("/<int:borrow_id>")
@staff_required
def get_record(borrow_id: int):
    record = BorrowService.get_record(borrow_id)
    return jsonify({"success": True, "data": BorrowService.record_dict(record, with_lines=True)})


@borrow_bp.post("")
@staff_required
def create_record():
    data = request.get_json(silent=True) or {}
    record = BorrowService.create_record(
        card_id=data.get("card_id"),
        book_ids=data.get("book_ids"),
        librarian_id=data.get("librarian_id"),
        acting_user_id=current_user_id(),
    )
    return jsonify({
        "success": True,
        "message": "Borrow record created",
        "data": BorrowService.record_dict(record, with_lines=True),
    }), 201


@borrow_bp.patch("/<int:borrow_id>/status")
@staff_required
def update_status(borrow_id: int):
    data = request.get_json(silent=True) or {}
    record = BorrowService.update_record_status(borrow_id, data.get("status"))
    return jsonify({
        "success": True,
        "message": "Borrow status updated",
        "data": BorrowService.record_dict(record, with_lines=True),
    })


@borrow_bp.delete("/<int:borrow_id>")
@staff_required
def delete_record(borrow_id: int):
    BorrowService.delete_record(borrow_id)
    return jsonify({"success": True, "message": "Borrow record deleted"})
