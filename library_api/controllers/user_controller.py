from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from library_api.services.auth_service import profile_dict
from library_api.services.borrow_query_service import BorrowQueryService
from library_api.services.borrow_service import BorrowService
from library_api.services.user_service import UserService
from library_api.utils.decorators import current_user_id, role_required

user_bp = Blueprint("users", __name__, url_prefix="/api/users")


# ---- own account ----
@user_bp.get("/me")
@jwt_required()
def get_me():
    user = UserService.get_user(current_user_id())
    return jsonify({"success": True, "data": profile_dict(user)})


@user_bp.put("/me")
@jwt_required()
def update_me():
    data = request.get_json(silent=True) or {}
    user = UserService.update_my_profile(current_user_id(), data)
    return jsonify({"success": True, "message": "Profile updated", "data": profile_dict(user)})


# ---- borrowing ----
@user_bp.post("/borrow")
@jwt_required()
def borrow_books():
    data = request.get_json(silent=True) or {}
    result = BorrowService.borrow_books(current_user_id(), data.get("book_ids"))
    return jsonify({"success": True, "message": "Books borrowed successfully", "data": result}), 201


@user_bp.get("/my-borrows")
@jwt_required()
def my_borrows():
    data = BorrowQueryService.my_borrows(current_user_id())
    return jsonify({"success": True, "data": data, "count": data["summary"]["total_borrows"]})


@user_bp.get("/borrow-history")
@jwt_required()
def borrow_history():
    items, pagination = BorrowQueryService.history(
        current_user_id(),
        page=request.args.get("page", 1),
        limit=request.args.get("limit", 10),
        status=request.args.get("status"),
    )
    pagination.pop("offset", None)
    return jsonify({
        "success": True,
        "data": {"history": items, "pagination": pagination},
        "count": len(items),
    })


@user_bp.get("/borrow-statistics")
@jwt_required()
def borrow_statistics():
    return jsonify({"success": True, "data": BorrowQueryService.statistics(current_user_id())})


@user_bp.post("/borrows/<int:borrow_id>/books/<int:book_id>/renew")
@jwt_required()
def renew_book(borrow_id: int, book_id: int):
    data = request.get_json(silent=True) or {}
    result = BorrowService.renew(current_user_id(), borrow_id, book_id, data.get("renew_days"))
    return jsonify({"success": True, "message": "Book renewed", "data": result})


@user_bp.post("/borrows/<int:borrow_id>/books/<int:book_id>/return")
@jwt_required()
def return_book(borrow_id: int, book_id: int):
    result = BorrowService.return_book(current_user_id(), borrow_id, book_id)
    return jsonify({"success": True, "message": "Book returned", "data": result})


# ---- administration ----
@user_bp.get("")
@role_required("admin")
def list_users():
    users = UserService.list_users()
    return jsonify({"success": True, "data": [u.to_dict() for u in users], "count": len(users)})


@user_bp.get("/search")
@role_required("admin")
def search_users():
    users = UserService.search_users(
        name=request.args.get("name"),
        email=request.args.get("email"),
        role=request.args.get("role"),
    )
    return jsonify({"success": True, "data": [u.to_dict() for u in users], "count": len(users)})


@user_bp.get("/<int:user_id>")
@role_required("admin")
def get_user(user_id: int):
    return jsonify({"success": True, "data": UserService.get_user(user_id).to_dict()})


@user_bp.get("/<int:user_id>/profile")
@role_required("admin")
def get_user_profile(user_id: int):
    return jsonify({"success": True, "data": profile_dict(UserService.get_user(user_id))})


@user_bp.put("/<int:user_id>")
@role_required("admin")
def update_user(user_id: int):
    data = request.get_json(silent=True) or {}
    user = UserService.update_user(user_id, data)
    return jsonify({"success": True, "message": "User updated", "data": user.to_dict()})


@user_bp.delete("/<int:user_id>")
@role_required("admin")
def delete_user(user_id: int):
    UserService.delete_user(user_id)
    return jsonify({"success": True, "message": "User deleted"})
