from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from library_api.services.auth_service import AuthService, profile_dict
from library_api.services.user_service import UserService
from library_api.utils.decorators import current_user_id

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    user = AuthService.register(
        name=data.get("name"),
        email=data.get("email"),
        password=data.get("password"),
        card_id=data.get("card_id"),
    )
    return jsonify({
        "success": True,
        "message": "Registration successful",
        "data": {"user": profile_dict(user), "token": AuthService.issue_token(user)},
    }), 201


@auth_bp.post("/register-card-only")
def register_card_only():
    data = request.get_json(silent=True) or {}
    card = AuthService.register_card(data)
    return jsonify({
        "success": True,
        "message": "Library card issued. The card number was sent to your email.",
        "data": card.to_dict(),
    }), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    token, user = AuthService.login(data.get("email"), data.get("password"))
    return jsonify({
        "success": True,
        "message": "Login successful",
        "data": {"user": profile_dict(user), "token": token},
    })


@auth_bp.get("/me")
@jwt_required()
def me():
    user = UserService.get_user(current_user_id())
    return jsonify({"success": True, "data": profile_dict(user)})


@auth_bp.post("/link-card")
@jwt_required()
def link_card():
    data = request.get_json(silent=True) or {}
    card = AuthService.link_card(current_user_id(), data.get("card_id") or "")
    user = UserService.get_user(current_user_id())
    # role may have changed, hand back a token carrying the new claim
    return jsonify({
        "success": True,
        "message": "Library card linked",
        "data": {"library_card": card.to_dict(), "user": profile_dict(user), "token": AuthService.issue_token(user)},
    })
