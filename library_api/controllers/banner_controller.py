from flask import Blueprint, jsonify, request

from library_api.services.banner_service import BannerService
from library_api.utils.decorators import staff_required

banner_bp = Blueprint("banners", __name__, url_prefix="/api/banners")


@banner_bp.get("")
def list_banners():
    banners = BannerService.list_active()
    return jsonify({"success": True, "data": [b.to_dict() for b in banners], "count": len(banners)})


@banner_bp.get("/<int:banner_id>")
def get_banner(banner_id: int):
    return jsonify({"success": True, "data": BannerService.get_banner(banner_id).to_dict()})


@banner_bp.post("")
@staff_required
def create_banner():
    data = request.get_json(silent=True) or {}
    banner = BannerService.create_banner(data)
    return jsonify({"success": True, "message": "Banner created", "data": banner.to_dict()}), 201


@banner_bp.put("/<int:banner_id>")
@staff_required
def update_banner(banner_id: int):
    data = request.get_json(silent=True) or {}
    banner = BannerService.update_banner(banner_id, data)
    return jsonify({"success": True, "message": "Banner updated", "data": banner.to_dict()})


@banner_bp.patch("/<int:banner_id>/status")
@staff_required
def set_status(banner_id: int):
    data = request.get_json(silent=True) or {}
    banner = BannerService.set_status(banner_id, data.get("status"))
    return jsonify({"success": True, "message": "Banner status updated", "data": banner.to_dict()})


@banner_bp.delete("/<int:banner_id>")
@staff_required
def delete_banner(banner_id: int):
    BannerService.delete_banner(banner_id)
    return jsonify({"success": True, "message": "Banner deleted"})
