from flask import Blueprint, jsonify, request

from library_api.services.notification_service import NotificationService
from library_api.utils.decorators import role_required
from library_api.utils.helpers import parse_int

notif_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notif_bp.post("/run-reminders")
@role_required("admin")
def run_reminders():
    counts = NotificationService.run_reminders()
    return jsonify({"success": True, "message": "Reminder check finished", "data": counts})


@notif_bp.get("")
@role_required("admin")
def list_notifications():
    limit = parse_int(request.args.get("limit", 100), "limit", minimum=1, maximum=500)
    logs = NotificationService.recent_logs(limit=limit, notif_type=request.args.get("type"))
    return jsonify({"success": True, "data": [n.to_dict() for n in logs], "count": len(logs)})
