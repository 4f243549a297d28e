from __future__ import annotations

from flask import Flask, request

from ..common.http import login_required, ok
from ..common.serialization import to_dict_list
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @login_required
    def notifications_list(identity):
        unread_only = request.args.get("unread") in {"1", "true", "yes"}
        items = container.notification_service.list_for_user(user_id=identity.user_id, unread_only=unread_only)
        return ok(to_dict_list(items))
