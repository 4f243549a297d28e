from __future__ import annotations

import logging

from flask import Flask, session

from ..common.http import json_body, login_required, ok, store_identity
from ..common.serialization import to_dict
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        identity = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        store_identity(identity)
        logger.info("user %s logged in (role=%s)", identity.user_id, identity.role.value)
        return ok(to_dict(identity))

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me(identity):
        user = container.users_repo.get_by_id(identity.user_id)
        payload = to_dict(identity)
        if user:
            payload.update({"full_name": user.full_name, "email": user.email})
        return ok(payload)
