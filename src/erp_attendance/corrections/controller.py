from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, login_required, ok
from ..common.serialization import to_dict, to_dict_list
from ..container import Container
from ..core.enums import CorrectionStatus
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.correction_service

    @app.route("/api/attendance/corrections", methods=["POST"], endpoint="corrections_submit")
    @login_required
    def submit(identity):
        submitted = service.submit_request(identity, json_body())
        extra = {}
        if submitted.target_locked:
            extra["warning"] = "This day is already processed; the correction needs owner approval to apply."
        return ok(to_dict(submitted.correction), status=201, message="Correction submitted", **extra)

    @app.route("/api/attendance/corrections/mine", methods=["GET"], endpoint="corrections_mine")
    @login_required
    def mine(identity):
        return ok(to_dict_list(service.list_mine(identity)))

    @app.route("/api/attendance/corrections", methods=["GET"], endpoint="corrections_list")
    @login_required
    def for_review(identity):
        raw = (request.args.get("status") or CorrectionStatus.PENDING.value).strip().lower()
        if raw == "all":
            status = None
        else:
            try:
                status = CorrectionStatus(raw)
            except ValueError:
                raise ValidationError("status must be pending, approved, rejected or all")
        return ok(to_dict_list(service.list_for_review(identity, status=status)))

    @app.route("/api/attendance/corrections/<int:correction_id>/approve", methods=["PATCH"], endpoint="corrections_approve")
    @login_required
    def approve(identity, correction_id: int):
        correction = service.approve(identity, correction_id)
        return ok(to_dict(correction), message="Correction approved")

    @app.route("/api/attendance/corrections/<int:correction_id>/reject", methods=["PATCH"], endpoint="corrections_reject")
    @login_required
    def reject(identity, correction_id: int):
        data = json_body()
        correction = service.reject(identity, correction_id, rejection_reason=data.get("rejection_reason") or data.get("reason", ""))
        return ok(to_dict(correction), message="Correction rejected")
