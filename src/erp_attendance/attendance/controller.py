from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local, parse_iso_date, parse_iso_datetime
from ..common.http import json_body, login_required, ok, optional_int_arg
from ..common.serialization import to_dict, to_dict_list
from ..common.validators import require_int, require_non_empty
from ..container import Container
from ..core.permissions import Capability, require
from .service import clock_method_from_payload

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service
    tz_name = container.settings.BUSINESS_TIMEZONE

    def month_and_year() -> tuple[int, int]:
        today = now_local(tz_name).date()
        month = optional_int_arg("month") or today.month
        year = optional_int_arg("year") or today.year
        return require_int(month, "month", min_value=1, max_value=12), require_int(year, "year", min_value=2000, max_value=2100)

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    def clock_in(identity):
        method, device_id = clock_method_from_payload(json_body())
        record = service.clock_in(identity, method=method, device_id=device_id)
        return ok(to_dict(record), status=201, message="Clocked in")

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    def clock_out(identity):
        method, device_id = clock_method_from_payload(json_body())
        record = service.clock_out(identity, method=method, device_id=device_id)
        return ok(to_dict(record), message="Clocked out")

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today(identity):
        record = service.get_today(identity)
        return ok(to_dict(record) if record else None)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history(identity):
        month, year = month_and_year()
        records = service.get_history(identity, year=year, month=month)
        return ok(to_dict_list(records), month=month, year=year)

    @app.route("/api/attendance/overview", methods=["GET"], endpoint="attendance_overview")
    @login_required
    def overview(identity):
        raw_date = request.args.get("date")
        work_date = parse_iso_date(raw_date) if raw_date else now_local(tz_name).date()
        rows = service.get_overview(identity, work_date=work_date)
        return ok(to_dict_list(rows), date=work_date.isoformat())

    @app.route("/api/attendance/employee/<int:employee_id>", methods=["GET"], endpoint="attendance_employee_month")
    @login_required
    def employee_month(identity, employee_id: int):
        month, year = month_and_year()
        view = service.get_employee_month(identity, employee_id, year=year, month=month)
        return ok(to_dict(view))

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="attendance_manual_edit")
    @login_required
    def manual_edit(identity, attendance_id: int):
        updated = service.edit_from_request(identity, attendance_id, json_body())
        return ok(to_dict(updated), message="Attendance updated")

    @app.route("/api/attendance/process-daily", methods=["POST"], endpoint="attendance_process_daily")
    @login_required
    def process_daily(identity):
        require(identity.role, Capability.RUN_DAILY_BATCH)
        data = json_body()
        target = parse_iso_date(data["date"]) if data.get("date") else now_local(tz_name).date()
        # Owners trigger the batch for their own company only.
        result = container.daily_processor.process(target, company_id=identity.company_id)
        logger.info("daily processing for %s triggered by user %s", target, identity.user_id)
        if not result.success:
            body = {"success": False, "error": "DailyProcessingFailed", "message": result.error, "data": to_dict(result)}
            return jsonify(body), 500
        return ok(to_dict(result), message="Daily processing finished")

    @app.route("/api/attendance/biometric/webhook", methods=["POST"], endpoint="attendance_biometric_webhook")
    def biometric_webhook():
        data = json_body()
        device_id = require_non_empty(data.get("device_id"), "device_id")
        employee_id = require_int(data.get("employee_id"), "employee_id", min_value=1)
        action = require_non_empty(data.get("action"), "action")
        raw_ts = data.get("timestamp")
        timestamp = parse_iso_datetime(raw_ts, tz_name) if raw_ts else None
        record = service.record_biometric_event(
            device_id=device_id,
            employee_id=employee_id,
            action=action,
            timestamp=timestamp,
        )
        return ok(to_dict(record), message=f"{action} recorded")
