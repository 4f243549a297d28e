from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, login_required, ok, optional_int_arg
from ..common.serialization import to_dict, to_dict_list
from ..common.validators import require_int
from ..container import Container
from .service import new_payroll_from_payload


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    @app.route("/api/payroll", methods=["POST"], endpoint="payroll_create")
    @login_required
    def create_payroll(identity):
        record = service.create_payroll(identity, new_payroll_from_payload(json_body()))
        return ok(to_dict(record), status=201, message="Payroll created")

    @app.route("/api/payroll", methods=["GET"], endpoint="payroll_list")
    @login_required
    def list_payroll(identity):
        month = optional_int_arg("month")
        year = optional_int_arg("year")
        if month is not None:
            require_int(month, "month", min_value=1, max_value=12)
        records = service.list_payroll(
            identity,
            month=month,
            year=year,
            employee_email=request.args.get("employee_email"),
        )
        return ok(to_dict_list(records))

    @app.route("/api/payroll/employees", methods=["GET"], endpoint="payroll_employees")
    @login_required
    def payable_employees(identity):
        employees = service.list_payable_employees(identity)
        return ok(to_dict_list(employees, exclude=("password_hash",)))
