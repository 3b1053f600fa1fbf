from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container
from .redactor import redact

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "InvalidInput": 400,
    "Unauthorized": 403,
    "NotFound": 404,
    "Conflict": 409,
    "InvalidTransition": 409,
}

PREFIX = "/api/monthly-summaries"


def error_response(e: DomainError):
    return jsonify({"error": e.kind, "message": str(e)}), STATUS_BY_KIND.get(e.kind, 400)


def register(app: Flask, container: Container) -> None:
    service = container.summary_service

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "Unauthenticated", "message": "Please log in to continue"}), 401
            return view(*args, **kwargs)

        return wrapper

    def role_required(*roles: Role):
        allowed = {r.value for r in roles}

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                if "user_id" not in session:
                    return jsonify({"error": "Unauthenticated", "message": "Please log in to continue"}), 401
                if session.get("role") not in allowed:
                    return jsonify({"error": "Unauthorized", "message": "Access denied"}), 403
                return view(*args, **kwargs)

            return wrapper

        return decorator

    def handles_domain_errors(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except DomainError as e:
                return error_response(e)
            except Exception:
                logger.exception("Unhandled error in %s", request.path)
                return jsonify({"error": "ServerError", "message": "Internal server error"}), 500

        return wrapper

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    def _actor() -> tuple[int, str]:
        return int(session["user_id"]), str(session.get("role") or "")

    @app.route(f"{PREFIX}/generate", methods=["POST"], endpoint="summaries_generate")
    @role_required(Role.ADMIN)
    @handles_domain_errors
    def generate():
        data = _body()
        user_id, role = _actor()
        summary = service.generate(
            employee_id=data.get("employeeId"),
            month=data.get("month"),
            year=data.get("year"),
            tax_percentage=data.get("taxPercentage"),
            created_by=user_id,
        )
        return jsonify({"message": "Monthly summary generated successfully", "summary": redact(summary.to_dict(), role)}), 201

    @app.route(f"{PREFIX}/generate-all", methods=["POST"], endpoint="summaries_generate_all")
    @role_required(Role.ADMIN)
    @handles_domain_errors
    def generate_all():
        data = _body()
        user_id, _ = _actor()
        results = service.generate_all(
            month=data.get("month"),
            year=data.get("year"),
            tax_percentage=data.get("taxPercentage"),
            created_by=user_id,
        )
        return jsonify({
            "message": f"Generated summaries for {len(results.success)} out of {results.total} employees",
            "results": results.to_dict(),
        }), 201

    @app.route(PREFIX, methods=["GET"], endpoint="summaries_list")
    @role_required(Role.ADMIN, Role.SUPERVISOR)
    @handles_domain_errors
    def list_summaries():
        _, role = _actor()
        summaries = service.list(
            role=role,
            employee_id=request.args.get("employeeId"),
            month=request.args.get("month"),
            year=request.args.get("year"),
            status=request.args.get("status"),
        )
        return jsonify({"summaries": summaries})

    @app.route(f"{PREFIX}/staff", methods=["GET"], endpoint="summaries_staff_list")
    @role_required(Role.STAFF)
    @handles_domain_errors
    def staff_list():
        user_id, _ = _actor()
        summaries = service.list_for_staff(
            user_id=user_id,
            month=request.args.get("month"),
            year=request.args.get("year"),
        )
        return jsonify({"summaries": summaries})

    @app.route(f"{PREFIX}/<int:summary_id>", methods=["GET"], endpoint="summaries_get")
    @login_required
    @handles_domain_errors
    def get_summary(summary_id: int):
        user_id, role = _actor()
        return jsonify({"summary": service.get(summary_id, role=role, actor_user_id=user_id)})

    @app.route(f"{PREFIX}/staff/<int:summary_id>/sign", methods=["POST"], endpoint="summaries_staff_sign")
    @role_required(Role.STAFF)
    @handles_domain_errors
    def staff_sign(summary_id: int):
        user_id, role = _actor()
        summary = service.staff_sign(summary_id=summary_id, user_id=user_id, signature=_body().get("signature"))
        return jsonify({"message": "Monthly summary signed successfully", "summary": redact(summary.to_dict(), role)})

    def _decide(summary_id: int, action: str):
        data = _body()
        user_id, role = _actor()
        summary = service.admin_decide(
            summary_id=summary_id,
            admin_id=user_id,
            action=action,
            signature=data.get("signature"),
            remarks=data.get("remarks"),
        )
        return jsonify({"message": f"Monthly summary {summary.status.value.lower()}", "summary": redact(summary.to_dict(), role)})

    @app.route(f"{PREFIX}/<int:summary_id>/approve", methods=["POST"], endpoint="summaries_approve")
    @role_required(Role.ADMIN)
    @handles_domain_errors
    def approve(summary_id: int):
        return _decide(summary_id, "approve")

    @app.route(f"{PREFIX}/<int:summary_id>/reject", methods=["POST"], endpoint="summaries_reject")
    @role_required(Role.ADMIN)
    @handles_domain_errors
    def reject(summary_id: int):
        return _decide(summary_id, "reject")

    @app.route(f"{PREFIX}/bulk-approve", methods=["POST"], endpoint="summaries_bulk_approve")
    @role_required(Role.ADMIN)
    @handles_domain_errors
    def bulk_approve():
        data = _body()
        user_id, role = _actor()
        result = service.bulk_admin_approve(
            summary_ids=data.get("summaryIds"),
            admin_id=user_id,
            signature=data.get("signature"),
            remarks=data.get("remarks"),
        )
        return jsonify({
            "message": f"Successfully approved {result.approved_count} monthly summaries",
            **result.to_dict(role),
        })
