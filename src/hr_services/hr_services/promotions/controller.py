from __future__ import annotations

import io
import logging

from flask import Flask, current_app, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_IMPORT_MAX_ROWS
from ..core.exceptions import (
    ConcurrentModification,
    DateConflict,
    DomainError,
    EmployeeNotFound,
    InactiveEmployee,
    InvalidSequence,
    PersistenceError,
    PromotionNotFound,
    ValidationError,
)
from ..container import Container
from .spreadsheet import proposals_from_records, read_promotion_sheet

logger = logging.getLogger(__name__)

API_PREFIX = "/api/hr/services"

_STATUS_BY_ERROR = (
    (EmployeeNotFound, 404),
    (PromotionNotFound, 404),
    (InactiveEmployee, 422),
    (InvalidSequence, 422),
    (DateConflict, 409),
    (ConcurrentModification, 409),
    (ValidationError, 400),
    (PersistenceError, 503),
)


def status_for(error: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def register(app: Flask, container: Container) -> None:
    def handle_domain_error(e: DomainError):
        body = {"success": False, "code": type(e).__name__, "message": str(e)}
        if e.retryable:
            body["retryable"] = True
        return jsonify(body), status_for(e)

    app.register_error_handler(DomainError, handle_domain_error)

    def _json_body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _promotion_fields(data: dict) -> dict:
        missing = [k for k in ("to_designation", "effective_date", "level") if data.get(k) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        return {
            "to_designation": data["to_designation"],
            "effective_date": data["effective_date"],
            "level": data["level"],
            "remarks": data.get("remarks"),
        }

    def _employee_id(data: dict) -> int:
        try:
            return int(data["employee_id"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("employee_id is required")

    @app.route(f"{API_PREFIX}/employees/<int:employee_id>/promotions", methods=["GET"], endpoint="promotion_history")
    def promotion_history(employee_id: int):
        history = container.promotion_query_service.history(employee_id)
        return jsonify({"success": True, "employee_id": employee_id, "promotions": [e.to_dict() for e in history]})

    @app.route(f"{API_PREFIX}/employees/<int:employee_id>/designation", methods=["GET"], endpoint="current_designation")
    def current_designation(employee_id: int):
        on = (request.args.get("on") or "").strip()
        if on:
            try:
                on_date = parse_iso_date(on)
            except ValueError:
                raise ValidationError("Invalid date (YYYY-MM-DD)")
            designation = container.promotion_query_service.designation_on(employee_id, on_date)
            return jsonify({"success": True, "employee_id": employee_id, "on": on, "designation": designation})

        designation = container.promotion_query_service.current_designation(employee_id)
        return jsonify({"success": True, "employee_id": employee_id, "designation": designation})

    @app.route(f"{API_PREFIX}/promotions", methods=["POST"], endpoint="create_promotion")
    def create_promotion():
        data = _json_body()
        event = container.promotion_service.insert_at(employee_id=_employee_id(data), **_promotion_fields(data))
        return jsonify({"success": True, "promotion": event.to_dict()}), 201

    @app.route(f"{API_PREFIX}/promotions/append", methods=["POST"], endpoint="append_promotion")
    def append_promotion():
        data = _json_body()
        event = container.promotion_service.append(employee_id=_employee_id(data), **_promotion_fields(data))
        return jsonify({"success": True, "promotion": event.to_dict()}), 201

    @app.route(f"{API_PREFIX}/promotions/<int:event_id>", methods=["PUT"], endpoint="update_promotion")
    def update_promotion(event_id: int):
        data = _json_body()
        event = container.promotion_service.update(event_id=event_id, **_promotion_fields(data))
        return jsonify({"success": True, "promotion": event.to_dict()})

    @app.route(f"{API_PREFIX}/promotions/<int:event_id>", methods=["DELETE"], endpoint="delete_promotion")
    def delete_promotion(event_id: int):
        event = container.promotion_service.delete(event_id=event_id)
        return jsonify({"success": True, "message": "Promotion record deleted successfully", "promotion": event.to_dict()})

    def _uploaded_proposals():
        upload = request.files.get("file")
        if upload is not None:
            if not (upload.filename or "").lower().endswith(".xlsx"):
                raise ValidationError("Only .xlsx files are supported")
            max_rows = int(current_app.config.get("IMPORT_MAX_ROWS", DEFAULT_IMPORT_MAX_ROWS))
            return read_promotion_sheet(io.BytesIO(upload.read()), max_rows=max_rows)

        rows = _json_body().get("promotions")
        if not isinstance(rows, list):
            raise ValidationError("'promotions' must be a list")
        return proposals_from_records(rows)

    @app.route(f"{API_PREFIX}/promotions/validate", methods=["POST"], endpoint="validate_promotions")
    def validate_promotions():
        proposals, errors = _uploaded_proposals()
        errors = errors + container.bulk_import_service.validate_batch(proposals)
        return jsonify({"success": not errors, "rows": len(proposals), "errors": errors})

    @app.route(f"{API_PREFIX}/promotions/import", methods=["POST"], endpoint="import_promotions")
    def import_promotions():
        proposals, errors = _uploaded_proposals()
        logger.info("Promotion import received: %d rows, %d unparseable", len(proposals), len(errors))
        if errors:
            # Unparseable rows cannot be attributed to a chain safely.
            return jsonify({"success": False, "code": "ValidationError", "errors": errors}), 400

        report = container.bulk_import_service.import_batch(proposals)
        body = report.to_dict()
        body["success"] = not report.failed
        return jsonify(body)
