# Overview: Flask API routes for seating charts; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import FieldError, SeatingError, ValidationError
from ..services.chart_service import get_chart_service


charts_bp = Blueprint("seating_charts", __name__, url_prefix="/api/seating-charts")


def _error_response(exc: SeatingError):
    return jsonify(exc.to_dict()), exc.status_code


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError([FieldError(name, "must be an integer")])


def _bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in {"true", "1", "yes"}:
        return True
    if value in {"false", "0", "no"}:
        return False
    raise ValidationError([FieldError(name, "must be true or false")])


def _expected_revision():
    """Parse If-Match ("3", "W/\"3\"" or 3) into an int revision, or None."""
    raw = request.headers.get("If-Match")
    if not raw or raw.strip() == "*":
        return None
    value = raw.strip()
    if value.startswith("W/"):
        value = value[2:]
    value = value.strip('"')
    try:
        return int(value)
    except ValueError:
        raise ValidationError([FieldError("If-Match", "must be a chart revision")])


def _chart_response(document: dict, status: int = 200):
    response = jsonify({"chart": document})
    response.status_code = status
    response.headers["ETag"] = f'"{document["revision"]}"'
    return response


@charts_bp.post("")
def create_chart():
    try:
        document = get_chart_service().create(request.get_json(silent=True))
        return _chart_response(document, 201)
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to create seating chart")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.get("")
def list_charts():
    try:
        page = get_chart_service().list_charts(
            department=request.args.get("department") or None,
            active=_bool_arg("active"),
            page=_int_arg("page", 1),
            limit=_int_arg("limit", 20),
        )
        return jsonify(page), 200
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to list seating charts")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.get("/<chart_id>")
def get_chart(chart_id: str):
    try:
        return _chart_response(get_chart_service().get_one(chart_id))
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to load seating chart")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.put("/<chart_id>")
def update_chart(chart_id: str):
    try:
        document = get_chart_service().update(
            chart_id,
            request.get_json(silent=True),
            expected_revision=_expected_revision(),
        )
        return _chart_response(document)
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update seating chart")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.delete("/<chart_id>")
def delete_chart(chart_id: str):
    try:
        return jsonify(get_chart_service().delete(chart_id)), 200
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to delete seating chart")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.patch("/<chart_id>/seats/<seat_id>")
def patch_seat(chart_id: str, seat_id: str):
    try:
        ack = get_chart_service().patch_seat(
            chart_id,
            seat_id,
            request.get_json(silent=True),
            expected_revision=_expected_revision(),
        )
        response = jsonify(ack)
        response.headers["ETag"] = f'"{ack["revision"]}"'
        return response, 200
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to update seat")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.get("/<chart_id>/versions")
def list_versions(chart_id: str):
    try:
        page = get_chart_service().list_versions(
            chart_id,
            page=_int_arg("page", 1),
            limit=_int_arg("limit", 10),
        )
        return jsonify(page), 200
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to load version history")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.get("/<chart_id>/versions/compare")
def compare_versions(chart_id: str):
    try:
        missing = [FieldError(name, "is required") for name in ("from", "to") if not request.args.get(name)]
        if missing:
            raise ValidationError(missing)
        diff = get_chart_service().compare_versions(
            chart_id,
            request.args["from"],
            request.args["to"],
        )
        return jsonify(diff), 200
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to compare chart versions")
        return jsonify({"error": "Internal server error"}), 500


@charts_bp.post("/<chart_id>/rollback/<version_id>")
def rollback_chart(chart_id: str, version_id: str):
    try:
        return _chart_response(get_chart_service().rollback(chart_id, version_id))
    except SeatingError as exc:
        return _error_response(exc)
    except Exception:
        current_app.logger.exception("Failed to roll back seating chart")
        return jsonify({"error": "Internal server error"}), 500
