# Overview: JSON envelope helpers ({success, message?, data?}) and request argument parsing.

from flask import jsonify, request

from .errors import ValidationError
from .time_utils import parse_iso_date
from .validation import coerce_int


def ok(data=None, message: str | None = None, status: int = 200):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(message: str, status: int = 400, **extra):
    body: dict = {"success": False, "message": message}
    for key, value in extra.items():
        if value:
            body[key] = value
    return jsonify(body), status


def paginate(query, page: int | None, per_page: int | None, serialize) -> dict:
    """Apply page/per_page to a query and wrap items with pagination metadata."""
    per_page = max(min(per_page or 20, 100), 1)  # Default 20, clamped to 1..100
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    rows = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [serialize(r) for r in rows],
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def json_body() -> dict:
    """Request JSON object; a missing or non-object body is a ValidationError."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def query_int(name: str) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return None
    return coerce_int(raw, name)


def query_date(name: str):
    raw = request.args.get(name)
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def query_bool(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes", "on"}
