# Overview: Shared request parsing for route handlers.

from flask import request

from ..validation import ValidationError

MAX_LIMIT = 100


def page_args(default_limit: int = 20) -> tuple[int, int]:
    """limit/offset query params, clamped to [1, MAX_LIMIT] and >= 0."""
    limit = request.args.get("limit", default=default_limit, type=int)
    offset = request.args.get("offset", default=0, type=int)
    if limit is None or limit < 1:
        limit = default_limit
    return min(limit, MAX_LIMIT), max(offset or 0, 0)


def request_payload() -> dict:
    """JSON body, or the form fields of a multipart request."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            raise ValidationError("Invalid JSON payload")
        return payload
    return request.form.to_dict()


def flag_arg(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes")
