from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Dict, List, Optional

from flask import jsonify, request

from ..core.exceptions import NotFoundError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")
    return payload


def optional_str(value: Any) -> Optional[str]:
    """JSON scalar as text; null stays None."""
    return None if value is None else str(value)


def json_list(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = payload.get(key)
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise ValidationError(f"{key} must be a list of objects")
    return items


def error_response(message: str, status: int):
    return jsonify({"ok": False, "message": message}), status


def json_errors(view):
    """Translate domain failures into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return error_response(str(e), 400)
        except NotFoundError as e:
            return error_response(str(e), 404)
        except PersistenceError as e:
            logger.exception("Store failure in %s", request.path)
            return error_response(str(e), 500)

    return wrapper
