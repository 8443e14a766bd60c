"""Turn marketplace API error bodies into one-line messages for Locust.

Shapes the API produces:

- Pydantic request validation (422): {"detail": [{"loc": [...], "msg": "..."}]}
- Auth dependencies (401/403): {"detail": "msg"}
- Business rules (400/403/409): {"error": "msg"}, plus "reconciliation": true
  when a captured payment was parked for manual follow-up
- Field validation and missing records (400/404): {"error": {"field": ["msg"]}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

_MAX_LEN = 300


def _format_validation(errors: list) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", []) if p != "body")
        parts.append(f"{loc}: {err.get('msg', err)}" if loc else str(err.get("msg", err)))
    return " | ".join(parts)


def _format_field_errors(errors: dict) -> str:
    return " | ".join(
        f"{field}: {', '.join(map(str, messages)) if isinstance(messages, list) else messages}"
        for field, messages in errors.items()
    )


def extract_error_detail(response: Response) -> str:
    """Best-effort human-readable message for a failed API call."""
    try:
        body = response.json()
    except ValueError:
        return (getattr(response, "text", "") or "")[:_MAX_LEN] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:_MAX_LEN]

    detail = body.get("detail")
    if isinstance(detail, list):
        return _format_validation(detail)
    if isinstance(detail, str):
        return detail

    error = body.get("error")
    if isinstance(error, dict):
        return _format_field_errors(error)
    if error is not None:
        suffix = " (reconciliation case opened)" if body.get("reconciliation") else ""
        return f"{error}{suffix}"

    return str(body)[:_MAX_LEN]
