"""Request payload validation helpers with consistent 400 semantics."""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional
from flask import abort, request


def validate_choice(value: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Return value if it is one of allowed, else abort 400."""
    if value not in allowed:
        abort(400, description=f"{field_name} invalid")
    return value


def require_fields(data: Mapping[str, Any], *names: str):
    missing = [n for n in names if data.get(n) in (None, '')]
    if missing:
        abort(400, description=f"{', '.join(missing)} required")


def parse_date(value: Any, field_name: str) -> Optional[date]:
    """Accept ISO dates (YYYY-MM-DD) or ISO datetimes; None/'' pass through."""
    if value in (None, ''):
        return None
    if not isinstance(value, str):
        abort(400, description=f"{field_name} must be an ISO date")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        abort(400, description=f"{field_name} must be an ISO date")


def parse_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if value in (None, ''):
        return None
    if not isinstance(value, str):
        abort(400, description=f"{field_name} must be an ISO datetime")
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        abort(400, description=f"{field_name} must be an ISO datetime")


def parse_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description=f"{field_name} must be int")


def parse_str(value: Any, field_name: str, required: bool = False, strip: bool = True) -> Optional[str]:
    """Text fields must arrive as JSON strings; None/'' pass through unless required."""
    if value is not None and not isinstance(value, str):
        abort(400, description=f"{field_name} must be a string")
    if value is not None and strip:
        value = value.strip()
    if not value:
        if required:
            abort(400, description=f"{field_name} required")
        return None
    return value


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description='JSON object expected')
    return data


__all__ = ['validate_choice', 'require_fields', 'parse_date', 'parse_datetime', 'parse_int', 'parse_str', 'json_body']
