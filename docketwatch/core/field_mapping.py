"""Field Mapping — upstream Docketwise matter JSON → upstream-owned Matter fields (pure).

Invariants:
    - map_upstream_matter() NEVER returns override fields (title_override, estimated_deadline, ...)
    - Every key in UPSTREAM_FIELDS is present in the mapped dict (None when absent upstream)
    - diff_upstream_fields() only reports keys in UPSTREAM_FIELDS whose values really changed
    - A record without an integer id raises RecordMappingError (caller counts it as failed)

Design Decisions:
    - Datetimes compared as aware UTC: SQLite round-trips strip tzinfo, a naive/aware
      mismatch must not register as a change (idempotent reconciliation)
    - Status/type names read from the nested objects Docketwise embeds; reference-data
      tables (statuses, matter types) are out of scope
"""

from datetime import datetime
from typing import Any

from docketwatch.core.timestamps import as_utc

UNTITLED_MATTER = "Untitled Matter"

UPSTREAM_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "matter_type",
    "matter_type_id",
    "status",
    "status_id",
    "client_id",
    "client_name",
    "attorney_id",
    "archived",
    "opened_at",
    "closed_at",
    "docketwise_created_at",
    "docketwise_updated_at",
)


class RecordMappingError(ValueError):
    """One upstream record could not be mapped."""


def parse_timestamp(value: Any, field_name: str) -> datetime | None:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise RecordMappingError(f"{field_name}: expected ISO-8601 string")
    try:
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError as e:
        raise RecordMappingError(f"{field_name}: {e}") from e


def _optional_int(value: Any, field_name: str) -> int | None:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise RecordMappingError(f"{field_name}: expected integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise RecordMappingError(f"{field_name}: expected integer") from e


def _nested(raw: dict, key: str) -> dict:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def _status(raw: dict) -> tuple[str | None, int | None]:
    status_obj = _nested(raw, "status")
    stage = _nested(raw, "workflow_stage")
    matter_status = _nested(raw, "matter_status")
    status_id = (
        raw.get("matter_status_id")
        or raw.get("workflow_stage_id")
        or status_obj.get("id")
    )
    name = (
        matter_status.get("name")
        or stage.get("name")
        or status_obj.get("name")
        or (raw["status"] if isinstance(raw.get("status"), str) else None)
    )
    return name, _optional_int(status_id, "status_id")


def _client_name(raw: dict) -> str | None:
    if raw.get("client_name"):
        return str(raw["client_name"])
    client = _nested(raw, "client")
    if not client:
        return None
    full = f"{client.get('first_name') or ''} {client.get('last_name') or ''}".strip()
    return client.get("company_name") or full or None


def map_upstream_matter(raw: Any) -> dict[str, Any]:
    """Map one upstream record. Returns {"docketwise_id": int, **UPSTREAM_FIELDS}."""
    if not isinstance(raw, dict):
        raise RecordMappingError("record is not an object")
    docketwise_id = raw.get("id")
    if isinstance(docketwise_id, bool) or not isinstance(docketwise_id, int):
        raise RecordMappingError("record has no integer id")

    matter_type_obj = _nested(raw, "matter_type")
    status_name, status_id = _status(raw)
    return {
        "docketwise_id": docketwise_id,
        "title": raw.get("title") or UNTITLED_MATTER,
        "description": raw.get("description"),
        "matter_type": matter_type_obj.get("name") or raw.get("type"),
        "matter_type_id": _optional_int(
            raw.get("matter_type_id") or matter_type_obj.get("id"), "matter_type_id",
        ),
        "status": status_name,
        "status_id": status_id,
        "client_id": _optional_int(raw.get("client_id"), "client_id"),
        "client_name": _client_name(raw),
        "attorney_id": _optional_int(raw.get("attorney_id"), "attorney_id"),
        "archived": bool(raw.get("archived", False)),
        "opened_at": parse_timestamp(raw.get("opened_at"), "opened_at"),
        "closed_at": parse_timestamp(raw.get("closed_at"), "closed_at"),
        "docketwise_created_at": parse_timestamp(raw.get("created_at"), "created_at"),
        "docketwise_updated_at": parse_timestamp(raw.get("updated_at"), "updated_at"),
    }


def _normalize(value: Any) -> Any:
    return as_utc(value) if isinstance(value, datetime) else value


def diff_upstream_fields(current: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Changed upstream-owned fields only: {field: new_value}."""
    return {
        key: incoming[key]
        for key in UPSTREAM_FIELDS
        if key in incoming and _normalize(current.get(key)) != _normalize(incoming[key])
    }
