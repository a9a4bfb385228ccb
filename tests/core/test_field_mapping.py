"""Field Mapping — verifies upstream JSON → upstream-owned fields.

Tests:
    - Nested status/type/client objects flattened
    - Missing title defaults; timestamps parsed as aware UTC
    - Records without an integer id rejected
    - diff reports only real changes (naive vs aware equal instants are unchanged)
"""

from datetime import datetime, timezone

import pytest

from docketwatch.core.field_mapping import (
    UPSTREAM_FIELDS, UNTITLED_MATTER, RecordMappingError,
    diff_upstream_fields, map_upstream_matter,
)


def _raw(**overrides):
    raw = {
        "id": 101,
        "title": "Silva - I-130",
        "description": "Spousal petition",
        "matter_type": {"id": 4, "name": "Family"},
        "status": {"id": 9, "name": "Drafting"},
        "client_id": 55,
        "client": {"first_name": "Ana", "last_name": "Silva"},
        "attorney_id": 3,
        "archived": False,
        "created_at": "2026-01-05T10:00:00Z",
        "updated_at": "2026-10-01T08:30:00+00:00",
    }
    raw.update(overrides)
    return raw


def test_maps_every_upstream_field():
    mapped = map_upstream_matter(_raw())
    assert set(mapped) == {"docketwise_id", *UPSTREAM_FIELDS}
    assert mapped["docketwise_id"] == 101
    assert mapped["matter_type"] == "Family"
    assert mapped["matter_type_id"] == 4
    assert mapped["status"] == "Drafting"
    assert mapped["status_id"] == 9
    assert mapped["client_name"] == "Ana Silva"
    assert mapped["docketwise_updated_at"] == datetime(2026, 10, 1, 8, 30, tzinfo=timezone.utc)


def test_never_returns_override_fields():
    mapped = map_upstream_matter(_raw(title_override="nope", estimated_deadline="2026-12-01"))
    assert "title_override" not in mapped
    assert "estimated_deadline" not in mapped


def test_missing_title_defaults():
    assert map_upstream_matter(_raw(title=None))["title"] == UNTITLED_MATTER


def test_matter_status_preferred_over_plain_status():
    mapped = map_upstream_matter(_raw(matter_status={"name": "RFE Received"}, status="Open"))
    assert mapped["status"] == "RFE Received"


def test_plain_string_status_accepted():
    assert map_upstream_matter(_raw(status="Pending"))["status"] == "Pending"


def test_company_client_name():
    mapped = map_upstream_matter(_raw(client={"company_name": "Acme LLC"}))
    assert mapped["client_name"] == "Acme LLC"


@pytest.mark.parametrize("bad", [{"title": "x"}, {"id": "abc"}, {"id": True}, "not-a-dict"])
def test_record_without_integer_id_rejected(bad):
    with pytest.raises(RecordMappingError):
        map_upstream_matter(bad)


def test_bad_timestamp_rejected():
    with pytest.raises(RecordMappingError, match="updated_at"):
        map_upstream_matter(_raw(updated_at="yesterday"))


def test_diff_reports_only_changed_fields():
    current = map_upstream_matter(_raw())
    incoming = map_upstream_matter(_raw(status={"id": 10, "name": "Filed"}))
    assert diff_upstream_fields(current, incoming) == {"status": "Filed", "status_id": 10}


def test_diff_treats_naive_and_aware_same_instant_as_equal():
    incoming = map_upstream_matter(_raw())
    current = dict(incoming)
    current["docketwise_updated_at"] = incoming["docketwise_updated_at"].replace(tzinfo=None)
    assert diff_upstream_fields(current, incoming) == {}
