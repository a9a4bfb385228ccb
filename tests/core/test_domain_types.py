"""Domain Types — verifies enum wire values and value-object behaviour."""

from docketwatch.core.domain_types import (
    ActivityStatus, Channel, NotificationCategory, RecipientId, RecipientPreference,
    UpstreamPage,
)


def test_channel_values_are_persisted_strings():
    assert Channel.EMAIL.value == "email"
    assert Channel.IN_APP.value == "in-app"


def test_activity_status_has_three_states():
    assert {s.value for s in ActivityStatus} == {"active", "stale", "archived"}


def test_notification_category_wire_values():
    assert NotificationCategory.STATUS_CHANGE.value == "statusChange"


def test_email_channel_requires_an_address():
    pref = RecipientPreference(
        recipient_id=RecipientId("r1"), email=None, email_enabled=True, in_app_enabled=True,
    )
    assert pref.enabled_channels() == [Channel.IN_APP]


def test_disabled_channels_skipped():
    pref = RecipientPreference(
        recipient_id=RecipientId("r1"), email="r1@firm.test",
        email_enabled=True, in_app_enabled=False,
    )
    assert pref.enabled_channels() == [Channel.EMAIL]


def test_failed_page_has_error_and_no_records():
    page = UpstreamPage(page=3, error="timeout")
    assert page.failed
    assert page.records == []
    assert not UpstreamPage(page=1).failed
