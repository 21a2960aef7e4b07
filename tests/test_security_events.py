"""Tests for the security event recorder."""

import json
import logging
from datetime import timezone

import pytest

from authcore.core.exceptions import StorageError
from authcore.models.enums import SecurityEventType, Severity
from authcore.models.security_event import SecurityEvent
from authcore.models.session import UserSession

from helpers import PASSWORD


def test_record_applies_default_severity(container):
    recorder = container.recorder

    low = recorder.record(1, SecurityEventType.LOGIN_SUCCESS)
    medium = recorder.record(1, SecurityEventType.LOGIN_FAILED)
    high = recorder.record(1, SecurityEventType.ACCOUNT_SUSPENDED)
    forced = recorder.record(1, SecurityEventType.LOGIN_SUCCESS, severity=Severity.CRITICAL)

    assert [e.severity for e in (low, medium, high, forced)] == ["low", "medium", "high", "critical"]


def test_record_stores_details_and_truncates_user_agent(container):
    event = container.recorder.record(
        7,
        SecurityEventType.LOGOUT,
        ip_address="10.0.0.1",
        user_agent="x" * 600,
        details={"all_devices": True},
    )

    assert event.event_type == "logout"
    assert len(event.user_agent) == 500
    assert json.loads(event.details_json) == {"all_devices": True}


def test_storage_failure_is_logged_not_raised(container, monkeypatch, caplog):
    def broken(**kwargs):
        raise StorageError("disk full")

    monkeypatch.setattr(container.events, "create", broken)

    with caplog.at_level(logging.ERROR, logger="authcore.security_events"):
        result = container.recorder.record(3, SecurityEventType.LOGIN_FAILED)

    assert result is None
    assert "login_failed" in caplog.text
    assert caplog.records[0].exc_info is not None


def test_listing_events_newest_first(container):
    for event_type in (SecurityEventType.LOGIN_SUCCESS, SecurityEventType.LOGOUT):
        container.recorder.record(5, event_type)

    page = container.events.list_for_user(5)
    assert [e.event_type for e in page.items] == ["logout", "login_success"]
    assert container.events.list_for_user(5, event_type="logout").total == 1


def test_listing_events_within_a_time_window(container, clock):
    container.recorder.record(5, SecurityEventType.LOGIN_SUCCESS)
    clock.advance(hours=1)
    middle = clock.now()
    container.recorder.record(5, SecurityEventType.LOGOUT)
    clock.advance(hours=1)
    container.recorder.record(5, SecurityEventType.LOGIN_FAILED)

    recent = container.recorder.list_for_user(5, since=middle)
    assert [e.event_type for e in recent.items] == ["login_failed", "logout"]
    earlier = container.recorder.list_for_user(5, until=middle)
    assert [e.event_type for e in earlier.items] == ["login_success"]
    window = container.recorder.list_for_user(
        5, event_type=SecurityEventType.LOGOUT, since=middle.replace(tzinfo=timezone.utc)
    )
    assert window.total == 1
    assert window.items[0].created_at == middle


@pytest.fixture
def broken_recorder(container, monkeypatch):
    def broken(**kwargs):
        raise StorageError("disk full")

    monkeypatch.setattr(container.events, "create", broken)
    return container


def test_signin_survives_event_storage_failure(broken_recorder, auth, signed_up):
    result = auth.signin("a@x.com", PASSWORD)

    session = broken_recorder.sessions.find_active_by_token(result["refresh_token"])
    assert session is not None
    assert session.user_id == signed_up["user"]["id"]


def test_signout_survives_event_storage_failure(broken_recorder, auth, signed_up):
    assert auth.signout(signed_up["refresh_token"]) is True

    assert broken_recorder.sessions.find_active_by_token(signed_up["refresh_token"]) is None


def test_password_change_survives_event_storage_failure(broken_recorder, auth, store, signed_up):
    user_id = signed_up["user"]["id"]

    assert broken_recorder.accounts.change_password(user_id, PASSWORD, "N3wPassword") is True

    assert store.find_many(UserSession, user_id=user_id, is_active=True) == []
    assert auth.signin("a@x.com", "N3wPassword")["user"]["id"] == user_id
    assert store.find_many(SecurityEvent, user_id=user_id, event_type="password_changed") == []
