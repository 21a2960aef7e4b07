"""Tests for TOTP enrolment."""

import pyotp
import pytest

from authcore.core.clock import to_timestamp
from authcore.core.exceptions import (
    InvalidPassword,
    InvalidTwoFactorCode,
    TwoFactorAlreadyEnabled,
    TwoFactorNotConfigured,
    UserNotFound,
)
from authcore.models.security_event import SecurityEvent

from helpers import PASSWORD


@pytest.fixture
def two_factor(container):
    return container.two_factor


def current_code(secret, clock):
    return pyotp.TOTP(secret).at(to_timestamp(clock.now()))


def test_setup_then_confirm(two_factor, container, store, clock, signed_up):
    user_id = signed_up["user"]["id"]

    setup = two_factor.begin_setup(user_id)
    assert setup["provisioning_uri"].startswith("otpauth://totp/")
    assert f"secret={setup['secret']}" in setup["provisioning_uri"]
    assert container.users.find_by_id(user_id).two_factor_enabled is False

    assert two_factor.confirm_setup(user_id, current_code(setup["secret"], clock)) is True
    assert container.users.find_by_id(user_id).two_factor_enabled is True
    assert store.find_one(SecurityEvent, user_id=user_id, event_type="2fa_enabled") is not None

    with pytest.raises(TwoFactorAlreadyEnabled):
        two_factor.begin_setup(user_id)


def test_confirm_requires_setup_and_valid_code(two_factor, signed_up):
    user_id = signed_up["user"]["id"]

    with pytest.raises(TwoFactorNotConfigured):
        two_factor.confirm_setup(user_id, "123456")

    two_factor.begin_setup(user_id)
    with pytest.raises(InvalidTwoFactorCode):
        two_factor.confirm_setup(user_id, "abcdef")


def test_codes_from_adjacent_step_are_accepted(two_factor, container, clock, signed_up):
    user_id = signed_up["user"]["id"]
    secret = two_factor.begin_setup(user_id)["secret"]
    earlier = current_code(secret, clock)

    clock.advance(seconds=30)
    assert two_factor.verify(container.users.find_by_id(user_id), earlier) is True

    clock.advance(seconds=60)
    assert two_factor.verify(container.users.find_by_id(user_id), earlier) is False


def test_disable(two_factor, container, store, clock, signed_up):
    user_id = signed_up["user"]["id"]
    secret = two_factor.begin_setup(user_id)["secret"]
    two_factor.confirm_setup(user_id, current_code(secret, clock))

    with pytest.raises(InvalidPassword):
        two_factor.disable(user_id, "wrong")
    assert two_factor.disable(user_id, PASSWORD) is True

    user = container.users.find_by_id(user_id)
    assert user.two_factor_enabled is False
    assert user.two_factor_secret is None
    event = store.find_one(SecurityEvent, user_id=user_id, event_type="2fa_disabled")
    assert event.severity == "medium"

    with pytest.raises(TwoFactorNotConfigured):
        two_factor.disable(user_id, PASSWORD)


def test_unknown_user(two_factor):
    with pytest.raises(UserNotFound):
        two_factor.begin_setup(404)
