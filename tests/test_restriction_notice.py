"""
Restriction notice tests - one-shot, debounced "Access Restricted" toast.
"""

import pytest

from jobportal.services.restriction_notice import (
    ACCESS_RESTRICTED,
    RestrictionNotifier,
    has_pending_info,
    strip_info_param,
)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier(clock):
    return RestrictionNotifier(window_seconds=1.0, clock=clock)


def test_strip_info_param_keeps_other_parameters():
    assert strip_info_param("/employer/dashboard?info=approval_pending") == "/employer/dashboard"
    assert strip_info_param("/employer/dashboard?tab=jobs&info=approval_pending&page=2") == \
        "/employer/dashboard?tab=jobs&page=2"
    assert strip_info_param("/employer/dashboard") == "/employer/dashboard"


def test_has_pending_info():
    assert has_pending_info("/candidate/dashboard?info=approval_pending")
    assert not has_pending_info("/candidate/dashboard?info=other")
    assert not has_pending_info("/candidate/dashboard")


def test_first_notice_is_shown(notifier):
    notification, url = notifier.consume("7", "/employer/dashboard?info=approval_pending")
    assert notification == ACCESS_RESTRICTED
    assert notification.title == "Access Restricted"
    assert url == "/employer/dashboard"


def test_duplicate_within_window_is_suppressed(notifier, clock):
    notifier.consume("7", "/employer/dashboard?info=approval_pending")
    clock.now += 0.3
    notification, url = notifier.consume("7", "/employer/dashboard?info=approval_pending")
    assert notification is None
    assert url == "/employer/dashboard"


def test_shown_again_after_window(notifier, clock):
    notifier.consume("7", "/employer/dashboard?info=approval_pending")
    clock.now += 1.5
    notification, _ = notifier.consume("7", "/employer/dashboard?info=approval_pending")
    assert notification == ACCESS_RESTRICTED


def test_debounce_is_per_user(notifier):
    notifier.consume("7", "/employer/dashboard?info=approval_pending")
    notification, _ = notifier.consume("8", "/employer/dashboard?info=approval_pending")
    assert notification == ACCESS_RESTRICTED


def test_no_notice_without_info_param(notifier):
    notification, url = notifier.consume("7", "/employer/dashboard?tab=1")
    assert notification is None
    assert url == "/employer/dashboard?tab=1"


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        RestrictionNotifier(window_seconds=0)


def test_other_info_values_are_left_alone():
    url = "/employer/dashboard?info=profile_saved&q=a%20b"
    assert strip_info_param(url) == url


def test_strip_keeps_encoding_of_other_parameters():
    url = "/employer/dashboard?q=a%20b&info=approval_pending&next=%2Femployer%2Fjobs#top"
    assert strip_info_param(url) == "/employer/dashboard?q=a%20b&next=%2Femployer%2Fjobs#top"


def test_consume_passes_unrelated_info_through(notifier):
    notification, url = notifier.consume("7", "/candidate/dashboard?info=profile_saved")
    assert notification is None
    assert url == "/candidate/dashboard?info=profile_saved"
