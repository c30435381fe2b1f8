"""
One-shot "Access Restricted" notice shown after a gate redirect.

The gate redirects to the landing page with ?info=approval_pending.
The page asks for the notice once it renders; a re-render can ask twice
in quick succession, so notices are debounced per user. The returned URL
has info=approval_pending stripped so a reload does not re-trigger.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import parse_qsl, unquote_plus, urlsplit, urlunsplit

import structlog

from jobportal.core.config import get_settings
from jobportal.services.approval_gate import PENDING_INFO_PARAM, PENDING_INFO_VALUE

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    kind: str
    title: str
    description: str


ACCESS_RESTRICTED = Notification(
    kind="destructive",
    title="Access Restricted",
    description=(
        "Your profile is pending approval. You cannot access this page "
        "until an administrator approves your account."
    ),
)


def strip_info_param(url: str) -> str:
    """
    Remove info=approval_pending from the URL. Other parameters are kept
    in order and byte for byte; URLs with any other info value are
    returned unchanged.
    """
    if not has_pending_info(url):
        return url
    parts = urlsplit(url)
    kept = [
        pair for pair in parts.query.split("&")
        if pair and unquote_plus(pair.split("=", 1)[0]) != PENDING_INFO_PARAM
    ]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "&".join(kept), parts.fragment))


def has_pending_info(url: str) -> bool:
    query = parse_qsl(urlsplit(url).query, keep_blank_values=True)
    return (PENDING_INFO_PARAM, PENDING_INFO_VALUE) in query


class RestrictionNotifier:
    """Debounces restriction notices per user key."""

    def __init__(self, window_seconds: float = None, clock: Callable[[], float] = time.monotonic):
        if window_seconds is None:
            window_seconds = get_settings().restriction_notice_debounce_seconds
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_shown: Dict[str, float] = {}
        self._lock = threading.Lock()

    def consume(self, user_key: str, url: str) -> Tuple[Optional[Notification], str]:
        """
        Returns (notification or None, url without the info parameter).
        """
        clean_url = strip_info_param(url)
        if not has_pending_info(url):
            return None, clean_url

        now = self._clock()
        with self._lock:
            last = self._last_shown.get(user_key)
            if last is not None and now - last < self.window_seconds:
                log.debug("restriction_notice_debounced", user=user_key)
                return None, clean_url
            self._last_shown[user_key] = now
            self._prune(now)

        log.info("restriction_notice_shown", user=user_key)
        return ACCESS_RESTRICTED, clean_url

    def _prune(self, now: float) -> None:
        expired = [k for k, t in self._last_shown.items() if now - t >= self.window_seconds]
        for key in expired:
            del self._last_shown[key]


_notifier: Optional[RestrictionNotifier] = None


def get_restriction_notifier() -> RestrictionNotifier:
    global _notifier
    if _notifier is None:
        _notifier = RestrictionNotifier()
    return _notifier
