"""
Approval Gate - route restriction for accounts awaiting MIS approval.

Each portal area has an ordered route policy of (pattern, effect) rules:

    allow    matches the exact path or any sub-path ("/a" covers "/a/x", not "/ab")
    restrict matches any path starting with the pattern

Allow rules are evaluated before restrict rules, so a broad restricted
prefix never shadows a page that must stay reachable (the dashboard the
user is redirected to, the profile they need to complete).
Paths that match nothing are allowed.

Only non-approved subjects are gated. The gate is a pure function over
static data: no I/O, no shared mutable state, never raises.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from jobportal.schemas.schemas import ApprovalStatus, UserRole


PENDING_INFO_PARAM = "info"
PENDING_INFO_VALUE = "approval_pending"


class RuleEffect(str, Enum):
    allow = "allow"
    restrict = "restrict"


@dataclass(frozen=True)
class RouteRule:
    pattern: str
    effect: RuleEffect

    def matches(self, pathname: str) -> bool:
        if self.effect is RuleEffect.allow:
            return pathname == self.pattern or pathname.startswith(self.pattern + "/")
        return pathname.startswith(self.pattern)


@dataclass(frozen=True)
class RoutePolicy:
    """Route rules for one portal area plus the page restricted users land on."""
    name: str
    landing_path: str
    rules: Tuple[RouteRule, ...]

    def allow_rules(self) -> Tuple[RouteRule, ...]:
        return tuple(r for r in self.rules if r.effect is RuleEffect.allow)

    def restrict_rules(self) -> Tuple[RouteRule, ...]:
        return tuple(r for r in self.rules if r.effect is RuleEffect.restrict)

    @property
    def pending_redirect(self) -> str:
        return f"{self.landing_path}?{PENDING_INFO_PARAM}={PENDING_INFO_VALUE}"


def _rules(allowed, restricted) -> Tuple[RouteRule, ...]:
    return tuple(
        [RouteRule(p, RuleEffect.allow) for p in allowed]
        + [RouteRule(p, RuleEffect.restrict) for p in restricted]
    )


EMPLOYER_POLICY = RoutePolicy(
    name="employer",
    landing_path="/employer/dashboard",
    rules=_rules(
        allowed=[
            "/employer/dashboard",
            "/employer/profile",
            "/employer/company",
            "/employer/settings",
        ],
        restricted=[
            "/employer/admins",
            "/employer/jobs",
            "/employer/applications",
        ],
    ),
)

CANDIDATE_POLICY = RoutePolicy(
    name="candidate",
    landing_path="/candidate/dashboard",
    rules=_rules(
        allowed=[
            "/candidate/dashboard",
            "/candidate/profile",
            "/candidate/settings",
        ],
        restricted=[
            "/candidate/jobs",
            "/candidate/applications",
            "/candidate/resumes",
        ],
    ),
)

POLICIES_BY_ROLE = {
    UserRole.employer: EMPLOYER_POLICY,
    UserRole.candidate: CANDIDATE_POLICY,
}


def is_restricted(pathname: str, approval_status, policy: RoutePolicy = EMPLOYER_POLICY) -> bool:
    """
    True when a non-approved subject must be redirected away from pathname.

    approval_status may be an ApprovalStatus, its string value, or None
    (no status record, treated as pending).
    """
    if ApprovalStatus.classify(approval_status) is ApprovalStatus.approved:
        return False

    if any(rule.matches(pathname) for rule in policy.allow_rules()):
        return False

    return any(rule.matches(pathname) for rule in policy.restrict_rules())


@dataclass(frozen=True)
class NavigationDecision:
    path: str
    approval_status: ApprovalStatus
    restricted: bool
    redirect_to: Optional[str] = None


def policy_for_role(role) -> Optional[RoutePolicy]:
    try:
        return POLICIES_BY_ROLE.get(UserRole(role))
    except ValueError:
        return None


def check_navigation(pathname: str, approval_status, role) -> NavigationDecision:
    """
    Decide what the navigation layer should do for a route change.

    Roles without a route policy (MIS) are never restricted.
    """
    status = ApprovalStatus.classify(approval_status)
    policy = policy_for_role(role)

    if policy is None or not is_restricted(pathname, status, policy):
        return NavigationDecision(path=pathname, approval_status=status, restricted=False)

    return NavigationDecision(
        path=pathname,
        approval_status=status,
        restricted=True,
        redirect_to=policy.pending_redirect,
    )
