"""
Role-gated navigation.

Mirrors the portal's page guards: which role lands where after sign-in, and
what a given page path resolves to for a given (possibly anonymous) user.
"""
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .security import UserRole

LOGIN_ROUTE = "/login"

LANDING_ROUTES = {
    UserRole.PATIENT: "/patient/dashboard",
    UserRole.DOCTOR: "/doctor/dashboard",
    UserRole.ADMIN: "/admin/dashboard",
}

# Pages that signed-in users are bounced away from
PUBLIC_ONLY_PAGES = ("/login", "/register", "/forgot-password")

# Pages open to everyone regardless of session
OPEN_PAGES = ("/reset-password",)

PROTECTED_PAGES = {
    UserRole.PATIENT: (
        "dashboard", "profile", "book-appointment", "appointments",
        "documents", "consultation/:id", "prescriptions",
        "pre-consultation/:id", "referrals", "messages",
    ),
    UserRole.DOCTOR: (
        "dashboard", "profile", "appointments", "consultation/:id",
        "patients", "schedule", "prescriptions", "referral/:id",
        "patient-chart/:id", "messages", "ai-notes/:id",
    ),
    UserRole.ADMIN: (
        "dashboard", "users", "appointments",
    ),
}


def _compile(role: UserRole, page: str) -> "re.Pattern[str]":
    body = re.escape(page).replace(re.escape(":id"), r"[^/]+")
    return re.compile(rf"^/{role.value}/{body}/?$")


_PROTECTED_PATTERNS = [
    (pattern, role)
    for role, pages in PROTECTED_PAGES.items()
    for pattern in (_compile(role, page) for page in pages)
]


@dataclass(frozen=True)
class RouteDecision:
    path: str
    allowed: bool
    redirect_to: Optional[str] = None


def landing_route(role: Optional[UserRole]) -> str:
    """Dashboard a role is sent to after sign-in."""
    if role is None:
        return LOGIN_ROUTE
    try:
        return LANDING_ROUTES[UserRole(role)]
    except (KeyError, ValueError):
        return LOGIN_ROUTE


def required_roles(path: str) -> Optional[Sequence[UserRole]]:
    for pattern, role in _PROTECTED_PATTERNS:
        if pattern.match(path):
            return (role,)
    return None


def _step(path: str, role: Optional[UserRole]) -> Optional[str]:
    """One guard evaluation; returns the redirect target or None if the page renders."""
    if path in OPEN_PAGES:
        return None
    if path in PUBLIC_ONLY_PAGES:
        return landing_route(role) if role is not None else None

    roles = required_roles(path)
    if roles is None:
        # "/" and unknown pages fall through to the login page
        return LOGIN_ROUTE
    if role is None:
        return LOGIN_ROUTE
    if role not in roles:
        return landing_route(role)
    return None


def resolve_route(path: str, role: Optional[UserRole] = None) -> RouteDecision:
    """Follow guard redirects until a page renders."""
    normalized = path.split("?", 1)[0] or "/"
    current = normalized
    seen = set()
    while current not in seen:
        seen.add(current)
        target = _step(current, role)
        if target is None:
            if current == normalized:
                return RouteDecision(path=normalized, allowed=True)
            return RouteDecision(path=normalized, allowed=False, redirect_to=current)
        current = target
    # A redirect cycle only happens for unknown roles; send them to sign in
    return RouteDecision(path=normalized, allowed=False, redirect_to=LOGIN_ROUTE)
