"""Route access policy for the dashboard's page routes.

One policy, no bypasses:

  public               /track, /track/*, /signin, /reset-password, /unauthorized
  any signed-in user   /, /dashboard/*  (and any path not listed here)
  admin                /admin/*
  admin, accountant    /finance/*

A caller without an identity is sent to /signin; a signed-in caller whose
role is not in the route's allow-list is sent to /unauthorized.
"""

SIGNIN_PATH = "/signin"
UNAUTHORIZED_PATH = "/unauthorized"

PUBLIC_PATHS: tuple[str, ...] = ("/track", "/signin", "/reset-password", "/unauthorized")

# Most specific prefix first; None means any authenticated identity
ROUTE_ROLES: list[tuple[str, tuple[str, ...] | None]] = [
    ("/admin", ("admin",)),
    ("/finance", ("admin", "accountant")),
    ("/dashboard", None),
    ("/", None),
]


def _matches(path: str, prefix: str) -> bool:
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def _normalise(path: str) -> str:
    path = "/" + path.split("?", 1)[0].strip("/")
    return path


def is_public(path: str) -> bool:
    path = _normalise(path)
    return any(_matches(path, prefix) for prefix in PUBLIC_PATHS)


def allowed_roles_for(path: str) -> tuple[str, ...] | None:
    path = _normalise(path)
    for prefix, roles in ROUTE_ROLES:
        if _matches(path, prefix):
            return roles
    return None


def check(role: str | None, allowed_roles=None) -> str | None:
    """Return the redirect target, or None when access is granted.

    ``role`` is None when there is no resolved user.
    """
    if role is None:
        return SIGNIN_PATH
    if allowed_roles and role not in allowed_roles:
        return UNAUTHORIZED_PATH
    return None


def decide(path: str, role: str | None) -> tuple[bool, str | None]:
    """(allowed, redirect) for a page path and the caller's role."""
    if is_public(path):
        return True, None
    redirect = check(role, allowed_roles_for(path))
    return redirect is None, redirect
