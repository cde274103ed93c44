"""Role-based permissions for DesiCargo.

Each role carries a fixed set of default permissions. The effective set is
embedded in the access token so most checks never touch the database.

Permission naming: `<resource>.<action>`
  Resources: branches, vehicles, bookings, ogpl, customers, users,
             reports, financials
  Actions:   read, write, delete
"""

from __future__ import annotations


ALL_PERMISSIONS: set[str] = {
    "branches.read",
    "branches.write",
    "branches.delete",

    "vehicles.read",
    "vehicles.write",
    "vehicles.delete",

    "bookings.read",
    "bookings.write",
    "bookings.delete",

    # Manifest loading / unloading
    "ogpl.read",
    "ogpl.write",

    # Parties and articles
    "customers.read",
    "customers.write",

    "users.read",
    "users.write",

    "reports.read",
    "financials.read",
}


ROLE_DEFAULTS: dict[str, set[str]] = {
    "admin": ALL_PERMISSIONS.copy(),

    "branch_manager": {
        "branches.read",
        "vehicles.read", "vehicles.write", "vehicles.delete",
        "bookings.read", "bookings.write", "bookings.delete",
        "ogpl.read", "ogpl.write",
        "customers.read", "customers.write",
        "users.read",
        "reports.read",
    },

    "staff": {
        "branches.read",
        "vehicles.read",
        "bookings.read", "bookings.write",
        "ogpl.read", "ogpl.write",
        "customers.read", "customers.write",
    },

    "accountant": {
        "branches.read",
        "bookings.read",
        "customers.read",
        "reports.read",
        "financials.read",
    },
}


def resolve_permissions(role: str) -> list[str]:
    """Effective permissions for a role, sorted for stable token claims."""
    return sorted(ROLE_DEFAULTS.get(role, set()))


def has_permission(user_permissions: list[str] | set[str], required: str) -> bool:
    return required in user_permissions
