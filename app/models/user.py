"""User role enum for RBAC.

User management is owned by the CRM core. This module retains only the
UserRole enum used by the RBAC dependency.
"""

import enum


class UserRole(enum.StrEnum):
    """User roles for RBAC."""

    super_admin = "super_admin"
    admin = "admin"
    agent = "agent"
    user = "user"
