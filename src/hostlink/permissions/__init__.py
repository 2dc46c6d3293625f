"""Capability permission checks for hostlink."""

from hostlink.permissions.manager import PermissionManager, StaticPermissionManager

__all__ = ["PermissionManager", "StaticPermissionManager"]
