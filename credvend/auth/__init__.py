"""AWS authentication and role management.

This module provides role assumption for credential chains and the cached
session invalidation used when authentication expires.
"""

from .role_manager import RoleManager
from .session_cache import delete_local_session

__all__ = ["RoleManager", "delete_local_session"]
