""" Repository module for the persistence layer. """

from src.infrastructure.persistence.repositories.base import BaseRepository
from src.infrastructure.persistence.repositories.permission_repo import PermissionRepository
from src.infrastructure.persistence.repositories.policy_repo import PolicyRepository
from src.infrastructure.persistence.repositories.role_repo import RoleRepository
from src.infrastructure.persistence.repositories.user_repo import UserRepository

__all__ = [
    "BaseRepository",
    "PermissionRepository",
    "PolicyRepository",
    "RoleRepository",
    "UserRepository",
]
