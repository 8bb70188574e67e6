import logging
from collections.abc import Sequence

from sqlalchemy.exc import IntegrityError

from src.application.services.authorization_service import AuthorizationService
from src.domain.exceptions import (
    ConflictException,
    ResourceNotFoundException,
    SystemRoleProtectedException,
    ValidationException,
)
from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.repositories import PermissionRepository, RoleRepository

logger = logging.getLogger(__name__)


class RoleManagementService:
    """
    Custom role CRUD for administrators.

    System roles belong to the RBAC seed: they can be listed here but never
    updated or deleted.
    """

    def __init__(
        self,
        role_repo: RoleRepository,
        permission_repo: PermissionRepository,
        authz_service: AuthorizationService | None = None,
    ):
        self.role_repo = role_repo
        self.permission_repo = permission_repo
        self.authz_service = authz_service

    async def _validate_permission_ids(self, permission_ids: Sequence[str]) -> list[str]:
        unique_ids = list(dict.fromkeys(permission_ids))
        found = {p.id for p in await self.permission_repo.get_by_ids(unique_ids)}
        missing = [pid for pid in unique_ids if pid not in found]
        if missing:
            raise ValidationException(
                f"Unknown permission id(s): {', '.join(missing)}", field="permissions"
            )
        return unique_ids

    async def _get_role(self, role_id: str) -> Role:
        role = await self.role_repo.get_by_id(role_id)
        if not role:
            raise ResourceNotFoundException("Role", role_id)
        return role

    async def _commit_and_invalidate(self) -> None:
        # Cached permission sets are dropped only after the change is committed
        await self.role_repo.commit()
        if self.authz_service:
            await self.authz_service.invalidate_all()

    async def create_role(
        self, name: str, description: str, permission_ids: Sequence[str] = ()
    ) -> Role:
        """
        Create a custom (non-system) role.

        Raises:
            ConflictException: a role with this name exists
            ValidationException: a referenced permission does not exist
        """
        if await self.role_repo.get_by_name(name):
            raise ConflictException("Role already exists", {"name": name})

        ids = await self._validate_permission_ids(permission_ids)
        try:
            role = await self.role_repo.create(
                Role(name=name, description=description, is_system=False, is_active=True)
            )
        except IntegrityError:
            raise ConflictException("Role already exists", {"name": name}) from None

        await self.role_repo.replace_permissions(role.id, ids)
        logger.info("Created role %s with %d permissions", name, len(ids))
        return role

    async def update_role(
        self,
        role_id: str,
        name: str | None = None,
        description: str | None = None,
        permission_ids: Sequence[str] | None = None,
        is_active: bool | None = None,
    ) -> Role:
        """
        Update a custom role; only the given fields change.

        Raises:
            ResourceNotFoundException: no such role
            SystemRoleProtectedException: the role is a system role
            ConflictException: the new name is taken
            ValidationException: a referenced permission does not exist
        """
        role = await self._get_role(role_id)
        if role.is_system:
            logger.warning("Rejected update of system role %s", role.name)
            raise SystemRoleProtectedException(role.name, "modify")

        if name is not None and name != role.name:
            if await self.role_repo.get_by_name(name):
                raise ConflictException("Role already exists", {"name": name})
            role.name = name
        if description is not None:
            role.description = description
        if is_active is not None:
            role.is_active = is_active
        if permission_ids is not None:
            ids = await self._validate_permission_ids(permission_ids)
            await self.role_repo.replace_permissions(role.id, ids)

        role = await self.role_repo.update(role)
        await self._commit_and_invalidate()
        logger.info("Updated role %s", role.name)
        return role

    async def delete_role(self, role_id: str) -> None:
        """
        Delete a custom role and its associations.

        Raises:
            ResourceNotFoundException: no such role
            SystemRoleProtectedException: the role is a system role
        """
        role = await self._get_role(role_id)
        if role.is_system:
            logger.warning("Rejected delete of system role %s", role.name)
            raise SystemRoleProtectedException(role.name, "delete")

        await self.role_repo.delete_role(role)
        await self._commit_and_invalidate()
        logger.info("Deleted role %s", role.name)
