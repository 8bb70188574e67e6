"""Tests for the RBAC repositories against SQLite"""

import pytest
from sqlalchemy.exc import IntegrityError

from src.domain.exceptions import ConflictException
from src.infrastructure.persistence.models import Permission, Role
from src.infrastructure.persistence.repositories import (
    PermissionRepository,
    PolicyRepository,
    RoleRepository,
    UserRepository,
)


async def _upsert(repo: PermissionRepository, route: str, method: str, name: str = "List Patients"):
    permission_id = await repo.upsert(
        route=route,
        method=method,
        name=name,
        description=f"{name} via {method} {route}",
        category="patients",
    )
    await repo.commit()
    return permission_id


@pytest.mark.asyncio
async def test_permission_upsert_is_idempotent_on_natural_key(test_db):
    repo = PermissionRepository(test_db)

    first = await _upsert(repo, "/api/patients", "GET")
    second = await _upsert(repo, "/api/patients", "GET", name="Browse Patients")

    assert first == second
    permission = await repo.get_by_route_and_method("/api/patients", "GET")
    await test_db.refresh(permission)
    assert permission.name == "Browse Patients"
    assert await repo.get_natural_keys() == {("/api/patients", "GET")}


@pytest.mark.asyncio
async def test_permission_upsert_reactivates(test_db):
    repo = PermissionRepository(test_db)
    permission_id = await _upsert(repo, "/api/ehr", "GET")
    await repo.set_active(permission_id, False)
    await repo.commit()

    await _upsert(repo, "/api/ehr", "GET")

    assert [p.id for p in await repo.get_active()] == [permission_id]


@pytest.mark.asyncio
async def test_duplicate_route_method_violates_unique_index(test_db):
    test_db.add(Permission(route="/api/billing", method="GET", name="a", description="", category="billing"))
    await test_db.commit()

    test_db.add(Permission(route="/api/billing", method="GET", name="b", description="", category="billing"))
    with pytest.raises(IntegrityError):
        await test_db.commit()
    await test_db.rollback()


@pytest.mark.asyncio
async def test_create_permission_rejects_existing_natural_key(test_db):
    repo = PermissionRepository(test_db)
    await repo.create_permission("/api/inventory", "POST", "Create Inventory", "", "inventory")
    await repo.commit()

    with pytest.raises(ConflictException) as exc_info:
        await repo.create_permission("/api/inventory", "POST", "Create Inventory", "", "inventory")

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_deactivate_missing_never_deletes(test_db):
    repo = PermissionRepository(test_db)
    await _upsert(repo, "/api/patients", "GET")
    await _upsert(repo, "/api/patients", "POST")

    deactivated = await repo.deactivate_missing({("/api/patients", "GET")})
    await repo.commit()

    assert deactivated == 1
    assert [p.key for p in await repo.get_active()] == ["/api/patients:GET"]
    _, total = await repo.list_permissions()
    assert total == 2


@pytest.mark.asyncio
async def test_list_permissions_filters_and_paginates(test_db):
    repo = PermissionRepository(test_db)
    for i in range(3):
        await _upsert(repo, f"/api/patients/p{i}", "GET", name=f"View {i}")

    page, total = await repo.list_permissions(category="patients", skip=1, limit=1)
    empty, none = await repo.list_permissions(category="billing")

    assert total == 3
    assert [p.name for p in page] == ["View 1"]
    assert (empty, none) == ([], 0)


@pytest.mark.asyncio
async def test_role_upsert_keeps_id_and_marks_system(test_db):
    repo = RoleRepository(test_db)

    first = await repo.upsert_system_role("doctor", "old description")
    await repo.commit()
    second = await repo.upsert_system_role("doctor", "Medical professional")
    await repo.commit()

    assert first == second
    role = await repo.get_by_name("doctor")
    await test_db.refresh(role)
    assert role.is_system is True
    assert role.description == "Medical professional"


@pytest.mark.asyncio
async def test_duplicate_role_name_violates_unique_index(test_db):
    test_db.add(Role(name="receptionist", description="front desk"))
    await test_db.commit()

    test_db.add(Role(name="receptionist", description="again"))
    with pytest.raises(IntegrityError):
        await test_db.commit()
    await test_db.rollback()


@pytest.mark.asyncio
async def test_replace_permissions_overwrites_references(test_db):
    permission_repo = PermissionRepository(test_db)
    role_repo = RoleRepository(test_db)
    a = await _upsert(permission_repo, "/api/a", "GET")
    b = await _upsert(permission_repo, "/api/b", "GET")
    role_id = await role_repo.upsert_system_role("patient", "Patient")

    await role_repo.replace_permissions(role_id, [a, b, a])
    await role_repo.replace_permissions(role_id, [b])
    await role_repo.commit()

    assert [p.id for p in await permission_repo.get_permissions_for_role(role_id)] == [b]


@pytest.mark.asyncio
async def test_policy_version_increments(test_db):
    repo = PolicyRepository(test_db)

    assert await repo.get_current() is None
    assert await repo.bump_version("user-1") == 1
    await repo.commit()
    assert await repo.bump_version("user-2") == 2
    await repo.commit()

    policy = await repo.get_current()
    assert policy.version == 2
    assert policy.seeded_by == "user-2"


@pytest.mark.asyncio
async def test_user_role_assignment_roundtrip(test_db):
    user_repo = UserRepository(test_db)
    user = await user_repo.create_user("sam", "sam@clinic.test", "s3cret!", role="doctor")
    role_id = await RoleRepository(test_db).upsert_system_role("doctor", "Doctor")

    await user_repo.assign_role(user.id, role_id, assigned_by=None)
    await test_db.commit()

    assignment = await user_repo.get_assignment(user.id, role_id)
    assert assignment.role_id == role_id
    assert await user_repo.remove_role(user.id, role_id) is True
    assert await user_repo.remove_role(user.id, role_id) is False


@pytest.mark.asyncio
async def test_authenticate(test_db):
    user_repo = UserRepository(test_db)
    await user_repo.create_user("lee", "lee@clinic.test", "correct-horse")
    await test_db.commit()

    assert (await user_repo.authenticate("lee", "correct-horse")).username == "lee"
    assert await user_repo.authenticate("lee", "wrong") is None
    assert await user_repo.authenticate("nobody", "correct-horse") is None
