"""Tests for the RBAC seed pipeline with mocked persistence"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.services.rbac_seed_service import RbacSeedService
from src.domain.exceptions import (
    CatalogUnavailableError,
    PermissionSyncError,
    SeedTimeoutError,
    UpstreamUnavailableException,
)

ROUTES = [
    SimpleNamespace(path="/api/patients", methods={"GET", "POST"}),
    SimpleNamespace(path="/api/patients/{id}", methods={"GET", "PUT", "DELETE"}),
    SimpleNamespace(path="/api/appointments", methods={"GET", "POST"}),
    SimpleNamespace(path="/api/admin/roles", methods={"GET"}),
    SimpleNamespace(path="/api/admin/seed-rbac", methods={"POST"}),
    SimpleNamespace(path="/api/user/profile", methods={"GET"}),
]  # 10 route/method pairs in 4 categories


def stored(route, method, category):
    return SimpleNamespace(id=f"{method} {route}", route=route, method=method, category=category)


@pytest.fixture
def db():
    session = MagicMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def permission_repo():
    repo = AsyncMock()
    repo.get_natural_keys = AsyncMock(return_value=set())
    repo.upsert = AsyncMock(return_value="permission-id")
    repo.deactivate_missing = AsyncMock(return_value=0)
    repo.get_active = AsyncMock(
        return_value=[
            stored("/api/patients", "GET", "patients"),
            stored("/api/admin/seed-rbac", "POST", "admin"),
            stored("/api/user/profile", "GET", "profile"),
        ]
    )
    return repo


@pytest.fixture
def role_repo():
    repo = AsyncMock()
    repo.get_names = AsyncMock(return_value=set())
    repo.upsert_system_role = AsyncMock(return_value="role-id")
    repo.replace_permissions = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def policy_repo():
    repo = AsyncMock()
    repo.bump_version = AsyncMock(return_value=3)
    return repo


@pytest.fixture
def seed_service(db, permission_repo, role_repo, policy_repo):
    return RbacSeedService(
        db,
        routes=ROUTES,
        permission_repo=permission_repo,
        role_repo=role_repo,
        policy_repo=policy_repo,
    )


@pytest.mark.asyncio
async def test_run_reports_every_step(seed_service, role_repo, policy_repo):
    report = await seed_service.run(seeded_by="user-1")

    assert report.to_dict() == {
        "permissions": {"created": 10, "updated": 0, "deactivated": 0, "total": 3},
        "roles": {"created": 4, "updated": 0, "total": 4},
        "routes": {"scanned": 6, "categories": 4},
        "policy_version": 3,
    }
    assert role_repo.upsert_system_role.await_count == 4
    policy_repo.bump_version.assert_awaited_once_with("user-1")
    policy_repo.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_stops_before_roles_when_a_permission_fails(
    seed_service, permission_repo, role_repo, policy_repo
):
    calls = 0

    async def upsert(**kwargs):
        nonlocal calls
        calls += 1
        if calls == 7:
            raise RuntimeError("unique index build in progress")
        return f"permission-{calls}"

    permission_repo.upsert = AsyncMock(side_effect=upsert)

    with pytest.raises(PermissionSyncError) as exc_info:
        await seed_service.run()

    assert exc_info.value.created == 6
    assert exc_info.value.updated == 0
    permission_repo.get_active.assert_not_called()
    role_repo.upsert_system_role.assert_not_called()
    role_repo.replace_permissions.assert_not_called()
    policy_repo.bump_version.assert_not_called()


@pytest.mark.asyncio
async def test_run_fails_on_empty_catalog(db, permission_repo, role_repo, policy_repo):
    service = RbacSeedService(
        db,
        routes=[SimpleNamespace(path="/health", methods={"GET"})],
        permission_repo=permission_repo,
        role_repo=role_repo,
        policy_repo=policy_repo,
    )

    with pytest.raises(CatalogUnavailableError):
        await service.run()

    permission_repo.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_run_times_out_with_partial_progress(seed_service, permission_repo, role_repo, db):
    calls = 0

    async def slow_upsert(**kwargs):
        nonlocal calls
        calls += 1
        if calls > 2:
            await asyncio.sleep(5)
        return f"permission-{calls}"

    permission_repo.upsert = AsyncMock(side_effect=slow_upsert)
    seed_service.settings = seed_service.settings.model_copy(
        update={"rbac_seed_timeout_seconds": 0.05}
    )

    with pytest.raises(SeedTimeoutError) as exc_info:
        await seed_service.run()

    error = exc_info.value
    assert error.step == "timeout"
    assert error.details["progress"]["permissions"]["created"] == 2
    role_repo.upsert_system_role.assert_not_called()
    db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_sync_permissions_returns_route_count(seed_service, role_repo):
    result, total_routes = await seed_service.sync_permissions()

    assert total_routes == 6
    assert result.created == 10
    role_repo.upsert_system_role.assert_not_called()


@pytest.mark.asyncio
async def test_run_names_the_policy_step_when_the_bump_fails(seed_service, role_repo, policy_repo):
    policy_repo.bump_version = AsyncMock(side_effect=RuntimeError("db down"))

    with pytest.raises(UpstreamUnavailableException) as exc_info:
        await seed_service.run()

    assert exc_info.value.step == "policy_bump"
    assert role_repo.upsert_system_role.await_count == 4
    policy_repo.rollback.assert_awaited_once()
    policy_repo.commit.assert_not_called()


@pytest.mark.asyncio
async def test_run_names_the_load_step_when_active_permissions_fail(
    seed_service, permission_repo, role_repo
):
    permission_repo.get_active = AsyncMock(side_effect=RuntimeError("db down"))

    with pytest.raises(UpstreamUnavailableException) as exc_info:
        await seed_service.run()

    assert exc_info.value.step == "permission_load"
    role_repo.upsert_system_role.assert_not_called()
