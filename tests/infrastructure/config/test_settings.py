"""Tests for RBAC settings"""

import pytest

from src.infrastructure.config.settings import Settings


def make_settings(**overrides) -> Settings:
    return Settings(database_url="sqlite+aiosqlite://", secret_key="k", **overrides)


@pytest.mark.parametrize(
    ("api_prefix", "expected"),
    [
        ("/api", ["/api/debug", "/api/test-", "/api/health"]),
        ("/clinic/v2", ["/clinic/v2/debug", "/clinic/v2/test-", "/clinic/v2/health"]),
        ("/", ["/debug", "/test-", "/health"]),
    ],
)
def test_default_denylist_follows_api_prefix(api_prefix, expected):
    assert make_settings(api_prefix=api_prefix).route_denylist == expected


def test_explicit_denylist_is_used_as_given():
    settings = make_settings(rbac_route_denylist=" /api/internal , /api/legacy,")

    assert settings.route_denylist == ["/api/internal", "/api/legacy"]


def test_empty_denylist_excludes_nothing():
    assert make_settings(rbac_route_denylist="").route_denylist == []


def test_seed_timeout_must_be_positive():
    with pytest.raises(ValueError, match="RBAC_SEED_TIMEOUT_SECONDS"):
        make_settings(rbac_seed_timeout_seconds=0)
