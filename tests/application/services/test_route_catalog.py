"""Tests for the route catalog builder"""

from types import SimpleNamespace

import pytest
from fastapi import APIRouter, FastAPI

from main import app as clinic_app
from src.application.services.route_catalog import (
    RouteCatalogBuilder,
    normalize_path,
    openapi_routes,
)
from src.infrastructure.config.settings import get_settings
from src.domain.enums import HttpMethod
from src.domain.exceptions import CatalogUnavailableError


def route(path: str, *methods: str):
    return SimpleNamespace(path=path, methods=set(methods))


@pytest.mark.parametrize(
    ("declared", "expected"),
    [
        ("/api/patients/{id}", "/api/patients/:id"),
        ("/api/patients/{patient_id}", "/api/patients/:id"),
        ("/api/files/{file_path:path}", "/api/files/:id"),
        ("/api/users/{user_id}/roles/{role_id}", "/api/users/:id/roles/:id"),
        ("/api/patients/", "/api/patients"),
        ("/api/billing?page=2", "/api/billing"),
        ("/", "/"),
    ],
)
def test_normalize_path(declared, expected):
    assert normalize_path(declared) == expected


def test_build_merges_methods_across_declarations():
    builder = RouteCatalogBuilder(
        [
            route("/api/patients", "GET"),
            route("/api/patients/", "POST"),
            route("/api/patients/{id}", "GET", "PUT", "DELETE"),
        ]
    )

    catalog = builder.build()

    assert [entry.path for entry in catalog] == ["/api/patients", "/api/patients/:id"]
    assert catalog[0].methods == frozenset({HttpMethod.GET, HttpMethod.POST})
    assert catalog[1].sorted_methods() == [HttpMethod.GET, HttpMethod.PUT, HttpMethod.DELETE]


def test_build_keeps_only_supported_verbs():
    catalog = RouteCatalogBuilder([route("/api/ehr", "GET", "HEAD", "OPTIONS")]).build()

    assert catalog[0].methods == frozenset({HttpMethod.GET})


def test_build_skips_routes_outside_prefix_and_denylisted():
    builder = RouteCatalogBuilder(
        [
            route("/health", "GET"),
            route("/docs", "GET"),
            route("/apiary", "GET"),
            route("/api/debug/user", "GET"),
            route("/api/test-email", "POST"),
            route("/api/billing", "GET"),
        ],
        api_prefix="/api",
        denylist=["/api/debug", "/api/test-"],
    )

    assert [entry.path for entry in builder.build()] == ["/api/billing"]


def test_build_skips_declarations_without_methods():
    mount = SimpleNamespace(path="/api/static", methods=None)
    catalog = RouteCatalogBuilder([mount, route("/api/inventory", "GET")]).build()

    assert [entry.path for entry in catalog] == ["/api/inventory"]


def test_build_is_sorted_by_path():
    catalog = RouteCatalogBuilder(
        [route("/api/prescriptions", "GET"), route("/api/appointments", "GET")]
    ).build()

    assert [entry.path for entry in catalog] == ["/api/appointments", "/api/prescriptions"]


def test_build_raises_when_catalog_is_empty():
    with pytest.raises(CatalogUnavailableError) as exc_info:
        RouteCatalogBuilder([route("/health", "GET")]).build()

    assert exc_info.value.step == "catalog_scan"


def test_build_raises_when_registry_unreadable():
    def broken_registry():
        raise RuntimeError("router not initialized")
        yield  # pragma: no cover

    with pytest.raises(CatalogUnavailableError, match="router not initialized"):
        RouteCatalogBuilder(broken_registry()).build()


def test_from_app_reads_registered_fastapi_routes():
    app = FastAPI()
    router = APIRouter()

    @router.get("/appointments/{appointment_id}")
    async def get_appointment(appointment_id: str):
        return {}

    @router.delete("/appointments/{appointment_id}")
    async def delete_appointment(appointment_id: str):
        return {}

    app.include_router(router, prefix="/api")

    catalog = RouteCatalogBuilder.from_app(app, api_prefix="/api").build()

    assert len(catalog) == 1
    assert catalog[0].path == "/api/appointments/:id"
    assert catalog[0].methods == frozenset({HttpMethod.GET, HttpMethod.DELETE})


def test_build_merges_routes_that_differ_only_in_parameter_names():
    catalog = RouteCatalogBuilder(
        [route("/api/items/{id}", "GET"), route("/api/items/{item_id}", "DELETE")]
    ).build()

    assert len(catalog) == 1
    assert catalog[0].path == "/api/items/:id"
    assert catalog[0].methods == frozenset({HttpMethod.GET, HttpMethod.DELETE})


def test_from_app_reads_routes_of_nested_routers():
    app = FastAPI()
    inner = APIRouter()
    outer = APIRouter()

    @inner.get("/invoices")
    async def list_invoices():
        return []

    outer.include_router(inner, prefix="/billing")
    app.include_router(outer, prefix="/api")

    catalog = RouteCatalogBuilder.from_app(app, api_prefix="/api").build()

    assert [entry.path for entry in catalog] == ["/api/billing/invoices"]


def test_from_app_reads_the_clinic_application():
    settings = get_settings()

    catalog = RouteCatalogBuilder.from_app(
        clinic_app, api_prefix=settings.api_prefix, denylist=settings.route_denylist
    ).build()

    by_path = {entry.path: entry.methods for entry in catalog}
    assert len(by_path) == 8
    assert by_path["/api/admin/seed-rbac"] == frozenset({HttpMethod.GET, HttpMethod.POST})
    assert by_path["/api/admin/users/:id/roles/:id"] == frozenset({HttpMethod.DELETE})
    assert "/health" not in by_path


def test_openapi_failure_is_reported_as_catalog_error():
    class BrokenApp:
        def openapi(self):
            raise RuntimeError("schema generation failed")

    with pytest.raises(CatalogUnavailableError, match="schema generation failed"):
        RouteCatalogBuilder(openapi_routes(BrokenApp())).build()
