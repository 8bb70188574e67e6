"""
Route catalog builder.

Enumerates the API endpoints the application declares, without serving
requests: the input is the router's registry of route declarations, so
the catalog is exactly what the app registers and nothing else.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from typing import Any, NamedTuple

from src.domain.entities.route import RouteEntry
from src.domain.enums import HttpMethod
from src.domain.exceptions import CatalogUnavailableError

logger = logging.getLogger(__name__)

# '{id}' and converter forms like '{file_path:path}'
_PATH_PARAM = re.compile(r"\{[^}]*\}")

# Every path parameter collapses to this token whatever it was named
PLACEHOLDER = ":id"


class DeclaredRoute(NamedTuple):
    """A route declaration as read from an application's OpenAPI paths"""

    path: str
    methods: frozenset[str]


def openapi_routes(app: Any) -> Iterator[DeclaredRoute]:
    """
    Yield the routes an application declares, one per OpenAPI path.

    OpenAPI paths are full paths whatever the router nesting. Routes
    declared with `include_in_schema=False` are not listed.
    """
    for path, operations in app.openapi().get("paths", {}).items():
        yield DeclaredRoute(path=path, methods=frozenset(key.upper() for key in operations))


def normalize_path(path: str) -> str:
    """
    Normalize a declared route path into its catalog form.

    Path parameters become the ':id' placeholder, query strings and
    trailing slashes are dropped.
    """
    path = path.split("?", 1)[0]
    path = _PATH_PARAM.sub(PLACEHOLDER, path)
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


def is_placeholder(segment: str) -> bool:
    """True for dynamic path segments (':id')"""
    return segment.startswith(":")


def path_segments(path: str) -> list[str]:
    """Non-empty segments of a normalized path"""
    return [segment for segment in path.split("/") if segment]


class RouteCatalogBuilder:
    """
    Builds the route catalog from declared routes.

    Any object exposing `path` and `methods` counts as a declaration
    (`DeclaredRoute` and FastAPI's APIRoute do). Declarations without
    methods, such as mounts and websocket routes, are skipped.
    """

    def __init__(
        self,
        routes: Iterable[Any],
        api_prefix: str = "/api",
        denylist: Iterable[str] = (),
    ):
        self.routes = routes
        self.api_prefix = normalize_path(api_prefix)
        self.denylist = tuple(denylist)

    @classmethod
    def from_app(cls, app: Any, api_prefix: str, denylist: Iterable[str] = ()) -> "RouteCatalogBuilder":
        """Builder over a FastAPI application's declared routes"""
        return cls(openapi_routes(app), api_prefix=api_prefix, denylist=denylist)

    def build(self) -> list[RouteEntry]:
        """
        Build the catalog: one entry per normalized path, sorted by path.

        Raises:
            CatalogUnavailableError: the registry cannot be read or yields no API routes
        """
        try:
            declared = list(self.routes)
        except Exception as e:
            raise CatalogUnavailableError(str(e)) from e

        merged: dict[str, set[HttpMethod]] = {}
        for route in declared:
            path = getattr(route, "path", None)
            methods = getattr(route, "methods", None)
            if not path or not methods:
                continue

            normalized = normalize_path(path)
            if not self._in_scope(normalized):
                continue

            verbs = {
                HttpMethod(method.upper())
                for method in methods
                if method.upper() in HttpMethod.values()
            }
            if verbs:
                merged.setdefault(normalized, set()).update(verbs)

        if not merged:
            raise CatalogUnavailableError(f"no routes found under {self.api_prefix}")

        entries = [
            RouteEntry(path=path, methods=frozenset(methods))
            for path, methods in sorted(merged.items())
        ]
        logger.info(
            "Route catalog built: %d routes, %d route/method pairs",
            len(entries),
            sum(len(entry.methods) for entry in entries),
        )
        return entries

    def _in_scope(self, path: str) -> bool:
        if self.api_prefix != "/" and not (
            path == self.api_prefix or path.startswith(self.api_prefix + "/")
        ):
            return False
        return not any(path.startswith(prefix) for prefix in self.denylist)
