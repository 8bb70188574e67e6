"""
Route catalog entities.

A catalog entry is one normalized API path with the set of verbs its
handlers implement; a draft is the permission derived from one
(path, verb) pair before it is persisted.
"""

from dataclasses import dataclass, field

from src.domain.enums import HttpMethod


@dataclass(frozen=True)
class RouteEntry:
    """One catalog entry: a normalized path and the methods served on it"""

    path: str
    methods: frozenset[HttpMethod] = field(default_factory=frozenset)

    def sorted_methods(self) -> list[HttpMethod]:
        """Methods in declaration order of HttpMethod"""
        return [m for m in HttpMethod if m in self.methods]


@dataclass(frozen=True)
class PermissionDraft:
    """Permission derived from a (route, method) pair"""

    route: str
    method: HttpMethod
    name: str
    description: str
    category: str

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.route, self.method.value)
