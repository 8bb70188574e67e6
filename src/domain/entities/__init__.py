"""Domain entities."""

from src.domain.entities.principal import Principal
from src.domain.entities.route import PermissionDraft, RouteEntry

__all__ = [
    "PermissionDraft",
    "Principal",
    "RouteEntry",
]
