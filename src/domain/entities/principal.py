"""Session principal carried for the duration of a request."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """
    Authenticated identity attached to a request.

    `role` is the single role claim minted at login; it may be missing
    on tokens issued before a role was assigned.
    """

    id: str
    role: str | None = None
    username: str | None = None
