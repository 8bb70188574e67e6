from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import AuditedModel, CuidMixin


class Permission(AuditedModel, Base):
    """
    Route-bound permission: one row per (route, method) pair.

    Rows are written only by the RBAC bootstrap. When a route disappears
    from the catalog its permission is deactivated, never deleted.
    """

    __tablename__ = "permission"

    route: Mapped[str] = mapped_column(String, nullable=False)  # e.g. '/api/admin/roles'
    method: Mapped[str] = mapped_column(String(10), nullable=False)  # GET/POST/PUT/PATCH/DELETE
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("route", "method", name="uq_permission_route_method"),
        Index("ix_permission_category_name", "category", "name"),
    )

    @property
    def key(self) -> str:
        """Permission key in 'route:method' form"""
        return f"{self.route}:{self.method}"


class RolePermission(CuidMixin, Base):
    """Many-to-many: roles ←→ permissions"""

    __tablename__ = "role_permission"

    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), nullable=False
    )
    permission_id: Mapped[str] = mapped_column(
        String, ForeignKey("permission.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
        Index("ix_role_permission_lookup", "role_id"),
    )


class UserRole(CuidMixin, Base):
    """Many-to-many: users ←→ roles"""

    __tablename__ = "user_role"

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    role_id: Mapped[str] = mapped_column(
        String, ForeignKey("role.id", ondelete="CASCADE"), nullable=False
    )

    # Role assignment metadata
    assigned_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_role"),
        Index("ix_user_role_lookup", "user_id"),
    )
