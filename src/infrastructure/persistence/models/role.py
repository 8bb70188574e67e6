from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.persistence.database import Base
from src.infrastructure.persistence.models.mixins import AuditedModel


class Role(AuditedModel, Base):
    """
    Named bundle of permissions (e.g., 'master_admin', 'doctor').

    Inherits from AuditedModel:
        - id: CUID primary key
        - created_at: Creation timestamp
        - updated_at: Last update timestamp
    """

    __tablename__ = "role"

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    is_system: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )  # System roles cannot be modified or deleted
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
