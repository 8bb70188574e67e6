from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.infrastructure.persistence.database import Base


class RbacPolicy(Base):
    """
    Single-row policy generation counter.

    Every successful RBAC seed bumps `version`, so audit tooling can tell
    which generation of role/permission data was in effect.
    """

    __tablename__ = "rbac_policy"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seeded_by: Mapped[str | None] = mapped_column(String, nullable=True)
    seeded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
