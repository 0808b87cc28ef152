from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class GroupPermissionModel(Base):
    """
    Flags CRUD de um grupo para uma seção.

    Só existe linha quando `can_view` é verdadeiro; ausência = sem acesso.
    """

    __tablename__ = "group_permissions"
    __table_args__ = (
        UniqueConstraint("group_id", "section_key", name="uq_group_permissions_group_section"),
        Index("idx_group_permissions_group", "group_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("user_groups.id", ondelete="CASCADE"), nullable=False)
    section_key = Column(String(50), nullable=False)
    can_view = Column(Boolean, nullable=False, default=False)
    can_create = Column(Boolean, nullable=False, default=False)
    can_edit = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    group = relationship("GroupModel", back_populates="permissions")

    def as_flags(self) -> dict:
        return {
            "view": bool(self.can_view),
            "create": bool(self.can_create),
            "edit": bool(self.can_edit),
            "delete": bool(self.can_delete),
        }
