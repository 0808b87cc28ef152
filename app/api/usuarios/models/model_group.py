from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class GroupModel(Base):
    """Grupo de usuários (papel). O nome "Administrador" é reservado para acesso total."""

    __tablename__ = "user_groups"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    permissions = relationship(
        "GroupPermissionModel",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
