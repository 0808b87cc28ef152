from __future__ import annotations

import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserModel(Base):
    """
    Usuário da aplicação, ligado 1:1 à identidade do provedor de autenticação.

    Nunca é removido fisicamente: a desativação é feita via `status`.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_group", "group_id"),
        Index("idx_users_status", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    auth_user_id = Column(String(64), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False)
    avatar_url = Column(Text, nullable=True)
    group_id = Column(String(36), ForeignKey("user_groups.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    last_access = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    group = relationship("GroupModel", lazy="joined")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value
