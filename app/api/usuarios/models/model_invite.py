from __future__ import annotations

import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class InviteStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


class InviteModel(Base):
    __tablename__ = "user_invites"
    __table_args__ = (
        Index("idx_user_invites_email_status", "email", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False)
    group_id = Column(String(36), ForeignKey("user_groups.id", ondelete="CASCADE"), nullable=False)
    token = Column(String(128), nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=InviteStatus.PENDING.value)
    invited_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    group = relationship("GroupModel", lazy="joined")
