from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Index, String, Text

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class ClienteModel(Base):
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_phone", "phone"),
        Index("idx_clients_email", "email"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    document = Column(String(32), nullable=True, unique=True)
    email = Column(String(255), nullable=True)
    # Armazenado normalizado (somente dígitos, com DDI) quando possível
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default="company")
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
