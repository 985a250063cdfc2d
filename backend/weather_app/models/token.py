from __future__ import annotations

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import relationship

from weather_app.core.base import Base


class TokenType(str, PyEnum):
    confirm = "confirm"
    unsubscribe = "unsubscribe"


class Token(Base):
    __tablename__ = "tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    value = Column(String(128), unique=True, nullable=False)
    type = Column(String(16), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="tokens")
