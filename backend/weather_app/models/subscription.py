from __future__ import annotations

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship

from weather_app.core.base import Base


class Frequency(str, PyEnum):
    hourly = "hourly"
    daily = "daily"


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "city", "frequency", name="uq_subscriptions_user_city_frequency"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    city = Column(String(255), nullable=False)
    # Frequency value ("hourly" | "daily").
    frequency = Column(String(16), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="subscriptions")
