# weather_app/schemas/subscription.py
from pydantic import BaseModel, EmailStr, Field, field_validator

from weather_app.models.subscription import Frequency


class SubscribeIn(BaseModel):
    email: EmailStr
    city: str = Field(min_length=1, max_length=255)
    frequency: Frequency

    @field_validator("city", mode="before")
    @classmethod
    def _strip_city(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class MessageOut(BaseModel):
    message: str
