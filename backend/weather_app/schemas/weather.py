from pydantic import BaseModel


class WeatherOut(BaseModel):
    temperature: float
    humidity: int
    description: str
