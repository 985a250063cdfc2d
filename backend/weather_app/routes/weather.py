from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from weather_app.dependencies.services import get_weather_service
from weather_app.schemas.weather import WeatherOut
from weather_app.services.weather import CityNotFoundError, WeatherService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["weather"])


@router.get("/weather", response_model=WeatherOut)
def get_weather(
    city: str | None = Query(None),
    service: WeatherService = Depends(get_weather_service),
):
    if not city or not city.strip():
        raise HTTPException(status_code=400, detail="City parameter is empty")

    try:
        data = service.get_weather(city.strip())
    except CityNotFoundError:
        raise HTTPException(status_code=404, detail="city not found")
    except Exception as e:  # noqa: BLE001
        logger.error("Weather lookup failed for %s: %s", city, e, exc_info=e)
        raise HTTPException(status_code=500, detail="Something went wrong")

    return WeatherOut(temperature=data.temperature, humidity=data.humidity, description=data.description)
