"""Weather API — protected passthrough to the weather provider.

Learn: The route itself has no auth code. get_current_user runs first
(see api/__init__.py and the explicit Depends below), so by the time
the handler executes the caller is a live identity.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from nimbus.auth.dependencies import CurrentUser, get_current_user
from nimbus.errors import ValidationError
from nimbus.services.weather_service import WeatherProvider, get_weather_provider

logger = structlog.get_logger()

router = APIRouter()

MISSING_CITY = "City query parameter is required. Example: /api/weather?city=London"


@router.get("/weather")
async def get_weather(
    city: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    provider: WeatherProvider = Depends(get_weather_provider),
):
    """Current weather for ?city=NAME, relayed from the provider."""
    if city is None or not city.strip():
        raise ValidationError(MISSING_CITY)

    logger.info("nimbus.weather.lookup", city=city.strip(), identity_id=user.id)
    return await provider.current(city.strip())
