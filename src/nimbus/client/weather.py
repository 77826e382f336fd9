"""Weather lookups through the authenticated session."""

import httpx
import structlog

from nimbus.client.errors import (
    NetworkError,
    NotAuthenticatedError,
    UnauthorizedError,
    WeatherRequestError,
)
from nimbus.client.session import SessionManager, SessionState

logger = structlog.get_logger()

CITY_NOT_FOUND = 1006
GENERIC_FAILURE = "Unable to fetch weather data. Please try again."


class WeatherClient:
    """Reads current conditions for a city via GET /api/weather."""

    def __init__(self, session: SessionManager):
        self.session = session

    async def current(self, city: str) -> dict:
        city = (city or "").strip()
        if not city:
            raise ValueError("Please enter a city name to get weather information.")

        if self.session.get_token() is None:
            # A stored token may still be on its way in; leave it on disk.
            if self.session.state is SessionState.ANONYMOUS:
                await self.session.logout()
            raise NotAuthenticatedError()

        async with self.session.client() as client:
            try:
                resp = await client.get("/api/weather", params={"city": city})
            except httpx.HTTPError as e:
                logger.info("nimbus.weather.network_error", error=str(e))
                raise NetworkError("Unable to connect to the weather service. Please try again.")

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        # SessionAuth has already cleared the session on a 401.
        if resp.status_code == 401:
            raise UnauthorizedError()

        if not resp.is_success:
            raise WeatherRequestError(
                data.get("error") or GENERIC_FAILURE,
                status_code=resp.status_code,
                code=data.get("code"),
            )

        if not data.get("location") or not data.get("current"):
            raise WeatherRequestError("Received incomplete weather data. Please try again.")
        return data
