"""Weather provider — one outbound call to WeatherAPI.

Learn: This is a passthrough. The provider's JSON is returned untouched
on success, and a structured provider error ({"error": {"message",
"code"}}) is relayed with the provider's status code. Anything else
(network trouble, non-JSON bodies) becomes a generic 500.
"""

from typing import Optional

import httpx
import structlog

from nimbus.config import settings
from nimbus.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger()

MISSING_KEY = (
    "Server configuration error: WEATHER_API_KEY is missing. "
    "Add it to your .env file on the backend."
)
UNAVAILABLE = "Unable to fetch weather data. Please try again later."


class WeatherProvider:
    """Thin async client for the WeatherAPI current-conditions endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def current(self, city: str) -> dict:
        """Fetch current conditions for city. Returns the provider's JSON."""
        if not self.api_key:
            raise ConfigurationError(MISSING_KEY)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                resp = await client.get(
                    self.base_url, params={"key": self.api_key, "q": city}
                )
        except httpx.HTTPError as e:
            logger.warning("nimbus.weather.request_failed", error=str(e))
            raise UpstreamError(UNAVAILABLE, status_code=500)

        try:
            data = resp.json()
        except ValueError:
            logger.warning("nimbus.weather.bad_body", status=resp.status_code)
            raise UpstreamError(UNAVAILABLE, status_code=500)

        if resp.is_success:
            return data

        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            raise UpstreamError(
                error.get("message") or "Unable to fetch weather data.",
                status_code=resp.status_code or 400,
                code=error.get("code"),
            )

        logger.warning("nimbus.weather.unexpected_status", status=resp.status_code)
        raise UpstreamError(UNAVAILABLE, status_code=500)


def get_weather_provider() -> WeatherProvider:
    """FastAPI dependency — provider built from settings."""
    return WeatherProvider(
        api_key=settings.weather_api_key,
        base_url=settings.weather_api_url,
        timeout=settings.weather_timeout_seconds,
    )
