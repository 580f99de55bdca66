"""HTTP client for the aviationweather.gov data API."""

from __future__ import annotations

from typing import Any, TypeVar

import requests
from loguru import logger
from pydantic import BaseModel, ValidationError

from loyalty_assistant.errors import WeatherDataNotFoundError
from loyalty_assistant.weather.models import MetarObservation, TafForecast

DEFAULT_BASE_URL = "https://aviationweather.gov/api/data"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class AviationWeatherClient:
    """Single best-effort GET per call; no caching and no retry.

    Any transport failure, non-2xx status or malformed payload is raised as
    ``WeatherDataNotFoundError``. An empty result is returned as ``None``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def fetch_metar(self, airport_code: str, hours: int = 1) -> MetarObservation | None:
        return self._fetch_first(
            "metar",
            {"ids": airport_code, "format": "json", "hours": hours},
            MetarObservation,
            label="METAR",
            airport_code=airport_code,
        )

    def fetch_taf(self, airport_code: str) -> TafForecast | None:
        return self._fetch_first(
            "taf",
            {"ids": airport_code, "format": "json"},
            TafForecast,
            label="TAF",
            airport_code=airport_code,
        )

    def _fetch_first(
        self,
        endpoint: str,
        params: dict[str, Any],
        model: type[_ModelT],
        *,
        label: str,
        airport_code: str,
    ) -> _ModelT | None:
        url = f"{self.base_url}/{endpoint}"
        logger.info("Fetching {} for {} from {}", label, airport_code, url)
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            if response.status_code == 204 or not response.content:
                payload: Any = []
            else:
                payload = response.json()
            if not isinstance(payload, list):
                raise ValueError(f"expected a JSON array, got {type(payload).__name__}")
            first = model.model_validate(payload[0]) if payload else None
        except (requests.RequestException, ValueError, ValidationError) as exc:
            logger.error("Failed to fetch {} for {}: {}", label, airport_code, exc)
            raise WeatherDataNotFoundError(
                f"Could not fetch {label} for {airport_code}"
            ) from exc

        if first is None:
            logger.warning("No {} data found for {}", label, airport_code)
        else:
            logger.info("Successfully fetched {} for {}", label, airport_code)
        return first
