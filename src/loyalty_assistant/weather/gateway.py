"""Validated access to METAR observations and TAF forecasts."""

from __future__ import annotations

import re
from typing import Any, Protocol

from loguru import logger

from loyalty_assistant.errors import InvalidAirportCodeError, InvalidHoursError
from loyalty_assistant.weather.models import MetarObservation, TafForecast

_ICAO_PATTERN = re.compile(r"^[A-Z]{4}$")

MIN_HOURS = 1
MAX_HOURS = 24


class WeatherSource(Protocol):
    def fetch_metar(self, airport_code: str, hours: int = 1) -> MetarObservation | None: ...

    def fetch_taf(self, airport_code: str) -> TafForecast | None: ...


class AviationWeatherGateway:
    """Validates arguments, then delegates to a ``WeatherSource``.

    Validation failures raise before the source is touched, so a bad airport
    code or history window never turns into a network call.
    """

    def __init__(self, source: WeatherSource) -> None:
        self._source = source

    def fetch_observation(self, airport_code: str, hours: int = 1) -> MetarObservation | None:
        validate_airport_code(airport_code)
        validate_hours(hours)
        logger.info("Getting METAR for {} (hours: {})", airport_code, hours)
        return self._source.fetch_metar(airport_code, hours)

    def fetch_forecast(self, airport_code: str) -> TafForecast | None:
        validate_airport_code(airport_code)
        logger.info("Getting TAF for {}", airport_code)
        return self._source.fetch_taf(airport_code)

    def summary(self, airport_code: str) -> dict[str, Any]:
        """Current conditions plus forecast; parts the source lacks are omitted."""

        validate_airport_code(airport_code)
        logger.info("Getting weather summary for {}", airport_code)
        result: dict[str, Any] = {"airport_code": airport_code}
        metar = self._source.fetch_metar(airport_code, 1)
        if metar is not None:
            result["current_weather"] = metar.to_payload()
        taf = self._source.fetch_taf(airport_code)
        if taf is not None:
            result["forecast"] = taf.to_payload()
        return result


def validate_airport_code(code: str) -> None:
    if not isinstance(code, str) or not _ICAO_PATTERN.fullmatch(code):
        raise InvalidAirportCodeError(str(code))


def validate_hours(hours: int) -> None:
    if isinstance(hours, bool) or not isinstance(hours, int) or not MIN_HOURS <= hours <= MAX_HOURS:
        raise InvalidHoursError(hours)
