"""Built-in tools exposed to the chat model.

Every tool returns a JSON string. Optional weather fields are omitted rather
than null, and a missing result is reported as ``{"error": "..."}`` so the
model can tell "no data" apart from an empty-but-successful answer.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from loyalty_assistant.agent.registry import NoArguments, ToolRegistry, ToolSpec
from loyalty_assistant.ingest.pipeline import (
    DELTA_KEY,
    DELTA_SOURCE_URL,
    UNITED_KEY,
    UNITED_SOURCE_URL,
)
from loyalty_assistant.types import ReferenceLibrary
from loyalty_assistant.weather.gateway import AviationWeatherGateway

_AIRPORT_HINT = (
    "Provide the ICAO airport code (4 uppercase letters, e.g., KJFK for New York JFK, "
    "KLAX for Los Angeles, EGLL for London Heathrow, YSSY for Sydney)."
)

DELTA_PROGRAM = "Delta SkyMiles Medallion"
UNITED_PROGRAM = "United MileagePlus Premier"


class AirportInput(BaseModel):
    # camelCase is the parameter name the model sees in the tool schema
    airportCode: str = Field(min_length=1)


class MetarInput(AirportInput):
    hours: int = 1


def register_weather_tools(registry: ToolRegistry, gateway: AviationWeatherGateway) -> None:
    """Register ``get_metar``, ``get_taf`` and ``get_airport_weather_summary``."""

    def _metar(data: MetarInput) -> str:
        code = data.airportCode.strip().upper()
        metar = gateway.fetch_observation(code, data.hours)
        if metar is None:
            return _dumps({"error": f"No METAR data available for airport code {code}"})
        return _dumps(metar.to_payload())

    def _taf(data: AirportInput) -> str:
        code = data.airportCode.strip().upper()
        taf = gateway.fetch_forecast(code)
        if taf is None:
            return _dumps({"error": f"No TAF data available for airport code {code}"})
        return _dumps(taf.to_payload())

    def _summary(data: AirportInput) -> str:
        return _dumps(gateway.summary(data.airportCode.strip().upper()))

    registry.register(
        ToolSpec(
            name="get_metar",
            description=(
                "Get current weather observation (METAR) for an airport. "
                f"{_AIRPORT_HINT} Optionally specify hours (1-24) of historical data to retrieve."
            ),
            args_schema=MetarInput,
            handler=_metar,
            tags=["weather"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_taf",
            description=(
                "Get weather forecast (TAF - Terminal Aerodrome Forecast) for an airport. "
                f"{_AIRPORT_HINT} TAF provides forecast information for the next 24-30 hours."
            ),
            args_schema=AirportInput,
            handler=_taf,
            tags=["weather"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_airport_weather_summary",
            description=(
                "Get a weather summary combining current conditions (METAR) and forecast "
                f"(TAF) for an airport. {_AIRPORT_HINT}"
            ),
            args_schema=AirportInput,
            handler=_summary,
            tags=["weather"],
        )
    )


def register_loyalty_tools(registry: ToolRegistry, library: ReferenceLibrary) -> None:
    """Register the program qualification tools over preloaded reference text."""

    def _delta(_: NoArguments) -> str:
        return _program_payload(library, DELTA_KEY, DELTA_PROGRAM, DELTA_SOURCE_URL)

    def _united(_: NoArguments) -> str:
        return _program_payload(library, UNITED_KEY, UNITED_PROGRAM, UNITED_SOURCE_URL)

    def _compare(_: NoArguments) -> str:
        delta = library.get(DELTA_KEY)
        united = library.get(UNITED_KEY)
        if delta is None or united is None:
            return _dumps(
                {"error": "Airline program comparison information is currently unavailable."}
            )
        return _dumps(
            {
                "comparison": f"{DELTA_PROGRAM} vs {UNITED_PROGRAM}",
                "delta_skymiles_medallion": {"content": delta, "source": DELTA_SOURCE_URL},
                "united_mileageplus_premier": {"content": united, "source": UNITED_SOURCE_URL},
            }
        )

    registry.register(
        ToolSpec(
            name="get_delta_medallion_qualification",
            description=(
                "Fetches current Delta SkyMiles Medallion qualification requirements "
                "and status tier information"
            ),
            handler=_delta,
            tags=["loyalty", "delta"],
        )
    )
    registry.register(
        ToolSpec(
            name="get_united_premier_qualification",
            description=(
                "Fetches current United MileagePlus Premier qualification requirements "
                "and status tier information"
            ),
            handler=_united,
            tags=["loyalty", "united"],
        )
    )
    registry.register(
        ToolSpec(
            name="compare_airline_programs",
            description=(
                "Compares Delta SkyMiles Medallion and United MileagePlus Premier "
                "qualification requirements"
            ),
            handler=_compare,
            tags=["loyalty", "comparison"],
        )
    )


def _program_payload(library: ReferenceLibrary, key: str, program: str, source: str) -> str:
    content = library.get(key)
    if content is None:
        return _dumps({"error": f"{program} qualification information is currently unavailable."})
    return _dumps({"program": program, "content": content, "source": source})


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False)
