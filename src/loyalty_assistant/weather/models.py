"""Pydantic models for aviationweather.gov METAR and TAF payloads.

Field aliases follow the upstream JSON keys; unknown keys are ignored and any
missing key stays ``None`` so it can be dropped on serialization.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        """Flat-as-possible dict for tool output, absent fields omitted."""
        return self.model_dump(exclude_none=True)


def _as_text(value: Any) -> Any:
    # visibility arrives as a number or as strings like "10+" / "6+"
    if value is None or isinstance(value, str):
        return value
    return str(value)


VisibilityText = Annotated[str | None, BeforeValidator(_as_text)]


class SkyCondition(_UpstreamModel):
    cover: str | None = None
    base_feet: int | None = Field(default=None, alias="base")


class MetarObservation(_UpstreamModel):
    airport_code: str | None = Field(default=None, alias="icaoId")
    observation_time: str | None = Field(default=None, alias="reportTime")
    raw_metar: str | None = Field(default=None, alias="rawOb")
    temperature_celsius: float | None = Field(default=None, alias="temp")
    dewpoint_celsius: float | None = Field(default=None, alias="dewp")
    wind_speed_knots: int | None = Field(default=None, alias="wspd")
    wind_direction_degrees: int | str | None = Field(default=None, alias="wdir")
    visibility_miles: VisibilityText = Field(default=None, alias="visib")
    altimeter: float | None = Field(default=None, alias="altim")
    flight_category: str | None = Field(default=None, alias="fltCat")
    sky_conditions: list[SkyCondition] | None = Field(default=None, alias="clouds")


class ForecastPeriod(_UpstreamModel):
    time_from: int | None = Field(default=None, alias="timeFrom")
    time_to: int | None = Field(default=None, alias="timeTo")
    wind_speed_knots: int | None = Field(default=None, alias="wspd")
    wind_direction_degrees: int | str | None = Field(default=None, alias="wdir")
    visibility_miles: VisibilityText = Field(default=None, alias="visib")
    weather: str | None = Field(default=None, alias="wxString")
    sky_conditions: list[SkyCondition] | None = Field(default=None, alias="clouds")


class TafForecast(_UpstreamModel):
    airport_code: str | None = Field(default=None, alias="icaoId")
    issue_time: str | None = Field(default=None, alias="issueTime")
    valid_from: int | None = Field(default=None, alias="validTimeFrom")
    valid_to: int | None = Field(default=None, alias="validTimeTo")
    raw_taf: str | None = Field(default=None, alias="rawTAF")
    forecast_periods: list[ForecastPeriod] | None = Field(default=None, alias="fcsts")
