import pytest
from conftest import RecordingWeatherSource

from loyalty_assistant.errors import InvalidAirportCodeError, InvalidHoursError
from loyalty_assistant.weather.gateway import AviationWeatherGateway
from loyalty_assistant.weather.models import MetarObservation, TafForecast


@pytest.mark.parametrize("code", ["JFK", "kjfk", "KJFKX", "K1FK", ""])
def test_invalid_airport_codes_never_reach_the_source(code: str) -> None:
    source = RecordingWeatherSource()
    gateway = AviationWeatherGateway(source)

    with pytest.raises(InvalidAirportCodeError) as excinfo:
        gateway.fetch_observation(code)
    with pytest.raises(InvalidAirportCodeError):
        gateway.fetch_forecast(code)

    assert "4 uppercase letters" in str(excinfo.value)
    assert source.calls == []


@pytest.mark.parametrize("hours", [0, 25, -1, True])
def test_hours_outside_window_rejected(hours: int) -> None:
    source = RecordingWeatherSource()

    with pytest.raises(InvalidHoursError):
        AviationWeatherGateway(source).fetch_observation("KJFK", hours)

    assert source.calls == []


def test_valid_request_passes_hours_through() -> None:
    metar = MetarObservation(icaoId="KJFK", temp=12.0)
    source = RecordingWeatherSource(metar=metar)

    result = AviationWeatherGateway(source).fetch_observation("KJFK", 24)

    assert result is metar
    assert source.calls == [("metar", "KJFK", 24)]


def test_summary_omits_missing_parts() -> None:
    source = RecordingWeatherSource(metar=MetarObservation(icaoId="EGLL", fltCat="VFR"))

    summary = AviationWeatherGateway(source).summary("EGLL")

    assert summary == {
        "airport_code": "EGLL",
        "current_weather": {"airport_code": "EGLL", "flight_category": "VFR"},
    }
    assert [call[0] for call in source.calls] == ["metar", "taf"]


def test_summary_includes_forecast_when_available() -> None:
    source = RecordingWeatherSource(taf=TafForecast(icaoId="YSSY", rawTAF="TAF YSSY ..."))

    summary = AviationWeatherGateway(source).summary("YSSY")

    assert "current_weather" not in summary
    assert summary["forecast"] == {"airport_code": "YSSY", "raw_taf": "TAF YSSY ..."}
