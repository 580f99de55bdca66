"""Exception taxonomy shared across the assistant."""

from __future__ import annotations

GENERIC_FAILURE_MESSAGE = "Unable to process your request. Please try again later."


class AssistantError(Exception):
    """Base class for all assistant errors."""


class WeatherValidationError(AssistantError, ValueError):
    """Weather request arguments were rejected before any network call."""


class InvalidAirportCodeError(WeatherValidationError):
    def __init__(self, code: str) -> None:
        super().__init__(
            f"Airport code must be 4 uppercase letters (ICAO format). Provided: {code}"
        )
        self.code = code


class InvalidHoursError(WeatherValidationError):
    def __init__(self, hours: int) -> None:
        super().__init__(f"Hours must be between 1 and 24. Provided: {hours}")
        self.hours = hours


class WeatherDataNotFoundError(AssistantError):
    """Upstream weather source failed or returned nothing usable."""


class ToolExecutionError(AssistantError):
    """A tool call could not be completed."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class UnknownToolError(ToolExecutionError, KeyError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f"Unknown tool: {tool_name}")

    def __str__(self) -> str:
        return self.args[0]


class ToolLoopLimitError(AssistantError):
    """The model kept requesting tools past the configured number of rounds."""


class PipelineFailure(AssistantError):
    """Generic failure surfaced to end users without internal detail."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE) -> None:
        super().__init__(message)
