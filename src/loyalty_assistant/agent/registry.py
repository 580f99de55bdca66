"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

import json
from collections.abc import Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from loyalty_assistant.errors import AssistantError, ToolExecutionError, UnknownToolError
from loyalty_assistant.types import ToolTrace


class NoArguments(BaseModel):
    """Schema for tools that take no parameters."""


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    args_schema: type[BaseModel] = NoArguments
    handler: Callable[[BaseModel], str]
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: dict[str, Any]) -> str:
        data = self.args_schema.model_validate(payload)
        return self.handler(data)


class ToolRegistry:
    """Stores tool specs and exports LangChain-compatible tool objects."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def execute(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        observer: Callable[[ToolTrace], None] | None = None,
    ) -> str:
        """Validate ``payload`` against the tool schema and run the handler.

        Raises ``UnknownToolError`` for unregistered names and lets argument
        validation or handler errors propagate. ``observer`` receives the trace
        of this call only, in addition to the registry-wide observer.
        """
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        return self._execute_spec(spec, payload, observer)

    def dispatch(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        observer: Callable[[ToolTrace], None] | None = None,
    ) -> str:
        """Model-facing execution: failures come back as ``{"error": ...}`` JSON."""

        try:
            return self.execute(name, payload, observer=observer)
        except ToolExecutionError as exc:
            logger.warning("Tool call rejected: {}", exc)
            return _error_payload(str(exc))
        except ValidationError as exc:
            logger.warning("Invalid arguments for tool {}: {}", name, exc)
            return _error_payload(f"Invalid arguments for {name}: {_summarize(exc)}")
        except AssistantError as exc:
            logger.warning("Tool {} failed: {}", name, exc)
            return _error_payload(str(exc))
        except Exception:
            logger.exception("Unexpected error in tool {}", name)
            return _error_payload(f"{name} failed to execute")

    def as_langchain_tools(self) -> list[StructuredTool]:
        tools: list[StructuredTool] = []
        for spec in self._tools.values():
            tools.append(
                StructuredTool.from_function(
                    name=spec.name,
                    description=spec.description,
                    args_schema=spec.args_schema,
                    func=self._build_function(spec),
                )
            )
        return tools

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def _build_function(self, spec: ToolSpec) -> Callable[..., str]:
        def _callable(**kwargs: Any) -> str:
            return self.dispatch(spec.name, kwargs)

        return _callable

    def _execute_spec(
        self,
        spec: ToolSpec,
        payload: dict[str, Any],
        observer: Callable[[ToolTrace], None] | None = None,
    ) -> str:
        logger.info("Tool called: {} {}", spec.name, payload)
        start = perf_counter()
        succeeded = False
        output = ""
        try:
            output = spec.invoke(payload)
            succeeded = True
            return output
        finally:
            trace = ToolTrace(
                name=spec.name,
                input_payload=dict(payload),
                output_preview=output[:320],
                latency_ms=(perf_counter() - start) * 1000.0,
                succeeded=succeeded,
            )
            for callback in (self._observer, observer):
                if callback is not None:
                    callback(trace)


def _error_payload(message: str) -> str:
    return json.dumps({"error": message})


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(item) for item in error.get("loc", ())) or "arguments"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)
