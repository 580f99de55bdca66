"""Helpers for reading LangChain chat messages."""

from __future__ import annotations

from typing import Any


def message_text(message: Any) -> str:
    """Plain text of a chat model response, joining content blocks if needed."""

    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if item.get("type", "text") == "text":
                    parts.append(str(item.get("text", "")))
            else:
                parts.append(str(item))
        return "".join(parts).strip()
    return str(content)


def tool_calls_of(message: Any) -> list[dict[str, Any]]:
    return list(getattr(message, "tool_calls", None) or [])
