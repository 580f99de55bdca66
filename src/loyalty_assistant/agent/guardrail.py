"""Topic guardrail evaluated before the main model sees a query."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from loguru import logger

from loyalty_assistant.agent.messages import message_text

_VALIDATION_PROMPT = """
You are a content validator. Your task is to determine if a user's question
is related to airline loyalty programs.

Airline loyalty topics include:
- Frequent flyer programs (Delta SkyMiles, United MileagePlus, etc.)
- Status tiers and qualification requirements
- Earning and redeeming miles or points
- Elite benefits and perks
- Award flights and upgrades
- Airline alliances and partnerships

Respond with ONLY "YES" if the question is about airline loyalty programs.
Respond with ONLY "NO" if it is not.

Do not provide any explanation, just YES or NO.
""".strip()

REJECTION_MESSAGE = (
    "I'm specialized in airline loyalty programs. "
    "Please ask questions about frequent flyer programs, "
    "status tiers, miles, or airline rewards."
)


@dataclass(frozen=True, slots=True)
class GuardrailVerdict:
    accepted: bool
    reason: str  # "classified", "fail_open" or "disabled"


class InputGuardrail:
    """Classifies a query as on-topic with a deterministic model call.

    ``classifier`` must be a chat model configured with temperature 0. Only an
    exact ``YES`` (case-insensitive, surrounding whitespace ignored) accepts.
    If the classification call itself fails the query is accepted: the
    guardrail fails open.
    """

    def __init__(self, classifier: Any | None) -> None:
        self.classifier = classifier

    def evaluate(self, query: str) -> GuardrailVerdict:
        if self.classifier is None:
            return GuardrailVerdict(accepted=True, reason="disabled")

        logger.info("Guardrail: validating query")
        try:
            response = self.classifier.invoke(
                [
                    SystemMessage(content=_VALIDATION_PROMPT),
                    HumanMessage(content=f"User question: {query}"),
                ]
            )
            answer = message_text(response).strip().upper()
        except Exception:
            logger.exception("Guardrail: error during validation, failing open")
            return GuardrailVerdict(accepted=True, reason="fail_open")

        logger.debug("Guardrail: validation result {!r}", answer)
        if answer == "YES":
            logger.info("Guardrail: query passed validation")
            return GuardrailVerdict(accepted=True, reason="classified")
        logger.warning("Guardrail: query rejected as unrelated to airline loyalty programs")
        return GuardrailVerdict(accepted=False, reason="classified")
