import re
import threading
from pathlib import Path

import pytest
from langchain_core.messages import AIMessage

from loyalty_assistant.bootstrap import Assistant, build_assistant
from loyalty_assistant.config import ChunkingConfig, Settings
from loyalty_assistant.ingest.chunker import TokenTextSplitter
from loyalty_assistant.ingest.embedder import HashingEmbedder
from loyalty_assistant.ingest.pipeline import DELTA_SOURCE_URL, DELTA_KEY, UNITED_KEY, UNITED_SOURCE_URL
from loyalty_assistant.types import ReferenceDocument
from loyalty_assistant.weather.models import MetarObservation, TafForecast


class WordEncoding:
    """Reversible toy encoding: one token per word or whitespace run."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}
        self._words: list[str] = []
        self._lock = threading.Lock()

    def encode(self, text: str, **_: object) -> list[int]:
        ids = []
        with self._lock:
            for piece in re.findall(r"\s+|\S+", text):
                if piece not in self._ids:
                    self._ids[piece] = len(self._words)
                    self._words.append(piece)
                ids.append(self._ids[piece])
        return ids

    def decode(self, ids: list[int]) -> str:
        with self._lock:
            return "".join(self._words[i] for i in ids)


class ScriptedChatModel:
    """Chat model double returning queued responses and recording every call."""

    def __init__(self, responses: list[object] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[list[object]] = []
        self.bound_tools: list[object] | None = None

    def bind_tools(self, tools: list[object]) -> "ScriptedChatModel":
        self.bound_tools = list(tools)
        return self

    def invoke(self, messages: list[object]) -> AIMessage:
        self.calls.append(list(messages))
        if not self.responses:
            raise AssertionError("unexpected model call")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingWeatherSource:
    def __init__(
        self,
        metar: MetarObservation | None = None,
        taf: TafForecast | None = None,
    ) -> None:
        self.metar = metar
        self.taf = taf
        self.calls: list[tuple[str, str, int | None]] = []

    def fetch_metar(self, airport_code: str, hours: int = 1) -> MetarObservation | None:
        self.calls.append(("metar", airport_code, hours))
        return self.metar

    def fetch_taf(self, airport_code: str) -> TafForecast | None:
        self.calls.append(("taf", airport_code, None))
        return self.taf


def tool_call(name: str, args: dict[str, object], call_id: str = "call_1") -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": call_id}])


DELTA_TEXT = (
    "Delta Medallion members qualify through Medallion Qualification Dollars.\n"
    "Silver Medallion requires 5,000 MQDs in a calendar year.\n"
    "Gold Medallion requires 10,000 MQDs.\f"
    "Diamond Medallion requires 28,000 MQDs and includes Delta Sky Club membership choices."
)

UNITED_TEXT = (
    "United Premier status is earned with Premier qualifying flights and Premier qualifying points.\n"
    "Premier Silver needs 12 PQF and 4,000 PQP or 5,000 PQP alone.\f"
    "Premier 1K needs 54 PQF and 18,000 PQP or 22,000 PQP alone."
)


@pytest.fixture
def splitter() -> TokenTextSplitter:
    return TokenTextSplitter(
        ChunkingConfig(chunk_size_tokens=40, min_chunk_chars=20),
        encoding=WordEncoding(),
    )


@pytest.fixture
def reference_documents(tmp_path: Path) -> list[ReferenceDocument]:
    delta_path = tmp_path / "delta.txt"
    united_path = tmp_path / "united.txt"
    delta_path.write_text(DELTA_TEXT, encoding="utf-8")
    united_path.write_text(UNITED_TEXT, encoding="utf-8")
    return [
        ReferenceDocument(
            key=DELTA_KEY,
            path=delta_path,
            source_url=DELTA_SOURCE_URL,
            title="Delta SkyMiles Medallion Status Qualification",
        ),
        ReferenceDocument(
            key=UNITED_KEY,
            path=united_path,
            source_url=UNITED_SOURCE_URL,
            title="United MileagePlus Premier Status Qualification",
        ),
    ]


@pytest.fixture
def make_assistant(splitter, reference_documents):
    """Builds a fully wired assistant over the two fixture documents."""

    def _build(
        *,
        llm: object | None = None,
        classifier: object | None = None,
        weather_source: RecordingWeatherSource | None = None,
        settings: Settings | None = None,
    ) -> Assistant:
        return build_assistant(
            settings or Settings(OPENAI_API_KEY=""),
            llm=llm,
            classifier=classifier,
            embedder=HashingEmbedder(),
            splitter=splitter,
            weather_source=weather_source or RecordingWeatherSource(),
            documents=reference_documents,
        )

    return _build
