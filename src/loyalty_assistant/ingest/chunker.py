"""Token-bounded text splitting for reference documents."""

from __future__ import annotations

from typing import Any

import tiktoken

from loyalty_assistant.config import ChunkingConfig
from loyalty_assistant.types import DocumentChunk, ParsedDocument

_SENTENCE_ENDINGS = (".", "?", "!", "\n")


class TokenTextSplitter:
    """Splits page text into chunks of at most ``chunk_size_tokens`` tokens.

    Each page is encoded once. The splitter repeatedly takes the next window of
    ``chunk_size_tokens`` tokens, decodes it, and cuts the text back to the last
    sentence ending if that still leaves more than ``min_chunk_chars``
    characters. The tokens consumed by the kept text are dropped and the loop
    continues with the rest, so sentences are only broken when a single sentence
    does not fit in a window.

    Pages are split independently, so a chunk never spans two pages (and
    therefore never spans two documents). Chunks whose stripped text is not
    longer than ``min_chunk_length_to_embed`` characters are discarded.
    """

    def __init__(self, config: ChunkingConfig | None = None, *, encoding: Any | None = None) -> None:
        self.config = config or ChunkingConfig()
        self._encoding = encoding

    @property
    def encoding(self) -> Any:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.config.encoding_name)
        return self._encoding

    def chunk_document(self, document: ParsedDocument) -> list[DocumentChunk]:
        """Split every page of ``document`` and return ordered chunks.

        Chunk metadata carries the document metadata plus ``page`` (1-based)
        and ``chunk_index`` (running across the whole document).
        """

        chunks: list[DocumentChunk] = []
        for page_number, page_text in enumerate(document.pages, start=1):
            for text in self.split_text(page_text):
                if len(chunks) >= self.config.max_num_chunks:
                    return chunks
                index = len(chunks)
                chunks.append(
                    DocumentChunk(
                        chunk_id=f"{document.doc_id}-chunk-{index:04d}",
                        doc_id=document.doc_id,
                        text=text,
                        token_count=len(self._encode(text)),
                        metadata={
                            **document.metadata,
                            "page": page_number,
                            "chunk_index": index,
                        },
                    )
                )
        return chunks

    def split_text(self, text: str) -> list[str]:
        if not text or not text.strip():
            return []

        tokens = self._encode(text)
        output: list[str] = []
        while tokens and len(output) < self.config.max_num_chunks:
            window = tokens[: self.config.chunk_size_tokens]
            window_text = self.encoding.decode(window)
            if not window_text.strip():
                tokens = tokens[len(window) :]
                continue

            cut = max(window_text.rfind(ending) for ending in _SENTENCE_ENDINGS)
            if cut != -1 and cut > self.config.min_chunk_chars:
                window_text = window_text[: cut + 1]

            piece = window_text.strip()
            if len(piece) > self.config.min_chunk_length_to_embed:
                output.append(piece)

            consumed = len(self._encode(window_text))
            tokens = tokens[max(1, consumed) :]

        return output

    def _encode(self, text: str) -> list[int]:
        return list(self.encoding.encode(text, disallowed_special=()))
