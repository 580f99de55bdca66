"""Parsing interfaces and concrete parsers for reference documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import pymupdf

from loyalty_assistant.types import ParsedDocument


class Parser(ABC):
    """Base parser interface used by the ingest pipeline."""

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        """Parse a file into ordered page texts + metadata."""


class PdfParser(Parser):
    """Extracts one text entry per PDF page, in page order."""

    extensions = (".pdf",)

    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        pages: list[str] = []
        with pymupdf.open(path) as pdf:
            for page in pdf:
                pages.append(page.get_text("text", sort=True).strip())
        return ParsedDocument(
            doc_id=doc_id or path.stem,
            pages=pages,
            metadata={"file": str(path), "format": "pdf", "page_count": len(pages)},
        )


class TextParser(Parser):
    """Parser for plain text documents; form feeds separate pages."""

    extensions = (".txt",)

    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        text = path.read_text(encoding="utf-8")
        pages = [page.strip() for page in text.split("\f")]
        return ParsedDocument(
            doc_id=doc_id or path.stem,
            pages=pages,
            metadata={"file": str(path), "format": "text", "page_count": len(pages)},
        )


class ParserRegistry:
    """Maps file extension to parser implementation."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        for parser in parsers or [PdfParser(), TextParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    def parse_path(self, path: str | Path, *, doc_id: str | None = None) -> ParsedDocument:
        file_path = Path(path)
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            raise ValueError(f"No parser registered for extension: {file_path.suffix}")
        return parser.parse(file_path, doc_id=doc_id)
