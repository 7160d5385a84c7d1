"""
Streaming ingestion for ChatBond
Reads exports line-by-line and enriches fixed-size message chunks
"""

import os
import logging
import threading
import concurrent.futures
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union
import pandas as pd

from .config import AnalyzerConfig, get_default_config
from .enricher import (
    EnrichmentState,
    FeatureEnricher,
    empty_records,
    messages_to_dataframe,
)
from .parser import LineParser, Message, ParseDiagnostic, parse_lines

logger = logging.getLogger(__name__)


class IngestionCancelled(RuntimeError):
    """Raised at a chunk boundary when the caller's cancel event is set."""

    def __init__(self, chunks_completed: int):
        super().__init__(f"Ingestion cancelled after {chunks_completed} chunks")
        self.chunks_completed = chunks_completed


@dataclass
class IngestResult:
    records: pd.DataFrame
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)
    message_count: int = 0
    system_message_count: int = 0
    chunk_count: int = 0
    streamed: bool = False
    reconciled: bool = False

    @property
    def is_empty(self) -> bool:
        return len(self.records) == 0


def iter_chunks(messages: Iterable[Message], chunk_size: int) -> Iterator[List[Message]]:
    """Group a message stream into lists of at most chunk_size messages."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    it = iter(messages)
    while True:
        chunk = list(islice(it, chunk_size))
        if not chunk:
            return
        yield chunk


class StreamIngestor:
    """
    Turns a chat export into an enriched record table.

    Small files are parsed and enriched in one pass; large files (or when
    streaming is forced) are read lazily and enriched chunk by chunk with the
    enrichment state threaded from one chunk to the next.
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        enricher: Optional[FeatureEnricher] = None,
    ):
        self.config = config or get_default_config()
        if self.config.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.config.chunk_size}")
        self.enricher = enricher or FeatureEnricher(self.config)

    def should_stream(self, file_path: Union[str, Path]) -> bool:
        return os.path.getsize(file_path) > self.config.large_file_threshold_bytes

    def ingest_file(
        self,
        file_path: Union[str, Path],
        streaming: Optional[bool] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestResult:
        """
        Ingest a file from disk. OSError from opening/reading propagates.

        Args:
            file_path: Path to the WhatsApp export
            streaming: Force (True) or forbid (False) chunked streaming;
                None decides by file size
            parallel: Enrich chunks concurrently (requires a reconciliation pass)
            max_workers: Thread pool size for parallel enrichment
            cancel_event: Checked between chunks; when set, ingestion stops
        """
        if streaming is None:
            streaming = parallel or self.should_stream(file_path)

        logger.info(f"Ingesting {file_path} (streaming={streaming}, parallel={parallel})")
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            if streaming:
                return self.ingest_lines(f, parallel=parallel, max_workers=max_workers,
                                         cancel_event=cancel_event)
            return self.ingest_whole(f)

    def ingest_whole(self, lines: Iterable[str]) -> IngestResult:
        """Parse everything, then enrich once."""
        line_parser = LineParser()
        messages = list(parse_lines(lines, line_parser))
        base = messages_to_dataframe(messages)
        records = self.enricher.enrich(base) if len(base) else empty_records()

        return IngestResult(
            records=records,
            diagnostics=line_parser.diagnostics,
            message_count=len(messages),
            system_message_count=len(messages) - len(base),
            chunk_count=1 if messages else 0,
            streamed=False,
        )

    def ingest_lines(
        self,
        lines: Iterable[str],
        parallel: bool = False,
        max_workers: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> IngestResult:
        """Chunked ingestion over a lazy line iterable."""
        line_parser = LineParser()
        chunks = iter_chunks(parse_lines(lines, line_parser), self.config.chunk_size)

        result = IngestResult(records=empty_records(), streamed=True)
        if parallel:
            frames = self._enrich_parallel(chunks, result, max_workers, cancel_event)
        else:
            frames = self._enrich_sequential(chunks, result, cancel_event)

        result.diagnostics = line_parser.diagnostics
        frames = [f for f in frames if len(f)]
        if not frames:
            return result

        records = pd.concat(frames, ignore_index=True)
        if parallel or not records["timestamp"].is_monotonic_increasing:
            if parallel:
                logger.info(f"Reconciling {len(records)} records from {result.chunk_count} parallel chunks")
            else:
                logger.warning("Chunks arrived out of timestamp order; reconciling globally")
            records = self.enricher.reconcile(records)
            result.reconciled = True

        result.records = records
        logger.info(
            f"Ingested {len(records)} records from {result.message_count} messages "
            f"in {result.chunk_count} chunks"
        )
        return result

    def _check_cancel(self, cancel_event: Optional[threading.Event], done: int):
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Ingestion cancelled after {done} chunks")
            raise IngestionCancelled(done)

    def _count(self, result: IngestResult, chunk: List[Message], base: pd.DataFrame):
        result.chunk_count += 1
        result.message_count += len(chunk)
        result.system_message_count += len(chunk) - len(base)

    def _enrich_sequential(
        self,
        chunks: Iterator[List[Message]],
        result: IngestResult,
        cancel_event: Optional[threading.Event],
    ) -> List[pd.DataFrame]:
        frames = []
        state = EnrichmentState()
        for chunk in chunks:
            base = messages_to_dataframe(chunk)
            self._count(result, chunk, base)
            enriched, state = self.enricher.enrich_chunk(base, state)
            frames.append(enriched)
            logger.debug(f"Chunk {result.chunk_count}: {len(enriched)} records")
            self._check_cancel(cancel_event, result.chunk_count)
        return frames

    def _enrich_parallel(
        self,
        chunks: Iterator[List[Message]],
        result: IngestResult,
        max_workers: Optional[int],
        cancel_event: Optional[threading.Event],
    ) -> List[pd.DataFrame]:
        workers = max_workers or self.config.ingest_max_workers
        futures = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            try:
                for chunk in chunks:
                    base = messages_to_dataframe(chunk)
                    self._count(result, chunk, base)
                    futures.append(executor.submit(self.enricher.enrich, base))
                    self._check_cancel(cancel_event, result.chunk_count)
            except IngestionCancelled:
                for future in futures:
                    future.cancel()
                raise
            # Keep submission order; reconciliation re-sorts anyway
            return [future.result() for future in futures]


def ingest_file(
    file_path: Union[str, Path],
    config: Optional[AnalyzerConfig] = None,
    streaming: Optional[bool] = None,
    parallel: bool = False,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> IngestResult:
    """Convenience wrapper around StreamIngestor.ingest_file."""
    return StreamIngestor(config).ingest_file(
        file_path,
        streaming=streaming,
        parallel=parallel,
        max_workers=max_workers,
        cancel_event=cancel_event,
    )
