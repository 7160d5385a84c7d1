"""
Shared analysis pipeline for ChatBond
Used by the CLI and library callers so both produce the same result
"""

import math
import logging
import threading
import concurrent.futures
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
import numpy as np
import pandas as pd

from .config import AnalyzerConfig, get_default_config
from .aggregator import Aggregator, primary_indicators
from .indicators import IndicatorScorer
from .parser import ParseDiagnostic
from .scoring import ClassificationResult, RelationshipClassifier
from .segmenter import ConversationSegment, ConversationSegmenter
from .streaming import StreamIngestor
from .summaries import attach_summaries
from .temporal import TemporalSummarizer, TemporalSummary

logger = logging.getLogger(__name__)

EMPTY_RESULT_ERROR = "No valid messages found in the chat file"


@dataclass
class AnalysisResult:
    records: pd.DataFrame
    classification: Optional[ClassificationResult] = None
    segments: List[ConversationSegment] = field(default_factory=list)
    temporal: TemporalSummary = field(default_factory=TemporalSummary)
    analysis: Optional[Dict[str, Any]] = None
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return len(self.records) == 0


def analyze_chat(
    filepath: Union[str, Path],
    config: Optional[AnalyzerConfig] = None,
    streaming: Optional[bool] = None,
    parallel: bool = False,
    summarizer=None,
    summaries: bool = False,
    cancel_event: Optional[threading.Event] = None,
) -> AnalysisResult:
    """
    Run the complete analysis on a WhatsApp chat export.

    Args:
        filepath: Path to WhatsApp export file
        config: Analyzer configuration (default from environment)
        streaming: Force/forbid chunked ingestion; None decides by size
        parallel: Enrich chunks concurrently
        summarizer: Optional object with summarize(messages) -> Optional[str]
        summaries: Attach text summaries to segments (fallback if no summarizer)
        cancel_event: Cancels ingestion at the next chunk boundary

    Returns:
        AnalysisResult; its error is set and every derived field empty when
        the file holds no participant messages.
    """
    config = config or get_default_config()

    logger.info(f"Analyzing chat file: {filepath}")
    ingest = StreamIngestor(config).ingest_file(
        filepath, streaming=streaming, parallel=parallel, cancel_event=cancel_event
    )
    records = ingest.records

    metadata = {
        "source": str(filepath),
        "message_count": ingest.message_count,
        "system_message_count": ingest.system_message_count,
        "record_count": len(records),
        "chunk_count": ingest.chunk_count,
        "streamed": ingest.streamed,
        "reconciled": ingest.reconciled,
    }

    if ingest.is_empty:
        logger.warning(EMPTY_RESULT_ERROR)
        return AnalysisResult(
            records=records,
            diagnostics=ingest.diagnostics,
            metadata=metadata,
            error=EMPTY_RESULT_ERROR,
        )

    scorer = IndicatorScorer(config)
    classifier = RelationshipClassifier(config, scorer)
    segmenter = ConversationSegmenter(config)
    temporal = TemporalSummarizer(config)

    # The record table is read-only from here on
    with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
        classification_future = executor.submit(classifier.classify, records)
        segments_future = executor.submit(segmenter.segment, records)
        temporal_future = executor.submit(temporal.summarize, records)

        classification = classification_future.result()
        segments = segments_future.result()
        temporal_summary = temporal_future.result()

    if summaries or summarizer is not None:
        segments = attach_summaries(segments, records, summarizer, config)

    aggregator = Aggregator(config, scorer)
    analysis = aggregator.analyze_relationship(records, classification)
    analysis["primary_indicators"] = primary_indicators(classification.component_scores)
    analysis["senders"] = aggregator.senders(records)

    logger.info(
        f"Analysis complete: {classification.classification.value} "
        f"(score {classification.score}), {len(segments)} segments, "
        f"{len(temporal_summary.periods)} periods"
    )

    return AnalysisResult(
        records=records,
        classification=classification,
        segments=segments,
        temporal=temporal_summary,
        analysis=analysis,
        diagnostics=ingest.diagnostics,
        metadata=metadata,
    )


def to_jsonable(value: Any) -> Any:
    """Recursively convert analysis values into JSON-ready Python types."""
    if hasattr(value, "to_dict") and not isinstance(value, (pd.DataFrame, pd.Series)):
        return to_jsonable(value.to_dict())
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.isoformat()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, pd.DataFrame):
        return [to_jsonable(row) for row in value.to_dict(orient="records")]
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return None if math.isnan(value) else float(value)
    return value


def result_to_dict(result: AnalysisResult, include_records: bool = False) -> Dict[str, Any]:
    """Serialize an AnalysisResult; equal inputs give equal output."""
    data = {
        "error": result.error,
        "metadata": result.metadata,
        "classification": result.classification,
        "analysis": result.analysis,
        "segments": result.segments,
        "temporal_summary": result.temporal,
        "diagnostics": result.diagnostics,
    }
    if include_records:
        data["records"] = result.records
    return to_jsonable(data)


if __name__ == "__main__":
    import json
    import sys

    if len(sys.argv) < 2:
        print("usage: python -m chatbond.pipeline CHAT.txt")
        sys.exit(2)

    logging.basicConfig(level=logging.INFO)
    result = analyze_chat(sys.argv[1])
    print(json.dumps(result_to_dict(result), indent=2, ensure_ascii=False))
