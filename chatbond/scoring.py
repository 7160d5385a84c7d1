"""
Scoring module for ChatBond
Combines normalized component scores into a weighted relationship verdict
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional
import pandas as pd

from .config import AnalyzerConfig, IndicatorCategory, get_default_config
from .indicators import IndicatorScorer, round_half_up

logger = logging.getLogger(__name__)


class RelationshipClass(str, Enum):
    ACQUAINTANCE = "Acquaintance"
    FRIEND = "Friend"
    CLOSE_FRIEND = "Close Friend"
    ROMANTIC = "Romantic"


@dataclass
class ClassificationResult:
    classification: RelationshipClass
    score: int
    component_scores: Dict[str, float] = field(default_factory=dict)
    metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classification": self.classification.value,
            "score": self.score,
            "component_scores": {k: round(v, 2) for k, v in self.component_scores.items()},
            "metrics": dict(self.metrics),
        }


class RelationshipClassifier:
    """Compute the weighted relationship score and classify it."""

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        scorer: Optional[IndicatorScorer] = None,
    ):
        self.config = config or get_default_config()
        self.scorer = scorer or IndicatorScorer(self.config)

    def component_scores(
        self,
        romantic_pct: float,
        intimacy_pct: float,
        future_pct: float,
        messages_per_day: float,
        avg_response_minutes: Optional[float],
    ) -> Dict[str, float]:
        """
        Normalize raw metrics into five 0-100 component scores.

        Responsiveness falls back to the neutral value when there is no
        response-time data at all.
        """
        n = self.config.normalization
        top = n.max_score

        if avg_response_minutes is None or pd.isna(avg_response_minutes):
            responsiveness = n.neutral_responsiveness
        else:
            responsiveness = max(top - avg_response_minutes * n.response_sensitivity, 0.0)

        scores = {
            "romantic": min(romantic_pct * n.romantic_multiplier, top),
            "intimacy": min(intimacy_pct * n.intimacy_multiplier, top),
            "future_planning": min(future_pct * n.future_multiplier, top),
            "frequency": min(messages_per_day / n.frequency_base * 100, top),
            "responsiveness": min(responsiveness, top),
        }
        return {k: max(0.0, float(v)) for k, v in scores.items()}

    def weighted_score(self, component_scores: Dict[str, float]) -> int:
        """
        Formula: round(0.35*romantic + 0.25*intimacy + 0.15*future_planning
                       + 0.15*frequency + 0.10*responsiveness)
        """
        w = self.config.weights
        raw = (
            w.romantic * component_scores["romantic"]
            + w.intimacy * component_scores["intimacy"]
            + w.future_planning * component_scores["future_planning"]
            + w.frequency * component_scores["frequency"]
            + w.responsiveness * component_scores["responsiveness"]
        )
        return round_half_up(raw)

    def classify_score(self, score: int) -> RelationshipClass:
        t = self.config.thresholds
        if score >= t.romantic:
            return RelationshipClass.ROMANTIC
        if score >= t.close_friend:
            return RelationshipClass.CLOSE_FRIEND
        if score >= t.friend:
            return RelationshipClass.FRIEND
        return RelationshipClass.ACQUAINTANCE

    def classify(self, df: pd.DataFrame) -> Optional[ClassificationResult]:
        """
        Classify an enriched record table.

        Returns None for an empty table; there is nothing to classify.
        """
        if len(df) == 0:
            return None

        from .aggregator import Aggregator
        aggregator = Aggregator(self.config, self.scorer)

        pct = {
            category: self.scorer.summarize(df, category)["percentage_of_messages"]
            for category in IndicatorCategory
        }
        frequency = aggregator.compute_messaging_frequency(df)["messages_per_day"]
        avg_response = aggregator.compute_response_patterns(df)["overall_avg_minutes"]

        components = self.component_scores(
            romantic_pct=pct[IndicatorCategory.ROMANTIC],
            intimacy_pct=pct[IndicatorCategory.INTIMACY],
            future_pct=pct[IndicatorCategory.FUTURE_PLANNING],
            messages_per_day=frequency,
            avg_response_minutes=avg_response,
        )
        score = self.weighted_score(components)
        classification = self.classify_score(score)

        logger.info(f"Classified relationship as {classification.value} (score {score})")
        return ClassificationResult(
            classification=classification,
            score=score,
            component_scores=components,
            metrics={
                "romantic_percentage": pct[IndicatorCategory.ROMANTIC],
                "intimacy_percentage": pct[IndicatorCategory.INTIMACY],
                "future_planning_percentage": pct[IndicatorCategory.FUTURE_PLANNING],
                "messages_per_day": frequency,
                "avg_response_minutes": (
                    round(avg_response, 2) if avg_response is not None else None
                ),
            },
        )
