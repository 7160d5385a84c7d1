"""
Configuration module for ChatBond
Loads environment variables and provides default settings
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Any, Mapping, Tuple, FrozenSet
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Ingestion
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1000"))
LARGE_FILE_THRESHOLD_BYTES = int(os.getenv("LARGE_FILE_THRESHOLD_BYTES", "10485760"))  # 10MB
INGEST_MAX_WORKERS = int(os.getenv("INGEST_MAX_WORKERS", "4"))

# Conversation boundaries / response latency
CONVERSATION_GAP_MINUTES = float(os.getenv("CONVERSATION_GAP_MINUTES", "60"))
RESPONSE_TIME_CAP_MINUTES = float(os.getenv("RESPONSE_TIME_CAP_MINUTES", "1440"))

# Segmentation and themes
MAX_SEGMENTS = int(os.getenv("MAX_SEGMENTS", "50"))
TOP_THEMES = int(os.getenv("TOP_THEMES", "5"))
FALLBACK_SUMMARY_TOPICS = int(os.getenv("FALLBACK_SUMMARY_TOPICS", "3"))
MIN_THEME_WORD_LENGTH = int(os.getenv("MIN_THEME_WORD_LENGTH", "4"))

# Temporal granularity (span in days)
WEEKLY_MAX_DAYS = int(os.getenv("WEEKLY_MAX_DAYS", "30"))
BIWEEKLY_MAX_DAYS = int(os.getenv("BIWEEKLY_MAX_DAYS", "180"))

# Classification weights (should sum to 1.0)
ROMANTIC_WEIGHT = float(os.getenv("ROMANTIC_WEIGHT", "0.35"))
INTIMACY_WEIGHT = float(os.getenv("INTIMACY_WEIGHT", "0.25"))
FUTURE_PLANNING_WEIGHT = float(os.getenv("FUTURE_PLANNING_WEIGHT", "0.15"))
FREQUENCY_WEIGHT = float(os.getenv("FREQUENCY_WEIGHT", "0.15"))
RESPONSIVENESS_WEIGHT = float(os.getenv("RESPONSIVENESS_WEIGHT", "0.10"))

# Score normalization
ROMANTIC_MULTIPLIER = float(os.getenv("ROMANTIC_MULTIPLIER", "5"))
INTIMACY_MULTIPLIER = float(os.getenv("INTIMACY_MULTIPLIER", "5"))
FUTURE_MULTIPLIER = float(os.getenv("FUTURE_MULTIPLIER", "10"))
FREQUENCY_BASE = float(os.getenv("FREQUENCY_BASE", "20"))  # msgs/day for a full frequency score
RESPONSE_SENSITIVITY = float(os.getenv("RESPONSE_SENSITIVITY", "2"))
NEUTRAL_RESPONSIVENESS = float(os.getenv("NEUTRAL_RESPONSIVENESS", "50"))
MAX_COMPONENT_SCORE = 100.0

# Classification thresholds (inclusive lower bounds on the 0-100 score)
ROMANTIC_THRESHOLD = int(os.getenv("ROMANTIC_THRESHOLD", "70"))
CLOSE_FRIEND_THRESHOLD = int(os.getenv("CLOSE_FRIEND_THRESHOLD", "40"))
FRIEND_THRESHOLD = int(os.getenv("FRIEND_THRESHOLD", "20"))

# HuggingFace summarization (optional)
HF_TOKEN = os.getenv("HF_TOKEN", "")
SUMMARIZATION_MODEL = os.getenv("SUMMARIZATION_MODEL", "facebook/bart-large-cnn")
HF_API_BASE = os.getenv("HF_API_BASE", "https://router.huggingface.co/hf-inference/models")
API_TIMEOUT = int(os.getenv("API_TIMEOUT", "30"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
SUMMARY_MAX_LENGTH = int(os.getenv("SUMMARY_MAX_LENGTH", "100"))
SUMMARY_MIN_LENGTH = int(os.getenv("SUMMARY_MIN_LENGTH", "30"))
SUMMARY_MAX_INPUT_CHARS = int(os.getenv("SUMMARY_MAX_INPUT_CHARS", "3000"))
USE_ML_SUMMARY = os.getenv("USE_ML_SUMMARY", "False").lower() == "true"

SYSTEM_SENDER = "SYSTEM"


class IndicatorCategory(str, Enum):
    """Keyword categories scored per message."""

    ROMANTIC = "romantic"
    INTIMACY = "intimacy"
    FUTURE_PLANNING = "future_planning"

    @property
    def column(self) -> str:
        return f"{self.value}_score"


# Romantic keywords (Portuguese + English)
ROMANTIC_KEYWORDS = [
    "amor", "amo", "amo você", "te amo", "amorzinho", "meu amor", "minha vida",
    "querido", "querida", "saudade", "sinto sua falta", "beijo", "beijinho",
    "gostoso", "gostosa", "lindo", "linda", "tesão", "sdds", "apaixonado",
    "apaixonada", "namorar", "namorado", "namorada", "carinho",
    "love", "miss you", "missing you", "darling", "babe", "baby", "honey",
    "sweetheart", "beautiful", "gorgeous", "handsome", "kiss", "kisses",
    "boyfriend", "girlfriend", "passion", "passionate", "romantic", "date",
]

# Intimacy / emotional connection keywords
INTIMACY_KEYWORDS = [
    "sinto", "sentir", "sentimento", "emoção", "confiar", "confio", "segredo",
    "pessoal", "íntimo", "íntima", "vulnerável", "abrir", "coração", "alma",
    "feel", "feeling", "emotion", "trust", "secret", "personal", "intimate",
    "vulnerable", "open up", "heart", "soul",
]

# Future planning keywords
FUTURE_PLANNING_KEYWORDS = [
    "planejar", "futuro", "morar", "juntos", "juntas", "casa", "viajar",
    "férias", "feriado", "fim de semana", "amanhã", "semana que vem",
    "plan", "future", "live together", "house", "travel", "vacation",
    "holiday", "weekend", "tomorrow", "next week",
]

# Stopwords excluded from themes and fallback summaries
STOPWORDS = frozenset([
    # Portuguese
    "que", "para", "com", "uma", "você", "voce", "ele", "ela", "por",
    "como", "mas", "seu", "sua", "esse", "essa", "esta", "este", "isso",
    "aqui", "ali", "muito", "mais", "quando", "onde", "porque", "qual",
    "quem", "depois", "antes", "sobre", "foi", "ser", "ter", "fazer", "não",
    "nao", "sim", "vai", "pode", "bem", "todo", "toda", "até", "ate", "agora",
    "tudo", "então", "entao", "ainda", "também", "tambem",
    # English
    "the", "and", "that", "this", "with", "have", "from", "they", "will",
    "would", "there", "their", "what", "about", "which", "when", "your",
    "just", "like", "then", "them", "been", "were", "into", "than", "some",
    "could", "also", "only", "because", "here", "yeah", "okay", "really",
    "much", "very", "going", "know", "think", "dont", "it's", "i'm",
])

# Time-of-day buckets (inclusive hour ranges); everything else is "night"
TIME_PERIODS = {
    "morning": (6, 11),
    "afternoon": (12, 17),
    "evening": (18, 22),
}

DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}


@dataclass(frozen=True)
class ScoringWeights:
    romantic: float = ROMANTIC_WEIGHT
    intimacy: float = INTIMACY_WEIGHT
    future_planning: float = FUTURE_PLANNING_WEIGHT
    frequency: float = FREQUENCY_WEIGHT
    responsiveness: float = RESPONSIVENESS_WEIGHT

    def total(self) -> float:
        return (self.romantic + self.intimacy + self.future_planning
                + self.frequency + self.responsiveness)


@dataclass(frozen=True)
class ScoreNormalization:
    romantic_multiplier: float = ROMANTIC_MULTIPLIER
    intimacy_multiplier: float = INTIMACY_MULTIPLIER
    future_multiplier: float = FUTURE_MULTIPLIER
    frequency_base: float = FREQUENCY_BASE
    response_sensitivity: float = RESPONSE_SENSITIVITY
    neutral_responsiveness: float = NEUTRAL_RESPONSIVENESS
    max_score: float = MAX_COMPONENT_SCORE


@dataclass(frozen=True)
class ClassificationThresholds:
    romantic: int = ROMANTIC_THRESHOLD
    close_friend: int = CLOSE_FRIEND_THRESHOLD
    friend: int = FRIEND_THRESHOLD


def _default_keywords() -> Mapping[IndicatorCategory, Tuple[str, ...]]:
    return MappingProxyType({
        IndicatorCategory.ROMANTIC: tuple(ROMANTIC_KEYWORDS),
        IndicatorCategory.INTIMACY: tuple(INTIMACY_KEYWORDS),
        IndicatorCategory.FUTURE_PLANNING: tuple(FUTURE_PLANNING_KEYWORDS),
    })


@dataclass(frozen=True)
class AnalyzerConfig:
    """
    Immutable snapshot of every tunable used by the analysis engine.

    Components receive one of these at construction time; passing None
    anywhere falls back to get_default_config().
    """

    keywords: Mapping[IndicatorCategory, Tuple[str, ...]] = field(default_factory=_default_keywords, hash=False)
    stopwords: FrozenSet[str] = STOPWORDS
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    normalization: ScoreNormalization = field(default_factory=ScoreNormalization)
    thresholds: ClassificationThresholds = field(default_factory=ClassificationThresholds)
    chunk_size: int = CHUNK_SIZE
    large_file_threshold_bytes: int = LARGE_FILE_THRESHOLD_BYTES
    ingest_max_workers: int = INGEST_MAX_WORKERS
    conversation_gap_minutes: float = CONVERSATION_GAP_MINUTES
    response_time_cap_minutes: float = RESPONSE_TIME_CAP_MINUTES
    max_segments: int = MAX_SEGMENTS
    top_themes: int = TOP_THEMES
    fallback_summary_topics: int = FALLBACK_SUMMARY_TOPICS
    min_theme_word_length: int = MIN_THEME_WORD_LENGTH
    weekly_max_days: int = WEEKLY_MAX_DAYS
    biweekly_max_days: int = BIWEEKLY_MAX_DAYS

    def __post_init__(self):
        # keywords and stopwords are stored read-only
        keywords = MappingProxyType({
            IndicatorCategory(category): tuple(words) for category, words in self.keywords.items()
        })
        object.__setattr__(self, "keywords", keywords)
        object.__setattr__(self, "stopwords", frozenset(self.stopwords))

    def keywords_for(self, category: IndicatorCategory) -> Tuple[str, ...]:
        try:
            return self.keywords[IndicatorCategory(category)]
        except (KeyError, ValueError):
            raise ValueError(f"Unknown indicator category: {category!r}")


_DEFAULT_CONFIG = None


def get_default_config() -> AnalyzerConfig:
    """Return the process-wide default configuration built from the environment."""
    global _DEFAULT_CONFIG
    if _DEFAULT_CONFIG is None:
        _DEFAULT_CONFIG = AnalyzerConfig()
    return _DEFAULT_CONFIG


def get_config_summary(cfg: AnalyzerConfig = None) -> Dict[str, Any]:
    """Return a summary of current configuration."""
    cfg = cfg or get_default_config()
    return {
        "ingestion": {
            "chunk_size": cfg.chunk_size,
            "large_file_threshold_bytes": cfg.large_file_threshold_bytes,
            "max_workers": cfg.ingest_max_workers,
        },
        "conversations": {
            "gap_minutes": cfg.conversation_gap_minutes,
            "response_time_cap_minutes": cfg.response_time_cap_minutes,
            "max_segments": cfg.max_segments,
        },
        "scoring": {
            "weights": {
                "romantic": cfg.weights.romantic,
                "intimacy": cfg.weights.intimacy,
                "future_planning": cfg.weights.future_planning,
                "frequency": cfg.weights.frequency,
                "responsiveness": cfg.weights.responsiveness,
            },
            "thresholds": {
                "romantic": cfg.thresholds.romantic,
                "close_friend": cfg.thresholds.close_friend,
                "friend": cfg.thresholds.friend,
            },
        },
        "keywords": {category.value: len(words) for category, words in cfg.keywords.items()},
        "summarization": {
            "model": SUMMARIZATION_MODEL,
            "use_ml": USE_ML_SUMMARY,
            "timeout": API_TIMEOUT,
            "max_retries": MAX_RETRIES,
        },
    }


def validate_config(cfg: AnalyzerConfig = None) -> Tuple[bool, str]:
    """Validate configuration. Returns (is_valid, message)."""
    cfg = cfg or get_default_config()

    if cfg.chunk_size <= 0:
        return False, f"CHUNK_SIZE must be positive, got {cfg.chunk_size}"

    total_weight = cfg.weights.total()
    if abs(total_weight - 1.0) > 0.01:
        return False, f"Scoring weights sum to {total_weight:.2f}, should be ~1.0"

    t = cfg.thresholds
    if not (t.romantic > t.close_friend > t.friend >= 0):
        return False, "Classification thresholds must be strictly descending"

    if USE_ML_SUMMARY and not HF_TOKEN:
        return False, "HF_TOKEN not set in .env file (required when USE_ML_SUMMARY=True)"

    return True, "Configuration valid"


if __name__ == "__main__":
    # Print config summary for debugging
    import json
    print("ChatBond Configuration:")
    print(json.dumps(get_config_summary(), indent=2))
    print()
    valid, msg = validate_config()
    print(f"Validation: {msg}")
