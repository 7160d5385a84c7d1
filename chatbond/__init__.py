"""
ChatBond - WhatsApp Chat Relationship Analyzer

Parses WhatsApp exports into an enriched message table, segments it into
conversations and time periods, and classifies the relationship with a
weighted keyword-indicator model.
"""

__version__ = "1.0.0"
__author__ = "ChatBond Team"

from . import config
from . import parser
from . import streaming
from . import enricher
from . import indicators
from . import aggregator
from . import scoring
from . import segmenter
from . import temporal
from . import pipeline

__all__ = [
    "config",
    "parser",
    "streaming",
    "enricher",
    "indicators",
    "aggregator",
    "scoring",
    "segmenter",
    "temporal",
    "pipeline",
]
