from .config import MatchConfig
from .engine import (
    InvoiceMatchEngine,
    MatchResult,
    PriorMatchPenalizer,
    confidence_for,
    create_match_engine,
    derive_match_status,
)
from .scorer import score_breakdown, score_candidate
from .text import normalize_address, token_set_similarity

__all__ = [
    "MatchConfig",
    "InvoiceMatchEngine",
    "MatchResult",
    "PriorMatchPenalizer",
    "confidence_for",
    "create_match_engine",
    "derive_match_status",
    "score_breakdown",
    "score_candidate",
    "normalize_address",
    "token_set_similarity",
]
