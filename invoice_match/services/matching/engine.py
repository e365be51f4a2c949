"""
Invoice-to-job match selection.

Scores every eligible job against one extracted invoice, discounts jobs that
already carry a confirmed invoice, and picks the best candidate above the
match gate. A single call is stateless apart from the read-only prior-match
lookups it issues, one per candidate.
"""

from typing import Callable, Iterable, Literal, Optional
from loguru import logger
from pydantic import BaseModel, model_validator
from .config import MatchConfig
from .scorer import score_breakdown
from ..invoice_types import InvoiceRecord, JobRecord

Confidence = Literal["high", "medium", "low"]
MatchStatus = Literal["matched", "pending_review", "unmatched"]

# Returns True if the job already has an invoice with match_status='matched'
PriorMatchLookup = Callable[[str], bool]


class MatchResult(BaseModel):
    """Outcome of matching one invoice. Both fields are None when nothing matched."""
    job_id: Optional[str] = None
    confidence: Optional[Confidence] = None
    score: Optional[int] = None

    @model_validator(mode="after")
    def _confidence_tracks_job(self):
        if (self.job_id is None) != (self.confidence is None):
            raise ValueError("confidence must be set if and only if job_id is set")
        return self

    @classmethod
    def no_match(cls) -> "MatchResult":
        return cls()

    @property
    def matched(self) -> bool:
        return self.job_id is not None


def derive_match_status(result: MatchResult) -> MatchStatus:
    """Only high-confidence matches are confirmed; anything else needs a human."""
    if not result.matched:
        return "unmatched"
    if result.confidence == "high":
        return "matched"
    return "pending_review"


def confidence_for(score: int, config: MatchConfig) -> Optional[Confidence]:
    """
    Map a winning score to a confidence tier, or None below the match gate.

    With the default gate (50) the "low" tier can't be produced: the
    medium band already starts at the gate.
    """
    if score < config.min_score:
        return None
    if score >= config.high_confidence_score:
        return "high"
    if score >= config.medium_confidence_score:
        return "medium"
    return "low"


class PriorMatchPenalizer:
    """
    Soft penalty for jobs that already have a confirmed invoice.

    A penalized job can still win if nothing else clears the gate. When the
    lookup itself fails, `fail_open` decides: True treats the job as having
    no prior match, False applies the penalty anyway.
    """

    def __init__(
        self,
        lookup: Optional[PriorMatchLookup] = None,
        penalty: int = 50,
        fail_open: bool = True,
    ):
        self.lookup = lookup
        self.penalty = penalty
        self.fail_open = fail_open

    def penalty_for(self, job_id: str) -> int:
        """Points to add to the candidate's score (zero or negative)."""
        if self.lookup is None:
            return 0
        try:
            already_matched = self.lookup(job_id)
        except Exception as e:
            logger.warning(
                "Prior-match lookup failed",
                job_id=job_id,
                error=str(e),
                fail_open=self.fail_open,
            )
            already_matched = not self.fail_open
        return -self.penalty if already_matched else 0


class InvoiceMatchEngine:
    """
    Picks the job an invoice most likely belongs to.

    Usage:
        engine = InvoiceMatchEngine(MatchConfig(), prior_match_lookup=store.has_confirmed_match)
        result = engine.select_match(invoice, jobs)
    """

    def __init__(
        self,
        config: MatchConfig | None = None,
        prior_match_lookup: Optional[PriorMatchLookup] = None,
        scorer: Optional[Callable[[InvoiceRecord, JobRecord, MatchConfig], int]] = None,
    ):
        self.config = config or MatchConfig()
        self.penalizer = PriorMatchPenalizer(
            lookup=prior_match_lookup,
            penalty=self.config.prior_match_penalty,
            fail_open=self.config.prior_lookup_fail_open,
        )
        self._scorer = scorer

    def is_eligible(self, job: JobRecord) -> bool:
        return job.status in self.config.eligible_statuses

    def score(self, invoice: InvoiceRecord, job: JobRecord) -> int:
        """Base score plus prior-match penalty. May be negative."""
        if self._scorer is not None:
            base = self._scorer(invoice, job, self.config)
        else:
            breakdown = score_breakdown(invoice, job, self.config)
            base = sum(breakdown.values())
            logger.debug("Candidate score", job_id=job.id, base=base, signals=breakdown)
        return base + self.penalizer.penalty_for(job.id)

    def select_match(self, invoice: InvoiceRecord, candidates: Iterable[JobRecord]) -> MatchResult:
        """
        Best-scoring eligible candidate, or the no-match result.

        Ties keep the candidate seen first, so callers pass jobs most recent
        first. A candidate must score above zero to be considered at all.
        """
        best_job: Optional[JobRecord] = None
        best_score = 0
        evaluated = 0

        for job in candidates:
            if not self.is_eligible(job):
                continue
            evaluated += 1
            score = self.score(invoice, job)
            if score > best_score:
                best_score = score
                best_job = job

        confidence = confidence_for(best_score, self.config) if best_job else None
        if best_job is None or confidence is None:
            logger.info(
                "No job match for invoice",
                invoice_number=invoice.invoice_number,
                candidates=evaluated,
                best_score=best_score,
            )
            return MatchResult.no_match()

        logger.info(
            "Invoice match decision",
            invoice_number=invoice.invoice_number,
            job_id=best_job.id,
            score=best_score,
            confidence=confidence,
            candidates=evaluated,
        )
        return MatchResult(job_id=best_job.id, confidence=confidence, score=best_score)


def create_match_engine(
    prior_match_lookup: Optional[PriorMatchLookup] = None,
    min_score: int | None = None,
    high_confidence_score: int | None = None,
    prior_match_penalty: int | None = None,
    prior_lookup_fail_open: bool | None = None,
) -> InvoiceMatchEngine:
    """
    Factory function to create a match engine with optional overrides.

    Uses environment variables as defaults, can be overridden per call.
    """
    from ...core.config import settings

    config = MatchConfig(
        min_score=min_score if min_score is not None else settings.match_min_score,
        high_confidence_score=high_confidence_score if high_confidence_score is not None else settings.match_high_confidence_score,
        prior_match_penalty=prior_match_penalty if prior_match_penalty is not None else settings.match_prior_match_penalty,
        prior_lookup_fail_open=prior_lookup_fail_open if prior_lookup_fail_open is not None else settings.match_prior_lookup_fail_open,
    )
    return InvoiceMatchEngine(config, prior_match_lookup=prior_match_lookup)
