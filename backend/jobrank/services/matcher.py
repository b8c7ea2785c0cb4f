"""
Job Matching Service - Weighted Match Score

The LLM ranking step returns five sub-scores per job. The overall score is
not left to the model: it is always recomputed here from the breakdown.

Match Score Composition (fixed weights):
    - Skill Match (30%): Overlap of job skills with the freelancer's skills
    - Budget Fit (25%): Job budget vs. the freelancer's rate range
    - Client Quality (15%): Rating, hires, payment verification
    - Scope Fit (15%): Project type and scope vs. preferences
    - Win Probability (15%): Competition and experience

Score Range: 0-100 (integer) where higher = better match
"""

import logging
from typing import Dict

from jobrank.schemas import ScoreBreakdown

logger = logging.getLogger(__name__)

SCORE_WEIGHTS: Dict[str, float] = {
    "skill_match": 0.30,
    "budget_fit": 0.25,
    "client_quality": 0.15,
    "scope_fit": 0.15,
    "win_probability": 0.15,
}

# Model-reported scores further than this from the weighted sum are logged
SCORE_DRIFT_TOLERANCE = 2.0


def weighted_score(breakdown: ScoreBreakdown) -> int:
    """
    Calculate the overall match score from the five sub-scores.

    Args:
        breakdown: Complete set of sub-scores, each 0-100

    Returns:
        round(skill_match*0.30 + budget_fit*0.25 + client_quality*0.15
              + scope_fit*0.15 + win_probability*0.15)

    Example:
        >>> weighted_score(ScoreBreakdown(skill_match=80, budget_fit=60,
        ...     client_quality=100, scope_fit=50, win_probability=40))
        68
    """
    composite = (
        breakdown.skill_match * SCORE_WEIGHTS["skill_match"] +
        breakdown.budget_fit * SCORE_WEIGHTS["budget_fit"] +
        breakdown.client_quality * SCORE_WEIGHTS["client_quality"] +
        breakdown.scope_fit * SCORE_WEIGHTS["scope_fit"] +
        breakdown.win_probability * SCORE_WEIGHTS["win_probability"]
    )
    return max(0, min(100, round(composite)))


def reconcile_score(job_id: str, reported: float, breakdown: ScoreBreakdown) -> int:
    """Return the weighted score, logging when the model's own score disagrees."""
    score = weighted_score(breakdown)
    if abs(reported - score) > SCORE_DRIFT_TOLERANCE:
        logger.warning(
            f"Job {job_id}: model score {reported} differs from weighted score {score}, "
            f"using weighted score"
        )
    return score
