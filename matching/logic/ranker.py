"""
Ranker

Scores candidate mentors for a student and ranks them by compatibility.
"""

from typing import List, Optional, Sequence

from .contracts import StudentProfile, MentorProfile, RankedMentor
from .config import ScoringConfig
from .constants import DEFAULT_MENTOR_LIMIT
from .aggregator import score
from .filters import MentorFilter


def rank_mentors(
    student: StudentProfile,
    candidates: Sequence[MentorProfile],
    limit: int = DEFAULT_MENTOR_LIMIT,
    mentor_filter: Optional[MentorFilter] = None,
    config: Optional[ScoringConfig] = None
) -> List[RankedMentor]:
    """
    Rank mentors by total score (descending).

    Ties are broken by average rating, then by input order.

    Args:
        student: Student looking for a mentor
        candidates: Mentor profiles to consider
        limit: Maximum results to return
        mentor_filter: Optional predicate applied before scoring
        config: Scoring weights and thresholds

    Returns:
        Ranked list, rank starting at 1
    """
    if mentor_filter is not None:
        candidates = mentor_filter.apply(candidates)

    scored = [(mentor, score(student, mentor, config)) for mentor in candidates]
    scored.sort(key=lambda pair: (-pair[1].total_score, -pair[0].stats.average_rating))

    return [
        RankedMentor(rank=i, mentor=mentor, result=result)
        for i, (mentor, result) in enumerate(scored[:max(limit, 0)], start=1)
    ]
