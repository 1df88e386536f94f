"""
Score Aggregator

Combines individual factor scores into the overall compatibility score and
re-derives the human-readable explanations from the breakdown.
"""

from typing import List, Optional

from .contracts import (
    StudentProfile,
    MentorProfile,
    MatchBreakdown,
    MatchResult,
    round_half_up,
)
from .config import ScoringConfig
from .constants import (
    MAX_SCORE,
    HIGH_RATING_THRESHOLD,
    LOCATION_SAME_CITY,
    LOCATION_REMOTE,
    MAX_REASON_TOKENS,
)
from .dimension_scorers import (
    score_domain_match,
    score_location_match,
    score_availability_match,
    score_experience_match,
    score_goal_alignment,
)
from .normalizer import normalize, goal_tokens, specialization_tokens


# Breakdown field -> weight key
FACTOR_FIELDS = {
    "domain_match": "domain",
    "location_match": "location",
    "availability_match": "availability",
    "experience_match": "experience",
    "goal_alignment": "goals",
}


def compute_breakdown(
    student: StudentProfile,
    mentor: MentorProfile,
    config: ScoringConfig
) -> MatchBreakdown:
    student_features = normalize(student)
    mentor_features = normalize(mentor)

    return MatchBreakdown(
        domain_match=score_domain_match(student_features, mentor_features),
        location_match=score_location_match(student_features.location, mentor_features.location),
        availability_match=score_availability_match(mentor, config.availability_ceiling_hours),
        experience_match=score_experience_match(student, mentor),
        goal_alignment=score_goal_alignment(student, mentor),
    )


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a and b) and a.strip().lower() == b.strip().lower()


def explain(
    student: StudentProfile,
    mentor: MentorProfile,
    breakdown: MatchBreakdown,
    threshold: float
) -> List[str]:
    """
    Justifications for factors above the threshold, in a fixed order:
    domain, location, experience, rating/verification, goals.
    """
    explanations: List[str] = []

    if breakdown.domain_match > threshold:
        shared = sorted(normalize(student).domains & normalize(mentor).domains)
        if shared:
            explanations.append(f"Strong domain alignment in {', '.join(shared)}")
        else:
            explanations.append("Covers a broad range of domains")

    if breakdown.location_match > threshold:
        ours, theirs = student.location, mentor.location
        both_remote = ours.open_to_remote and theirs.willing_to_mentor_remotely
        if _same(ours.city, theirs.city) and breakdown.location_match >= LOCATION_SAME_CITY:
            explanations.append(f"Located in the same city ({theirs.city})")
        elif both_remote and breakdown.location_match >= LOCATION_REMOTE:
            explanations.append("Offers remote mentoring")
        elif _same(ours.state, theirs.state):
            explanations.append(f"Located in the same region ({theirs.state})")
        else:
            explanations.append(f"Located in the same country ({theirs.country})")

    if breakdown.experience_match > threshold:
        years = mentor.expertise.years_of_experience
        explanations.append(f"{years:g} years of relevant experience")

    if mentor.stats.total_reviews > 0 and mentor.stats.average_rating >= HIGH_RATING_THRESHOLD:
        explanations.append(f"Highly rated mentor ({mentor.stats.average_rating:g}/5)")
    if mentor.verification.is_verified:
        explanations.append("Verified mentor credentials")

    if breakdown.goal_alignment > threshold:
        shared = sorted(goal_tokens(student) & specialization_tokens(mentor))
        explanations.append(f"Expertise aligned with your goals: {', '.join(shared[:MAX_REASON_TOKENS])}")

    return explanations


def score(
    student: StudentProfile,
    mentor: MentorProfile,
    config: Optional[ScoringConfig] = None
) -> MatchResult:
    """
    Compute the compatibility of a (student, mentor) pair.

    Args:
        student: Student profile
        mentor: Candidate mentor
        config: Weights and thresholds (defaults when omitted)

    Returns:
        MatchResult with total score, per-factor breakdown and explanations
    """
    config = config or ScoringConfig()
    breakdown = compute_breakdown(student, mentor, config)

    # Weighted mean over the precise factor values
    total = sum(
        getattr(breakdown, field) * config.weights[key]
        for field, key in FACTOR_FIELDS.items()
    )
    total = max(0.0, min(MAX_SCORE, total))

    return MatchResult(
        total_score=round_half_up(total),
        breakdown=breakdown,
        explanations=explain(student, mentor, breakdown, config.explanation_threshold),
    )
