"""
Dimension Scorers

Individual scoring functions for each compatibility factor between a student
and a mentor. Each scorer produces a score between 0.0 and 100.0.
All logic is deterministic - no AI/ML components.
"""

import re
from typing import Optional, Set

from .contracts import StudentProfile, MentorProfile, FeatureBag, LocationFeatures
from .constants import (
    MAX_SCORE,
    AVAILABILITY_CEILING_HOURS,
    LOCATION_SAME_CITY,
    LOCATION_REMOTE,
    LOCATION_SAME_REGION,
    LOCATION_NONE,
    EXPERIENCE_BRACKET_FLOOR,
)
from .normalizer import goal_tokens, specialization_tokens


def score_domain_match(student: FeatureBag, mentor: FeatureBag) -> float:
    """
    Share of the student's target domains covered by the mentor's expertise.
    A student with no target domains has no preference and scores 100.
    """
    if not student.domains:
        return MAX_SCORE
    matched = student.domains & mentor.domains
    return MAX_SCORE * len(matched) / len(student.domains)


def score_location_match(a: LocationFeatures, b: LocationFeatures) -> float:
    """
    Compare two locations.

    Remote on both sides scores like the same city. Otherwise same city scores
    100, same state or same country 60, anything else 0. Used for mentors and
    communities alike.
    """
    if a.remote and b.remote:
        return LOCATION_REMOTE

    same_country = bool(a.country) and a.country == b.country
    countries_compatible = not (a.country and b.country) or same_country

    if a.city and a.city == b.city and countries_compatible:
        return LOCATION_SAME_CITY
    if a.state and a.state == b.state and countries_compatible:
        return LOCATION_SAME_REGION
    if same_country:
        return LOCATION_SAME_REGION
    return LOCATION_NONE


def score_availability_match(
    mentor: MentorProfile,
    ceiling_hours: float = AVAILABILITY_CEILING_HOURS
) -> float:
    """Mentor hours per week against a ceiling. Students are assumed flexible."""
    hours = min(mentor.availability.hours_per_week, ceiling_hours)
    return MAX_SCORE * hours / ceiling_hours


def experience_floor(bracket: Optional[str]) -> float:
    """
    Minimum years of experience implied by a preference bracket.

    Known labels come from EXPERIENCE_BRACKET_FLOOR; other labels use their
    first number ("7+" -> 7, "3-6" -> 3). No preference means no floor.
    """
    if not bracket:
        return 0.0
    label = bracket.strip().lower()
    if label in EXPERIENCE_BRACKET_FLOOR:
        return EXPERIENCE_BRACKET_FLOOR[label]
    match = re.search(r"\d+(\.\d+)?", label)
    return float(match.group()) if match else 0.0


def score_experience_match(student: StudentProfile, mentor: MentorProfile) -> float:
    """100 when the mentor meets the bracket floor, linearly scaled below it."""
    floor = experience_floor(student.preferences.mentor_experience)
    years = mentor.expertise.years_of_experience
    if floor <= 0 or years >= floor:
        return MAX_SCORE
    return MAX_SCORE * years / floor


def jaccard(a: Set[str], b: Set[str]) -> float:
    """Jaccard similarity scaled to 0..100; 0 when either set is empty."""
    if not a or not b:
        return 0.0
    return MAX_SCORE * len(a & b) / len(a | b)


def score_goal_alignment(student: StudentProfile, mentor: MentorProfile) -> float:
    return jaccard(goal_tokens(student), specialization_tokens(mentor))

