"""
Profile Normalizer

Extracts comparable feature bags (domains, location, free-text tokens) from
student, mentor and community records. Raw dicts are coerced into the tagged
records first so malformed input is rejected here rather than deep inside
scoring.

This is a pure READ + TRANSFORM layer:
- NO scoring logic
- NO store access
"""

from typing import Any, Dict, Iterable, List, Optional, Set, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from .contracts import (
    StudentProfile,
    MentorProfile,
    Community,
    Location,
    LocationFeatures,
    FeatureBag,
)
from .errors import ValidationError


Record = Union[StudentProfile, MentorProfile, Community]

RECORD_TYPES = {
    "student": StudentProfile,
    "mentor": MentorProfile,
    "community": Community,
}

IDENTITY_FIELDS = {
    "student": "student_id",
    "mentor": "mentor_id",
    "community": "community_id",
}


def coerce_record(record: Union[Record, Dict[str, Any]], kind: Optional[str] = None) -> Record:
    """
    Turn a raw dict (or an already typed record) into a tagged record.

    Raises ValidationError when the kind cannot be determined, the identity
    field is missing, or a field has the wrong shape.
    """
    if isinstance(record, (StudentProfile, MentorProfile, Community)):
        return record
    if isinstance(record, BaseModel):
        record = record.model_dump()
    if not isinstance(record, dict):
        raise ValidationError(f"Unsupported profile record type: {type(record).__name__}")

    if kind is None:
        kind = next((k for k, f in IDENTITY_FIELDS.items() if f in record), None)
        if kind is None:
            raise ValidationError("Cannot determine record kind: no identity field present")
    if kind not in RECORD_TYPES:
        raise ValidationError(f"Unknown record kind: {kind}")

    identity = IDENTITY_FIELDS[kind]
    if not record.get(identity):
        raise ValidationError(f"Missing required field '{identity}' for {kind} record")

    try:
        return RECORD_TYPES[kind].model_validate(record)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {kind} record: {e}") from e


def tokenize(*texts: Optional[str]) -> List[str]:
    """Lower-case, whitespace-split tokens of all texts, duplicates kept."""
    tokens: List[str] = []
    for text in texts:
        if text:
            tokens.extend(text.lower().split())
    return tokens


def _join(values: Iterable[str]) -> List[str]:
    return tokenize(*values)


def goal_tokens(student: StudentProfile) -> Set[str]:
    """Student goals and interests as a token set."""
    return set(_join(student.goals) + _join(student.interests))


def specialization_tokens(mentor: MentorProfile) -> Set[str]:
    """Mentor specializations and skills as a token set."""
    return set(_join(mentor.style.specializations) + _join(mentor.expertise.skills))


def recommender_tokens(profile: Union[StudentProfile, MentorProfile]) -> List[str]:
    """
    Tokens describing what a user is looking for in a community.
    Students contribute interests and goals, mentors their domains and
    specializations.
    """
    if isinstance(profile, StudentProfile):
        return _join(profile.interests) + _join(profile.goals)
    return _join(profile.expertise.domains) + _join(profile.style.specializations)


def community_tokens(community: Community) -> List[str]:
    return tokenize(community.name, community.description, community.category.domain)


def _location_features(location: Location, remote: bool) -> LocationFeatures:
    return LocationFeatures(
        country=(location.country or "").strip().lower(),
        state=(location.state or "").strip().lower(),
        city=(location.city or "").strip().lower(),
        remote=remote,
    )


def _domains(values: Iterable[Optional[str]]) -> Set[str]:
    return {v.strip().lower() for v in values if v and v.strip()}


def normalize(record: Union[Record, Dict[str, Any]], kind: Optional[str] = None) -> FeatureBag:
    """
    Build the canonical feature bag for a student, mentor or community.

    Args:
        record: Typed record or raw dict
        kind: "student" | "mentor" | "community"; inferred when omitted

    Returns:
        FeatureBag with domains, location features and token list
    """
    record = coerce_record(record, kind)

    if isinstance(record, StudentProfile):
        return FeatureBag(
            domains=_domains(record.target_domains),
            location=_location_features(record.location, record.location.open_to_remote),
            tokens=tokenize(record.bio) + _join(record.interests) + _join(record.goals),
        )

    if isinstance(record, MentorProfile):
        return FeatureBag(
            domains=_domains(record.expertise.domains),
            location=_location_features(
                record.location, record.location.willing_to_mentor_remotely
            ),
            tokens=(
                tokenize(record.bio)
                + _join(record.expertise.skills)
                + _join(record.style.specializations)
            ),
        )

    return FeatureBag(
        domains=_domains([record.category.domain] + list(record.category.sub_domains)),
        location=_location_features(record.location, record.location.is_online),
        tokens=community_tokens(record),
    )
