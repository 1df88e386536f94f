"""
Data Contracts for the Matching Engine

Defines Pydantic models for student, mentor and community records (input),
match and recommendation results (output), and the matching request audit
records. These contracts are the API boundary for the matching engine.
"""

import math
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, Set
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .constants import (
    MemberRole,
    UserType,
    VerificationState,
    RequestStatus,
    REQUEST_TRANSITIONS,
    DEFAULT_MAX_MEMBERS,
)
from .errors import InvalidTransitionError, ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def validated(model, data):
    """Coerce ``data`` into ``model``, raising the engine's ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model.__name__}: {e}") from e


# =============================================================================
# SHARED
# =============================================================================

class Location(BaseModel):
    """Location block shared by students, mentors and communities."""
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None

    # Student side
    open_to_remote: bool = False
    # Mentor side
    willing_to_mentor_remotely: bool = False
    # Community side
    is_online: bool = False
    is_location_based: bool = False


# =============================================================================
# STUDENT
# =============================================================================

class StudentPreferences(BaseModel):
    mentor_type: List[str] = Field(default_factory=list)
    mentor_experience: Optional[str] = None  # e.g. "2-5", "5+", "10+"
    communication_modes: List[str] = Field(default_factory=list)
    session_frequency: Optional[str] = None
    languages: List[str] = Field(default_factory=list)


class StudentProfile(BaseModel):
    """
    A student looking for mentors and communities.
    Free-text fields feed the token bag; target_domains is treated as a set.
    """
    student_id: str = Field(min_length=1)
    name: Optional[str] = None
    bio: Optional[str] = None

    interests: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    target_domains: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)

    location: Location = Field(default_factory=Location)
    preferences: StudentPreferences = Field(default_factory=StudentPreferences)

    # Communities the student already belongs to
    community_ids: List[str] = Field(default_factory=list)


# =============================================================================
# MENTOR
# =============================================================================

class Expertise(BaseModel):
    domains: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    years_of_experience: float = Field(default=0.0, ge=0.0)


class Availability(BaseModel):
    hours_per_week: float = Field(default=0.0, ge=0.0)
    preferred_days: List[str] = Field(default_factory=list)
    timezone: Optional[str] = None


class MentorshipStyle(BaseModel):
    approach: Optional[str] = None  # structured/flexible/...
    specializations: List[str] = Field(default_factory=list)


class Verification(BaseModel):
    state: VerificationState = VerificationState.UNVERIFIED
    method: Optional[str] = None
    verified_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        validate_default = True

    @property
    def is_verified(self) -> bool:
        return self.state == VerificationState.VERIFIED


class Pricing(BaseModel):
    is_free: bool = True
    hourly_rate: Optional[float] = None


class MentorStats(BaseModel):
    total_mentees: int = 0
    active_mentees: int = 0
    sessions_completed: int = 0
    average_rating: float = Field(default=0.0, ge=0.0, le=5.0)
    total_reviews: int = 0


class MentorProfile(BaseModel):
    """A mentor offering guidance. Verification is monotonic once verified."""
    mentor_id: str = Field(min_length=1)
    name: Optional[str] = None
    bio: Optional[str] = None

    expertise: Expertise = Field(default_factory=Expertise)
    availability: Availability = Field(default_factory=Availability)
    style: MentorshipStyle = Field(default_factory=MentorshipStyle)
    location: Location = Field(default_factory=Location)
    verification: Verification = Field(default_factory=Verification)
    pricing: Pricing = Field(default_factory=Pricing)
    stats: MentorStats = Field(default_factory=MentorStats)

    active: bool = True

    def request_verification(self) -> "MentorProfile":
        """Move an unverified mentor to pending. Verified mentors stay verified."""
        if self.verification.state != VerificationState.UNVERIFIED:
            return self
        verification = self.verification.model_copy(update={"state": VerificationState.PENDING.value})
        return self.model_copy(update={"verification": verification})

    def verify(self, method: str, at: Optional[datetime] = None) -> "MentorProfile":
        if self.verification.is_verified:
            return self
        verification = Verification(
            state=VerificationState.VERIFIED,
            method=method,
            verified_at=at or utcnow(),
        )
        return self.model_copy(update={"verification": verification})


# =============================================================================
# COMMUNITY
# =============================================================================

class CommunityCategory(BaseModel):
    domain: Optional[str] = None
    sub_domains: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class CommunitySettings(BaseModel):
    max_members: int = Field(default=DEFAULT_MAX_MEMBERS, ge=1)
    is_public: bool = True
    require_approval: bool = False
    allow_mentors: bool = True


class CommunityMember(BaseModel):
    user_id: str = Field(min_length=1)
    user_type: UserType = UserType.STUDENT
    role: MemberRole = MemberRole.MEMBER
    is_active: bool = True
    joined_date: datetime = Field(default_factory=utcnow)

    class Config:
        use_enum_values = True
        validate_default = True


class CommunityStats(BaseModel):
    total_members: int = 0
    active_members: int = 0
    engagement_rate: float = 0.0
    total_events: int = 0


class CommunityResource(BaseModel):
    title: str
    type: Optional[str] = None
    url: Optional[str] = None
    uploaded_by: Optional[str] = None
    uploaded_date: datetime = Field(default_factory=utcnow)


class CommunityEvent(BaseModel):
    title: str
    description: Optional[str] = None
    date: Optional[datetime] = None
    type: Optional[str] = None
    created_by: Optional[str] = None
    attendees: List[str] = Field(default_factory=list)


class Community(BaseModel):
    """
    A learning community. Membership and stats are written only by the
    membership lifecycle manager; everyone else reads snapshots.
    """
    community_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: Optional[str] = None  # study-group/professional/...

    category: CommunityCategory = Field(default_factory=CommunityCategory)
    location: Location = Field(default_factory=Location)
    settings: CommunitySettings = Field(default_factory=CommunitySettings)

    members: List[CommunityMember] = Field(default_factory=list)
    stats: CommunityStats = Field(default_factory=CommunityStats)
    resources: List[CommunityResource] = Field(default_factory=list)
    upcoming_events: List[CommunityEvent] = Field(default_factory=list)

    revision: int = 0
    active: bool = True
    created_by: Optional[str] = None

    def find_member(self, user_id: str) -> Optional[CommunityMember]:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def member_ids(self) -> Set[str]:
        return {m.user_id for m in self.members}


# =============================================================================
# MATCHING REQUESTS
# =============================================================================

class MatchingRequest(BaseModel):
    """Audit record linking one student to one mentor. Never deleted."""
    request_id: str = Field(min_length=1)
    student_id: str
    mentor_id: str
    status: RequestStatus = RequestStatus.PENDING
    message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    responded_at: Optional[datetime] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review: Optional[str] = None

    class Config:
        use_enum_values = True
        validate_default = True

    def transition(
        self,
        status: str,
        at: Optional[datetime] = None,
        rating: Optional[int] = None,
        review: Optional[str] = None,
    ) -> "MatchingRequest":
        """Return a copy moved to ``status``, enforcing the allowed transitions."""
        target = RequestStatus(status).value
        if target not in REQUEST_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Cannot move request {self.request_id} from {self.status} to {target}"
            )
        if rating is not None and target != RequestStatus.COMPLETED.value:
            raise InvalidTransitionError("A rating can only be attached on completion")

        update: Dict[str, Any] = {"status": target}
        if self.status == RequestStatus.PENDING.value:
            update["responded_at"] = at or utcnow()
        if rating is not None:
            update["rating"] = rating
            update["review"] = review
        return validated(MatchingRequest, {**self.model_dump(), **update})


# =============================================================================
# NORMALIZED FEATURES
# =============================================================================

class LocationFeatures(BaseModel):
    country: str = ""
    state: str = ""
    city: str = ""
    remote: bool = False


class FeatureBag(BaseModel):
    """Canonical comparable features extracted from any profile record."""
    domains: Set[str] = Field(default_factory=set)
    location: LocationFeatures = Field(default_factory=LocationFeatures)
    tokens: List[str] = Field(default_factory=list)


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class MatchBreakdown(BaseModel):
    """Per-factor scores, each 0..100, kept at full precision."""
    domain_match: float = Field(ge=0.0, le=100.0)
    location_match: float = Field(ge=0.0, le=100.0)
    availability_match: float = Field(ge=0.0, le=100.0)
    experience_match: float = Field(ge=0.0, le=100.0)
    goal_alignment: float = Field(ge=0.0, le=100.0)


class MatchResult(BaseModel):
    total_score: int = Field(ge=0, le=100)
    breakdown: MatchBreakdown
    explanations: List[str] = Field(default_factory=list)


class RankedMentor(BaseModel):
    rank: int
    mentor: MentorProfile
    result: MatchResult


class CommunityRecommendation(BaseModel):
    community: Community
    relevance_score: int = Field(ge=0, le=100)
    reason: str
    source: str = "token_overlap"  # token_overlap | enrichment | default


class MentorStatsReport(BaseModel):
    """Mentor request statistics. Precise values are kept; display() rounds once."""
    mentor_id: str
    total_requests: int = 0
    accepted_requests: int = 0
    completed_sessions: int = 0
    acceptance_rate: float = 0.0
    avg_response_time_hours: float = 0.0
    mentor_stats: Optional[MentorStats] = None

    def display(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.mentor_stats:
            data.update({to_camel(k): v for k, v in self.mentor_stats.model_dump().items()})
        data.update({
            "totalRequests": self.total_requests,
            "acceptedRequests": self.accepted_requests,
            "completedSessions": self.completed_sessions,
            "acceptanceRate": round_half_up(self.acceptance_rate),
            "avgResponseTimeHours": round_half_up(self.avg_response_time_hours),
        })
        return data
