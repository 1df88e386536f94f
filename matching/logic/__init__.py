"""
Matching Logic Module

Provides the deterministic mentor compatibility scorer, the community
relevance scorer and the community membership lifecycle manager.
"""

from .contracts import (
    StudentProfile,
    MentorProfile,
    Community,
    CommunityMember,
    MatchingRequest,
    MatchResult,
    MatchBreakdown,
    RankedMentor,
    CommunityRecommendation,
    MentorStatsReport,
    FeatureBag,
)
from .aggregator import score
from .engine import MatchingEngine
from .errors import (
    MatchingError,
    ValidationError,
    NotFoundError,
    AlreadyMemberError,
    CommunityFullError,
    NotMemberError,
    SoleAdminError,
    PermissionDeniedError,
    InvalidTransitionError,
    RevisionConflict,
    EnrichmentUnavailable,
)
from .filters import MentorFilter, CommunityFilter
from .membership import MembershipManager
from .mentor_stats import compute_mentor_stats
from .normalizer import normalize
from .ranker import rank_mentors
from .relevance import rank, rank_communities
from .stores import (
    ProfileStore,
    RequestHistoryStore,
    EnrichmentProvider,
    InMemoryProfileStore,
    InMemoryRequestHistoryStore,
)

__all__ = [
    # Main engine
    "MatchingEngine",
    "MembershipManager",
    "score",
    "rank",
    "rank_mentors",
    "rank_communities",
    "compute_mentor_stats",
    "normalize",

    # Contracts
    "StudentProfile",
    "MentorProfile",
    "Community",
    "CommunityMember",
    "MatchingRequest",
    "MatchResult",
    "MatchBreakdown",
    "RankedMentor",
    "CommunityRecommendation",
    "MentorStatsReport",
    "FeatureBag",

    # Filters and stores
    "MentorFilter",
    "CommunityFilter",
    "ProfileStore",
    "RequestHistoryStore",
    "EnrichmentProvider",
    "InMemoryProfileStore",
    "InMemoryRequestHistoryStore",

    # Errors
    "MatchingError",
    "ValidationError",
    "NotFoundError",
    "AlreadyMemberError",
    "CommunityFullError",
    "NotMemberError",
    "SoleAdminError",
    "PermissionDeniedError",
    "InvalidTransitionError",
    "RevisionConflict",
    "EnrichmentUnavailable",
]
