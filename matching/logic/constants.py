"""
Matching Engine Constants

Defines factor weights, thresholds, bracket mappings and defaults used by the
mentor compatibility scorer and the community relevance scorer.
All values are deterministic with no AI/ML components.
"""

from enum import Enum
from typing import Dict


# =============================================================================
# ENUMS
# =============================================================================

class MemberRole(str, Enum):
    """Role of a member inside a community."""
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"


class UserType(str, Enum):
    STUDENT = "student"
    MENTOR = "mentor"


class VerificationState(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"


class RequestStatus(str, Enum):
    """Lifecycle states of a mentor matching request."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


# Allowed request transitions: current -> set of next states
REQUEST_TRANSITIONS: Dict[str, set] = {
    RequestStatus.PENDING.value: {RequestStatus.ACCEPTED.value, RequestStatus.DECLINED.value},
    RequestStatus.ACCEPTED.value: {RequestStatus.COMPLETED.value},
    RequestStatus.DECLINED.value: set(),
    RequestStatus.COMPLETED.value: set(),
}

# Roles allowed to publish community events
EVENT_ROLES = {MemberRole.ADMIN.value, MemberRole.MODERATOR.value}


# =============================================================================
# FACTOR WEIGHTS
# =============================================================================

# Weights for each compatibility factor (must sum to 1.0)
FACTOR_WEIGHTS: Dict[str, float] = {
    "domain": 0.2,
    "location": 0.2,
    "availability": 0.2,
    "experience": 0.2,
    "goals": 0.2,
}

# =============================================================================
# FACTOR PARAMETERS
# =============================================================================

MAX_SCORE = 100.0

# Hours/week at which availability saturates
AVAILABILITY_CEILING_HOURS = 5.0

# Location tiers
LOCATION_SAME_CITY = 100.0
LOCATION_REMOTE = 100.0
LOCATION_SAME_REGION = 60.0   # same state or same country, different city
LOCATION_NONE = 0.0

# Preferred mentor experience brackets -> minimum years
EXPERIENCE_BRACKET_FLOOR: Dict[str, float] = {
    "any": 0.0,
    "0-2": 0.0,
    "2-5": 2.0,
    "3+": 3.0,
    "5+": 5.0,
    "5-10": 5.0,
    "10+": 10.0,
}

# =============================================================================
# EXPLANATIONS
# =============================================================================

# Factors must score strictly above this to be explained
EXPLANATION_THRESHOLD = 70.0

# Rating at which a mentor is called out as highly rated
HIGH_RATING_THRESHOLD = 4.5

# =============================================================================
# COMMUNITY RELEVANCE
# =============================================================================

DEFAULT_RELEVANCE_SCORE = 50
FALLBACK_REASON = "Recommended based on your profile"
MATCHED_REASON_PREFIX = "Matches your interests in: "
ENRICHED_REASON = "Semantically similar to your interests and goals"
MAX_REASON_TOKENS = 3

# =============================================================================
# RANKING / LIFECYCLE CONFIGURATION
# =============================================================================

DEFAULT_MENTOR_LIMIT = 10
DEFAULT_COMMUNITY_LIMIT = 5
DEFAULT_MAX_MEMBERS = 100

# Rated sessions shown on a mentor profile
RECENT_REVIEWS_LIMIT = 5

# Optimistic concurrency retries for membership writes
MAX_REVISION_RETRIES = 5
