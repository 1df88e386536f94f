"""
Matching Engine

Main orchestrator that wires the stores, scorers and the membership manager
into the functional surface consumed by the HTTP layer.

Pipeline flow for recommendations:
1. Load the requesting profile and candidates from the profile store
2. Filter candidates with explicit predicates
3. Score and rank
4. Truncate to the requested limit
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .contracts import (
    StudentProfile,
    MentorProfile,
    Community,
    RankedMentor,
    CommunityRecommendation,
    MentorStatsReport,
    MatchingRequest,
    Availability,
    validated,
)
from .config import ScoringConfig, load_scoring_config
from .constants import (
    DEFAULT_MENTOR_LIMIT,
    DEFAULT_COMMUNITY_LIMIT,
    RECENT_REVIEWS_LIMIT,
    REQUEST_TRANSITIONS,
    RequestStatus,
    UserType,
)
from .filters import MentorFilter, CommunityFilter, sort_mentors, sort_communities
from .membership import MembershipManager
from .errors import ValidationError
from .mentor_stats import compute_mentor_stats
from .ranker import rank_mentors
from .relevance import rank_communities
from .stores import ProfileStore, RequestHistoryStore, EnrichmentProvider

logger = logging.getLogger(__name__)


class MatchingEngine:
    """
    Facade over the matching core. Stores and the optional enrichment
    provider are injected; their lifecycle belongs to the caller.
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        request_store: RequestHistoryStore,
        enrichment_provider: Optional[EnrichmentProvider] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.profiles = profile_store
        self.requests = request_store
        self.enrichment = enrichment_provider
        self.config = config or load_scoring_config()
        self.membership = MembershipManager(profile_store)
        self.version = "1.0.0"

    # -------------------------------------------------------------------------
    # Pure ranking
    # -------------------------------------------------------------------------

    def rank_mentors(
        self,
        student: StudentProfile,
        candidates: Sequence[MentorProfile],
        limit: int = DEFAULT_MENTOR_LIMIT,
        mentor_filter: Optional[MentorFilter] = None,
    ) -> List[RankedMentor]:
        return rank_mentors(student, candidates, limit, mentor_filter, self.config)

    def rank_communities(
        self,
        profile: Union[StudentProfile, MentorProfile],
        candidates: Sequence[Community],
        limit: int = DEFAULT_COMMUNITY_LIMIT,
    ) -> List[CommunityRecommendation]:
        return rank_communities(profile, candidates, limit, self.enrichment)

    # -------------------------------------------------------------------------
    # Browsing
    # -------------------------------------------------------------------------

    async def list_mentors(
        self,
        mentor_filter: Optional[MentorFilter] = None,
        sort_by: str = "rating",
    ) -> List[MentorProfile]:
        mentors = await self.profiles.list("mentor")
        return sort_mentors((mentor_filter or MentorFilter()).apply(mentors), sort_by)

    async def list_communities(
        self,
        community_filter: Optional[CommunityFilter] = None,
        sort_by: str = "members",
    ) -> List[Community]:
        communities = await self.profiles.list("community")
        return sort_communities((community_filter or CommunityFilter()).apply(communities), sort_by)

    async def get_community(self, community_id: str) -> Community:
        return await self.profiles.get("community", community_id)

    async def get_mentor(
        self,
        mentor_id: str,
        reviews_limit: int = RECENT_REVIEWS_LIMIT,
    ) -> Tuple[MentorProfile, List[MatchingRequest]]:
        """Mentor profile plus the most recent rated, completed requests."""
        mentor = await self.profiles.get("mentor", mentor_id)
        completed = await self.requests.query(mentor_id, status=RequestStatus.COMPLETED.value)
        reviews = sorted(
            (r for r in completed if r.rating is not None),
            key=lambda r: r.responded_at or r.created_at,
            reverse=True,
        )
        return mentor, reviews[:reviews_limit]

    # -------------------------------------------------------------------------
    # Mentor profile management
    # -------------------------------------------------------------------------

    async def update_availability(self, mentor_id: str, availability: Dict[str, Any]) -> MentorProfile:
        mentor = await self.profiles.get("mentor", mentor_id)
        updated = mentor.model_copy(update={"availability": validated(Availability, availability)})
        return await self.profiles.save_mentor(updated)

    async def request_verification(self, mentor_id: str) -> MentorProfile:
        mentor = await self.profiles.get("mentor", mentor_id)
        return await self.profiles.save_mentor(mentor.request_verification())

    async def verify_mentor(self, mentor_id: str, method: str) -> MentorProfile:
        """Mark a mentor verified. Already verified mentors keep their original record."""
        mentor = await self.profiles.get("mentor", mentor_id)
        verified = mentor.verify(method)
        if verified is mentor:
            return mentor
        logger.info(f"✅ Mentor {mentor_id} verified via {method}")
        return await self.profiles.save_mentor(verified)

    async def deactivate_mentor(self, mentor_id: str) -> MentorProfile:
        mentor = await self.profiles.get("mentor", mentor_id)
        return await self.profiles.save_mentor(mentor.model_copy(update={"active": False}))

    # -------------------------------------------------------------------------
    # Matching requests
    # -------------------------------------------------------------------------

    async def update_request_status(
        self,
        request_id: str,
        status: str,
        rating: Optional[int] = None,
        review: Optional[str] = None,
    ) -> MatchingRequest:
        """Move a matching request along its lifecycle. Requests are never deleted."""
        request = await self.requests.get(request_id)
        if status not in REQUEST_TRANSITIONS:
            raise ValidationError(f"Unknown request status: {status}")
        updated = request.transition(status, rating=rating, review=review)
        return await self.requests.save(updated)

    # -------------------------------------------------------------------------
    # Store-backed recommendations
    # -------------------------------------------------------------------------

    async def find_mentors_for_student(
        self,
        student_id: str,
        limit: int = DEFAULT_MENTOR_LIMIT,
        mentor_filter: Optional[MentorFilter] = None,
    ) -> List[RankedMentor]:
        start_time = time.perf_counter()
        student = await self.profiles.get("student", student_id)
        mentors = await self.profiles.list("mentor")

        ranked = self.rank_mentors(student, mentors, limit, mentor_filter or MentorFilter())

        processing_time = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"🎯 Ranked {len(mentors)} mentors for student {student_id}, "
            f"returning {len(ranked)} ({processing_time:.2f}ms)"
        )
        return ranked

    async def recommend_communities(
        self,
        user_id: str,
        user_type: str = UserType.STUDENT.value,
        limit: int = DEFAULT_COMMUNITY_LIMIT,
    ) -> List[CommunityRecommendation]:
        """
        Public, active communities in the user's domains (when any), local to
        the user's city or online, that the user has not already joined.
        """
        if user_type not in (UserType.STUDENT.value, UserType.MENTOR.value):
            raise ValidationError(f"Unknown user type: {user_type}")
        profile = await self.profiles.get(user_type, user_id)
        communities = await self.profiles.list("community")

        if isinstance(profile, StudentProfile):
            domains = set(profile.target_domains)
        else:
            domains = set(profile.expertise.domains)

        community_filter = CommunityFilter(
            domains=domains,
            location=profile.location.city or None,
            public_only=True,
            exclude_ids={c.community_id for c in communities if c.find_member(user_id)},
        )
        candidates = community_filter.apply(communities)
        logger.info(f"📦 {len(candidates)}/{len(communities)} communities eligible for {user_id}")

        if self.enrichment is not None:
            # Enrichment calls block on the network, keep them off the event loop
            return await asyncio.to_thread(self.rank_communities, profile, candidates, limit)
        return self.rank_communities(profile, candidates, limit)

    # -------------------------------------------------------------------------
    # Membership lifecycle
    # -------------------------------------------------------------------------

    async def create_community(self, data: Dict[str, Any], creator_id: str,
                               creator_type: str = UserType.STUDENT.value) -> Community:
        return await self.membership.create_community(data, creator_id, creator_type)

    async def join(self, community_id: str, user_id: str,
                   user_type: str = UserType.STUDENT.value) -> Community:
        return await self.membership.join(community_id, user_id, user_type)

    async def leave(self, community_id: str, user_id: str) -> Community:
        return await self.membership.leave(community_id, user_id)

    async def create_event(self, community_id: str, user_id: str, event) -> Community:
        return await self.membership.create_event(community_id, user_id, event)

    async def add_resource(self, community_id: str, user_id: str, resource) -> Community:
        return await self.membership.add_resource(community_id, user_id, resource)

    async def update_settings(self, community_id: str, user_id: str,
                              settings: Dict[str, Any]) -> Community:
        return await self.membership.update_settings(community_id, user_id, settings)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def mentor_stats(self, mentor_id: str) -> MentorStatsReport:
        mentor = await self.profiles.get("mentor", mentor_id)
        requests = await self.requests.query(mentor_id)
        return compute_mentor_stats(mentor_id, requests, mentor)
