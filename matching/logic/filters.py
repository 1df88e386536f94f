"""
Candidate Filters

Explicit filter predicates evaluated in-process against typed records,
plus stable sort helpers for list views. These replace nested-field store
queries; the store only has to hand back candidate lists.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Set

from .contracts import MentorProfile, Community, Location


def _location_contains(location: Location, needle: str) -> bool:
    needle = needle.strip().lower()
    return any(
        needle in (value or "").lower()
        for value in (location.city, location.state, location.country)
    )


@dataclass
class MentorFilter:
    """Predicate over mentor profiles. Unset fields do not filter."""
    domain: Optional[str] = None
    location: Optional[str] = None
    verified_only: bool = False
    free_only: bool = False
    min_rating: Optional[float] = None
    min_experience: Optional[float] = None
    active_only: bool = True

    def __call__(self, mentor: MentorProfile) -> bool:
        if self.active_only and not mentor.active:
            return False
        if self.domain:
            domains = {d.lower() for d in mentor.expertise.domains}
            if self.domain.lower() not in domains:
                return False
        if self.location:
            if not (
                _location_contains(mentor.location, self.location)
                or mentor.location.willing_to_mentor_remotely
            ):
                return False
        if self.verified_only and not mentor.verification.is_verified:
            return False
        if self.free_only and not mentor.pricing.is_free:
            return False
        if self.min_rating is not None and mentor.stats.average_rating < self.min_rating:
            return False
        if self.min_experience is not None and mentor.expertise.years_of_experience < self.min_experience:
            return False
        return True

    def apply(self, mentors: Iterable[MentorProfile]) -> List[MentorProfile]:
        return [m for m in mentors if self(m)]


@dataclass
class CommunityFilter:
    """Predicate over communities. Unset fields do not filter."""
    domain: Optional[str] = None
    domains: Set[str] = field(default_factory=set)
    location: Optional[str] = None
    online_only: bool = False
    type: Optional[str] = None
    public_only: bool = False
    exclude_ids: Set[str] = field(default_factory=set)
    active_only: bool = True

    def __call__(self, community: Community) -> bool:
        if self.active_only and not community.active:
            return False
        if community.community_id in self.exclude_ids:
            return False
        if self.public_only and not community.settings.is_public:
            return False

        domain = (community.category.domain or "").lower()
        if self.domain and domain != self.domain.lower():
            return False
        if self.domains and domain not in {d.lower() for d in self.domains}:
            return False

        if self.location:
            if not (
                _location_contains(community.location, self.location)
                or community.location.is_online
            ):
                return False
        if self.online_only and not community.location.is_online:
            return False
        if self.type and community.type != self.type:
            return False
        return True

    def apply(self, communities: Iterable[Community]) -> List[Community]:
        return [c for c in communities if self(c)]


MENTOR_SORT_KEYS: Dict[str, Callable[[MentorProfile], float]] = {
    "rating": lambda m: m.stats.average_rating,
    "experience": lambda m: m.expertise.years_of_experience,
    "reviews": lambda m: m.stats.total_reviews,
}

COMMUNITY_SORT_KEYS: Dict[str, Callable[[Community], float]] = {
    "members": lambda c: c.stats.total_members,
    "activity": lambda c: c.stats.engagement_rate,
}


def sort_mentors(mentors: Iterable[MentorProfile], sort_by: str = "rating") -> List[MentorProfile]:
    """Descending stable sort; unknown keys fall back to rating."""
    key = MENTOR_SORT_KEYS.get(sort_by, MENTOR_SORT_KEYS["rating"])
    return sorted(mentors, key=key, reverse=True)


def sort_communities(communities: Iterable[Community], sort_by: str = "members") -> List[Community]:
    """Descending stable sort; unknown keys fall back to member count."""
    key = COMMUNITY_SORT_KEYS.get(sort_by, COMMUNITY_SORT_KEYS["members"])
    return sorted(communities, key=key, reverse=True)
