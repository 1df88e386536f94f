"""
Store Interfaces

Collaborator interfaces the engine consumes, plus in-memory implementations
used by tests and local development. The MongoDB implementations live in
adapter.py.
"""

from typing import Dict, List, Optional, Protocol, Sequence, Union

from .contracts import (
    StudentProfile,
    MentorProfile,
    Community,
    CommunityMember,
    CommunityStats,
    CommunitySettings,
    CommunityResource,
    CommunityEvent,
    MatchingRequest,
)
from .errors import NotFoundError, RevisionConflict, ValidationError

Profile = Union[StudentProfile, MentorProfile, Community]

KINDS = ("student", "mentor", "community")


class ProfileStore(Protocol):
    async def get(self, kind: str, entity_id: str) -> Profile: ...

    async def list(self, kind: str) -> List[Profile]: ...

    async def insert_community(self, community: Community) -> Community: ...

    async def save_membership_delta(
        self,
        community_id: str,
        members: Sequence[CommunityMember],
        stats: CommunityStats,
        expected_revision: int,
        resources: Optional[Sequence[CommunityResource]] = None,
        upcoming_events: Optional[Sequence[CommunityEvent]] = None,
        settings: Optional[CommunitySettings] = None,
    ) -> int:
        """Write the delta if the stored revision matches; return the new revision."""
        ...

    async def save_mentor(self, mentor: MentorProfile) -> MentorProfile:
        """Replace an existing mentor profile; raises NotFoundError when absent."""
        ...


class RequestHistoryStore(Protocol):
    async def query(
        self,
        mentor_id: str,
        status: Optional[str] = None,
        responded_only: bool = False,
    ) -> List[MatchingRequest]: ...

    async def get(self, request_id: str) -> MatchingRequest: ...

    async def save(self, request: MatchingRequest) -> MatchingRequest:
        """Replace an existing request; requests are never deleted."""
        ...


class EnrichmentProvider(Protocol):
    """Optional semantic similarity signal. Always best-effort."""

    @property
    def available(self) -> bool: ...

    def score_similarity(self, user_text: str, candidate_text: str) -> float:
        """Similarity in 0..1. Raises EnrichmentUnavailable when it cannot answer."""
        ...


def _identity(record: Profile) -> str:
    if isinstance(record, StudentProfile):
        return record.student_id
    if isinstance(record, MentorProfile):
        return record.mentor_id
    return record.community_id


def _kind(record: Profile) -> str:
    if isinstance(record, StudentProfile):
        return "student"
    if isinstance(record, MentorProfile):
        return "mentor"
    return "community"


class InMemoryProfileStore:
    """
    Dict-backed profile store. Every read returns a deep copy so callers only
    ever see snapshots; community writes are compare-and-swap on revision.
    """

    def __init__(self, records: Sequence[Profile] = ()):
        self._data: Dict[str, Dict[str, Profile]] = {kind: {} for kind in KINDS}
        for record in records:
            self.add(record)

    def add(self, record: Profile) -> None:
        self._data[_kind(record)][_identity(record)] = record.model_copy(deep=True)

    def _bucket(self, kind: str) -> Dict[str, Profile]:
        if kind not in self._data:
            raise ValidationError(f"Unknown record kind: {kind}")
        return self._data[kind]

    async def get(self, kind: str, entity_id: str) -> Profile:
        record = self._bucket(kind).get(entity_id)
        if record is None:
            raise NotFoundError(kind, entity_id)
        return record.model_copy(deep=True)

    async def list(self, kind: str) -> List[Profile]:
        return [r.model_copy(deep=True) for r in self._bucket(kind).values()]

    async def insert_community(self, community: Community) -> Community:
        if community.community_id in self._data["community"]:
            raise ValidationError(f"Community already exists: {community.community_id}")
        self.add(community)
        return community.model_copy(deep=True)

    async def save_membership_delta(
        self,
        community_id,
        members,
        stats,
        expected_revision,
        resources=None,
        upcoming_events=None,
        settings=None,
    ) -> int:
        current = self._data["community"].get(community_id)
        if current is None:
            raise NotFoundError("community", community_id)
        if current.revision != expected_revision:
            raise RevisionConflict(
                f"Community {community_id} is at revision {current.revision}, expected {expected_revision}"
            )

        update = {
            "members": [m.model_copy(deep=True) for m in members],
            "stats": stats.model_copy(deep=True),
            "revision": expected_revision + 1,
        }
        if resources is not None:
            update["resources"] = [r.model_copy(deep=True) for r in resources]
        if upcoming_events is not None:
            update["upcoming_events"] = [e.model_copy(deep=True) for e in upcoming_events]
        if settings is not None:
            update["settings"] = settings.model_copy(deep=True)

        self._data["community"][community_id] = current.model_copy(update=update)
        return expected_revision + 1

    async def save_mentor(self, mentor: MentorProfile) -> MentorProfile:
        if mentor.mentor_id not in self._data["mentor"]:
            raise NotFoundError("mentor", mentor.mentor_id)
        self.add(mentor)
        return mentor.model_copy(deep=True)


class InMemoryRequestHistoryStore:
    def __init__(self, requests: Sequence[MatchingRequest] = ()):
        self._requests: List[MatchingRequest] = list(requests)

    def add(self, request: MatchingRequest) -> None:
        self._requests.append(request)

    async def query(self, mentor_id, status=None, responded_only=False) -> List[MatchingRequest]:
        return [
            r for r in self._requests
            if r.mentor_id == mentor_id
            and (status is None or r.status == status)
            and (not responded_only or r.responded_at is not None)
        ]

    async def get(self, request_id: str) -> MatchingRequest:
        for request in self._requests:
            if request.request_id == request_id:
                return request.model_copy(deep=True)
        raise NotFoundError("matching request", request_id)

    async def save(self, request: MatchingRequest) -> MatchingRequest:
        for i, existing in enumerate(self._requests):
            if existing.request_id == request.request_id:
                self._requests[i] = request.model_copy(deep=True)
                return request
        raise NotFoundError("matching request", request.request_id)
