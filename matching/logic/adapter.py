"""
MongoDB Store Adapter

Reads student, mentor, community and matching request documents through
motor and turns them into the engine's typed records. Community writes go
through a revision-checked update so concurrent writers cannot interleave.

This is a pure READ + TRANSFORM layer plus the record writes:
- NO scoring logic
- NO lifecycle rules
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .contracts import Community, MentorProfile, MatchingRequest, validated
from .errors import NotFoundError, RevisionConflict, ValidationError
from .normalizer import coerce_record, IDENTITY_FIELDS

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "student": "students",
    "mentor": "mentors",
    "community": "communities",
}

# Exclude Mongo ObjectId from every read
PROJECTION = {"_id": 0}


class MongoProfileStore:
    """ProfileStore backed by a motor database handle."""

    def __init__(self, database):
        self.db = database

    def _collection(self, kind: str):
        if kind not in COLLECTIONS:
            raise ValidationError(f"Unknown record kind: {kind}")
        return self.db[COLLECTIONS[kind]]

    async def get(self, kind: str, entity_id: str):
        document = await self._collection(kind).find_one(
            {IDENTITY_FIELDS[kind]: entity_id}, PROJECTION
        )
        if document is None:
            raise NotFoundError(kind, entity_id)
        return coerce_record(document, kind)

    async def list(self, kind: str) -> List[Any]:
        records = []
        async for document in self._collection(kind).find({}, PROJECTION):
            try:
                records.append(coerce_record(document, kind))
            except ValidationError as e:
                # Skip documents that fail conversion
                logger.debug(f"Skipping malformed {kind} document: {e}")
        return records

    async def insert_community(self, community: Community) -> Community:
        collection = self._collection("community")
        existing = await collection.count_documents({"community_id": community.community_id}, limit=1)
        if existing:
            raise ValidationError(f"Community already exists: {community.community_id}")
        await collection.insert_one(community.model_dump())
        return community

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
        changes: Dict[str, Any] = {
            "members": [m.model_dump() for m in members],
            "stats": stats.model_dump(),
        }
        if resources is not None:
            changes["resources"] = [r.model_dump() for r in resources]
        if upcoming_events is not None:
            changes["upcoming_events"] = [e.model_dump() for e in upcoming_events]
        if settings is not None:
            changes["settings"] = settings.model_dump()

        if expected_revision == 0:
            # Documents written before revisions existed read back as revision 0
            revision_match = {"$or": [{"revision": 0}, {"revision": {"$exists": False}}]}
        else:
            revision_match = {"revision": expected_revision}
        query = {"community_id": community_id, **revision_match}

        collection = self._collection("community")
        result = await collection.update_one(
            query,
            {"$set": changes, "$inc": {"revision": 1}},
        )
        if result.matched_count == 0:
            exists = await collection.count_documents({"community_id": community_id}, limit=1)
            if not exists:
                raise NotFoundError("community", community_id)
            raise RevisionConflict(
                f"Community {community_id} changed since revision {expected_revision}"
            )
        return expected_revision + 1

    async def save_mentor(self, mentor: MentorProfile) -> MentorProfile:
        result = await self._collection("mentor").replace_one(
            {"mentor_id": mentor.mentor_id}, mentor.model_dump()
        )
        if result.matched_count == 0:
            raise NotFoundError("mentor", mentor.mentor_id)
        return mentor


class MongoRequestHistoryStore:
    """RequestHistoryStore backed by the matching_requests collection."""

    def __init__(self, database, collection: str = "matching_requests"):
        self.collection = database[collection]

    async def query(
        self,
        mentor_id: str,
        status: Optional[str] = None,
        responded_only: bool = False,
    ) -> List[MatchingRequest]:
        query: Dict[str, Any] = {"mentor_id": mentor_id}
        if status:
            query["status"] = status
        if responded_only:
            query["responded_at"] = {"$ne": None}

        requests = []
        async for document in self.collection.find(query, PROJECTION):
            try:
                requests.append(MatchingRequest.model_validate(document))
            except PydanticValidationError as e:
                logger.debug(f"Skipping malformed matching request: {e}")
        return requests

    async def get(self, request_id: str) -> MatchingRequest:
        document = await self.collection.find_one({"request_id": request_id}, PROJECTION)
        if document is None:
            raise NotFoundError("matching request", request_id)
        return validated(MatchingRequest, document)

    async def save(self, request: MatchingRequest) -> MatchingRequest:
        result = await self.collection.replace_one(
            {"request_id": request.request_id}, request.model_dump()
        )
        if result.matched_count == 0:
            raise NotFoundError("matching request", request.request_id)
        return request
