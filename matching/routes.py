"""
Matching API Routes

Exposes the matching engine via REST API. Thin adapter only: parses the
request, calls the engine, maps engine errors to HTTP status codes.
"""

from typing import Optional, Dict, Any
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from .logic.engine import MatchingEngine
from .logic.constants import UserType, RequestStatus
from .logic.contracts import (
    Availability,
    CommunityEvent,
    CommunityResource,
    Community,
    round_half_up,
)
from .logic.filters import MentorFilter, CommunityFilter
from .logic.errors import (
    MatchingError,
    NotFoundError,
    PermissionDeniedError,
    RevisionConflict,
)


router = APIRouter(prefix="/api/matching", tags=["matching"])


def get_engine(request: Request) -> MatchingEngine:
    return request.app.state.engine


def _http_error(error: MatchingError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(error))
    if isinstance(error, RevisionConflict):
        return HTTPException(status_code=409, detail="Community was busy, please retry")
    return HTTPException(status_code=400, detail=str(error))


# =============================================================================
# REQUEST/RESPONSE SCHEMAS
# =============================================================================

class FindMentorsRequest(BaseModel):
    student_id: str
    limit: int = Field(default=10, ge=1, le=50)
    domain: Optional[str] = None
    location: Optional[str] = None
    verified: bool = False
    free: bool = False
    min_rating: Optional[float] = Field(default=None, ge=0.0, le=5.0)
    min_experience: Optional[float] = Field(default=None, ge=0.0)


class CommunityRecommendationRequest(BaseModel):
    user_id: str = Field(min_length=1)
    user_type: UserType = UserType.STUDENT
    limit: int = Field(default=5, ge=1, le=20)

    class Config:
        use_enum_values = True
        validate_default = True


class MembershipRequest(BaseModel):
    user_id: str = Field(min_length=1)
    user_type: UserType = UserType.STUDENT

    class Config:
        use_enum_values = True
        validate_default = True


class EventRequest(CommunityEvent):
    user_id: str = Field(min_length=1)


class ResourceRequest(CommunityResource):
    user_id: str = Field(min_length=1)


class SettingsRequest(BaseModel):
    user_id: str = Field(min_length=1)
    settings: Dict[str, Any]


class AvailabilityRequest(BaseModel):
    availability: Availability


class VerifyRequest(BaseModel):
    verification_method: str = Field(min_length=1)


class RequestStatusUpdate(BaseModel):
    status: RequestStatus
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review: Optional[str] = None

    class Config:
        use_enum_values = True


def _community_summary(community: Community) -> Dict[str, Any]:
    return {
        "community_id": community.community_id,
        "revision": community.revision,
        "stats": community.stats.model_dump(),
    }


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/mentors", summary="Browse mentors")
async def list_mentors(
    domain: Optional[str] = None,
    location: Optional[str] = None,
    verified: bool = False,
    free: bool = False,
    sort_by: str = "rating",
    limit: int = Query(default=20, ge=1, le=100),
    engine: MatchingEngine = Depends(get_engine)
):
    mentor_filter = MentorFilter(
        domain=domain, location=location, verified_only=verified, free_only=free
    )
    mentors = await engine.list_mentors(mentor_filter, sort_by)
    return {
        "success": True,
        "total": len(mentors),
        "mentors": [m.model_dump(mode="json") for m in mentors[:limit]],
    }


@router.get("/communities", summary="Browse communities")
async def list_communities(
    domain: Optional[str] = None,
    location: Optional[str] = None,
    online: bool = False,
    type: Optional[str] = None,
    sort_by: str = "members",
    limit: int = Query(default=20, ge=1, le=100),
    engine: MatchingEngine = Depends(get_engine)
):
    community_filter = CommunityFilter(
        domain=domain, location=location, online_only=online, type=type
    )
    communities = await engine.list_communities(community_filter, sort_by)
    return {
        "success": True,
        "total": len(communities),
        "communities": [
            c.model_dump(mode="json", exclude={"members"}) for c in communities[:limit]
        ],
    }


@router.post("/mentors/find", summary="Rank mentors for a student")
async def find_mentors(payload: FindMentorsRequest, engine: MatchingEngine = Depends(get_engine)):
    mentor_filter = MentorFilter(
        domain=payload.domain,
        location=payload.location,
        verified_only=payload.verified,
        free_only=payload.free,
        min_rating=payload.min_rating,
        min_experience=payload.min_experience,
    )
    try:
        ranked = await engine.find_mentors_for_student(payload.student_id, payload.limit, mentor_filter)
    except MatchingError as e:
        raise _http_error(e)

    return {
        "success": True,
        "matches": [
            {
                "rank": r.rank,
                "mentor": r.mentor.model_dump(mode="json"),
                "matchScore": r.result.total_score,
                "matchBreakdown": {
                    k: round_half_up(v) for k, v in r.result.breakdown.model_dump().items()
                },
                "explanations": r.result.explanations,
            }
            for r in ranked
        ],
    }


@router.post("/communities/recommendations", summary="Recommend communities for a user")
async def recommend_communities(
    payload: CommunityRecommendationRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    try:
        recommendations = await engine.recommend_communities(
            payload.user_id, payload.user_type, payload.limit
        )
    except MatchingError as e:
        raise _http_error(e)

    return {
        "success": True,
        "recommendations": [
            {
                "community": r.community.model_dump(mode="json", exclude={"members"}),
                "relevanceScore": r.relevance_score,
                "reason": r.reason,
            }
            for r in recommendations
        ],
    }


@router.post("/communities", summary="Create a community", status_code=201)
async def create_community(
    payload: Dict[str, Any] = Body(...),
    engine: MatchingEngine = Depends(get_engine)
):
    creator_id = payload.pop("created_by", None)
    if not creator_id:
        raise HTTPException(status_code=400, detail="created_by is required")
    creator_type = payload.pop("creator_type", "student")
    try:
        community = await engine.create_community(payload, creator_id, creator_type)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "communityId": community.community_id}


@router.post("/communities/{community_id}/join", summary="Join a community")
async def join_community(
    community_id: str,
    payload: MembershipRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    try:
        community = await engine.join(community_id, payload.user_id, payload.user_type)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "message": "Successfully joined community", **_community_summary(community)}


@router.post("/communities/{community_id}/leave", summary="Leave a community")
async def leave_community(
    community_id: str,
    payload: MembershipRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    try:
        community = await engine.leave(community_id, payload.user_id)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "message": "Successfully left community", **_community_summary(community)}


@router.post("/communities/{community_id}/events", summary="Create a community event")
async def create_event(
    community_id: str,
    payload: EventRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    event = CommunityEvent.model_validate(payload.model_dump(exclude={"user_id"}))
    try:
        community = await engine.create_event(community_id, payload.user_id, event)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "message": "Event created successfully", **_community_summary(community)}


@router.post("/communities/{community_id}/resources", summary="Share a community resource")
async def add_resource(
    community_id: str,
    payload: ResourceRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    resource = CommunityResource.model_validate(payload.model_dump(exclude={"user_id"}))
    try:
        community = await engine.add_resource(community_id, payload.user_id, resource)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "message": "Resource uploaded successfully", **_community_summary(community)}


@router.put("/communities/{community_id}/settings", summary="Update community settings")
async def update_settings(
    community_id: str,
    payload: SettingsRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    try:
        community = await engine.update_settings(community_id, payload.user_id, payload.settings)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "settings": community.settings.model_dump()}


@router.get("/communities/{community_id}", summary="Community details")
async def get_community(community_id: str, engine: MatchingEngine = Depends(get_engine)):
    try:
        community = await engine.get_community(community_id)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "community": community.model_dump(mode="json")}


@router.get("/mentors/{mentor_id}", summary="Mentor profile with recent reviews")
async def get_mentor(mentor_id: str, engine: MatchingEngine = Depends(get_engine)):
    try:
        mentor, reviews = await engine.get_mentor(mentor_id)
    except MatchingError as e:
        raise _http_error(e)
    return {
        "success": True,
        "mentor": mentor.model_dump(mode="json"),
        "recentReviews": [
            {
                "request_id": r.request_id,
                "student_id": r.student_id,
                "rating": r.rating,
                "review": r.review,
                "responded_at": r.responded_at.isoformat() if r.responded_at else None,
            }
            for r in reviews
        ],
    }


@router.patch("/mentors/{mentor_id}/availability", summary="Update mentor availability")
async def update_availability(
    mentor_id: str,
    payload: AvailabilityRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    try:
        mentor = await engine.update_availability(mentor_id, payload.availability.model_dump())
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "availability": mentor.availability.model_dump()}


@router.post("/mentors/{mentor_id}/verification-request", summary="Ask for mentor verification")
async def request_verification(mentor_id: str, engine: MatchingEngine = Depends(get_engine)):
    try:
        mentor = await engine.request_verification(mentor_id)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "verification": mentor.verification.model_dump(mode="json")}


@router.post("/mentors/{mentor_id}/verify", summary="Verify a mentor")
async def verify_mentor(
    mentor_id: str,
    payload: VerifyRequest,
    engine: MatchingEngine = Depends(get_engine)
):
    try:
        mentor = await engine.verify_mentor(mentor_id, payload.verification_method)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "verification": mentor.verification.model_dump(mode="json")}


@router.delete("/mentors/{mentor_id}", summary="Deactivate a mentor")
async def deactivate_mentor(mentor_id: str, engine: MatchingEngine = Depends(get_engine)):
    try:
        await engine.deactivate_mentor(mentor_id)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "message": "Mentor profile deactivated"}


@router.post("/requests/{request_id}/status", summary="Move a matching request along its lifecycle")
async def update_request_status(
    request_id: str,
    payload: RequestStatusUpdate,
    engine: MatchingEngine = Depends(get_engine)
):
    try:
        request = await engine.update_request_status(
            request_id, payload.status, rating=payload.rating, review=payload.review
        )
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "request": request.model_dump(mode="json")}


@router.get("/mentors/{mentor_id}/stats", summary="Mentor request statistics")
async def mentor_stats(mentor_id: str, engine: MatchingEngine = Depends(get_engine)):
    try:
        report = await engine.mentor_stats(mentor_id)
    except MatchingError as e:
        raise _http_error(e)
    return {"success": True, "stats": report.display()}


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/health", summary="Matching engine health check")
def health_check(engine: MatchingEngine = Depends(get_engine)):
    """Check if matching engine is operational."""
    return {"status": "ok", "engine": "matching", "version": engine.version}
