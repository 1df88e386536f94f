"""
Tests for the HTTP layer, wired to in-memory stores.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from matching.logic import MatchingEngine, InMemoryProfileStore, InMemoryRequestHistoryStore
from matching.logic.config import ScoringConfig
from matching.routes import router
from matching.tests.conftest import make_request


@pytest.fixture
def client(student, ai_mentor, web_mentor, communities, base_time):
    requests = [
        make_request("r1", ai_mentor.mentor_id, "accepted", base_time, responded_after_hours=1),
        make_request("r2", ai_mentor.mentor_id, "declined", base_time, responded_after_hours=4),
        make_request("r3", ai_mentor.mentor_id, "pending", base_time),
        make_request("r4", web_mentor.mentor_id, "completed", base_time, responded_after_hours=2)
        .model_copy(update={"rating": 5, "review": "Helped me ship my first app"}),
        make_request("r5", web_mentor.mentor_id, "accepted", base_time, responded_after_hours=3),
    ]
    app = FastAPI()
    app.include_router(router)
    app.state.engine = MatchingEngine(
        profile_store=InMemoryProfileStore([student, ai_mentor, web_mentor, *communities]),
        request_store=InMemoryRequestHistoryStore(requests),
        config=ScoringConfig(),
    )
    return TestClient(app)


def test_find_mentors(client):
    response = client.post("/api/matching/mentors/find", json={"student_id": "demo_student_001"})

    assert response.status_code == 200
    matches = response.json()["matches"]
    assert [m["mentor"]["mentor_id"] for m in matches] == ["demo_mentor_002", "demo_mentor_001"]
    assert [m["matchScore"] for m in matches] == [74, 68]
    assert matches[1]["matchBreakdown"] == {
        "domain_match": 50,
        "location_match": 100,
        "availability_match": 80,
        "experience_match": 100,
        "goal_alignment": 12,
    }


def test_find_mentors_with_filters(client):
    response = client.post("/api/matching/mentors/find", json={
        "student_id": "demo_student_001", "verified": True,
    })
    assert [m["mentor"]["mentor_id"] for m in response.json()["matches"]] == ["demo_mentor_001"]


def test_find_mentors_unknown_student(client):
    response = client.post("/api/matching/mentors/find", json={"student_id": "ghost"})
    assert response.status_code == 404


def test_recommend_communities(client):
    response = client.post("/api/matching/communities/recommendations", json={
        "user_id": "demo_student_001",
    })

    assert response.status_code == 200
    recommendations = response.json()["recommendations"]
    # the lifestyle community is outside the student's domains
    assert [r["community"]["community_id"] for r in recommendations] == ["c_ai", "c_web"]
    assert [r["relevanceScore"] for r in recommendations] == [38, 31]
    assert "members" not in recommendations[0]["community"]


def test_recommendations_skip_joined_communities(client):
    client.post("/api/matching/communities/c_ai/join", json={"user_id": "demo_student_001"})
    response = client.post("/api/matching/communities/recommendations", json={
        "user_id": "demo_student_001",
    })
    assert [r["community"]["community_id"] for r in response.json()["recommendations"]] == ["c_web"]


def test_recommend_communities_rejects_unknown_user_type(client):
    response = client.post("/api/matching/communities/recommendations", json={
        "user_id": "demo_student_001", "user_type": "alumni",
    })
    assert response.status_code == 422


def test_join_and_leave(client):
    joined = client.post("/api/matching/communities/c_ai/join", json={"user_id": "alice"})
    assert joined.status_code == 200
    assert joined.json()["stats"]["total_members"] == 3

    again = client.post("/api/matching/communities/c_ai/join", json={"user_id": "alice"})
    assert again.status_code == 400

    left = client.post("/api/matching/communities/c_ai/leave", json={"user_id": "alice"})
    assert left.json()["stats"]["total_members"] == 2
    assert left.json()["revision"] == 2


def test_sole_admin_leave_is_rejected(client):
    response = client.post("/api/matching/communities/c_cooking/leave", json={"user_id": "admin_2"})
    assert response.status_code == 400
    assert "only admin" in response.json()["detail"]


def test_event_permissions(client):
    denied = client.post("/api/matching/communities/c_ai/events", json={
        "user_id": "u_2", "title": "Paper reading",
    })
    assert denied.status_code == 403

    created = client.post("/api/matching/communities/c_ai/events", json={
        "user_id": "admin_1", "title": "Paper reading", "date": "2025-03-01T18:00:00Z",
    })
    assert created.status_code == 200
    assert created.json()["stats"]["total_events"] == 1


def test_share_resource(client):
    response = client.post("/api/matching/communities/c_web/resources", json={
        "user_id": "u_4", "title": "CSS tricks", "url": "https://example.com/css",
    })
    assert response.status_code == 200


def test_update_settings(client):
    response = client.put("/api/matching/communities/c_web/settings", json={
        "user_id": "admin_3", "settings": {"is_public": False},
    })
    assert response.status_code == 200
    assert response.json()["settings"]["is_public"] is False

    denied = client.put("/api/matching/communities/c_web/settings", json={
        "user_id": "u_4", "settings": {"is_public": True},
    })
    assert denied.status_code == 403


def test_create_community(client):
    response = client.post("/api/matching/communities", json={
        "community_id": "c_new", "name": "Rust Learners", "created_by": "demo_student_001",
    })
    assert response.status_code == 201
    assert response.json()["communityId"] == "c_new"

    missing_creator = client.post("/api/matching/communities", json={
        "community_id": "c_other", "name": "Go Learners",
    })
    assert missing_creator.status_code == 400


def test_mentor_stats(client):
    response = client.get("/api/matching/mentors/demo_mentor_001/stats")

    stats = response.json()["stats"]
    assert stats["totalRequests"] == 3
    assert stats["acceptedRequests"] == 1
    assert stats["acceptanceRate"] == 33
    # (1 + 4) / 2 hours
    assert stats["avgResponseTimeHours"] == 3
    assert stats["averageRating"] == 4.9
    assert stats["totalMentees"] == 45
    assert "average_rating" not in stats


def test_unknown_community_is_404(client):
    response = client.post("/api/matching/communities/nope/join", json={"user_id": "alice"})
    assert response.status_code == 404


def test_health(client):
    assert client.get("/api/matching/health").json() == {
        "status": "ok", "engine": "matching", "version": "1.0.0",
    }


def test_browse_mentors(client):
    response = client.get("/api/matching/mentors", params={"sort_by": "experience"})
    assert [m["mentor_id"] for m in response.json()["mentors"]] == ["demo_mentor_001", "demo_mentor_002"]

    free = client.get("/api/matching/mentors", params={"free": True, "domain": "business"})
    assert free.json()["total"] == 0


def test_browse_communities(client):
    response = client.get("/api/matching/communities")
    assert [c["community_id"] for c in response.json()["communities"]] == ["c_web", "c_ai", "c_cooking"]

    online = client.get("/api/matching/communities", params={"online": True, "limit": 1})
    assert online.json()["total"] == 2
    assert [c["community_id"] for c in online.json()["communities"]] == ["c_web"]


def test_browse_communities_includes_private(client):
    client.put("/api/matching/communities/c_cooking/settings", json={
        "user_id": "admin_2", "settings": {"is_public": False},
    })

    response = client.get("/api/matching/communities")
    assert "c_cooking" in [c["community_id"] for c in response.json()["communities"]]


def test_join_rejects_unknown_user_type(client):
    response = client.post("/api/matching/communities/c_ai/join", json={
        "user_id": "alice", "user_type": "alumni",
    })
    assert response.status_code == 422

    community = client.get("/api/matching/communities/c_ai").json()["community"]
    assert community["stats"]["total_members"] == 2


def test_join_rejects_empty_user_id(client):
    response = client.post("/api/matching/communities/c_ai/join", json={"user_id": ""})
    assert response.status_code == 422


def test_join_as_mentor(client):
    response = client.post("/api/matching/communities/c_ai/join", json={
        "user_id": "demo_mentor_001", "user_type": "mentor",
    })
    assert response.status_code == 200

    community = client.get("/api/matching/communities/c_ai").json()["community"]
    assert community["members"][-1]["user_type"] == "mentor"


def test_create_community_rejects_unknown_creator_type(client):
    response = client.post("/api/matching/communities", json={
        "community_id": "c_new", "name": "Rust Learners",
        "created_by": "demo_student_001", "creator_type": "alumni",
    })
    assert response.status_code == 400

    assert client.get("/api/matching/communities/c_new").status_code == 404


def test_get_community(client):
    response = client.get("/api/matching/communities/c_web")

    assert response.status_code == 200
    community = response.json()["community"]
    assert community["name"] == "Web Builders"
    assert [m["user_id"] for m in community["members"]] == ["admin_3", "u_4", "u_5"]

    assert client.get("/api/matching/communities/nope").status_code == 404


def test_get_mentor_with_recent_reviews(client):
    response = client.get("/api/matching/mentors/demo_mentor_002")

    assert response.status_code == 200
    body = response.json()
    assert body["mentor"]["name"] == "Mark Rodriguez"
    # the accepted request carries no rating
    assert [r["request_id"] for r in body["recentReviews"]] == ["r4"]
    assert body["recentReviews"][0]["rating"] == 5
    assert body["recentReviews"][0]["review"] == "Helped me ship my first app"

    assert client.get("/api/matching/mentors/ghost").status_code == 404


def test_update_availability(client):
    response = client.patch("/api/matching/mentors/demo_mentor_002/availability", json={
        "availability": {"hours_per_week": 6, "preferred_days": ["Monday"], "timezone": "PST"},
    })

    assert response.status_code == 200
    assert response.json()["availability"]["hours_per_week"] == 6
    mentor = client.get("/api/matching/mentors/demo_mentor_002").json()["mentor"]
    assert mentor["availability"]["preferred_days"] == ["Monday"]

    invalid = client.patch("/api/matching/mentors/demo_mentor_002/availability", json={
        "availability": {"hours_per_week": -1},
    })
    assert invalid.status_code == 422

    missing = client.patch("/api/matching/mentors/ghost/availability", json={
        "availability": {"hours_per_week": 2},
    })
    assert missing.status_code == 404


def test_verification_flow(client):
    pending = client.post("/api/matching/mentors/demo_mentor_002/verification-request")
    assert pending.json()["verification"]["state"] == "pending"

    verified = client.post("/api/matching/mentors/demo_mentor_002/verify", json={
        "verification_method": "linkedin",
    })
    assert verified.status_code == 200
    assert verified.json()["verification"]["state"] == "verified"

    response = client.post("/api/matching/mentors/find", json={
        "student_id": "demo_student_001", "verified": True,
    })
    ids = [m["mentor"]["mentor_id"] for m in response.json()["matches"]]
    assert ids == ["demo_mentor_002", "demo_mentor_001"]


def test_verify_keeps_original_method(client):
    response = client.post("/api/matching/mentors/demo_mentor_001/verify", json={
        "verification_method": "email",
    })
    assert response.json()["verification"]["method"] == "linkedin"

    again = client.post("/api/matching/mentors/demo_mentor_001/verification-request")
    assert again.json()["verification"]["state"] == "verified"


def test_deactivate_mentor(client):
    response = client.delete("/api/matching/mentors/demo_mentor_002")
    assert response.status_code == 200

    browse = client.get("/api/matching/mentors")
    assert [m["mentor_id"] for m in browse.json()["mentors"]] == ["demo_mentor_001"]

    found = client.post("/api/matching/mentors/find", json={"student_id": "demo_student_001"})
    assert [m["mentor"]["mentor_id"] for m in found.json()["matches"]] == ["demo_mentor_001"]

    assert client.delete("/api/matching/mentors/ghost").status_code == 404


def test_update_request_status(client):
    accepted = client.post("/api/matching/requests/r3/status", json={"status": "accepted"})
    assert accepted.status_code == 200
    assert accepted.json()["request"]["status"] == "accepted"
    assert accepted.json()["request"]["responded_at"] is not None

    completed = client.post("/api/matching/requests/r3/status", json={
        "status": "completed", "rating": 4, "review": "Clear and kind",
    })
    assert completed.json()["request"]["rating"] == 4

    reviews = client.get("/api/matching/mentors/demo_mentor_001").json()["recentReviews"]
    assert [r["request_id"] for r in reviews] == ["r3"]


def test_update_request_status_rejects_bad_moves(client):
    # declined is terminal
    response = client.post("/api/matching/requests/r2/status", json={"status": "accepted"})
    assert response.status_code == 400

    unknown = client.post("/api/matching/requests/r2/status", json={"status": "archived"})
    assert unknown.status_code == 422

    missing = client.post("/api/matching/requests/nope/status", json={"status": "accepted"})
    assert missing.status_code == 404
