"""
Shared fixtures: a Bay Area CS student, two mentors and a small set of
communities modelled on the demo data.
"""

from datetime import datetime, timedelta, timezone

import pytest

from matching.logic.contracts import (
    StudentProfile,
    MentorProfile,
    Community,
    CommunityMember,
    MatchingRequest,
)


@pytest.fixture
def student():
    return StudentProfile(
        student_id="demo_student_001",
        name="Alex Johnson",
        bio="Computer Science student passionate about AI and web development",
        interests=["Artificial Intelligence", "Web Development", "Data Science"],
        goals=["Learn advanced machine learning", "Build portfolio projects"],
        target_domains=["technology", "entrepreneurship"],
        location={"country": "USA", "state": "California", "city": "San Francisco", "open_to_remote": True},
        preferences={"mentor_experience": "5+", "communication_modes": ["video", "chat"]},
    )


@pytest.fixture
def ai_mentor():
    return MentorProfile(
        mentor_id="demo_mentor_001",
        name="Dr. Sarah Chen",
        bio="AI researcher with 15+ years experience in ML and deep learning.",
        expertise={
            "domains": ["technology", "science"],
            "skills": ["Machine Learning", "Deep Learning", "Python"],
            "years_of_experience": 15,
        },
        availability={"hours_per_week": 4, "preferred_days": ["Saturday", "Sunday"], "timezone": "PST"},
        style={"approach": "structured", "specializations": ["Machine Learning", "Research Methods"]},
        location={"country": "USA", "state": "California", "city": "San Francisco",
                  "willing_to_mentor_remotely": True},
        verification={"state": "verified", "method": "linkedin"},
        stats={"total_mentees": 45, "average_rating": 4.9, "total_reviews": 42},
    )


@pytest.fixture
def web_mentor():
    return MentorProfile(
        mentor_id="demo_mentor_002",
        name="Mark Rodriguez",
        bio="3x startup founder, full-stack developer.",
        expertise={
            "domains": ["technology", "entrepreneurship", "business"],
            "skills": ["JavaScript", "React", "Node.js"],
            "years_of_experience": 12,
        },
        availability={"hours_per_week": 3},
        style={"approach": "flexible", "specializations": ["Web Development", "Entrepreneurship"]},
        location={"country": "USA", "state": "California", "city": "Los Angeles",
                  "willing_to_mentor_remotely": True},
        stats={"average_rating": 4.7, "total_reviews": 28},
        pricing={"is_free": False, "hourly_rate": 50},
    )


def make_community(community_id, name, description="", domain="technology", members=(),
                   max_members=100, **extra):
    members = [
        CommunityMember(user_id=user_id, role=role) for user_id, role in members
    ]
    return Community(
        community_id=community_id,
        name=name,
        description=description,
        category={"domain": domain},
        settings={"max_members": max_members},
        members=members,
        stats={
            "total_members": len(members),
            "active_members": sum(1 for m in members if m.is_active),
        },
        **extra,
    )


@pytest.fixture
def communities():
    return [
        make_community(
            "c_ai", "AI/ML Enthusiasts Bay Area",
            "Weekly study sessions on machine learning and artificial intelligence.",
            members=[("admin_1", "admin"), ("u_2", "member")],
            location={"city": "San Francisco", "is_online": True},
        ),
        make_community(
            "c_cooking", "Home Cooks", "Recipes and kitchen tips.", domain="lifestyle",
            members=[("admin_2", "admin")],
        ),
        make_community(
            "c_web", "Web Builders", "Frontend and web development projects.",
            members=[("admin_3", "admin"), ("u_4", "member"), ("u_5", "member")],
            location={"is_online": True},
        ),
    ]


def make_request(request_id, mentor_id, status, created_at, responded_after_hours=None):
    responded_at = None
    if responded_after_hours is not None:
        responded_at = created_at + timedelta(hours=responded_after_hours)
    return MatchingRequest(
        request_id=request_id,
        student_id="demo_student_001",
        mentor_id=mentor_id,
        status=status,
        created_at=created_at,
        responded_at=responded_at,
    )


@pytest.fixture
def base_time():
    return datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)
