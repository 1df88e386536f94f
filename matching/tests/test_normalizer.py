"""
Tests for record coercion and feature extraction.
"""

import pytest

from matching.logic import normalize, ValidationError, StudentProfile, MentorProfile, Community
from matching.logic.normalizer import coerce_record, tokenize, recommender_tokens


def test_missing_identity_is_rejected():
    with pytest.raises(ValidationError):
        normalize({"student_id": "", "interests": ["python"]}, "student")
    with pytest.raises(ValidationError):
        normalize({"interests": ["python"]})


def test_kind_is_inferred_from_identity_field():
    assert isinstance(coerce_record({"mentor_id": "m1"}), MentorProfile)
    assert isinstance(coerce_record({"community_id": "c1", "name": "Chess"}), Community)
    assert isinstance(coerce_record({"student_id": "s1"}), StudentProfile)


def test_wrong_field_shape_is_a_validation_error():
    with pytest.raises(ValidationError):
        coerce_record({"mentor_id": "m1", "availability": {"hours_per_week": "lots"}})
    with pytest.raises(ValidationError):
        coerce_record({"student_id": "s1"}, kind="alumni")


def test_tokenize_lowercases_and_keeps_duplicates():
    assert tokenize("Machine  Learning", None, "machine vision") == [
        "machine", "learning", "machine", "vision",
    ]


def test_student_feature_bag(student):
    bag = normalize(student)

    assert bag.domains == {"technology", "entrepreneurship"}
    assert bag.location.city == "san francisco"
    assert bag.location.remote
    assert bag.tokens[:3] == ["computer", "science", "student"]


def test_mentor_feature_bag_uses_remote_willingness(ai_mentor):
    bag = normalize(ai_mentor.model_dump(), "mentor")
    assert bag.domains == {"technology", "science"}
    assert bag.location.remote
    assert "deep" in bag.tokens


def test_community_feature_bag(communities):
    bag = normalize(communities[0])
    assert bag.domains == {"technology"}
    assert bag.location.remote
    assert bag.tokens[0] == "ai/ml"


def test_empty_optional_fields_normalize_cleanly():
    bag = normalize({"student_id": "s1"})
    assert bag.domains == set()
    assert bag.tokens == []
    assert bag.location.city == ""
    assert recommender_tokens(StudentProfile(student_id="s1")) == []
