"""
Community Relevance Scorer

Scores communities for a user by token overlap between the user's
interests/goals and the community's name, description and domain. An
optional enrichment provider may override individual scores; any provider
failure falls back to the token-overlap score for that community.
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union

from .contracts import (
    StudentProfile,
    MentorProfile,
    Community,
    CommunityRecommendation,
    round_half_up,
)
from .constants import (
    MAX_SCORE,
    DEFAULT_RELEVANCE_SCORE,
    FALLBACK_REASON,
    MATCHED_REASON_PREFIX,
    ENRICHED_REASON,
    MAX_REASON_TOKENS,
    DEFAULT_COMMUNITY_LIMIT,
)
from .normalizer import recommender_tokens, community_tokens
from .stores import EnrichmentProvider

logger = logging.getLogger(__name__)

UserProfile = Union[StudentProfile, MentorProfile]


def match_tokens(user_tokens: Sequence[str], candidate_tokens: Sequence[str]) -> List[str]:
    """
    User tokens found in the candidate. A token matches when any candidate
    token contains it or it contains a candidate token.
    """
    return [
        token for token in user_tokens
        if any(token in other or other in token for other in candidate_tokens)
    ]


def token_overlap(user_tokens: Sequence[str], community: Community) -> Tuple[int, str]:
    """Token-overlap relevance and reason for a single community."""
    if not user_tokens:
        return DEFAULT_RELEVANCE_SCORE, FALLBACK_REASON

    matched = match_tokens(user_tokens, community_tokens(community))
    relevance = round_half_up(MAX_SCORE * len(matched) / len(user_tokens))

    if matched:
        reason = MATCHED_REASON_PREFIX + ", ".join(matched[:MAX_REASON_TOKENS])
    else:
        reason = FALLBACK_REASON
    return relevance, reason


def profile_text(profile: UserProfile) -> str:
    if isinstance(profile, StudentProfile):
        return f"Interests: {', '.join(profile.interests)}. Goals: {', '.join(profile.goals)}"
    return (
        f"Expertise: {', '.join(profile.expertise.domains)}. "
        f"Specializations: {', '.join(profile.style.specializations)}"
    )


def community_text(community: Community) -> str:
    return f"{community.name}: {community.description or ''}. Domain: {community.category.domain or ''}"


def _enriched(provider: EnrichmentProvider, user_text: str, community: Community) -> Optional[int]:
    """Similarity from the provider as 0..100, or None when it cannot be used."""
    try:
        similarity = float(provider.score_similarity(user_text, community_text(community)))
    except Exception as e:
        # Enrichment is best-effort; never fail the ranking because of it
        logger.warning(f"⚠️ Enrichment failed for community {community.community_id}: {e}")
        return None
    similarity = max(0.0, min(1.0, similarity))
    return round_half_up(MAX_SCORE * similarity)


def rank(
    profile: UserProfile,
    candidates: Sequence[Community],
    provider: Optional[EnrichmentProvider] = None
) -> List[CommunityRecommendation]:
    """
    Score and order candidate communities for a user.

    Order is relevance descending, then member count descending, then input
    order. Running it twice on the same input yields the same ordering.
    """
    user_tokens = recommender_tokens(profile)
    use_provider = provider is not None and getattr(provider, "available", False)
    user_text = profile_text(profile) if use_provider else ""

    scored: List[CommunityRecommendation] = []
    for community in candidates:
        relevance, reason = token_overlap(user_tokens, community)
        source = "token_overlap" if user_tokens else "default"

        if use_provider:
            enriched = _enriched(provider, user_text, community)
            if enriched is not None:
                relevance, reason, source = enriched, ENRICHED_REASON, "enrichment"

        scored.append(CommunityRecommendation(
            community=community,
            relevance_score=relevance,
            reason=reason,
            source=source,
        ))

    # sorted() is stable, so equal keys keep their input order
    return sorted(
        scored,
        key=lambda r: (-r.relevance_score, -r.community.stats.total_members),
    )


def rank_communities(
    profile: UserProfile,
    candidates: Sequence[Community],
    limit: int = DEFAULT_COMMUNITY_LIMIT,
    provider: Optional[EnrichmentProvider] = None
) -> List[CommunityRecommendation]:
    return rank(profile, candidates, provider)[:limit]
