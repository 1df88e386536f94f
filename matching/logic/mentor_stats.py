"""
Mentor Statistics Aggregator

Read-side computation over a mentor's matching request history.
"""

from typing import Optional, Sequence

from .contracts import MatchingRequest, MentorProfile, MentorStatsReport
from .constants import RequestStatus

SECONDS_PER_HOUR = 60 * 60


def compute_mentor_stats(
    mentor_id: str,
    requests: Sequence[MatchingRequest],
    mentor: Optional[MentorProfile] = None
) -> MentorStatsReport:
    """
    Acceptance rate and average response time for a mentor.

    acceptance_rate = 100 * accepted / total (0 with no requests).
    avg_response_time_hours = mean(responded_at - created_at) over requests
    that have a response (0 when none). Both are kept unrounded.
    """
    requests = [r for r in requests if r.mentor_id == mentor_id]

    total = len(requests)
    accepted = sum(1 for r in requests if r.status == RequestStatus.ACCEPTED.value)
    completed = sum(1 for r in requests if r.status == RequestStatus.COMPLETED.value)

    acceptance_rate = 100.0 * accepted / total if total else 0.0

    responded = [r for r in requests if r.responded_at is not None]
    if responded:
        total_seconds = sum(
            (r.responded_at - r.created_at).total_seconds() for r in responded
        )
        avg_response_hours = total_seconds / len(responded) / SECONDS_PER_HOUR
    else:
        avg_response_hours = 0.0

    return MentorStatsReport(
        mentor_id=mentor_id,
        total_requests=total,
        accepted_requests=accepted,
        completed_sessions=completed,
        acceptance_rate=acceptance_rate,
        avg_response_time_hours=avg_response_hours,
        mentor_stats=mentor.stats if mentor else None,
    )
