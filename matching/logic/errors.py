"""
Error taxonomy for the matching engine.

Scoring-path errors are terminal for a single request. Lifecycle-path errors
are raised before any write, so the community record is left unchanged.
"""


class MatchingError(Exception):
    """Base class for all matching engine errors."""


class ValidationError(MatchingError):
    """A profile record is missing a required field or is malformed."""


class NotFoundError(MatchingError):
    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class AlreadyMemberError(MatchingError):
    pass


class CommunityFullError(MatchingError):
    pass


class NotMemberError(MatchingError):
    pass


class SoleAdminError(MatchingError):
    pass


class PermissionDeniedError(MatchingError):
    pass


class InvalidTransitionError(MatchingError):
    pass


class RevisionConflict(MatchingError):
    """Concurrent modification detected; retry the whole operation."""


class EnrichmentUnavailable(MatchingError):
    """The optional enrichment signal could not be obtained."""
