"""
Membership Lifecycle Manager

Sole writer of a community's members, stats, events, resources and settings.

Every operation reads a fresh snapshot, validates against it, applies the
change to a copy and writes members + stats together through a
revision-checked store call. Calls on the same community are serialized by a
per-community lock; a revision conflict (another process won the race)
re-runs the operation on a fresh read.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional, Union

from .contracts import (
    Community,
    CommunityMember,
    CommunitySettings,
    CommunityEvent,
    CommunityResource,
    utcnow,
    validated,
)
from .constants import MemberRole, UserType, EVENT_ROLES, MAX_REVISION_RETRIES
from .errors import (
    AlreadyMemberError,
    CommunityFullError,
    NotMemberError,
    SoleAdminError,
    PermissionDeniedError,
    RevisionConflict,
)
from .stores import ProfileStore

logger = logging.getLogger(__name__)

Mutation = Callable[[Community], None]


class MembershipManager:
    """Enforces join/leave invariants and keeps community stats consistent."""

    def __init__(self, store: ProfileStore, max_retries: int = MAX_REVISION_RETRIES):
        self.store = store
        self.max_retries = max_retries
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _community_lock(self, community_id: str):
        """Per-community lock, dropped once no caller holds or waits on it."""
        lock = self._locks.setdefault(community_id, asyncio.Lock())
        self._lock_users[community_id] = self._lock_users.get(community_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[community_id] -= 1
            if not self._lock_users[community_id]:
                del self._lock_users[community_id]
                del self._locks[community_id]

    async def _apply(self, community_id: str, action: str, mutate: Mutation) -> Community:
        """
        Run ``mutate`` against a fresh copy of the community and persist it.

        ``mutate`` raises before touching the copy when the operation is not
        allowed, so a failed operation never reaches the store.
        """
        async with self._community_lock(community_id):
            for attempt in range(1, self.max_retries + 1):
                current = await self.store.get("community", community_id)
                draft = current.model_copy(deep=True)
                mutate(draft)

                try:
                    revision = await self.store.save_membership_delta(
                        community_id,
                        draft.members,
                        draft.stats,
                        expected_revision=current.revision,
                        resources=draft.resources,
                        upcoming_events=draft.upcoming_events,
                        settings=draft.settings,
                    )
                except RevisionConflict:
                    logger.warning(
                        f"⚠️ Revision conflict on {action} for community {community_id} "
                        f"(attempt {attempt}/{self.max_retries})"
                    )
                    continue

                draft.revision = revision
                logger.info(f"✅ {action} applied to community {community_id} (revision {revision})")
                return draft

        raise RevisionConflict(
            f"Gave up on {action} for community {community_id} after {self.max_retries} attempts"
        )

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    async def create_community(
        self,
        data: Union[Dict[str, Any], Community],
        creator_id: str,
        creator_type: str = UserType.STUDENT.value,
    ) -> Community:
        """Create a community whose creator is its first and only admin."""
        if isinstance(data, Community):
            data = data.model_dump()
        admin = validated(CommunityMember, {
            "user_id": creator_id,
            "user_type": creator_type,
            "role": MemberRole.ADMIN.value,
            "is_active": True,
        })
        community = validated(Community, {
            **data,
            "members": [admin.model_dump()],
            "stats": {**(data.get("stats") or {}), "total_members": 1, "active_members": 1},
            "revision": 0,
            "created_by": creator_id,
        })
        created = await self.store.insert_community(community)
        logger.info(f"🆕 Community {created.community_id} created by {creator_id}")
        return created

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    async def join(
        self,
        community_id: str,
        user_id: str,
        user_type: str = UserType.STUDENT.value,
    ) -> Community:
        member = validated(CommunityMember, {
            "user_id": user_id,
            "user_type": user_type,
            "role": MemberRole.MEMBER.value,
            "is_active": True,
        })

        def mutate(community: Community) -> None:
            if community.find_member(user_id) is not None:
                raise AlreadyMemberError(f"{user_id} is already a member of {community_id}")
            if len(community.members) >= community.settings.max_members:
                raise CommunityFullError(f"Community {community_id} is full")

            community.members.append(member.model_copy(update={"joined_date": utcnow()}))
            community.stats.total_members += 1
            community.stats.active_members += 1

        return await self._apply(community_id, "join", mutate)

    async def leave(self, community_id: str, user_id: str) -> Community:
        def mutate(community: Community) -> None:
            member = community.find_member(user_id)
            if member is None:
                raise NotMemberError(f"{user_id} is not a member of {community_id}")

            if member.role == MemberRole.ADMIN.value:
                other_admins = [
                    m for m in community.members
                    if m.role == MemberRole.ADMIN.value and m.user_id != user_id
                ]
                if not other_admins:
                    raise SoleAdminError(
                        "Cannot leave - you are the only admin. Please assign another admin first."
                    )

            community.members = [m for m in community.members if m.user_id != user_id]
            community.stats.total_members -= 1
            if member.is_active:
                community.stats.active_members -= 1

        return await self._apply(community_id, "leave", mutate)

    # -------------------------------------------------------------------------
    # Activities
    # -------------------------------------------------------------------------

    async def create_event(
        self,
        community_id: str,
        user_id: str,
        event: Union[Dict[str, Any], CommunityEvent],
    ) -> Community:
        """Admins and moderators may publish events."""
        event = validated(CommunityEvent, event)

        def mutate(community: Community) -> None:
            member = community.find_member(user_id)
            if member is None or member.role not in EVENT_ROLES:
                raise PermissionDeniedError(
                    "Permission denied. Only admins and moderators can create events."
                )
            community.upcoming_events.append(event.model_copy(update={"created_by": user_id}))
            community.stats.total_events += 1

        return await self._apply(community_id, "create_event", mutate)

    async def add_resource(
        self,
        community_id: str,
        user_id: str,
        resource: Union[Dict[str, Any], CommunityResource],
    ) -> Community:
        """Any active member may share a resource."""
        resource = validated(CommunityResource, resource)

        def mutate(community: Community) -> None:
            member = community.find_member(user_id)
            if member is None or not member.is_active:
                raise PermissionDeniedError("Only active members can upload resources")
            community.resources.append(resource.model_copy(update={
                "uploaded_by": user_id,
                "uploaded_date": utcnow(),
            }))

        return await self._apply(community_id, "add_resource", mutate)

    async def update_settings(
        self,
        community_id: str,
        user_id: str,
        settings: Dict[str, Any],
    ) -> Community:
        """Admins may change settings. Roles are not changed here."""

        def mutate(community: Community) -> None:
            member = community.find_member(user_id)
            if member is None or member.role != MemberRole.ADMIN.value:
                raise PermissionDeniedError("Only admins can update settings")
            community.settings = validated(
                CommunitySettings, {**community.settings.model_dump(), **settings}
            )

        return await self._apply(community_id, "update_settings", mutate)


def check_invariants(community: Community) -> Optional[str]:
    """Describe the first broken membership invariant, or None when consistent."""
    if community.stats.total_members != len(community.members):
        return (
            f"total_members={community.stats.total_members} "
            f"but {len(community.members)} members listed"
        )
    active = sum(1 for m in community.members if m.is_active)
    if community.stats.active_members != active:
        return f"active_members={community.stats.active_members} but {active} active members"
    if community.members and not any(m.role == MemberRole.ADMIN.value for m in community.members):
        return "community has members but no admin"
    return None
