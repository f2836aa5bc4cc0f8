"""Member registry: existence and lookup of library members."""

import logging

from .exceptions import DuplicateMemberError, UnknownMemberError, require_id
from .models.patron import Member

logger = logging.getLogger(__name__)


class MemberRegistry:
    def __init__(self) -> None:
        self._members: dict[str, Member] = {}

    def register(self, member: Member) -> Member:
        """Add a member.

        Raises:
            DuplicateMemberError: If the member id is already registered
        """
        require_id(member.member_id, "Member ID")
        if member.member_id in self._members:
            raise DuplicateMemberError(member.member_id)

        self._members[member.member_id] = member
        logger.info("Registered member %s (%s)", member.member_id, member.name)
        return member

    def update(self, member: Member) -> Member:
        """Replace a registered member's record."""
        require_id(member.member_id, "Member ID")
        if member.member_id not in self._members:
            raise UnknownMemberError(member.member_id)

        self._members[member.member_id] = member
        logger.info("Updated member %s", member.member_id)
        return member

    def exists(self, member_id: str) -> bool:
        """Pure predicate; blank ids simply do not exist."""
        if not member_id:
            return False
        return member_id in self._members

    def find(self, member_id: str) -> Member | None:
        require_id(member_id, "Member ID")
        return self._members.get(member_id)

    def list_all(self) -> list[Member]:
        return list(self._members.values())

    def __len__(self) -> int:
        return len(self._members)
