"""Tests for the member registry."""

import pytest

from library_circulation.exceptions import (
    DuplicateMemberError,
    InvalidIdentifierError,
    UnknownMemberError,
)
from library_circulation.members import MemberRegistry
from library_circulation.models import Member


def test_register_and_find():
    registry = MemberRegistry()
    alice = registry.register(Member(member_id="A", name="Alice"))

    assert registry.exists("A") is True
    assert registry.find("A") is alice
    assert len(registry) == 1


def test_duplicate_registration(members):
    with pytest.raises(DuplicateMemberError):
        members.register(Member(member_id="A", name="Another Alice"))


def test_exists_never_raises(members):
    assert members.exists("nobody") is False
    assert members.exists("") is False
    assert members.exists(None) is False


def test_find_missing_returns_none(members):
    assert members.find("nobody") is None


def test_find_blank_id(members):
    with pytest.raises(InvalidIdentifierError):
        members.find("")


def test_update(members):
    members.update(Member(member_id="A", name="Alice Renamed"))
    assert members.find("A").name == "Alice Renamed"


def test_update_unknown(members):
    with pytest.raises(UnknownMemberError):
        members.update(Member(member_id="Z", name="Zed"))


def test_list_all(members):
    assert [m.member_id for m in members.list_all()] == ["A", "B", "C"]
