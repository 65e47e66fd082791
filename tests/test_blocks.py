"""Tests for the block list service."""

from reddoor.core.results import ErrorCode, Ok

from tests.conftest import T0, guest, make_session


class TestBlockService:
    def test_block_is_symmetric(self, blocks):
        record = blocks.block(make_session("alice"), "user:bob").value

        assert (record.blocker_key, record.blocked_key) == ("user:alice", "user:bob")
        assert record.created_at_ms == T0
        assert blocks.is_blocked("user:alice", "user:bob")
        assert blocks.is_blocked("user:bob", "user:alice")

    def test_guest_keys_are_normalized(self, blocks):
        blocks.block(guest("ga"), "guest:gb")
        assert blocks.is_blocked("session:gb", "guest:ga")

    def test_block_twice_is_noop(self, blocks):
        alice = make_session("alice")
        blocks.block(alice, "user:bob")
        blocks.block(alice, "user:bob")
        assert blocks.list_blocked("user:alice") == ["user:bob"]

    def test_unblock(self, blocks):
        alice = make_session("alice")
        blocks.block(alice, "user:bob")

        assert isinstance(blocks.unblock(alice, "user:bob"), Ok)
        assert not blocks.is_blocked("user:alice", "user:bob")
        assert blocks.list_blocked("user:alice") == []

    def test_unblock_only_removes_own_edge(self, blocks):
        alice, bob = make_session("alice"), make_session("bob")
        blocks.block(alice, "user:bob")
        blocks.block(bob, "user:alice")

        blocks.unblock(alice, "user:bob")
        assert blocks.is_blocked("user:alice", "user:bob")

    def test_list_blocked_sorted(self, blocks):
        alice = make_session("alice")
        for target in ("user:zed", "session:amy", "user:bob"):
            blocks.block(alice, target)
        assert blocks.list_blocked("user:alice") == ["session:amy", "user:bob", "user:zed"]

    def test_invalid_targets(self, blocks):
        alice = make_session("alice")
        assert blocks.block(alice, "").error.message == "Invalid target."
        assert blocks.block(alice, "user:alice").error.message == "Invalid target."
        assert blocks.unblock(alice, None).error.code == ErrorCode.UNAUTHORIZED_ACTION

    def test_invalid_session(self, blocks):
        assert blocks.block({}, "user:bob").error.code == ErrorCode.INVALID_SESSION

    def test_empty_keys_never_blocked(self, blocks):
        assert blocks.is_blocked("", "user:bob") is False
        assert blocks.list_blocked(None) == []
