"""Tests for the matching engine."""

import threading

import pytest

from reddoor.core.results import Err, ErrorCode, Ok
from reddoor.matching.engine import MatchingEngine, pair_key
from reddoor.matching.models import MatchingStateSnapshot, MatchRecord, SwipeRecord

from tests.conftest import T0, Counter, guest, make_session


@pytest.fixture
def alice():
    return make_session("alice")


@pytest.fixture
def bob():
    return make_session("bob")


class TestRecordSwipe:
    def test_one_sided_like_does_not_match(self, matching, alice):
        result = matching.record_swipe(alice, "bob", "like")

        assert isinstance(result, Ok)
        assert result.value.match_created is False
        assert result.value.match is None
        assert result.value.swipe.created_at_ms == T0
        assert not matching.is_matched("alice", "bob")

    def test_mutual_like_creates_match(self, matching, alice, bob):
        matching.record_swipe(alice, "bob", "like")
        result = matching.record_swipe(bob, "alice", "like")

        assert result.value.match_created is True
        match = result.value.match
        assert (match.user_a, match.user_b) == ("alice", "bob")
        assert match.match_id == "match-1"
        assert matching.is_matched("bob", "alice")

    def test_match_is_idempotent(self, matching, alice, bob):
        matching.record_swipe(alice, "bob", "like")
        first = matching.record_swipe(bob, "alice", "like").value.match
        again = matching.record_swipe(alice, "bob", "like")
        repeat = matching.record_swipe(bob, "alice", "like")

        assert again.value.match_created is False
        assert again.value.match == first
        assert repeat.value.match == first
        assert len(matching.list_matches("alice").value) == 1

    def test_swipe_order_does_not_matter(self, clock, alice, bob):
        forward = MatchingEngine(clock=clock, id_factory=Counter())
        backward = MatchingEngine(clock=clock, id_factory=Counter())

        forward.record_swipe(alice, "bob", "like")
        forward.record_swipe(bob, "alice", "like")
        backward.record_swipe(bob, "alice", "like")
        backward.record_swipe(alice, "bob", "like")

        a = forward.list_matches("alice").value[0]
        b = backward.list_matches("alice").value[0]
        assert (a.user_a, a.user_b) == (b.user_a, b.user_b)

    def test_pass_then_like_back_does_not_match(self, matching, alice, bob):
        matching.record_swipe(alice, "bob", "pass")
        result = matching.record_swipe(bob, "alice", "like")

        assert result.value.match_created is False
        assert matching.get_swipe("alice", "bob").direction == "pass"

    def test_changing_like_to_pass_prevents_match(self, matching, alice, bob):
        matching.record_swipe(alice, "bob", "like")
        matching.record_swipe(alice, "bob", "pass")
        result = matching.record_swipe(bob, "alice", "like")

        assert result.value.match_created is False
        assert not matching.is_matched("alice", "bob")

    def test_pass_after_match_keeps_match(self, matching, alice, bob):
        matching.record_swipe(alice, "bob", "like")
        matching.record_swipe(bob, "alice", "like")
        result = matching.record_swipe(alice, "bob", "pass")

        assert result.value.match_created is False
        assert matching.is_matched("alice", "bob")

    def test_target_is_trimmed(self, matching, alice):
        result = matching.record_swipe(alice, "  bob ", "like")
        assert result.value.swipe.to_user_id == "bob"


class TestSwipeRejections:
    @pytest.mark.parametrize("target", ["", "   ", None, 7, "alice"])
    def test_invalid_target(self, matching, alice, target):
        result = matching.record_swipe(alice, target, "like")
        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.UNAUTHORIZED_ACTION
        assert result.error.message == "Invalid swipe target."

    def test_invalid_direction(self, matching, alice):
        result = matching.record_swipe(alice, "bob", "superlike")
        assert result.error.message == "Invalid swipe direction."

    def test_cruise_mode_cannot_swipe(self, matching):
        result = matching.record_swipe(make_session("alice", mode="cruise"), "bob", "like")
        assert result.error.code == ErrorCode.MATCHING_NOT_ALLOWED

    def test_guest_cannot_swipe(self, matching):
        result = matching.record_swipe(guest("g1", mode="date"), "bob", "like")
        assert result.error.code == ErrorCode.ANONYMOUS_FORBIDDEN

    def test_blocked_pair_cannot_swipe(self, matching, blocks, alice, bob):
        blocks.block(bob, "user:alice")

        result = matching.record_swipe(alice, "bob", "like")

        assert result.error.code == ErrorCode.USER_BLOCKED
        assert matching.get_swipe("alice", "bob") is None


class TestListMatches:
    def test_newest_first(self, matching, clock, alice, bob):
        carol = make_session("carol")
        matching.record_swipe(alice, "bob", "like")
        matching.record_swipe(bob, "alice", "like")
        clock.advance(1000)
        matching.record_swipe(carol, "alice", "like")
        matching.record_swipe(alice, "carol", "like")

        matches = matching.list_matches("alice").value
        assert [(m.user_a, m.user_b) for m in matches] == [("alice", "carol"), ("alice", "bob")]

    def test_invalid_user(self, matching):
        assert isinstance(matching.list_matches(""), Err)

    def test_no_matches(self, matching):
        assert matching.list_matches("nobody").value == []


class TestStateSnapshot:
    def test_hydrated_like_reconciles(self, clock):
        state = MatchingStateSnapshot(
            swipes=[
                SwipeRecord(
                    from_user_id="bob", to_user_id="alice", direction="like", created_at_ms=1
                )
            ]
        )
        engine = MatchingEngine(clock=clock, initial_state=state)

        result = engine.record_swipe(make_session("alice"), "bob", "like")
        assert result.value.match_created is True

    def test_hydration_orders_and_dedupes_matches(self, clock):
        state = MatchingStateSnapshot(
            matches=[
                MatchRecord(match_id="m1", user_a="zed", user_b="amy", created_at_ms=5),
                MatchRecord(match_id="m2", user_a="amy", user_b="zed", created_at_ms=9),
            ]
        )
        engine = MatchingEngine(clock=clock, initial_state=state)

        matches = engine.list_matches("amy").value
        assert len(matches) == 1
        assert (matches[0].match_id, matches[0].user_a) == ("m1", "amy")

    def test_snapshot_round_trip(self, matching, clock, alice, bob):
        matching.record_swipe(alice, "bob", "like")
        matching.record_swipe(bob, "alice", "like")

        restored = MatchingEngine(clock=clock, initial_state=matching.snapshot_state())

        assert restored.is_matched("alice", "bob")
        assert restored.get_swipe("bob", "alice").direction == "like"

    def test_hook_receives_snapshots(self, clock, alice):
        seen = []
        engine = MatchingEngine(clock=clock, on_state_changed=seen.append)

        engine.record_swipe(alice, "bob", "like")

        assert len(seen) == 1
        assert seen[0].swipes[0].to_user_id == "bob"

    def test_failing_hook_does_not_fail_swipe(self, clock, alice):
        def explode(snapshot):
            raise RuntimeError("disk full")

        engine = MatchingEngine(clock=clock, on_state_changed=explode)
        assert isinstance(engine.record_swipe(alice, "bob", "like"), Ok)


def test_pair_key_is_order_independent():
    assert pair_key("b", "a") == pair_key("a", "b") == "a::b"


def test_concurrent_mutual_likes_create_one_match(clock):
    for _ in range(20):
        engine = MatchingEngine(clock=clock)
        barrier = threading.Barrier(2)
        results = []

        def swipe(me, other):
            barrier.wait()
            results.append(engine.record_swipe(make_session(me), other, "like"))

        threads = [
            threading.Thread(target=swipe, args=("alice", "bob")),
            threading.Thread(target=swipe, args=("bob", "alice")),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.value.match_created for r in results) == 1
        assert len(engine.list_matches("alice").value) == 1
        assert len(engine.snapshot_state().matches) == 1
        assert len(engine._pair_locks) == 0
