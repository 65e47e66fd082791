"""Tests for the authorization gate and actor keys."""

import pytest

from reddoor.core.results import ErrorCode
from reddoor.gate.authorization import authorize, coerce_session
from reddoor.gate.models import Session, derive_actor_key, normalize_actor_key, same_actor

from tests.conftest import guest, make_session


class TestSessionShape:
    @pytest.mark.parametrize(
        "raw",
        [
            None,
            {},
            "token",
            {"sessionToken": "  ", "userType": "guest", "mode": "cruise", "ageVerified": True},
            {"sessionToken": "t", "userType": "admin", "mode": "cruise", "ageVerified": True},
            {"sessionToken": "t", "userType": "guest", "mode": "night", "ageVerified": True},
        ],
    )
    def test_malformed_session_is_invalid(self, raw):
        error = authorize(raw, "chat", "cruise")
        assert error is not None
        assert error.code == ErrorCode.INVALID_SESSION

    def test_camel_case_mapping_is_accepted(self):
        raw = {
            "sessionToken": "abc",
            "userType": "guest",
            "mode": "cruise",
            "ageVerified": True,
        }
        assert authorize(raw, "chat", "cruise") is None
        assert coerce_session(raw).session_token == "abc"

    def test_unvalidated_instance_is_rechecked(self):
        broken = Session.model_construct(
            session_token="", user_type="guest", mode="cruise", age_verified=True
        )
        assert authorize(broken, "block").code == ErrorCode.INVALID_SESSION


class TestAgeGate:
    def test_unverified_age_rejected_with_minimum_age(self):
        error = authorize(make_session("u1", age_verified=False), "chat", "date")
        assert error.code == ErrorCode.AGE_GATE_REQUIRED
        assert error.context == {"minimumAge": 18}

    def test_age_gate_runs_before_guest_check(self):
        session = make_session("g1", user_type="guest", age_verified=False)
        assert authorize(session, "swipe").code == ErrorCode.AGE_GATE_REQUIRED


class TestAnonymousRestrictions:
    @pytest.mark.parametrize(
        "action,chat_kind",
        [("chat", "date"), ("swipe", None), ("favorite", None)],
    )
    def test_guest_forbidden_on_registered_actions(self, action, chat_kind):
        error = authorize(guest("g1", mode="hybrid"), action, chat_kind)
        assert error.code == ErrorCode.ANONYMOUS_FORBIDDEN

    def test_guest_may_cruise_chat_and_block(self):
        assert authorize(guest("g1"), "chat", "cruise") is None
        assert authorize(guest("g1"), "block") is None


class TestModeRules:
    def test_cruise_mode_cannot_date_chat(self):
        error = authorize(make_session("u1", mode="cruise"), "chat", "date")
        assert error.code == ErrorCode.UNAUTHORIZED_ACTION
        assert error.context == {"mode": "cruise", "chatKind": "date"}

    def test_date_mode_cannot_cruise_chat(self):
        error = authorize(make_session("u1", mode="date"), "chat", "cruise")
        assert error.code == ErrorCode.UNAUTHORIZED_ACTION

    def test_hybrid_mode_allows_both(self):
        session = make_session("u1", mode="hybrid")
        assert authorize(session, "chat", "cruise") is None
        assert authorize(session, "chat", "date") is None

    def test_unknown_chat_kind(self):
        error = authorize(make_session("u1"), "chat", "group")
        assert error.code == ErrorCode.UNAUTHORIZED_ACTION
        assert error.message == "Invalid chat kind."

    def test_swipe_not_allowed_in_cruise(self):
        error = authorize(make_session("u1", mode="cruise"), "swipe")
        assert error.code == ErrorCode.MATCHING_NOT_ALLOWED

    def test_registered_without_user_id_is_invalid(self):
        session = Session(
            session_token="t", user_type="registered", mode="date", age_verified=True
        )
        assert authorize(session, "swipe").code == ErrorCode.INVALID_SESSION


class TestActorKeys:
    def test_registered_key_uses_user_id(self):
        assert derive_actor_key(make_session("tok", user_id="42")) == "user:42"

    def test_guest_key_uses_session_token(self):
        assert derive_actor_key(guest("tok")) == "session:tok"

    def test_guest_with_user_id_still_keyed_by_session(self):
        session = make_session("tok", user_type="guest", user_id="42")
        assert derive_actor_key(session) == "session:tok"

    def test_guest_prefix_collapses(self):
        assert normalize_actor_key("  guest:abc ") == "session:abc"
        assert same_actor("guest:abc", "session:abc")
        assert not same_actor("user:abc", "session:abc")
