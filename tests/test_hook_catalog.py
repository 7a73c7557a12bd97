"""
Tests for the event type catalog.
"""

import pytest

from hookfactory.core.hooks import EVENT_CATALOG, EventType, get_policy
from hookfactory.core.hooks.catalog import MatcherPolicy, is_known_event


class TestCatalogContents:
    """The catalog covers exactly the supported events."""

    def test_every_event_has_a_policy(self):
        assert set(EVENT_CATALOG) == set(EventType)

    @pytest.mark.parametrize(
        "event,low,high,default,may_block",
        [
            (EventType.SESSION_START, 1, 10, 10, False),
            (EventType.POST_TOOL_USE, 1, 60, 30, False),
            (EventType.PRE_TOOL_USE, 1, 5, 5, True),
            (EventType.SUBAGENT_STOP, 1, 120, 60, False),
            (EventType.USER_PROMPT_SUBMIT, 1, 5, 5, True),
            (EventType.STOP, 1, 30, 15, False),
            (EventType.PRE_PUSH, 1, 60, 60, True),
        ],
    )
    def test_policy_values(self, event, low, high, default, may_block):
        policy = get_policy(event)
        assert policy.timeout_range == (low, high)
        assert policy.default_timeout == default
        assert policy.may_block is may_block
        assert low <= policy.default_timeout <= high

    def test_matcher_shapes(self):
        assert get_policy(EventType.SESSION_START).allowed_matcher_fields == frozenset()
        assert get_policy(EventType.POST_TOOL_USE).matcher == MatcherPolicy.TOOL_OR_PATH
        assert get_policy(EventType.USER_PROMPT_SUBMIT).allowed_matcher_fields == {"content"}
        assert get_policy(EventType.PRE_PUSH).allowed_matcher_fields == {"branches"}


class TestLookup:
    """Lookup by member or by string value."""

    def test_get_policy_accepts_string(self):
        assert get_policy("Stop") is EVENT_CATALOG[EventType.STOP]

    def test_get_policy_rejects_unknown(self):
        with pytest.raises(ValueError):
            get_policy("OnFileSave")

    def test_allows_timeout_is_closed_range(self):
        policy = get_policy(EventType.PRE_TOOL_USE)
        assert policy.allows_timeout(1)
        assert policy.allows_timeout(5)
        assert not policy.allows_timeout(0)
        assert not policy.allows_timeout(6)

    def test_is_known_event(self):
        assert is_known_event("PostToolUse")
        assert not is_known_event("postToolUse")
