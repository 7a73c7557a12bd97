"""
Event type catalog.

The closed set of host lifecycle events a hook can attach to, with the matcher
shape each one accepts, its legal timeout range and whether a hook on that
event is allowed to block the host (exit non-zero to veto an action).

    >>> policy = get_policy(EventType.PRE_TOOL_USE)
    >>> policy.timeout_range
    (1, 5)
    >>> policy.may_block
    True
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Host runtime lifecycle events that can trigger a hook."""

    SESSION_START = "SessionStart"
    POST_TOOL_USE = "PostToolUse"
    PRE_TOOL_USE = "PreToolUse"
    SUBAGENT_STOP = "SubagentStop"
    USER_PROMPT_SUBMIT = "UserPromptSubmit"
    STOP = "Stop"
    PRE_PUSH = "PrePush"


class MatcherPolicy(str, Enum):
    """What a hook's matcher may contain for a given event type."""

    EMPTY = "empty"
    """Matcher must be empty."""

    TOOL_OR_PATH = "tool-or-path"
    """At least one tool name or path glob is required."""

    CONTENT = "content"
    """Matcher is empty or holds prompt-content filters."""

    BRANCH = "branch"
    """Matcher is empty or holds branch filters."""


class EventPolicy(BaseModel):
    """Timing and matcher constraints for one event type."""

    model_config = ConfigDict(frozen=True)

    event_type: EventType
    matcher: MatcherPolicy
    min_timeout: int = Field(ge=1)
    max_timeout: int = Field(ge=1)
    default_timeout: int = Field(ge=1)
    may_block: bool = False
    description: str = ""

    @property
    def timeout_range(self) -> tuple[int, int]:
        return (self.min_timeout, self.max_timeout)

    def allows_timeout(self, timeout: int) -> bool:
        """Check a timeout against the closed range for this event."""
        return self.min_timeout <= timeout <= self.max_timeout

    @property
    def allowed_matcher_fields(self) -> frozenset[str]:
        return _ALLOWED_FIELDS[self.matcher]


_ALLOWED_FIELDS: dict[MatcherPolicy, frozenset[str]] = {
    MatcherPolicy.EMPTY: frozenset(),
    MatcherPolicy.TOOL_OR_PATH: frozenset({"tools", "paths"}),
    MatcherPolicy.CONTENT: frozenset({"content"}),
    MatcherPolicy.BRANCH: frozenset({"branches"}),
}


EVENT_CATALOG: dict[EventType, EventPolicy] = {
    EventType.SESSION_START: EventPolicy(
        event_type=EventType.SESSION_START,
        matcher=MatcherPolicy.EMPTY,
        min_timeout=1,
        max_timeout=10,
        default_timeout=10,
        description="When a session starts or resumes",
    ),
    EventType.POST_TOOL_USE: EventPolicy(
        event_type=EventType.POST_TOOL_USE,
        matcher=MatcherPolicy.TOOL_OR_PATH,
        min_timeout=1,
        max_timeout=60,
        default_timeout=30,
        description="After a tool call completes",
    ),
    EventType.PRE_TOOL_USE: EventPolicy(
        event_type=EventType.PRE_TOOL_USE,
        matcher=MatcherPolicy.TOOL_OR_PATH,
        min_timeout=1,
        max_timeout=5,
        default_timeout=5,
        may_block=True,
        description="Before a tool call runs; may veto it",
    ),
    EventType.SUBAGENT_STOP: EventPolicy(
        event_type=EventType.SUBAGENT_STOP,
        matcher=MatcherPolicy.EMPTY,
        min_timeout=1,
        max_timeout=120,
        default_timeout=60,
        description="When a subagent finishes",
    ),
    EventType.USER_PROMPT_SUBMIT: EventPolicy(
        event_type=EventType.USER_PROMPT_SUBMIT,
        matcher=MatcherPolicy.CONTENT,
        min_timeout=1,
        max_timeout=5,
        default_timeout=5,
        may_block=True,
        description="When the user submits a prompt; may reject it",
    ),
    EventType.STOP: EventPolicy(
        event_type=EventType.STOP,
        matcher=MatcherPolicy.EMPTY,
        min_timeout=1,
        max_timeout=30,
        default_timeout=15,
        description="When the main agent finishes responding",
    ),
    EventType.PRE_PUSH: EventPolicy(
        event_type=EventType.PRE_PUSH,
        matcher=MatcherPolicy.BRANCH,
        min_timeout=1,
        max_timeout=60,
        default_timeout=60,
        may_block=True,
        description="Before changes are pushed; may abort the push",
    ),
}


def get_policy(event_type: EventType | str) -> EventPolicy:
    """
    Look up the policy for an event type.

    Args:
        event_type: EventType member or its string value (e.g. "PostToolUse")

    Returns:
        EventPolicy for the event

    Raises:
        ValueError: If the event type is not in the catalog
    """
    return EVENT_CATALOG[EventType(event_type)]


def is_known_event(name: str) -> bool:
    """Check whether a string names a cataloged event type."""
    return name in {e.value for e in EventType}
