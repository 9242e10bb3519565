"""Turn-Gate: decides whether a role may currently post, from the log tail only.

Invariants:
    - All functions are PURE: input is the trailing log slice, no hidden state
    - Only the last TURN_WINDOW messages are consulted, never the full history
    - Role B is blocked under every policy until it has joined
    - Role A is pre-joined at session creation

Design Decisions:
    - Turn state derived from the log instead of a stored turn pointer: nothing can desync
    - Policy is an enum from settings; STRICT_ALTERNATION closes the exchange for a role
      once it appears in the trailing window, matching the single-round flow where the
      next step is resolution
"""

from typing import Sequence

from parley.core.domain_types import Role, TurnPolicy
from parley.core.repository_protocols import MessageLike, SessionLike

TURN_WINDOW: int = 2
MIN_MESSAGES_FOR_ANALYSIS: int = 2


def _recent_senders(messages: Sequence[MessageLike]) -> set[str]:
    return {m.sender for m in messages[-TURN_WINDOW:]}


def has_responded(messages: Sequence[MessageLike], role: Role) -> bool:
    """True if role appears among the senders of the last two messages."""
    return role.value in _recent_senders(messages)


def both_responded(messages: Sequence[MessageLike]) -> bool:
    """True if both A and B appear among the last two messages."""
    return {Role.A.value, Role.B.value}.issubset(_recent_senders(messages))


def is_joined(session: SessionLike, role: Role) -> bool:
    if role == Role.A:
        return bool(session.user_a_joined)
    return bool(session.user_b_joined)


def check_can_send(
    session: SessionLike,
    messages: Sequence[MessageLike],
    role: Role,
    policy: TurnPolicy,
) -> str | None:
    """Return the refusal reason, or None if role may send."""
    if not is_joined(session, role):
        return f"participant {role.value} has not joined"
    if policy == TurnPolicy.STRICT_ALTERNATION and has_responded(messages, role):
        return "waiting for the other participant"
    return None


def can_send(
    session: SessionLike,
    messages: Sequence[MessageLike],
    role: Role,
    policy: TurnPolicy,
) -> bool:
    return check_can_send(session, messages, role, policy) is None


def can_analyze(messages: Sequence[MessageLike]) -> bool:
    """At least 2 messages in total and at least one from each role."""
    if len(messages) < MIN_MESSAGES_FOR_ANALYSIS:
        return False
    senders = {m.sender for m in messages}
    return {Role.A.value, Role.B.value}.issubset(senders)


def turn_view(
    session: SessionLike,
    messages: Sequence[MessageLike],
    policy: TurnPolicy,
) -> dict:
    """Snapshot of the gate for clients, so they need not recompute it."""
    return {
        "policy": policy.value,
        "can_send_a": can_send(session, messages, Role.A, policy),
        "can_send_b": can_send(session, messages, Role.B, policy),
        "both_responded": both_responded(messages),
        "can_analyze": can_analyze(messages),
    }
