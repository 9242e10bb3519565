"""Transcript rendering for the Resolution Pipeline.

Name fallback per role: identified user name -> anonymous display name -> "User A"/"User B".
"""

from typing import Sequence

from parley.core.domain_types import Role
from parley.core.repository_protocols import MessageLike, SessionLike


def display_name(session: SessionLike, role: Role) -> str:
    if role == Role.A:
        user, anonymous_name = session.user_a, session.user_a_name
    else:
        user, anonymous_name = session.user_b, session.user_b_name
    if user is not None and user.name:
        return user.name
    if anonymous_name:
        return anonymous_name
    return role.default_label


def display_names(session: SessionLike) -> dict[Role, str]:
    return {role: display_name(session, role) for role in Role}


def render_transcript(
    messages: Sequence[MessageLike], names: dict[Role, str],
) -> str:
    """Ordered "Name: content" lines, one per message."""
    lines = []
    for message in messages:
        role = Role(message.sender)
        lines.append(f"{names.get(role, role.default_label)}: {message.content}")
    return "\n".join(lines)
