"""Transcript: display-name fallback and line rendering."""

from types import SimpleNamespace

from parley.core.domain_types import Role
from parley.core.transcript import display_name, display_names, render_transcript


def _session(user_a=None, user_b=None, a_name=None, b_name=None):
    return SimpleNamespace(
        user_a=user_a, user_b=user_b,
        user_a_name=a_name, user_b_name=b_name,
    )


def test_identified_user_name_wins():
    session = _session(user_a=SimpleNamespace(name="Sam"), a_name="ignored")
    assert display_name(session, Role.A) == "Sam"


def test_anonymous_name_used_without_user():
    assert display_name(_session(b_name="Jamie"), Role.B) == "Jamie"


def test_default_label_when_nothing_set():
    assert display_names(_session()) == {Role.A: "User A", Role.B: "User B"}


def test_render_transcript_in_order():
    messages = [
        SimpleNamespace(sender="A", content="You never do the dishes."),
        SimpleNamespace(sender="B", content="I did them Tuesday."),
    ]
    names = {Role.A: "Alex", Role.B: "Jamie"}
    assert render_transcript(messages, names) == (
        "Alex: You never do the dishes.\nJamie: I did them Tuesday."
    )


def test_render_empty_transcript():
    assert render_transcript([], {}) == ""
