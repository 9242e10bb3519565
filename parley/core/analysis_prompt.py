"""Analysis Prompt: fixed template parameterized by participant names and transcript.

Invariants:
    - build_analysis_prompt is PURE and deterministic for the same inputs
    - Tone labels in the prompt are exactly the Tone enum values
    - The JSON schema described here is the one parse_analysis validates
"""

from parley.core.domain_types import Tone

TONE_LABELS: str = ", ".join(t.value for t in Tone)

_RESPONSE_SCHEMA = """{
  "verdict": "balanced assessment of the disagreement",
  "explanation": "what is driving each person's position",
  "compromise": "a concrete, fair next step for both people",
  "userATone": {"tone": "<tone label>", "emotion": "<primary emotion>", "intensity": <1-10>},
  "userBTone": {"tone": "<tone label>", "emotion": "<primary emotion>", "intensity": <1-10>},
  "reasonableness": {"userA": <1-10>, "userB": <1-10>, "analysis": "who is being more reasonable and why"}
}"""


def build_analysis_prompt(
    user_a_name: str, user_b_name: str, transcript: str,
) -> str:
    """Render the mediator prompt for one transcript."""
    return f"""You are a neutral relationship mediator reviewing a conversation between two partners:
{user_a_name} (User A) and {user_b_name} (User B).

<conversation>
{transcript}
</conversation>

Assess the conversation and report:

1. Tone for each person: one of [{TONE_LABELS}], the primary emotion they express,
   and its intensity from 1 (barely present) to 10 (overwhelming).
2. Reasonableness for each person from 1 to 10 (10 = most reasonable), with a short
   analysis of who is being more reasonable and why.
3. A verdict: a fair assessment of the situation, the core issues, and who (if anyone)
   should take more responsibility.
4. A compromise: practical steps both people can take that address both sides.

Be warm, fair and direct. Do not take sides without reason, but name unreasonable
behavior when you see it.

Respond with a single JSON object in exactly this shape and nothing else:
{_RESPONSE_SCHEMA}
"""
