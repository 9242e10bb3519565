"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - SessionId, MessageId, ResolutionId, UserId wrap UUIDs
    - Role is the only valid sender tag ("A" or "B")
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders, compare equal to DB strings
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

SessionId = NewType("SessionId", UUID)
MessageId = NewType("MessageId", UUID)
ResolutionId = NewType("ResolutionId", UUID)
UserId = NewType("UserId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

Intensity = NewType("Intensity", int)            # 1-10
ReasonablenessScore = NewType("ReasonablenessScore", int)  # 1-10


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Participant role within a session. A always creates, B joins."""
    A = "A"
    B = "B"

    @property
    def default_label(self) -> str:
        return f"User {self.value}"


class TurnPolicy(str, Enum):
    """Turn-Gate policy, selected per deployment via settings.turn_policy."""
    STRICT_ALTERNATION = "strict-alternation"
    UNRESTRICTED = "unrestricted"

    @classmethod
    def _missing_(cls, value):
        # Environment variables often spell it strict_alternation
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class Tone(str, Enum):
    """Tone labels the analysis capability may assign to a participant."""
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
    HURT = "hurt"
    CALM = "calm"
    UNDERSTANDING = "understanding"
    CONFUSED = "confused"


class ResolutionStep(str, Enum):
    """Resolution request lifecycle. Failure may exit from any step before DONE."""
    IDLE = "idle"
    VALIDATING = "validating"
    INVOKING = "invoking"
    PARSING = "parsing"
    PERSISTING = "persisting"
    DONE = "done"
