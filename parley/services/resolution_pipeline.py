"""Resolution Pipeline: transcript -> analysis capability -> persisted verdict.

Invariants:
    - Steps run VALIDATING -> INVOKING -> PARSING -> PERSISTING -> DONE; any failure
      exits with a typed ParleyError and nothing is persisted
    - The transcript is always the persisted Message Log, never a client-supplied list
    - can_analyze is re-checked here even if the caller already checked it
    - The capability is invoked exactly once per request, bounded by timeout_seconds
    - Only a fully validated AnalysisResult reaches the store

Design Decisions:
    - Store and capability injected through protocols: the pipeline owns no clients
    - Unexpected capability exceptions become AnalysisUnavailableError("unknown"):
      the caller only ever sees the documented error kinds
"""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from parley.core.analysis_prompt import build_analysis_prompt
from parley.core.domain_types import ResolutionStep, Role
from parley.core.errors import (
    AnalysisNotReadyError,
    AnalysisUnavailableError,
    ErrorContext,
    ParleyError,
)
from parley.core.parse_analysis import AnalysisResult, parse_analysis_response
from parley.core.repository_protocols import (
    AnalysisCapability,
    MessageRepository,
    ResolutionRepository,
    SessionRepository,
)
from parley.core.transcript import display_names, render_transcript
from parley.core.turn_gate import can_analyze

logger = logging.getLogger(__name__)


@dataclass
class ResolutionOutcome:
    """What a successful resolve() hands back to the caller."""
    resolution: object
    analysis: AnalysisResult


class ResolutionPipeline:
    """Runs one resolution request end to end."""

    def __init__(
        self,
        sessions: SessionRepository,
        messages: MessageRepository,
        resolutions: ResolutionRepository,
        capability: AnalysisCapability,
        timeout_seconds: float = 60,
    ):
        self.sessions = sessions
        self.messages = messages
        self.resolutions = resolutions
        self.capability = capability
        self.timeout_seconds = timeout_seconds

    async def resolve(self, session_id: UUID) -> ResolutionOutcome:
        ctx = ErrorContext(session_id=str(session_id))
        step = ResolutionStep.VALIDATING
        try:
            self._log_step(step, session_id)
            session = await self.sessions.get_by_id(session_id)
            log = await self.messages.list_since(session_id)
            if not can_analyze(log):
                raise AnalysisNotReadyError(
                    "Both participants must send at least one message before analysis",
                    ctx,
                )
            names = display_names(session)
            prompt = build_analysis_prompt(
                names[Role.A], names[Role.B], render_transcript(log, names),
            )

            step = ResolutionStep.INVOKING
            self._log_step(step, session_id)
            raw = await self._invoke(prompt, ctx)

            step = ResolutionStep.PARSING
            self._log_step(step, session_id)
            analysis = parse_analysis_response(raw)

            step = ResolutionStep.PERSISTING
            self._log_step(step, session_id)
            resolution = await self.resolutions.insert(
                session_id, analysis.verdict, analysis.compromise,
                analysis.to_wire(),
            )
        except ParleyError as e:
            logger.warning(
                f"Resolution failed during {step.value}: {e.message}",
                extra={
                    "session_id": str(session_id),
                    "step": step.value,
                    "error_code": e.code,
                },
            )
            raise

        self._log_step(ResolutionStep.DONE, session_id)
        return ResolutionOutcome(resolution=resolution, analysis=analysis)

    async def _invoke(self, prompt: str, ctx: ErrorContext) -> str:
        """One bounded call to the capability."""
        try:
            return await asyncio.wait_for(
                self.capability.invoke(prompt), timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise AnalysisUnavailableError(
                f"no response within {self.timeout_seconds}s", "timeout", context=ctx,
            )
        except ParleyError:
            raise
        except Exception as e:
            logger.error(f"Unexpected analysis capability error: {e}", exc_info=True)
            raise AnalysisUnavailableError(str(e), "unknown", context=ctx) from e

    def _log_step(self, step: ResolutionStep, session_id: UUID) -> None:
        logger.info(
            f"Resolution step {step.value}",
            extra={"session_id": str(session_id), "step": step.value},
        )
