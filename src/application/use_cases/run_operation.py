from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from enum import Enum

from src.application.dtos.analysis_dto import AnalysisResult
from src.application.use_cases.generate_image import GenerateImageUseCase
from src.domain.entities.edit_history import HistoryEntry
from src.domain.entities.operation import (
    OperationKind,
    OperationRequest,
    input_assets,
    kind_of,
    produces_image,
)
from src.domain.entities.outcome import OperationOutcome, Success, SuccessText
from src.domain.errors import OperationFailed, OperationInProgress
from src.domain.services.history_store import HistoryStore

logger = logging.getLogger(__name__)


class OperationPhase(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationTicket:
    """Identifies one issued request and the history state it was issued against."""
    ticket_id: int
    kind: OperationKind
    cursor: int
    revision: int


@dataclass(frozen=True)
class OperationReport:
    ticket: OperationTicket
    outcome: OperationOutcome
    applied: bool = False  # True when the result was pushed into the history
    stale: bool = False  # True when a successful result was discarded
    entry: HistoryEntry | None = None
    analysis: AnalysisResult | None = None

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def text(self) -> str | None:
        return self.outcome.text if isinstance(self.outcome, SuccessText) else None

    def raise_for_outcome(self) -> "OperationReport":
        if not self.outcome.ok:
            raise OperationFailed(self.outcome)
        return self


class OperationOrchestrator:
    """Runs operations against one history.

    Lifecycle of an image-producing operation: IDLE -> SENDING -> SUCCEEDED | FAILED,
    or back to IDLE when the caller is cancelled mid-request.
    Only one may be SENDING at a time; a second one raises OperationInProgress unless
    it explicitly supersedes the first, in which case the first result is ignored.
    Results are applied only if the history has not moved since the request was issued.
    Text operations (optimize-prompt, analyze) never touch the history.
    """

    def __init__(self, history: HistoryStore, generator: GenerateImageUseCase) -> None:
        self.history = history
        self.generator = generator
        self._phase = OperationPhase.IDLE
        self._in_flight: OperationTicket | None = None
        self._abandoned: set[int] = set()
        self._ids = itertools.count(1)

    @property
    def phase(self) -> OperationPhase:
        return self._phase

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    async def run(self, request: OperationRequest, *, supersede: bool = False) -> OperationReport:
        if produces_image(request):
            return await self._run_image(request, supersede)
        return await self._run_text(request)

    async def _run_image(self, request: OperationRequest, supersede: bool) -> OperationReport:
        if self._in_flight is not None and not supersede:
            raise OperationInProgress()

        # Build errors surface before any state changes
        provider_request = self.generator.prepare(request)
        if self._in_flight is not None:
            logger.info("Superseding in-flight ticket %d", self._in_flight.ticket_id)
            self._abandoned.add(self._in_flight.ticket_id)
        ticket = self._issue(request)
        pinned = input_assets(request)
        for asset in pinned:
            self.history.pool.acquire(asset)
        self._in_flight = ticket
        self._phase = OperationPhase.SENDING
        try:
            outcome = await self.generator.send(request, provider_request)
        finally:
            for asset in pinned:
                self.history.pool.release(asset)
            abandoned = ticket.ticket_id in self._abandoned
            self._abandoned.discard(ticket.ticket_id)
            if self._in_flight is ticket:
                # also reached when the caller is cancelled
                self._in_flight = None
                self._phase = OperationPhase.IDLE

        if not isinstance(outcome, Success):
            if not abandoned:
                self._phase = OperationPhase.FAILED
            logger.info("Ticket %d failed: %s", ticket.ticket_id, type(outcome).__name__)
            return OperationReport(ticket=ticket, outcome=outcome)

        if abandoned or self._is_stale(ticket):
            logger.warning(
                "Discarding stale result of ticket %d (%s): issued at cursor=%d revision=%d, "
                "history now at cursor=%d revision=%d",
                ticket.ticket_id,
                ticket.kind.value,
                ticket.cursor,
                ticket.revision,
                self.history.cursor,
                self.history.revision,
            )
            return OperationReport(ticket=ticket, outcome=outcome, stale=True)

        entry = self.history.push(outcome.asset, operation_type=ticket.kind.value)
        self._phase = OperationPhase.SUCCEEDED
        logger.info("Ticket %d applied as version %d", ticket.ticket_id, entry.sequence)
        return OperationReport(ticket=ticket, outcome=outcome, applied=True, entry=entry)

    async def _run_text(self, request: OperationRequest) -> OperationReport:
        provider_request = self.generator.prepare(request)
        ticket = self._issue(request)
        outcome = await self.generator.send(request, provider_request)
        analysis = None
        if isinstance(outcome, SuccessText) and ticket.kind is OperationKind.ANALYZE:
            analysis = AnalysisResult.parse_model_text(outcome.text)
        return OperationReport(ticket=ticket, outcome=outcome, analysis=analysis)

    def _issue(self, request: OperationRequest) -> OperationTicket:
        return OperationTicket(
            ticket_id=next(self._ids),
            kind=kind_of(request),
            cursor=self.history.cursor,
            revision=self.history.revision,
        )

    def _is_stale(self, ticket: OperationTicket) -> bool:
        return self.history.revision != ticket.revision or self.history.cursor != ticket.cursor
