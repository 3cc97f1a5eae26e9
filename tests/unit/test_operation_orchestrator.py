"""
Tests for the operation orchestrator: single-flight, stale results, pinning and text operations.
"""
from __future__ import annotations

import asyncio
import json

import pytest
from helpers import FakeTransport, GatedTransport, image_response, text_response, wait_for_pending

from src.application.use_cases.generate_image import GenerateImageUseCase
from src.application.use_cases.run_operation import OperationOrchestrator, OperationPhase
from src.domain.entities.image import Hotspot
from src.domain.entities.operation import (
    AnalyzeRequest,
    EditRequest,
    FilterRequest,
    OptimizePromptRequest,
    TextToImageRequest,
)
from src.domain.entities.outcome import Blocked, SuccessText, TransportError
from src.domain.errors import InvalidOption, MalformedResult, OperationFailed, OperationInProgress
from src.domain.services.display_resources import DisplayResourcePool
from src.domain.services.history_store import HistoryStore


def _orchestrator(transport, base=None, pool=None):
    history = HistoryStore(pool)
    if base is not None:
        history.reset(base)
    return OperationOrchestrator(history, GenerateImageUseCase(transport=transport)), history


@pytest.mark.asyncio
async def test_success_pushes_new_version(base_asset, make_asset):
    result = make_asset(200)
    transport = FakeTransport([image_response(result.data)])
    orch, history = _orchestrator(transport, base_asset)

    report = await orch.run(EditRequest(image=base_asset, prompt="add a hat", hotspot=Hotspot(5, 6)))

    assert report.applied
    assert report.entry.operation_type == "edit"
    assert len(history) == 2
    assert history.current() == result
    assert orch.phase is OperationPhase.SUCCEEDED
    assert transport.requests[0].images == (base_asset,)


@pytest.mark.asyncio
async def test_failure_leaves_history_untouched(base_asset):
    transport = FakeTransport([{"promptFeedback": {"blockReason": "SAFETY"}}])
    orch, history = _orchestrator(transport, base_asset)
    revision = history.revision

    report = await orch.run(FilterRequest(image=base_asset, prompt="gore"))

    assert isinstance(report.outcome, Blocked)
    assert not report.applied
    assert len(history) == 1
    assert history.revision == revision
    assert orch.phase is OperationPhase.FAILED
    with pytest.raises(OperationFailed) as exc_info:
        report.raise_for_outcome()
    assert exc_info.value.reason == "Blocked"


@pytest.mark.asyncio
async def test_transport_exception_becomes_transport_error(base_asset):
    orch, history = _orchestrator(FakeTransport(error=ConnectionError("connection reset")), base_asset)
    report = await orch.run(FilterRequest(image=base_asset, prompt="sepia"))
    assert isinstance(report.outcome, TransportError)
    assert "connection reset" in report.outcome.message
    assert len(history) == 1
    assert not orch.busy


@pytest.mark.asyncio
async def test_cancelled_operation_returns_to_idle(base_asset, make_asset):
    transport = GatedTransport()
    orch, history = _orchestrator(transport, base_asset)
    task = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="a")))
    await wait_for_pending(transport, 1)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not orch.busy
    assert orch.phase is OperationPhase.IDLE
    assert history.pool.ref_count(base_asset) == 1
    assert len(history) == 1

    follow_up = FakeTransport([image_response(make_asset(5).data)])
    orch.generator = GenerateImageUseCase(transport=follow_up)
    assert (await orch.run(FilterRequest(image=base_asset, prompt="b"))).applied


@pytest.mark.asyncio
async def test_cancelled_superseded_ticket_is_forgotten(base_asset):
    transport = GatedTransport()
    orch, _ = _orchestrator(transport, base_asset)
    first = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="a")))
    await wait_for_pending(transport, 1)
    second = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="b"), supersede=True))
    await wait_for_pending(transport, 2)

    first.cancel()
    second.cancel()
    for task in (first, second):
        with pytest.raises(asyncio.CancelledError):
            await task

    assert orch._abandoned == set()
    assert orch.phase is OperationPhase.IDLE

@pytest.mark.asyncio
async def test_invalid_request_changes_nothing():
    orch, history = _orchestrator(FakeTransport())
    with pytest.raises(InvalidOption):
        await orch.run(TextToImageRequest(prompt="x", quality="ultra"))
    assert orch.phase is OperationPhase.IDLE
    assert not orch.busy


@pytest.mark.asyncio
async def test_second_image_operation_while_sending_is_rejected(base_asset, make_asset):
    transport = GatedTransport()
    orch, history = _orchestrator(transport, base_asset)

    first = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="a")))
    await wait_for_pending(transport, 1)
    assert orch.phase is OperationPhase.SENDING

    with pytest.raises(OperationInProgress):
        await orch.run(FilterRequest(image=base_asset, prompt="b"))
    assert len(transport.requests) == 1

    transport.pending[0].set_result(image_response(make_asset(9).data))
    report = await first
    assert report.applied
    assert len(history) == 2


@pytest.mark.asyncio
async def test_stale_response_is_discarded(base_asset, make_asset):
    result_a, result_b = make_asset(1), make_asset(2)
    transport = GatedTransport()
    orch, history = _orchestrator(transport, base_asset)

    task_a = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="a")))
    await wait_for_pending(transport, 1)
    task_b = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="b"), supersede=True))
    await wait_for_pending(transport, 2)

    transport.pending[1].set_result(image_response(result_b.data))
    report_b = await task_b
    assert report_b.applied
    assert history.cursor == 1

    transport.pending[0].set_result(image_response(result_a.data))
    report_a = await task_a

    assert report_a.stale
    assert not report_a.applied
    assert report_a.ticket.cursor == 0
    assert len(history) == 2
    assert history.current() == result_b
    assert orch.phase is OperationPhase.SUCCEEDED


@pytest.mark.asyncio
async def test_result_is_discarded_when_user_undoes_mid_flight(base_asset, make_asset):
    transport = GatedTransport()
    orch, history = _orchestrator(transport, base_asset)
    second = make_asset(50)
    history.push(second)

    task = asyncio.create_task(orch.run(FilterRequest(image=second, prompt="x")))
    await wait_for_pending(transport, 1)
    history.undo()
    transport.pending[0].set_result(image_response(make_asset(60).data))
    report = await task

    assert report.stale
    assert len(history) == 2
    assert history.cursor == 0


@pytest.mark.asyncio
async def test_in_flight_asset_is_not_released_until_completion(base_asset, make_asset):
    released = []
    pool = DisplayResourcePool(on_release=released.append)
    transport = GatedTransport()
    orch, history = _orchestrator(transport, base_asset, pool)
    history.display()  # materialize the base

    task = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="x")))
    await wait_for_pending(transport, 1)
    history.reset(make_asset(77))
    assert pool.is_materialized(base_asset)
    assert released == []

    transport.pending[0].set_result(image_response(make_asset(78).data))
    report = await task
    assert report.stale
    assert [h.asset_id for h in released] == [base_asset.id]


@pytest.mark.asyncio
async def test_text_to_image_on_empty_history(make_asset):
    generated = make_asset(120)
    orch, history = _orchestrator(FakeTransport([image_response(generated.data)]))
    report = await orch.run(TextToImageRequest(prompt="a lighthouse"))
    assert report.applied
    assert len(history) == 1
    assert history.current() == generated


@pytest.mark.asyncio
async def test_text_operations_ignore_guard_and_history(base_asset, make_asset):
    transport = GatedTransport()
    orch, history = _orchestrator(transport, base_asset)

    image_task = asyncio.create_task(orch.run(FilterRequest(image=base_asset, prompt="a")))
    await wait_for_pending(transport, 1)
    text_task = asyncio.create_task(orch.run(OptimizePromptRequest(prompt="cat")))
    await wait_for_pending(transport, 2)

    transport.pending[1].set_result(text_response("a fluffy cat in golden light"))
    text_report = await text_task
    assert text_report.outcome == SuccessText(text="a fluffy cat in golden light", context="prompt optimization")
    assert text_report.text == "a fluffy cat in golden light"
    assert not text_report.applied
    assert orch.phase is OperationPhase.SENDING

    transport.pending[0].set_result(image_response(make_asset(3).data))
    assert (await image_task).applied
    assert len(history) == 2


@pytest.mark.asyncio
async def test_analysis_is_parsed(base_asset):
    analysis = {
        "composition": "rule of thirds",
        "colors": "warm",
        "suggestions": "crop tighter",
        "improvementPrompts": ["crop to subject", "boost contrast"],
    }
    text = "```json\n" + json.dumps(analysis) + "\n```"
    orch, history = _orchestrator(FakeTransport([text_response(text)]), base_asset)
    report = await orch.run(AnalyzeRequest(image=base_asset))
    assert report.analysis.composition == "rule of thirds"
    assert report.analysis.improvement_prompts == ["crop to subject", "boost contrast"]
    assert len(history) == 1


@pytest.mark.asyncio
async def test_unparsable_analysis_is_malformed_result(base_asset):
    orch, _ = _orchestrator(FakeTransport([text_response("Looks nice!")]), base_asset)
    with pytest.raises(MalformedResult):
        await orch.run(AnalyzeRequest(image=base_asset))
