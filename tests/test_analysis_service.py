"""
Unit tests for mdrs/services/analysis_service.py (AnalysisSession).

The analysis call is replaced with an AsyncMock (or a gated coroutine for
concurrency cases); one end-to-end case talks to MockAnalysisService.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from mdrs.core.session_state import FileHandle, initial_state
from mdrs.core.validation import MISSING_FILE_MESSAGE, MISSING_TEXT_MESSAGE
from mdrs.integrations.analysis_api import GENERIC_FAILURE_MESSAGE, AnalysisRequestError
from mdrs.services.analysis_service import BUSY_LABEL, AnalysisSession


def _text_session(analyze_fn, text: str = "Breaking: scientists confirm...") -> AnalysisSession:
    session = AnalysisSession(base_url="http://svc.test", analyze_fn=analyze_fn)
    session.select_modality("text")
    session.set_text(text)
    return session


# ---------------------------------------------------------------------------
# Validation gate
# ---------------------------------------------------------------------------


async def test_missing_file_never_calls_service():
    analyze_fn = AsyncMock()
    session = AnalysisSession(analyze_fn=analyze_fn)

    state = await session.submit()

    analyze_fn.assert_not_awaited()
    assert state.status == "failed"
    assert state.error == MISSING_FILE_MESSAGE


async def test_blank_text_never_calls_service():
    analyze_fn = AsyncMock()
    session = _text_session(analyze_fn, text="   ")

    state = await session.submit()

    analyze_fn.assert_not_awaited()
    assert state.error == MISSING_TEXT_MESSAGE


def test_submit_enabled_tracks_gate(image_handle):
    session = AnalysisSession(analyze_fn=AsyncMock())
    assert session.submit_enabled is False
    session.set_file(image_handle)
    assert session.submit_enabled is True


def test_analyze_button_states(image_handle):
    session = AnalysisSession(analyze_fn=AsyncMock())
    assert session.analyze_button("Image") == ("🔍 Analyze Image", True)

    session.set_file(image_handle)
    assert session.analyze_button("Image") == ("🔍 Analyze Image", False)
    assert session.analyze_button("Image", pending=True) == (BUSY_LABEL, True)


async def test_replaced_upload_with_same_name_and_size_is_sent():
    analyze_fn = AsyncMock()
    session = AnalysisSession(analyze_fn=analyze_fn)
    session.sync_upload(FileHandle(name="a.wav", size=3, content=b"old", upload_id="u1"))
    session.sync_upload(FileHandle(name="a.wav", size=3, content=b"new", upload_id="u2"))

    await session.submit()

    assert analyze_fn.await_args.args[0].file.content == b"new"


# ---------------------------------------------------------------------------
# Request lifecycle
# ---------------------------------------------------------------------------


async def test_success_stores_result(mock_result):
    analyze_fn = AsyncMock(return_value=mock_result)
    session = _text_session(analyze_fn)
    session.set_metadata(source="Twitter")

    state = await session.submit()

    assert state.status == "success"
    assert state.result == mock_result
    assert state.error is None
    analyze_fn.assert_awaited_once()
    submitted = analyze_fn.await_args.args[0]
    assert submitted.text == "Breaking: scientists confirm..."
    assert submitted.source == "Twitter"
    assert analyze_fn.await_args.kwargs == {"base_url": "http://svc.test", "timeout": None}


async def test_service_error_message_is_shown_and_input_kept(image_handle):
    analyze_fn = AsyncMock(side_effect=AnalysisRequestError("Unsupported file format", status=415))
    session = AnalysisSession(analyze_fn=analyze_fn)
    session.set_file(image_handle)

    state = await session.submit()

    assert state.status == "failed"
    assert state.error == "Unsupported file format"
    assert state.input.file == image_handle


async def test_unexpected_error_becomes_generic_failure():
    session = _text_session(AsyncMock(side_effect=RuntimeError("kaboom")))

    state = await session.submit()

    assert state.status == "failed"
    assert state.error == GENERIC_FAILURE_MESSAGE


async def test_retry_after_failure(mock_result):
    analyze_fn = AsyncMock(side_effect=[AnalysisRequestError(GENERIC_FAILURE_MESSAGE), mock_result])
    session = _text_session(analyze_fn)

    assert (await session.submit()).status == "failed"
    assert (await session.submit()).status == "success"
    assert analyze_fn.await_count == 2


async def test_submit_after_success_is_noop(mock_result):
    analyze_fn = AsyncMock(return_value=mock_result)
    session = _text_session(analyze_fn)
    await session.submit()

    state = await session.submit()

    assert state.status == "success"
    assert analyze_fn.await_count == 1


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


async def test_second_submit_while_in_flight_is_noop(mock_result):
    release = asyncio.Event()
    calls = []

    async def slow_analyze(input_state, **kwargs):
        calls.append(input_state)
        await release.wait()
        return mock_result

    session = _text_session(slow_analyze)
    first = asyncio.create_task(session.submit())
    await asyncio.sleep(0)
    assert session.in_flight
    assert session.submit_enabled is False
    assert session.analyze_button("Text") == (BUSY_LABEL, True)
    before = session.state

    second = await session.submit()

    assert second == before
    release.set()
    final = await first
    assert final.status == "success"
    assert len(calls) == 1


async def test_reset_while_in_flight_discards_late_result(mock_result):
    release = asyncio.Event()

    async def slow_analyze(input_state, **kwargs):
        await release.wait()
        return mock_result

    session = _text_session(slow_analyze)
    pending = asyncio.create_task(session.submit())
    await asyncio.sleep(0)
    session.reset()

    release.set()
    await pending

    assert session.state == initial_state()


async def test_reset_then_new_submit_ignores_old_completion(mock_result):
    gates = [asyncio.Event(), asyncio.Event()]
    stale = AnalysisRequestError("stale failure")

    async def analyze_fn(input_state, **kwargs):
        gate = gates.pop(0)
        await gate.wait()
        if input_state.text == "first":
            raise stale
        return mock_result

    first_gate, second_gate = gates
    session = _text_session(analyze_fn, text="first")
    first = asyncio.create_task(session.submit())
    await asyncio.sleep(0)

    session.reset()
    session.select_modality("text")
    session.set_text("second")
    second = asyncio.create_task(session.submit())
    await asyncio.sleep(0)

    first_gate.set()
    await first
    assert session.in_flight

    second_gate.set()
    await second
    assert session.state.status == "success"
    assert session.state.error is None


# ---------------------------------------------------------------------------
# Reset
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("outcome", ["success", "failed"])
async def test_reset_returns_to_initial(outcome, mock_result):
    if outcome == "success":
        analyze_fn = AsyncMock(return_value=mock_result)
    else:
        analyze_fn = AsyncMock(side_effect=AnalysisRequestError("nope"))
    session = _text_session(analyze_fn)
    session.set_metadata(source="Reddit", timestamp="yesterday", context="election")
    await session.submit()
    assert session.state.status == outcome

    assert session.reset() == initial_state()


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


async def test_text_scenario_against_mock_service(analysis_service):
    session = AnalysisSession(base_url=analysis_service.url)
    session.select_modality("text")
    session.set_text("Breaking: scientists confirm...")

    state = await session.submit()

    assert state.status == "success"
    assert state.result.risk_score == 72
    assert [r["fields"] for r in analysis_service.received] == [
        {"text": "Breaking: scientists confirm..."}
    ]


async def test_error_scenario_against_mock_service(analysis_service, image_handle):
    analysis_service.reply_with({"detail": "Unsupported file format"}, status=400)
    session = AnalysisSession(base_url=analysis_service.url)
    session.set_file(image_handle)

    state = await session.submit()

    assert state.status == "failed"
    assert state.error == "Unsupported file format"
