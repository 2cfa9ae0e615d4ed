from __future__ import annotations

import asyncio

from conftest import FakeRecognizer

from wordtales.common.options import Language
from wordtales.voice_capture import NullSpeechRecognizer, RecognitionResult, VoiceCaptureDebouncer


def _capture(recognizer, received: list[str], **kwargs) -> VoiceCaptureDebouncer:
    async def on_choice(text: str) -> None:
        received.append(text)

    kwargs.setdefault("debounce_seconds", 0)
    return VoiceCaptureDebouncer(recognizer, on_choice, Language.EN, **kwargs)


def test_interim_transcript_is_forwarded_once_on_end():
    recognizer = FakeRecognizer()
    received: list[str] = []
    capture = _capture(recognizer, received)

    async def scenario():
        assert capture.start()
        recognizer.emit_results(RecognitionResult("go"))
        recognizer.emit_results(RecognitionResult("go left"))
        assert capture.transcript == "go left"
        recognizer.emit_end()
        assert not capture.is_listening
        assert capture.is_awaiting_feedback
        recognizer.emit_end()
        await capture.wait_idle()

    asyncio.run(scenario())

    assert received == ["go left"]
    assert recognizer.start_calls == [
        {"language": "en-US", "continuous": True, "interim_results": True}
    ]


def test_final_segment_stops_recognizer_and_is_forwarded():
    recognizer = FakeRecognizer()
    received: list[str] = []
    capture = _capture(recognizer, received)

    async def scenario():
        capture.start()
        recognizer.emit_results(RecognitionResult(" into the cave ", is_final=True))
        assert recognizer.stop_calls == 1
        recognizer.emit_results(RecognitionResult("into the cave again", is_final=True))
        recognizer.emit_end()
        await capture.wait_idle()

    asyncio.run(scenario())

    assert received == ["into the cave"]
    assert recognizer.stop_calls == 1


def test_recognizer_error_forwards_nothing():
    recognizer = FakeRecognizer()
    received: list[str] = []
    capture = _capture(recognizer, received)

    async def scenario():
        capture.start()
        recognizer.emit_results(RecognitionResult("hmm"))
        recognizer.emit_error("network")
        assert not capture.is_listening
        recognizer.emit_end()
        await capture.wait_idle()
        assert not capture.is_awaiting_feedback
        return capture.start()

    assert asyncio.run(scenario()) is True
    assert received == []


def test_silent_session_forwards_nothing():
    recognizer = FakeRecognizer()
    received: list[str] = []
    capture = _capture(recognizer, received)

    async def scenario():
        capture.start()
        capture.stop()
        recognizer.emit_end()
        await capture.wait_idle()

    asyncio.run(scenario())

    assert recognizer.stop_calls == 1
    assert received == []


def test_debounce_delays_delivery():
    recognizer = FakeRecognizer()
    received: list[str] = []
    capture = _capture(recognizer, received, debounce_seconds=0.05)

    async def scenario():
        capture.start()
        recognizer.emit_results(RecognitionResult("the river", is_final=True))
        await asyncio.sleep(0)
        assert received == []
        assert capture.is_awaiting_feedback
        assert not capture.start()
        await capture.wait_idle()
        assert not capture.is_awaiting_feedback

    asyncio.run(scenario())

    assert received == ["the river"]


def test_start_is_refused_while_blocked():
    recognizer = FakeRecognizer()
    blocked = True
    capture = _capture(recognizer, [], is_blocked=lambda: blocked)

    assert capture.start() is False
    assert recognizer.start_calls == []

    blocked = False
    assert capture.start() is True
    assert capture.start() is False


def test_callbacks_from_a_cancelled_session_are_ignored():
    recognizer = FakeRecognizer()
    received: list[str] = []
    capture = _capture(recognizer, received)

    async def scenario():
        capture.start()
        recognizer.emit_results(RecognitionResult("hello"))
        capture.cancel()
        recognizer.emit_results(RecognitionResult("hello", is_final=True))
        recognizer.emit_end()
        await capture.wait_idle()

    asyncio.run(scenario())

    assert received == []
    assert not capture.is_listening


def test_close_cancels_pending_delivery():
    recognizer = FakeRecognizer()
    received: list[str] = []
    capture = _capture(recognizer, received, debounce_seconds=10)

    async def scenario():
        capture.start()
        recognizer.emit_results(RecognitionResult("the moon", is_final=True))
        capture.close()
        await asyncio.sleep(0)
        return capture.start()

    assert asyncio.run(scenario()) is False
    assert received == []


def test_null_recognizer_ends_without_a_choice():
    received: list[str] = []
    capture = _capture(NullSpeechRecognizer(), received)

    async def scenario():
        assert capture.start()
        await capture.wait_idle()

    asyncio.run(scenario())

    assert received == []
    assert not capture.is_listening


def test_failing_choice_handler_is_logged_and_capture_recovers(caplog):
    recognizer = FakeRecognizer()

    async def on_choice(text: str) -> None:
        raise RuntimeError(f"cannot use {text}")

    capture = VoiceCaptureDebouncer(recognizer, on_choice, Language.EN, debounce_seconds=0)

    async def scenario():
        capture.start()
        recognizer.emit_results(RecognitionResult("the castle", is_final=True))
        recognizer.emit_end()
        task = capture._delivery_task
        await capture.wait_idle()
        assert task.done()
        assert task.exception() is None
        assert not capture.is_awaiting_feedback
        return capture.start()

    assert asyncio.run(scenario()) is True
    assert "could not be delivered" in caplog.text
    assert "cannot use the castle" in caplog.text
