from __future__ import annotations

import asyncio

import pytest

from studybank.tutor.errors import ServiceError
from studybank.tutor.manager import DIALOGUE_TEMPERATURE, DialogueManager
from studybank.tutor.modes import ModeController
from studybank.tutor.prompts import (
    BEGIN_SENTINEL,
    SYSTEM_INSTRUCTION,
    TUTOR_EMPTY_RESPONSE,
    TUTOR_ERROR_MESSAGE,
)
from studybank.tutor.schemas import Category, Mode, Role, TextSegment
from studybank.tutor.storage import MaterialStore


def _make_manager(service, store=None, mode=Mode.DIALOGUE):
    modes = ModeController(mode=mode)
    manager = DialogueManager(store=store or MaterialStore(), client=service, modes=modes)
    return manager, modes


async def _wait_for_calls(service, count: int) -> None:
    while len(service.calls) < count:
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_submit_appends_user_then_model_turn(make_service) -> None:
    service = make_service(["**Confidentiality** protects data."])
    manager, _ = _make_manager(service)

    reply = await manager.submit("What is confidentiality?")

    assert [turn.role for turn in manager.turns] == [Role.USER, Role.MODEL]
    assert manager.turns[0].content == "What is confidentiality?"
    assert reply == manager.turns[1]
    assert reply.content == "**Confidentiality** protects data."


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n"])
async def test_blank_submit_is_noop(make_service, text: str) -> None:
    service = make_service()
    manager, modes = _make_manager(service, mode=Mode.EXAM_PRACTICE)

    assert await manager.submit(text) is None
    assert manager.turns == ()
    assert service.calls == []
    assert modes.mode is Mode.EXAM_PRACTICE


@pytest.mark.asyncio
async def test_service_failure_becomes_single_system_turn(make_service) -> None:
    service = make_service(error=ServiceError("boom"))
    manager, _ = _make_manager(service)

    reply = await manager.submit("Explain the CFAA")

    assert [turn.role for turn in manager.turns] == [Role.USER, Role.SYSTEM]
    assert reply.content == TUTOR_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_unexpected_failure_is_swallowed(make_service) -> None:
    service = make_service(error=RuntimeError("socket closed"))
    manager, _ = _make_manager(service)

    reply = await manager.submit("Explain the CFAA")

    assert reply.role is Role.SYSTEM
    assert len(manager.turns) == 2


@pytest.mark.asyncio
async def test_empty_reply_uses_fallback(make_service) -> None:
    service = make_service(["   "])
    manager, _ = _make_manager(service)

    reply = await manager.submit("Anything?")

    assert reply.role is Role.MODEL
    assert reply.content == TUTOR_EMPTY_RESPONSE


@pytest.mark.asyncio
async def test_request_shape(make_service) -> None:
    store = MaterialStore()
    store.add_text("Risk = Threat x Vulnerability", Category.READING)
    service = make_service()
    manager, _ = _make_manager(service, store=store)

    await manager.submit("How is risk measured?")

    call = service.calls[0]
    assert call["system"] == SYSTEM_INSTRUCTION
    assert call["temperature"] == DIALOGUE_TEMPERATURE
    assert call["history"] == []
    assert call["segments"][0] == TextSegment(BEGIN_SENTINEL)
    assert call["segments"][-1] == TextSegment("How is risk measured?")


@pytest.mark.asyncio
async def test_history_skips_system_turns(make_service) -> None:
    service = make_service(error=ServiceError("down"))
    manager, _ = _make_manager(service)
    await manager.submit("first question")

    service.error = None
    service.responses = ["answer"]
    await manager.submit("second question")

    history = service.calls[1]["history"]
    assert [(entry.role, entry.text) for entry in history] == [(Role.USER, "first question")]


@pytest.mark.asyncio
async def test_user_turn_is_visible_while_request_is_pending(make_service) -> None:
    service = make_service(["done"])
    service.gate = asyncio.Event()
    manager, _ = _make_manager(service)

    task = asyncio.create_task(manager.submit("Define PII"))
    await _wait_for_calls(service, 1)

    assert [turn.role for turn in manager.turns] == [Role.USER]
    assert manager.is_pending

    service.gate.set()
    await task

    assert [turn.role for turn in manager.turns] == [Role.USER, Role.MODEL]
    assert not manager.is_pending


@pytest.mark.asyncio
async def test_in_flight_request_keeps_its_snapshot(make_service) -> None:
    store = MaterialStore()
    material = store.add_text("Equifax failed to patch", Category.CASE)
    service = make_service()
    service.gate = asyncio.Event()
    manager, _ = _make_manager(service, store=store)

    task = asyncio.create_task(manager.submit("What went wrong at Equifax?"))
    await _wait_for_calls(service, 1)
    store.remove(material.id)
    store.add_text("Unrelated note", Category.EXAM)
    service.gate.set()
    await task

    texts = [segment.text for segment in service.calls[0]["segments"]]
    assert "Equifax failed to patch" in texts
    assert "Unrelated note" not in texts


@pytest.mark.asyncio
async def test_concurrent_submits_are_answered_in_call_order(make_service) -> None:
    service = make_service(["first answer", "second answer"])
    service.gate = asyncio.Event()
    manager, _ = _make_manager(service)

    first = asyncio.create_task(manager.submit("first"))
    second = asyncio.create_task(manager.submit("second"))
    await _wait_for_calls(service, 1)

    assert [turn.content for turn in manager.turns] == ["first", "second"]

    service.gate.set()
    await asyncio.gather(first, second)

    assert [turn.content for turn in manager.turns] == [
        "first",
        "second",
        "first answer",
        "second answer",
    ]
    second_history = [entry.text for entry in service.calls[1]["history"]]
    assert second_history == ["first", "first answer"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("start", "expected"),
    [
        (Mode.EXAM_PRACTICE, Mode.DIALOGUE),
        (Mode.EDITING, Mode.EDITING),
        (Mode.DIALOGUE, Mode.DIALOGUE),
    ],
)
async def test_submit_switches_only_out_of_exam_practice(make_service, start, expected) -> None:
    manager, modes = _make_manager(make_service(), mode=start)

    await manager.submit("Write a model answer")

    assert modes.mode is expected


@pytest.mark.asyncio
async def test_empty_bank_scenario(make_service) -> None:
    store = MaterialStore()
    service = make_service()
    manager, _ = _make_manager(service, store=store)

    await manager.submit("What is the CIA triad?")

    assert [turn.role for turn in manager.turns][0] is Role.USER
    assert manager.turns[1].role in (Role.MODEL, Role.SYSTEM)
    assert len(manager.turns) == 2
    assert len(store) == 0
    assert service.calls[0]["segments"] == [TextSegment("What is the CIA triad?")]


@pytest.mark.asyncio
async def test_clear_keeps_materials(make_service) -> None:
    store = MaterialStore()
    store.add_text("kept", Category.LECTURE)
    manager, _ = _make_manager(make_service(), store=store)
    await manager.submit("hello")

    manager.clear()

    assert manager.turns == ()
    assert len(store) == 1


@pytest.mark.asyncio
async def test_turn_timestamps_are_monotonic(make_service) -> None:
    manager, _ = _make_manager(make_service(["a", "b"]))
    await manager.submit("one")
    await manager.submit("two")

    stamps = [turn.timestamp for turn in manager.turns]
    assert stamps == sorted(stamps)
    assert len({turn.id for turn in manager.turns}) == 4
