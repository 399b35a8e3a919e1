from __future__ import annotations

import asyncio
from typing import Any, List, Mapping, Optional, Sequence

import pytest

from studybank.tutor.schemas import HistoryEntry, Segment, TextSegment


class FakeModelService:
    """Records every request and replies from a queue (or echoes the last text segment)."""

    def __init__(
        self,
        responses: Optional[Sequence[str]] = None,
        *,
        error: Optional[Exception] = None,
        echo: bool = False,
    ) -> None:
        self.responses = list(responses or [])
        self.error = error
        self.echo = echo
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[Mapping[str, Any]] = []

    async def generate(
        self,
        system_instruction: str,
        history: Sequence[HistoryEntry],
        segments: Sequence[Segment],
        *,
        temperature: float | None = None,
    ) -> str:
        self.calls.append(
            {
                "system": system_instruction,
                "history": list(history),
                "segments": list(segments),
                "temperature": temperature,
            }
        )
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.echo:
            last = segments[-1]
            return last.text if isinstance(last, TextSegment) else ""
        if self.responses:
            return self.responses.pop(0)
        return "ok"


@pytest.fixture
def make_service():
    return FakeModelService
