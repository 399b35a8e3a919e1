"""Conversation state and grounded tutor requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from .clients import ModelService
from .context import build
from .modes import ModeController
from .prompts import SYSTEM_INSTRUCTION, TUTOR_EMPTY_RESPONSE, TUTOR_ERROR_MESSAGE
from .schemas import HistoryEntry, KnowledgeContext, Role, Segment, TextSegment, Turn
from .storage import MaterialStore

logger = logging.getLogger(__name__)

DIALOGUE_TEMPERATURE = 0.5


@dataclass
class DialogueManager:
    """Own the conversation and issue grounded requests to the model service.

    ``submit`` appends the user's turn before it suspends, then appends exactly
    one follow-up turn once the service resolves: the model's reply, a fallback
    apology for an empty reply, or a system turn when the call failed.
    Concurrent submits are served one at a time so follow-up turns land in call
    order.
    """

    store: MaterialStore
    client: ModelService
    modes: ModeController = field(default_factory=ModeController)
    system_instruction: str = SYSTEM_INSTRUCTION
    temperature: Optional[float] = DIALOGUE_TEMPERATURE

    def __post_init__(self) -> None:
        self._turns: List[Turn] = []
        self._pending: Set[str] = set()
        self._lock = asyncio.Lock()

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def is_pending(self) -> bool:
        return bool(self._pending)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def submit(self, user_text: str) -> Optional[Turn]:
        """Send ``user_text`` to the tutor and return the follow-up turn.

        Returns ``None`` without touching the conversation when the text is
        empty or whitespace-only.
        """

        if not user_text or not user_text.strip():
            logger.debug("Ignoring empty submission")
            return None

        user_turn = self._append(Role.USER, user_text)
        self._pending.add(user_turn.id)
        self.modes.on_submit()

        async with self._lock:
            try:
                history = self.history_entries()
                context = self.store.snapshot()
                return await self._request_reply(history, context, user_text)
            finally:
                self._pending.discard(user_turn.id)

    def clear(self) -> None:
        logger.info("Clearing conversation (%s turns)", len(self._turns))
        self._turns.clear()

    def history_entries(self) -> List[HistoryEntry]:
        """Prior turns as sent to the service.

        System turns are never sent, nor are user turns whose submit is still
        waiting for its reply.
        """

        return [
            HistoryEntry(role=turn.role, text=turn.content)
            for turn in self._turns
            if turn.role is not Role.SYSTEM and turn.id not in self._pending
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def build_segments(self, context: KnowledgeContext, user_text: str) -> List[Segment]:
        return [*build(context), TextSegment(user_text)]

    async def _request_reply(
        self,
        history: List[HistoryEntry],
        context: KnowledgeContext,
        user_text: str,
    ) -> Turn:
        segments = self.build_segments(context, user_text)
        if not context:
            logger.info("No materials in the knowledge bank; sending ungrounded request")
        try:
            text = await self.client.generate(
                self.system_instruction,
                history,
                segments,
                temperature=self.temperature,
            )
        except Exception:
            logger.exception("Tutor request failed")
            return self._append(Role.SYSTEM, TUTOR_ERROR_MESSAGE)

        if not text or not text.strip():
            logger.warning("Model service returned an empty tutor response")
            return self._append(Role.MODEL, TUTOR_EMPTY_RESPONSE)
        return self._append(Role.MODEL, text)

    def _append(self, role: Role, content: str) -> Turn:
        turn = Turn(role=role, content=content)
        self._turns.append(turn)
        return turn


__all__ = ["DIALOGUE_TEMPERATURE", "DialogueManager"]
