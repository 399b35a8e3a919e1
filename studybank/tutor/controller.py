"""Session facade that routes user actions between the assistant's components."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .clients import ModelService
from .errors import ValidationError
from .manager import DialogueManager
from .modes import ModeController
from .prompts import MODEL_ANSWER_REQUEST
from .schemas import AnalysisKind, AnalysisOutcome, BatchUpload, Category, Material, Mode, Turn
from .storage import MAX_FILE_BYTES, MaterialStore
from .tools import AnalysisEngine, ExamGenerator

logger = logging.getLogger(__name__)


@dataclass
class StudyAssistant:
    """One study session: knowledge bank, conversation, exam practice.

    The conversation and the knowledge bank are owned separately. Clearing the
    chat leaves the materials alone; only :meth:`reset` touches both, restoring
    the bank to the materials the session started with.
    """

    client: ModelService
    seed: Sequence[Material] = ()
    max_file_bytes: int = MAX_FILE_BYTES
    modes: ModeController = field(default_factory=ModeController)

    def __post_init__(self) -> None:
        self.seed = tuple(self.seed)
        self.store = MaterialStore(self.seed, max_file_bytes=self.max_file_bytes)
        self.dialogue = DialogueManager(store=self.store, client=self.client, modes=self.modes)
        self.analysis = AnalysisEngine(client=self.client)
        self.exam = ExamGenerator(client=self.client)
        self.last_hypothetical: Optional[str] = None

    @property
    def mode(self) -> Mode:
        return self.modes.mode

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return self.dialogue.turns

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def navigate(self, target: Mode | str) -> Mode:
        return self.modes.navigate(target)

    # ------------------------------------------------------------------
    # Knowledge bank editing
    # ------------------------------------------------------------------
    def add_note(self, content: str, category: Category | str) -> Material:
        return self.store.add_text(content, category)

    def add_uploads(
        self,
        uploads: Iterable[Tuple[str, bytes, Optional[str]]],
        category: Category | str,
    ) -> BatchUpload:
        return self.store.add_uploads(uploads, category)

    async def upload_files(self, paths: Sequence[str | Path], category: Category | str) -> BatchUpload:
        return await self.store.ingest_files(paths, category)

    def remove_material(self, material_id: str) -> None:
        self.store.remove(material_id)

    async def analyze(self, kind: AnalysisKind | str) -> AnalysisOutcome:
        context = self.store.snapshot()
        if not context:
            raise ValidationError(
                "The Knowledge Bank is empty.",
                detail="Add exams and notes before running an analysis.",
            )
        return await self.analysis(context, kind)

    # ------------------------------------------------------------------
    # Dialogue
    # ------------------------------------------------------------------
    async def submit(self, text: str) -> Optional[Turn]:
        return await self.dialogue.submit(text)

    def clear_chat(self) -> None:
        self.dialogue.clear()

    def reset(self) -> None:
        """Start over: empty the chat and restore the seeded knowledge bank."""

        logger.info("Resetting session")
        self.dialogue.clear()
        self.store.replace(self.seed)

    # ------------------------------------------------------------------
    # Exam practice
    # ------------------------------------------------------------------
    async def generate_hypothetical(self, topic: str) -> str:
        if not topic or not topic.strip():
            raise ValidationError("Enter a topic to generate a hypothetical.")
        self.last_hypothetical = await self.exam(topic.strip())
        return self.last_hypothetical

    async def request_model_answer(self, hypothetical: Optional[str] = None) -> Optional[Turn]:
        """Ask the tutor for a model answer to the current hypothetical."""

        hypothetical = hypothetical or self.last_hypothetical
        if not hypothetical:
            raise ValidationError("Generate a hypothetical before asking for an answer.")
        return await self.dialogue.submit(MODEL_ANSWER_REQUEST.format(hypothetical=hypothetical))

    def materials(self) -> List[Material]:
        return list(self.store.snapshot())


__all__ = ["StudyAssistant"]
